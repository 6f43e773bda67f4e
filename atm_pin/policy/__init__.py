"""PIN policy and generation package."""

from atm_pin.policy.pin_policy import (
    DENYLIST,
    assess,
    has_too_many_repeats,
    is_denylisted,
    is_sequential,
    is_weak,
)
from atm_pin.policy.generator import (
    InvalidPinLengthError,
    PinGenerationError,
    PinGenerator,
)

__all__ = [
    "DENYLIST",
    "InvalidPinLengthError",
    "PinGenerationError",
    "PinGenerator",
    "assess",
    "has_too_many_repeats",
    "is_denylisted",
    "is_sequential",
    "is_weak",
]
