"""
PIN Generator

Draws uniform random digits until the result passes the PIN policy.

The random source is injected so tests can seed it. The default is
`random.SystemRandom`, which reads from the operating system.

Retrying is handled by tenacity: a draw is retried while its result
is weak, up to an optional safety cap. The cap never changes which
PINs are accepted, only how long we are willing to look.
"""

import random
from typing import Optional

import structlog
from tenacity import RetryError, Retrying, retry_if_result, stop_after_attempt, stop_never

from atm_pin.config import get_settings
from atm_pin.models.account import DEFAULT_PIN_LENGTH, PIN_LENGTHS
from atm_pin.policy import pin_policy


logger = structlog.get_logger(__name__)

_DIGITS = "0123456789"


class PinGenerationError(Exception):
    """No acceptable PIN was drawn within the safety cap."""

    def __init__(self, length: int, attempts: int):
        self.length = length
        self.attempts = attempts
        super().__init__(
            f"No acceptable {length}-digit PIN after {attempts} draws"
        )


class InvalidPinLengthError(ValueError):
    """Requested PIN length is not supported."""

    def __init__(self, length: int):
        self.length = length
        super().__init__(f"PIN length must be one of {PIN_LENGTHS}, got {length}")


class PinGenerator:
    """
    Produces PINs that are never weak.

    Usage:
        generator = PinGenerator(rng=random.Random(42))
        pin = generator.generate(6)
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        max_attempts: Optional[int] = -1,
    ):
        """
        Initialize generator.

        Args:
            rng: Random source. Defaults to random.SystemRandom().
            max_attempts: Safety cap on draws. None means unbounded,
                          -1 (default) reads the cap from settings.
        """
        self._rng = rng or random.SystemRandom()
        if max_attempts == -1:
            max_attempts = get_settings().pin.max_generation_attempts
        self._max_attempts = max_attempts
        self.last_draw_count = 0

    def _draw(self, length: int) -> str:
        self.last_draw_count += 1
        return "".join(self._rng.choice(_DIGITS) for _ in range(length))

    def generate(self, length: int = DEFAULT_PIN_LENGTH) -> str:
        """
        Generate a PIN of the given length that passes the policy.

        Raises:
            InvalidPinLengthError: if length is not 4 or 6
            PinGenerationError: if the safety cap is exhausted
        """
        if length not in PIN_LENGTHS:
            raise InvalidPinLengthError(length)

        self.last_draw_count = 0
        retrying = Retrying(
            retry=retry_if_result(pin_policy.is_weak),
            stop=(
                stop_never
                if self._max_attempts is None
                else stop_after_attempt(self._max_attempts)
            ),
        )

        try:
            pin = retrying(self._draw, length)
        except RetryError as e:
            logger.error(
                "pin_generation_exhausted",
                length=length,
                attempts=self.last_draw_count,
            )
            raise PinGenerationError(length, self.last_draw_count) from e

        logger.debug("pin_generated", length=length, draws=self.last_draw_count)
        return pin
