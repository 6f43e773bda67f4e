"""Authentication package."""

from atm_pin.auth.engine import AuthenticationEngine

__all__ = ["AuthenticationEngine"]
