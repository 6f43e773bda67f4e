"""
Configuration Management for the ATM PIN Manager

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Defaults reproduce the behaviour of the original demo, so the
application runs without any .env file.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from atm_pin.models.account import DEFAULT_PIN_LENGTH, PIN_LENGTHS


class PinSettings(BaseSettings):
    """PIN generation configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PIN_",
        extra="ignore"
    )

    default_length: int = Field(
        default=DEFAULT_PIN_LENGTH,
        description="PIN length used when the caller does not choose one"
    )
    max_generation_attempts: int = Field(
        default=1000,
        ge=1,
        description="Safety cap on draws before generation gives up"
    )

    @field_validator('default_length')
    @classmethod
    def validate_default_length(cls, v: int) -> int:
        if v not in PIN_LENGTHS:
            raise ValueError(f"PIN length must be one of {PIN_LENGTHS}, got {v}")
        return v


class StoreSettings(BaseSettings):
    """Flat-file account store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        extra="ignore"
    )

    path: str = Field(
        default="atm_users.db",
        description="Path of the account file"
    )
    encoding_key: str = Field(
        default="sachin_key_v1",
        min_length=1,
        description="Key of the reversible line encoding (not a secret)"
    )
    atomic_writes: bool = Field(
        default=True,
        description="Write to a temporary file and rename it into place"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Accounts
    starting_balance: Decimal = Field(
        default=Decimal("1000.00"),
        ge=0,
        description="Balance credited to every new account"
    )

    # Audit
    audit_buffer_size: int = Field(
        default=500,
        ge=1,
        description="How many audit events the in-memory store keeps"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def pin(self) -> PinSettings:
        return PinSettings()

    @property
    def store(self) -> StoreSettings:
        return StoreSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with an
    additional "<name>_error" entry for every group that failed.
    """
    results = {}

    settings = get_settings()

    for name in ("pin", "store", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
