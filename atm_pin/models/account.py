"""
Core Data Models for the ATM PIN Manager

These models define the strict schemas for account state and for the
outcome of every operation on it. They are designed to:
1. Enforce the account invariants at construction time
2. Reproduce the fixed line format of the account file exactly
3. Carry expected failures as values, not exceptions

DESIGN DECISION: AccountRecord is frozen. Changes go through
`with_changes`, which re-runs validation, so a record that breaks an
invariant can never be built, loaded or persisted.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)


MAX_WRONG_ATTEMPTS = 3
PIN_LENGTHS = (4, 6)
DEFAULT_PIN_LENGTH = 4
FIELD_SEPARATOR = "|"

_CENTS = Decimal("0.01")


def quantize_amount(value: Decimal) -> Decimal:
    """
    Round an amount to cents, half up.

    Raises decimal.InvalidOperation when the result would need more
    digits than the decimal context allows.
    """
    # Adding zero turns -0.00 into 0.00
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP) + 0


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ErrorKind(str, Enum):
    """
    Why an operation did not succeed.

    None of these are fatal: every one is returned to the caller,
    who decides what to show the user.
    """
    USER_ALREADY_EXISTS = "user_already_exists"
    USER_NOT_FOUND = "user_not_found"
    ACCOUNT_LOCKED = "account_locked"
    WRONG_PIN = "wrong_pin"
    INVALID_LENGTH = "invalid_length"
    INVALID_FORMAT = "invalid_format"
    WEAK_PIN = "weak_pin"
    MALFORMED_RECORD = "malformed_record"
    UNENCODABLE_RECORD = "unencodable_record"

    # Session layer only
    INVALID_USERNAME = "invalid_username"
    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    STORAGE_ERROR = "storage_error"


class WeaknessReason(str, Enum):
    """Reasons the PIN policy rejects a candidate."""
    SEQUENTIAL = "sequential"
    REPEATED_DIGITS = "repeated_digits"
    DENYLISTED = "denylisted"


class MalformedRecordError(ValueError):
    """A stored line could not be turned into an AccountRecord."""

    def __init__(self, line: str, message: str):
        self.line = line
        super().__init__(message)


# =============================================================================
# CORE ACCOUNT MODEL
# =============================================================================

class AccountRecord(BaseModel):
    """
    One user's persisted state.

    The PIN is held in plain text in memory and only passes through
    the reversible line encoding on disk. There is no confidentiality
    guarantee for it anywhere.
    """
    model_config = ConfigDict(frozen=True)

    username: str = Field(
        ...,
        min_length=1,
        description="Unique account name"
    )
    pin: str = Field(
        ...,
        description="Decimal digit string of length 4 or 6"
    )
    balance: Decimal = Field(
        default=Decimal("0.00"),
        ge=0,
        description="Balance, kept at cent precision"
    )
    wrong_attempts: int = Field(
        default=0,
        ge=0,
        le=MAX_WRONG_ATTEMPTS,
        description="Consecutive failed authentications"
    )
    locked: bool = Field(
        default=False,
        description="Locked accounts refuse every authentication"
    )

    @field_validator('username')
    @classmethod
    def validate_username(cls, v: str) -> str:
        if FIELD_SEPARATOR in v:
            raise ValueError(f"Username cannot contain '{FIELD_SEPARATOR}'")
        if any(ch.isspace() for ch in v):
            raise ValueError("Username cannot contain whitespace")
        return v

    @field_validator('pin')
    @classmethod
    def validate_pin(cls, v: str) -> str:
        if not is_digit_string(v):
            raise ValueError("PIN must contain only the digits 0-9")
        if len(v) not in PIN_LENGTHS:
            raise ValueError(f"PIN length must be one of {PIN_LENGTHS}, got {len(v)}")
        return v

    @field_validator('balance')
    @classmethod
    def round_balance(cls, v: Decimal) -> Decimal:
        try:
            return quantize_amount(v)
        except InvalidOperation:
            raise ValueError("Balance has too many digits to hold in cents")

    @model_validator(mode='after')
    def validate_lock_state(self) -> 'AccountRecord':
        if self.locked and self.wrong_attempts < MAX_WRONG_ATTEMPTS:
            raise ValueError(
                f"Locked account must have at least {MAX_WRONG_ATTEMPTS} wrong attempts"
            )
        return self

    @property
    def pin_length(self) -> int:
        return len(self.pin)

    @property
    def remaining_attempts(self) -> int:
        return max(0, MAX_WRONG_ATTEMPTS - self.wrong_attempts)

    def with_changes(self, **changes: Any) -> 'AccountRecord':
        """
        Return a validated copy with some fields replaced.

        The username is fixed for the lifetime of an account.
        """
        if "username" in changes and changes["username"] != self.username:
            raise ValueError("Username cannot be changed")
        return AccountRecord.model_validate({**self.model_dump(), **changes})

    def to_line(self) -> str:
        """
        Serialize to the account file format (before encoding).

        Format: username|pin|balance|wrong_attempts|locked
        with the balance at exactly two decimals and locked as 1/0.
        """
        return FIELD_SEPARATOR.join([
            self.username,
            self.pin,
            f"{self.balance:.2f}",
            str(self.wrong_attempts),
            "1" if self.locked else "0",
        ])

    @classmethod
    def from_line(cls, line: str) -> 'AccountRecord':
        """
        Parse a decoded line of the account file.

        Raises:
            MalformedRecordError: if the line does not hold a valid record
        """
        fields = line.split(FIELD_SEPARATOR)
        if len(fields) != 5:
            raise MalformedRecordError(line, f"Expected 5 fields, found {len(fields)}")

        username, pin, balance, wrong_attempts, locked = fields
        if locked not in ("0", "1"):
            raise MalformedRecordError(line, f"Invalid locked flag: {locked!r}")

        try:
            return cls(
                username=username,
                pin=pin,
                balance=Decimal(balance),
                wrong_attempts=int(wrong_attempts),
                locked=locked == "1",
            )
        except (InvalidOperation, ValueError, ValidationError) as e:
            raise MalformedRecordError(line, str(e)) from e


class AccountSummary(BaseModel):
    """
    Administrative view of an account.

    CRITICAL: This model has no PIN field. It is the only shape in
    which accounts are listed without authentication.
    """

    username: str
    balance: Decimal
    wrong_attempts: int
    locked: bool

    @classmethod
    def from_record(cls, record: AccountRecord) -> 'AccountSummary':
        return cls(
            username=record.username,
            balance=record.balance,
            wrong_attempts=record.wrong_attempts,
            locked=record.locked,
        )


# =============================================================================
# PIN POLICY MODELS
# =============================================================================

class PinAssessment(BaseModel):
    """Result of running a candidate PIN through the policy."""

    pin_length: int = Field(ge=0)
    reasons: list[WeaknessReason] = Field(default_factory=list)

    @property
    def is_weak(self) -> bool:
        return bool(self.reasons)


# =============================================================================
# OPERATION RESULTS
# =============================================================================

class StoreResult(BaseModel):
    """
    Outcome of a store mutation.

    Truthy exactly when the mutation happened, so it reads as a bool.
    """

    success: bool
    kind: Optional[ErrorKind] = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls) -> 'StoreResult':
        return cls(success=True)

    @classmethod
    def failed(cls, kind: ErrorKind) -> 'StoreResult':
        return cls(success=False, kind=kind)


class LoadReport(BaseModel):
    """Summary of a full load of the account file."""

    loaded: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    skipped_lines: list[int] = Field(
        default_factory=list,
        description="1-based line numbers that were malformed"
    )


class AuthResult(BaseModel):
    """Outcome of one authentication attempt."""

    success: bool
    record: Optional[AccountRecord] = None
    kind: Optional[ErrorKind] = None
    attempts: int = Field(default=0, ge=0)
    remaining_attempts: int = Field(default=MAX_WRONG_ATTEMPTS, ge=0)
    message: str = ""


class PinChangeResult(BaseModel):
    """Outcome of a PIN change."""

    success: bool
    record: Optional[AccountRecord] = None
    kind: Optional[ErrorKind] = None
    message: str = ""

    @property
    def reason(self) -> Optional[ErrorKind]:
        return self.kind

    @classmethod
    def from_auth(cls, auth: AuthResult) -> 'PinChangeResult':
        return cls(
            success=False,
            record=auth.record,
            kind=auth.kind,
            message=auth.message,
        )


class ServiceResult(BaseModel):
    """
    Outcome of a session-layer action.

    `issued_pin` is only ever set by account creation, the one
    moment a PIN is shown to its owner.
    """

    success: bool
    kind: Optional[ErrorKind] = None
    message: str = ""
    account: Optional[AccountSummary] = None
    issued_pin: Optional[str] = None
    remaining_attempts: Optional[int] = None


def is_digit_string(value: str) -> bool:
    """True if value is non-empty and made of ASCII digits only."""
    return bool(value) and all("0" <= ch <= "9" for ch in value)
