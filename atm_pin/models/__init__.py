"""
Data Models Package

This package contains all Pydantic models used in the ATM PIN Manager.
Account state and operation outcomes must conform to these schemas.
"""

from atm_pin.models.account import (
    DEFAULT_PIN_LENGTH,
    FIELD_SEPARATOR,
    MAX_WRONG_ATTEMPTS,
    PIN_LENGTHS,
    AccountRecord,
    AccountSummary,
    AuthResult,
    ErrorKind,
    LoadReport,
    MalformedRecordError,
    PinAssessment,
    PinChangeResult,
    ServiceResult,
    StoreResult,
    WeaknessReason,
    is_digit_string,
    quantize_amount,
)
from atm_pin.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Constants
    "DEFAULT_PIN_LENGTH",
    "FIELD_SEPARATOR",
    "MAX_WRONG_ATTEMPTS",
    "PIN_LENGTHS",
    # Account models
    "AccountRecord",
    "AccountSummary",
    "AuthResult",
    "ErrorKind",
    "LoadReport",
    "MalformedRecordError",
    "PinAssessment",
    "PinChangeResult",
    "ServiceResult",
    "StoreResult",
    "WeaknessReason",
    "is_digit_string",
    "quantize_amount",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
