"""
Audit Models for the ATM PIN Manager

Every account action is logged for audit purposes.
This provides:
1. Traceability of every authentication attempt
2. A record of when and why an account locked
3. Debugging information when the account file is damaged

CRITICAL: PINs never appear in an audit event, not even the issued one.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Account lifecycle
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_CREATION_REJECTED = "account_creation_rejected"
    PIN_ISSUED = "pin_issued"

    # Authentication
    AUTH_SUCCEEDED = "auth_succeeded"
    AUTH_FAILED = "auth_failed"
    ACCOUNT_LOCKED = "account_locked"
    LOCKED_ATTEMPT_REJECTED = "locked_attempt_rejected"

    # PIN change
    PIN_CHANGED = "pin_changed"
    PIN_CHANGE_REJECTED = "pin_change_rejected"

    # Balance
    WITHDRAWAL_COMPLETED = "withdrawal_completed"
    WITHDRAWAL_REJECTED = "withdrawal_rejected"

    # Persistence
    STORE_LOADED = "store_loaded"
    RECORD_SKIPPED = "record_skipped"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Which account is this about?
    username: Optional[str] = Field(
        default=None,
        description="Account the event relates to, if any"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "username": self.username,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.account_created("alice", 4)
        event = AuditEventBuilder.auth_failed("alice", attempts=2, remaining=1)
    """

    @staticmethod
    def account_created(username: str, pin_length: int, balance: Decimal) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_CREATED,
            username=username,
            description=f"Account created: {username}",
            details={
                "pin_length": pin_length,
                "starting_balance": f"{balance:.2f}",
            },
        )

    @staticmethod
    def account_creation_rejected(username: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_CREATION_REJECTED,
            severity=AuditSeverity.WARNING,
            username=username,
            description=f"Account creation rejected: {reason}",
            details={"reason": reason},
        )

    @staticmethod
    def pin_issued(username: str, pin_length: int, draws: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PIN_ISSUED,
            username=username,
            description=f"{pin_length}-digit PIN issued",
            details={
                "pin_length": pin_length,
                "draws": draws,
            },
        )

    @staticmethod
    def auth_succeeded(username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTH_SUCCEEDED,
            username=username,
            description="Authentication succeeded",
        )

    @staticmethod
    def auth_failed(username: str, attempts: int, remaining: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTH_FAILED,
            severity=AuditSeverity.WARNING,
            username=username,
            description=f"Wrong PIN ({attempts} attempts, {remaining} remaining)",
            details={
                "attempts": attempts,
                "remaining_attempts": remaining,
            },
        )

    @staticmethod
    def account_locked(username: str, attempts: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_LOCKED,
            severity=AuditSeverity.ERROR,
            username=username,
            description="Account locked after too many wrong attempts",
            details={"attempts": attempts},
        )

    @staticmethod
    def locked_attempt_rejected(username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOCKED_ATTEMPT_REJECTED,
            severity=AuditSeverity.WARNING,
            username=username,
            description="Authentication refused: account is locked",
        )

    @staticmethod
    def pin_changed(username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PIN_CHANGED,
            username=username,
            description="PIN changed",
        )

    @staticmethod
    def pin_change_rejected(username: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PIN_CHANGE_REJECTED,
            severity=AuditSeverity.WARNING,
            username=username,
            description=f"PIN change rejected: {reason}",
            details={"reason": reason},
        )

    @staticmethod
    def withdrawal_completed(username: str, amount: Decimal, balance: Decimal) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WITHDRAWAL_COMPLETED,
            username=username,
            description=f"Withdrawal of {amount:.2f}",
            details={
                "amount": f"{amount:.2f}",
                "balance": f"{balance:.2f}",
            },
        )

    @staticmethod
    def withdrawal_rejected(username: str, amount: Decimal, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WITHDRAWAL_REJECTED,
            severity=AuditSeverity.WARNING,
            username=username,
            description=f"Withdrawal rejected: {reason}",
            details={
                "amount": str(amount),
                "reason": reason,
            },
        )

    @staticmethod
    def store_loaded(path: str, loaded: int, skipped: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_LOADED,
            severity=AuditSeverity.WARNING if skipped else AuditSeverity.INFO,
            description=f"Loaded {loaded} accounts, skipped {skipped} malformed lines",
            details={
                "path": path,
                "loaded": loaded,
                "skipped": skipped,
            },
        )

    @staticmethod
    def record_skipped(
        path: str,
        line_number: int,
        error_message: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_SKIPPED,
            severity=AuditSeverity.WARNING,
            description=f"Skipped malformed record on line {line_number}",
            error_message=error_message,
            details={
                "path": path,
                "line_number": line_number,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        username: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            username=username,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
