"""
Audit Logger

DESIGN DECISION: Every account action is logged.
This provides:
1. A trail of every authentication attempt and lockout
2. Debugging capability when the account file is damaged
3. An activity view for the admin page

The audit logger:
- Never receives a PIN
- Gracefully handles failures (doesn't crash the app if logging fails)
- Logs locally even when no audit storage is configured
"""

import logging
from decimal import Decimal
from typing import Optional

import structlog

from atm_pin.models.account import LoadReport
from atm_pin.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from atm_pin.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(debug: bool = False) -> None:
    """Route stdlib logging to stderr at INFO, or DEBUG when debugging."""
    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if debug else logging.INFO,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for the admin activity view), if configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("atm_pin.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage is not None:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_account_created(self, username: str, pin_length: int, balance: Decimal) -> None:
        self.log(AuditEventBuilder.account_created(username, pin_length, balance))

    def log_account_creation_rejected(self, username: str, reason: str) -> None:
        self.log(AuditEventBuilder.account_creation_rejected(username, reason))

    def log_pin_issued(self, username: str, pin_length: int, draws: int) -> None:
        self.log(AuditEventBuilder.pin_issued(username, pin_length, draws))

    def log_auth_succeeded(self, username: str) -> None:
        self.log(AuditEventBuilder.auth_succeeded(username))

    def log_auth_failed(self, username: str, attempts: int, remaining: int) -> None:
        self.log(AuditEventBuilder.auth_failed(username, attempts, remaining))

    def log_account_locked(self, username: str, attempts: int) -> None:
        self.log(AuditEventBuilder.account_locked(username, attempts))

    def log_locked_attempt_rejected(self, username: str) -> None:
        self.log(AuditEventBuilder.locked_attempt_rejected(username))

    def log_pin_changed(self, username: str) -> None:
        self.log(AuditEventBuilder.pin_changed(username))

    def log_pin_change_rejected(self, username: str, reason: str) -> None:
        self.log(AuditEventBuilder.pin_change_rejected(username, reason))

    def log_withdrawal_completed(self, username: str, amount: Decimal, balance: Decimal) -> None:
        self.log(AuditEventBuilder.withdrawal_completed(username, amount, balance))

    def log_withdrawal_rejected(self, username: str, amount: Decimal, reason: str) -> None:
        self.log(AuditEventBuilder.withdrawal_rejected(username, amount, reason))

    def log_store_loaded(self, path: str, report: LoadReport) -> None:
        """Log a load summary plus one event per skipped line."""
        for line_number in report.skipped_lines:
            self.log(AuditEventBuilder.record_skipped(path, line_number))
        self.log(AuditEventBuilder.store_loaded(path, report.loaded, report.skipped))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        username: Optional[str] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            username=username,
        ))
