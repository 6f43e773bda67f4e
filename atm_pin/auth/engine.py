"""
Authentication Engine

Per-account state machine:

    Unlocked(attempts) --correct PIN--> Unlocked(0)
    Unlocked(attempts) --wrong PIN----> Unlocked(attempts + 1)
                                        or Locked, once attempts reach the limit
    Locked             --any PIN------> Locked (refused, nothing counted)

Every attempt against an unlocked account is persisted, whether it
succeeds or not. Locking is terminal: only editing the account file
unlocks an account.

The engine never raises for an expected outcome. Wrong PINs, locked
accounts and rejected PIN changes come back as result values.
"""

from typing import Optional

import structlog

from atm_pin.audit import AuditLogger
from atm_pin.models.account import (
    MAX_WRONG_ATTEMPTS,
    AccountRecord,
    AuthResult,
    ErrorKind,
    PinChangeResult,
    is_digit_string,
)
from atm_pin.policy import pin_policy
from atm_pin.services.storage import AccountStorageInterface


logger = structlog.get_logger(__name__)


class AuthenticationEngine:
    """
    Applies authentication attempts, lockout and PIN changes.

    Records passed in are treated as values: the engine returns the
    updated record and persists it through the store.
    """

    def __init__(
        self,
        store: AccountStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger

    def _not_persisted(self, record: AccountRecord, kind: ErrorKind) -> AuthResult:
        logger.warning("attempt_not_persisted", username=record.username, kind=kind.value)
        return AuthResult(
            success=False,
            record=record,
            kind=kind,
            attempts=record.wrong_attempts,
            remaining_attempts=record.remaining_attempts,
            message="Account could not be updated",
        )

    def authenticate(self, record: AccountRecord, entered_pin: str) -> AuthResult:
        """
        Check entered_pin against the account.

        Returns:
            AuthResult with the updated record. On failure `kind` is
            ACCOUNT_LOCKED (nothing counted) or WRONG_PIN (counted and
            persisted; the record may now be locked).
        """
        if record.locked:
            if self._audit_logger:
                self._audit_logger.log_locked_attempt_rejected(record.username)
            return AuthResult(
                success=False,
                record=record,
                kind=ErrorKind.ACCOUNT_LOCKED,
                attempts=record.wrong_attempts,
                remaining_attempts=0,
                message="Account is locked due to too many wrong attempts",
            )

        if entered_pin == record.pin:
            updated = record.with_changes(wrong_attempts=0)
            stored = self._store.update(updated)
            if not stored:
                return self._not_persisted(record, stored.kind)

            if self._audit_logger:
                self._audit_logger.log_auth_succeeded(record.username)
            return AuthResult(
                success=True,
                record=updated,
                attempts=0,
                remaining_attempts=MAX_WRONG_ATTEMPTS,
                message="Authentication successful",
            )

        # An account unlocked by hand may still carry the full count
        attempts = min(record.wrong_attempts + 1, MAX_WRONG_ATTEMPTS)
        locked = attempts >= MAX_WRONG_ATTEMPTS
        updated = record.with_changes(wrong_attempts=attempts, locked=locked)
        stored = self._store.update(updated)
        if not stored:
            return self._not_persisted(record, stored.kind)

        remaining = updated.remaining_attempts
        if self._audit_logger:
            self._audit_logger.log_auth_failed(record.username, attempts, remaining)
            if locked:
                self._audit_logger.log_account_locked(record.username, attempts)

        message = f"Wrong PIN. Attempts: {attempts}/{MAX_WRONG_ATTEMPTS}"
        if locked:
            message += ". Account locked due to too many wrong attempts"
        return AuthResult(
            success=False,
            record=updated,
            kind=ErrorKind.WRONG_PIN,
            attempts=attempts,
            remaining_attempts=remaining,
            message=message,
        )

    def authenticate_user(self, username: str, entered_pin: str) -> AuthResult:
        """Look the account up, then authenticate against it."""
        record = self._store.get(username)
        if record is None:
            return AuthResult(
                success=False,
                kind=ErrorKind.USER_NOT_FOUND,
                message=f"No such user: {username}",
            )
        return self.authenticate(record, entered_pin)

    def _reject_change(
        self,
        record: AccountRecord,
        kind: ErrorKind,
        message: str,
    ) -> PinChangeResult:
        if self._audit_logger:
            self._audit_logger.log_pin_change_rejected(record.username, kind.value)
        return PinChangeResult(success=False, record=record, kind=kind, message=message)

    def change_pin(
        self,
        record: AccountRecord,
        entered_pin: str,
        new_pin: str,
    ) -> PinChangeResult:
        """
        Replace the PIN after a successful authentication.

        The new PIN must keep the current length, contain only digits
        and pass the full PIN policy. A failed authentication is
        returned unchanged; any other rejection leaves the PIN as it was.
        """
        auth = self.authenticate(record, entered_pin)
        if not auth.success:
            return PinChangeResult.from_auth(auth)

        current = auth.record
        if len(new_pin) != current.pin_length:
            return self._reject_change(
                current,
                ErrorKind.INVALID_LENGTH,
                f"New PIN must have {current.pin_length} digits",
            )
        if not is_digit_string(new_pin):
            return self._reject_change(
                current,
                ErrorKind.INVALID_FORMAT,
                "New PIN must contain only digits",
            )

        assessment = pin_policy.assess(new_pin)
        if assessment.is_weak:
            reasons = ", ".join(reason.value for reason in assessment.reasons)
            return self._reject_change(
                current,
                ErrorKind.WEAK_PIN,
                f"New PIN is weak ({reasons}); choose a less trivial PIN",
            )

        updated = current.with_changes(pin=new_pin, wrong_attempts=0)
        stored = self._store.update(updated)
        if not stored:
            return self._reject_change(current, stored.kind, "Account could not be updated")

        if self._audit_logger:
            self._audit_logger.log_pin_changed(current.username)
        return PinChangeResult(
            success=True,
            record=updated,
            message="PIN changed successfully",
        )
