"""
Main Orchestrator for the ATM PIN Manager

This module ties together all the components and defines the
session-level flows:
1. Create account (generate PIN → store → show PIN once)
2. Login, check balance, withdraw (authenticate first, every time)
3. Change PIN (authenticate → policy check → store)
4. Admin listing (no authentication, never shows PINs)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing touching a balance happens without a successful authentication
- A PIN is handed out exactly once, at creation
- Every step is audited
"""

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional, Union

import structlog
from pydantic import ValidationError

from atm_pin.audit import AuditLogger, configure_logging
from atm_pin.auth import AuthenticationEngine
from atm_pin.config import get_settings
from atm_pin.models.account import (
    PIN_LENGTHS,
    AccountRecord,
    AccountSummary,
    AuthResult,
    ErrorKind,
    LoadReport,
    ServiceResult,
    quantize_amount,
)
from atm_pin.models.audit import AuditEvent
from atm_pin.policy import PinGenerator
from atm_pin.services.storage import (
    AccountStorageInterface,
    AuditStorageInterface,
    FlatFileAccountStorage,
    InMemoryAuditStorage,
    StorageError,
)


logger = structlog.get_logger(__name__)

Amount = Union[Decimal, str, int, float]


def _to_amount(value: Amount) -> Optional[Decimal]:
    """Parse value as an amount in cents, or None if it is not one."""
    try:
        amount = Decimal(str(value))
        if not amount.is_finite():
            return None
        return quantize_amount(amount)
    except InvalidOperation:
        return None


class AccountService:
    """
    Session-layer facade over the store and the authentication engine.

    Every method returns a ServiceResult. A failed write of the account
    file is audited and returned as STORAGE_ERROR. Only a failed load
    and generator exhaustion raise.
    """

    def __init__(
        self,
        store: AccountStorageInterface,
        generator: Optional[PinGenerator] = None,
        engine: Optional[AuthenticationEngine] = None,
        audit_logger: Optional[AuditLogger] = None,
        audit_storage: Optional[AuditStorageInterface] = None,
        starting_balance: Optional[Decimal] = None,
    ):
        self._store = store
        self._generator = generator or PinGenerator()
        self._audit_logger = audit_logger
        self._audit_storage = audit_storage
        self._engine = engine or AuthenticationEngine(store, audit_logger)
        self._starting_balance = (
            starting_balance
            if starting_balance is not None
            else get_settings().app.starting_balance
        )

    @property
    def store(self) -> AccountStorageInterface:
        return self._store

    def load(self) -> LoadReport:
        """Load the account file and audit the outcome."""
        report = self._store.load()
        if self._audit_logger:
            path = str(getattr(self._store, "path", ""))
            self._audit_logger.log_store_loaded(path, report)
        return report

    # -------------------------------------------------------------------------
    # Account creation
    # -------------------------------------------------------------------------

    def _reject_creation(self, username: str, kind: ErrorKind, message: str) -> ServiceResult:
        if self._audit_logger:
            self._audit_logger.log_account_creation_rejected(username, kind.value)
        return ServiceResult(success=False, kind=kind, message=message)

    def _storage_failure(self, username: str, operation: str, error: StorageError) -> str:
        """Audit a failed write of the account file and return the user-facing message."""
        if self._audit_logger:
            self._audit_logger.log_error(
                error_type=type(error).__name__,
                error_message=str(error),
                details={"operation": operation},
                username=username,
            )
        else:
            logger.error("storage_failed", username=username, operation=operation, error=str(error))
        return "The account file could not be written. Nothing was changed."

    @staticmethod
    def _unencodable_message(username: str, lengths: list[int]) -> str:
        if len(lengths) == 1:
            others = [n for n in PIN_LENGTHS if n != lengths[0]]
            return (
                f"'{username}' cannot be stored with a {lengths[0]}-digit PIN. "
                f"Try a {others[0]}-digit PIN or another username."
            )
        return f"'{username}' cannot be stored with any PIN length. Choose another username."

    def create_account(
        self,
        username: str,
        pin_length: Optional[int] = None,
        starting_balance: Optional[Amount] = None,
    ) -> ServiceResult:
        """
        Create an account and issue its PIN.

        The returned result carries the PIN in `issued_pin`. It is never
        retrievable again through this service.

        When pin_length is not given, the configured default is tried
        first. If the record cannot be encoded on one line with it, the
        other length is tried.
        """
        if pin_length is None:
            default = get_settings().pin.default_length
            lengths = [default] + [n for n in PIN_LENGTHS if n != default]
        elif pin_length in PIN_LENGTHS:
            lengths = [pin_length]
        else:
            return self._reject_creation(
                username,
                ErrorKind.INVALID_LENGTH,
                f"PIN length must be one of {PIN_LENGTHS}",
            )

        balance = (
            self._starting_balance
            if starting_balance is None
            else _to_amount(starting_balance)
        )
        if balance is None or balance < 0:
            return self._reject_creation(
                username,
                ErrorKind.INVALID_AMOUNT,
                "Starting balance must be a non-negative amount",
            )

        if self._store.exists(username):
            return self._reject_creation(
                username,
                ErrorKind.USER_ALREADY_EXISTS,
                "User already exists",
            )

        for length in lengths:
            pin = self._generator.generate(length)
            try:
                record = AccountRecord(username=username, pin=pin, balance=balance)
            except ValidationError as e:
                return self._reject_creation(
                    username,
                    ErrorKind.INVALID_USERNAME,
                    e.errors()[0]["msg"],
                )

            try:
                stored = self._store.add(record)
            except StorageError as e:
                message = self._storage_failure(username, "create_account", e)
                return ServiceResult(success=False, kind=ErrorKind.STORAGE_ERROR, message=message)

            if stored or stored.kind != ErrorKind.UNENCODABLE_RECORD:
                break
            logger.info("pin_length_unencodable", username=username, pin_length=length)

        if not stored:
            message = (
                self._unencodable_message(username, lengths)
                if stored.kind == ErrorKind.UNENCODABLE_RECORD
                else "Failed to add user"
            )
            return self._reject_creation(username, stored.kind, message)

        if self._audit_logger:
            self._audit_logger.log_account_created(username, record.pin_length, record.balance)
            self._audit_logger.log_pin_issued(
                username, record.pin_length, self._generator.last_draw_count
            )
        return ServiceResult(
            success=True,
            message="Account created and saved",
            account=AccountSummary.from_record(record),
            issued_pin=pin,
        )

    # -------------------------------------------------------------------------
    # Authenticated actions
    # -------------------------------------------------------------------------

    def _authenticate(self, username: str, pin: str) -> AuthResult:
        try:
            return self._engine.authenticate_user(username, pin)
        except StorageError as e:
            message = self._storage_failure(username, "authenticate", e)
            return AuthResult(success=False, kind=ErrorKind.STORAGE_ERROR, message=message)

    @staticmethod
    def _from_auth(auth: AuthResult) -> ServiceResult:
        return ServiceResult(
            success=auth.success,
            kind=auth.kind,
            message=auth.message,
            account=AccountSummary.from_record(auth.record) if auth.record else None,
            remaining_attempts=auth.remaining_attempts if auth.record else None,
        )

    def login(self, username: str, pin: str) -> ServiceResult:
        return self._from_auth(self._authenticate(username, pin))

    def check_balance(self, username: str, pin: str) -> ServiceResult:
        """Authenticate, then report the balance in `account.balance`."""
        result = self._from_auth(self._authenticate(username, pin))
        if result.success:
            result.message = f"Balance: Rs {result.account.balance:.2f}"
        return result

    def withdraw(self, username: str, pin: str, amount: Amount) -> ServiceResult:
        """
        Authenticate, then take amount out of the balance.

        The amount must be positive and no larger than the balance, so
        the balance never goes negative.
        """
        auth = self._authenticate(username, pin)
        if not auth.success:
            return self._from_auth(auth)

        record = auth.record
        value = _to_amount(amount)
        if value is None or value <= 0:
            return self._reject_withdrawal(record, amount, ErrorKind.INVALID_AMOUNT, "Invalid amount")

        if value > record.balance:
            return self._reject_withdrawal(
                record, value, ErrorKind.INSUFFICIENT_FUNDS, "Insufficient funds"
            )

        updated = record.with_changes(balance=record.balance - value)
        try:
            stored = self._store.update(updated)
        except StorageError as e:
            return ServiceResult(
                success=False,
                kind=ErrorKind.STORAGE_ERROR,
                message=self._storage_failure(username, "withdraw", e),
                account=AccountSummary.from_record(record),
            )
        if not stored:
            return self._reject_withdrawal(record, value, stored.kind, "Account could not be updated")

        if self._audit_logger:
            self._audit_logger.log_withdrawal_completed(username, value, updated.balance)
        return ServiceResult(
            success=True,
            message=f"Please collect cash. New balance: Rs {updated.balance:.2f}",
            account=AccountSummary.from_record(updated),
        )

    def _reject_withdrawal(
        self,
        record: AccountRecord,
        amount: Amount,
        kind: ErrorKind,
        message: str,
    ) -> ServiceResult:
        if self._audit_logger:
            self._audit_logger.log_withdrawal_rejected(record.username, amount, kind.value)
        return ServiceResult(
            success=False,
            kind=kind,
            message=message,
            account=AccountSummary.from_record(record),
        )

    def change_pin(self, username: str, current_pin: str, new_pin: str) -> ServiceResult:
        record = self._store.get(username)
        if record is None:
            return ServiceResult(
                success=False,
                kind=ErrorKind.USER_NOT_FOUND,
                message=f"No such user: {username}",
            )

        try:
            result = self._engine.change_pin(record, current_pin, new_pin)
        except StorageError as e:
            return ServiceResult(
                success=False,
                kind=ErrorKind.STORAGE_ERROR,
                message=self._storage_failure(username, "change_pin", e),
            )
        return ServiceResult(
            success=result.success,
            kind=result.kind,
            message=result.message,
            account=AccountSummary.from_record(result.record) if result.record else None,
        )

    # -------------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------------

    def list_accounts(self) -> list[AccountSummary]:
        """All accounts without their PINs. No authentication required."""
        return self._store.list_accounts()

    def recent_activity(self, limit: int = 50) -> list[AuditEvent]:
        if self._audit_storage is None:
            return []
        return self._audit_storage.get_recent_events(limit)


def create_app_components(
    path: Optional[Union[str, Path]] = None,
) -> AccountService:
    """
    Factory function to create all application components.

    Args:
        path: Account file. Defaults to the configured store path.

    Returns:
        A loaded AccountService
    """
    settings = get_settings()
    configure_logging(settings.app.debug_mode)

    audit_storage = InMemoryAuditStorage(settings.app.audit_buffer_size)
    audit_logger = AuditLogger(audit_storage)
    store = FlatFileAccountStorage(path)

    service = AccountService(
        store=store,
        generator=PinGenerator(max_attempts=settings.pin.max_generation_attempts),
        audit_logger=audit_logger,
        audit_storage=audit_storage,
        starting_balance=settings.app.starting_balance,
    )
    report = service.load()
    logger.info("app_components_ready", accounts=report.loaded, skipped=report.skipped)
    return service
