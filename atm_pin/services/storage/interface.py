"""
Abstract Storage Interface

DESIGN DECISION: Business logic talks to storage through these
interfaces only. This allows us to:
1. Use a temporary file or memory in tests
2. Swap the flat file for another backend later
3. Keep the authentication engine free of I/O details

Expected outcomes (duplicate user, unknown user) are returned as
StoreResult values. Exceptions are for I/O that could not complete.
"""

from abc import ABC, abstractmethod
from typing import Optional

from atm_pin.models.account import (
    AccountRecord,
    AccountSummary,
    LoadReport,
    StoreResult,
)
from atm_pin.models.audit import AuditEvent


class AccountStorageInterface(ABC):
    """
    Abstract interface for account storage operations.

    Records handed out are copies. Callers change a copy and hand it
    back through `update` to persist it.
    """

    @abstractmethod
    def load(self) -> LoadReport:
        """
        Replace the in-memory accounts with the persisted ones.

        Malformed entries are skipped and counted, never raised.
        """
        pass

    @abstractmethod
    def save(self) -> None:
        """
        Persist every account, replacing what was stored before.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def exists(self, username: str) -> bool:
        pass

    @abstractmethod
    def add(self, record: AccountRecord) -> StoreResult:
        """
        Insert a new account and persist.

        Returns:
            Failed with USER_ALREADY_EXISTS (and no change) if the
            username is taken
        """
        pass

    @abstractmethod
    def update(self, record: AccountRecord) -> StoreResult:
        """
        Replace an existing account and persist.

        Returns:
            Failed with USER_NOT_FOUND (and no write) if the username
            is unknown
        """
        pass

    @abstractmethod
    def get(self, username: str) -> Optional[AccountRecord]:
        """Return a copy of the account, or None."""
        pass

    @abstractmethod
    def list_accounts(self) -> list[AccountSummary]:
        """Administrative listing. Never includes PINs."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        pass

    @abstractmethod
    def get_events_by_username(self, username: str) -> list[AuditEvent]:
        """Events for one account in chronological order."""
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Most recent events, newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageWriteError(StorageError):
    """The account file could not be written."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(message)
