"""Services package."""

from atm_pin.services.storage import (
    AccountStorageInterface,
    AuditStorageInterface,
    FlatFileAccountStorage,
    InMemoryAuditStorage,
    ReversibleEncoding,
    StorageError,
    StorageWriteError,
)

__all__ = [
    # Storage services
    "AccountStorageInterface",
    "AuditStorageInterface",
    "FlatFileAccountStorage",
    "InMemoryAuditStorage",
    "ReversibleEncoding",
    "StorageError",
    "StorageWriteError",
]
