"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Accounts live in a flat file; audit events are kept in memory.
"""

from atm_pin.services.storage.interface import (
    AccountStorageInterface,
    AuditStorageInterface,
    StorageError,
    StorageWriteError,
)
from atm_pin.services.storage.encoding import ReversibleEncoding
from atm_pin.services.storage.flat_file import FlatFileAccountStorage
from atm_pin.services.storage.memory import InMemoryAuditStorage

__all__ = [
    # Interfaces
    "AccountStorageInterface",
    "AuditStorageInterface",
    # Exceptions
    "StorageError",
    "StorageWriteError",
    # Implementations
    "FlatFileAccountStorage",
    "InMemoryAuditStorage",
    "ReversibleEncoding",
]
