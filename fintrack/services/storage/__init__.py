"""
Storage Services Package

Provides the abstract row store interface and concrete implementations.
Google Sheets is the hosted backend; the in-memory store backs tests and
local mode.
"""

from fintrack.services.storage.interface import (
    OWNER_COLUMN,
    AuditStorageInterface,
    ConnectionError,
    Join,
    NotFoundError,
    OrderBy,
    PermissionDeniedError,
    Predicate,
    PredicateOp,
    RowStoreInterface,
    SelectQuery,
    StorageError,
)
from fintrack.services.storage.memory import InMemoryAuditStorage, InMemoryRowStore
from fintrack.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRowStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "RowStoreInterface",
    # Query description
    "OWNER_COLUMN",
    "Join",
    "OrderBy",
    "Predicate",
    "PredicateOp",
    "SelectQuery",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "PermissionDeniedError",
    "StorageError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryRowStore",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsRowStore",
]
