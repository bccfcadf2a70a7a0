"""Services package."""

from fintrack.services.auth import (
    AuthenticationError,
    AuthProviderInterface,
    SessionAuthProvider,
)
from fintrack.services.notifications import (
    NotificationCenter,
    NotifierInterface,
)
from fintrack.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRowStore,
    InMemoryRowStore,
    NotFoundError,
    PermissionDeniedError,
    RowStoreInterface,
    SelectQuery,
    StorageError,
)

__all__ = [
    # Auth
    "AuthenticationError",
    "AuthProviderInterface",
    "SessionAuthProvider",
    # Notifications
    "NotificationCenter",
    "NotifierInterface",
    # Storage
    "AuditStorageInterface",
    "ConnectionError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsRowStore",
    "InMemoryRowStore",
    "NotFoundError",
    "PermissionDeniedError",
    "RowStoreInterface",
    "SelectQuery",
    "StorageError",
]
