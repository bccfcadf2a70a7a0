"""
Data Models Package

This package contains all Pydantic models used in the finance tracker.
All data flowing through the system must conform to these schemas.
"""

from fintrack.models.finance import (
    Category,
    CategoryRef,
    FilterState,
    Notification,
    NotificationSeverity,
    Summary,
    Transaction,
    TransactionDraft,
    TransactionFormData,
    TransactionType,
    UserIdentity,
    ValidationIssue,
    ValidationResult,
    coerce_amount,
)
from fintrack.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Finance models
    "Category",
    "CategoryRef",
    "FilterState",
    "Notification",
    "NotificationSeverity",
    "Summary",
    "Transaction",
    "TransactionDraft",
    "TransactionFormData",
    "TransactionType",
    "UserIdentity",
    "ValidationIssue",
    "ValidationResult",
    "coerce_amount",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
