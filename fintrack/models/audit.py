"""
Audit Models for the Finance Tracker

Every mutation, fetch failure and data-quality problem is recorded as an
audit event. This provides:
1. Traceability of every change to a user's transactions
2. Debugging information when the backend misbehaves
3. A visible record of records that were excluded from totals

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Reads
    TRANSACTIONS_FETCHED = "transactions_fetched"
    FETCH_FAILED = "fetch_failed"
    STALE_FETCH_DISCARDED = "stale_fetch_discarded"
    DATA_QUALITY_ISSUE = "data_quality_issue"

    # Mutations
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    MUTATION_FAILED = "mutation_failed"
    VALIDATION_FAILED = "validation_failed"

    # Session
    FILTERS_CHANGED = "filters_changed"
    USER_SIGNED_IN = "user_signed_in"
    USER_SIGNED_OUT = "user_signed_out"


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
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'query')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Opaque ID of the entity this event relates to"
    )
    user_id: Optional[str] = None

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., a mutation and its re-fetch)"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "user_id": self.user_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         user_id, correlation_id, description, details_json, error_message,
         is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            self.user_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(tx_id, user_id, amount, correlation_id)
    """

    @staticmethod
    def transactions_fetched(
        user_id: str,
        filters: dict,
        result_count: int,
        sequence: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_FETCHED,
            severity=AuditSeverity.DEBUG,
            entity_type="query",
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Fetched {result_count} transactions",
            details={
                "filters": filters,
                "result_count": result_count,
                "sequence": sequence,
            },
        )

    @staticmethod
    def fetch_failed(
        user_id: str,
        error_message: str,
        sequence: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FETCH_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="query",
            user_id=user_id,
            correlation_id=correlation_id,
            description="Fetching transactions failed; previous view kept",
            details={"sequence": sequence},
            error_message=error_message,
        )

    @staticmethod
    def stale_fetch_discarded(
        user_id: str,
        sequence: int,
        latest_sequence: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STALE_FETCH_DISCARDED,
            severity=AuditSeverity.DEBUG,
            entity_type="query",
            user_id=user_id,
            description=f"Discarded response #{sequence}; #{latest_sequence} is newer",
            details={
                "sequence": sequence,
                "latest_sequence": latest_sequence,
            },
        )

    @staticmethod
    def data_quality_issue(
        user_id: Optional[str],
        transaction_ids: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_QUALITY_ISSUE,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            user_id=user_id,
            description=(
                f"{len(transaction_ids)} transaction(s) with a non-numeric amount "
                "counted as zero"
            ),
            details={"transaction_ids": transaction_ids},
        )

    @staticmethod
    def transaction_created(
        transaction_id: str,
        user_id: str,
        amount: str,
        transaction_type: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Transaction created: {transaction_type} {amount}",
            details={
                "amount": amount,
                "type": transaction_type,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_updated(
        transaction_id: str,
        user_id: str,
        amount: str,
        transaction_type: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Transaction updated: {transaction_type} {amount}",
            details={
                "amount": amount,
                "type": transaction_type,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: str,
        user_id: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def mutation_failed(
        operation: str,
        user_id: str,
        error_message: str,
        correlation_id: UUID,
        transaction_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Transaction {operation} failed",
            details={"operation": operation},
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        user_id: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Transaction form rejected with {len(issues)} issue(s)",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def filters_changed(
        user_id: Optional[str],
        filters: dict,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FILTERS_CHANGED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            description="Transaction filters changed",
            details={"filters": filters},
            is_user_action=True,
        )

    @staticmethod
    def user_signed_in(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_IN,
            entity_type="user",
            entity_id=user_id,
            user_id=user_id,
            description="User signed in",
            is_user_action=True,
        )

    @staticmethod
    def user_signed_out(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_OUT,
            entity_type="user",
            entity_id=user_id,
            user_id=user_id,
            description="User signed out",
            is_user_action=True,
        )
