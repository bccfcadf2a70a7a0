"""
Audit Logger

DESIGN DECISION: Every mutation, failed fetch and data-quality problem is
logged. This provides:
1. Traceability of every change to a user's money records
2. Debugging capability when the backend misbehaves
3. A record of transactions that were excluded from totals

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to tie a mutation to its re-fetch
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from fintrack.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from fintrack.services.storage import AuditStorageInterface


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog for local JSON logging on top of stdlib logging."""
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
    root.setLevel(level)

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


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when configured (for persistence and user visibility)
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
        self._logger = structlog.get_logger("fintrack.audit")

    async def log(self, event: AuditEvent) -> bool:
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

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_transactions_fetched(
        self,
        user_id: str,
        filters: dict,
        result_count: int,
        sequence: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a completed transaction fetch."""
        event = AuditEventBuilder.transactions_fetched(
            user_id=user_id,
            filters=filters,
            result_count=result_count,
            sequence=sequence,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_fetch_failed(
        self,
        user_id: str,
        error_message: str,
        sequence: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.fetch_failed(
            user_id=user_id,
            error_message=error_message,
            sequence=sequence,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_stale_fetch_discarded(
        self,
        user_id: str,
        sequence: int,
        latest_sequence: int,
    ) -> None:
        event = AuditEventBuilder.stale_fetch_discarded(
            user_id=user_id,
            sequence=sequence,
            latest_sequence=latest_sequence,
        )
        await self.log(event)

    async def log_data_quality_issue(
        self,
        user_id: Optional[str],
        transaction_ids: list[str],
    ) -> None:
        """Log transactions whose amount could not be read."""
        event = AuditEventBuilder.data_quality_issue(
            user_id=user_id,
            transaction_ids=transaction_ids,
        )
        await self.log(event)

    async def log_transaction_created(
        self,
        transaction_id: str,
        user_id: str,
        amount: str,
        transaction_type: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.transaction_created(
            transaction_id=transaction_id,
            user_id=user_id,
            amount=amount,
            transaction_type=transaction_type,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transaction_updated(
        self,
        transaction_id: str,
        user_id: str,
        amount: str,
        transaction_type: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.transaction_updated(
            transaction_id=transaction_id,
            user_id=user_id,
            amount=amount,
            transaction_type=transaction_type,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transaction_deleted(
        self,
        transaction_id: str,
        user_id: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_mutation_failed(
        self,
        operation: str,
        user_id: str,
        error_message: str,
        correlation_id: UUID,
        transaction_id: Optional[str] = None,
    ) -> None:
        """Log a create/update/delete the store refused."""
        event = AuditEventBuilder.mutation_failed(
            operation=operation,
            user_id=user_id,
            error_message=error_message,
            correlation_id=correlation_id,
            transaction_id=transaction_id,
        )
        await self.log(event)

    async def log_validation_failed(
        self,
        user_id: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.validation_failed(
            user_id=user_id,
            issues=issues,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_filters_changed(
        self,
        user_id: Optional[str],
        filters: dict,
    ) -> None:
        event = AuditEventBuilder.filters_changed(user_id=user_id, filters=filters)
        await self.log(event)

    async def log_user_signed_in(self, user_id: str) -> None:
        await self.log(AuditEventBuilder.user_signed_in(user_id=user_id))

    async def log_user_signed_out(self, user_id: str) -> None:
        await self.log(AuditEventBuilder.user_signed_out(user_id=user_id))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., saving a transaction)
    and pass it through the mutation and the re-fetch that follows.
    """
    return uuid4()
