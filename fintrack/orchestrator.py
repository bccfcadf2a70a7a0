"""
Main Orchestrator for the Finance Tracker

This module ties the components together and defines the dashboard flows:
1. Filter change → fetch → aggregate → replace list and summary
2. Create / update / delete → store → forced re-fetch

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing runs without an authenticated user
- Invalid form input never reaches the store
- The summary is always recomputed from a full re-fetch, never patched
- A fetch response is only applied if it belongs to the latest request

Fetches are not cancelled. Each one carries a sequence number, and a
response whose number is not the latest issued is discarded, so a slow
response for an old filter can never overwrite a newer one.
"""

from typing import NamedTuple, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel

from fintrack.audit import AuditLogger, configure_logging, create_correlation_id
from fintrack.config import get_settings
from fintrack.models.finance import (
    Category,
    FilterState,
    NotificationSeverity,
    Summary,
    Transaction,
    TransactionFormData,
    TransactionType,
    UserIdentity,
    ValidationResult,
)
from fintrack.queries import (
    TRANSACTIONS,
    CategoryDirectory,
    TransactionQueryExecutor,
    summarize,
)
from fintrack.services.auth import AuthProviderInterface, SessionAuthProvider
from fintrack.services.notifications import NotificationCenter, NotifierInterface
from fintrack.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRowStore,
    InMemoryAuditStorage,
    InMemoryRowStore,
    RowStoreInterface,
    StorageError,
)
from fintrack.validation import TransactionValidationError, TransactionValidator


logger = structlog.get_logger(__name__)


class CommandOutcome(BaseModel):
    """Result of a create/update/delete command."""

    success: bool
    message: str
    transaction_id: Optional[str] = None
    validation: Optional[ValidationResult] = None


class DashboardViewModel:
    """
    State behind the dashboard page.

    Owns the active FilterState, the displayed transactions and their
    Summary. List and summary are only ever replaced together.
    """

    def __init__(
        self,
        storage: RowStoreInterface,
        auth: AuthProviderInterface,
        notifier: NotifierInterface,
        audit_logger: Optional[AuditLogger] = None,
        query_executor: Optional[TransactionQueryExecutor] = None,
        category_directory: Optional[CategoryDirectory] = None,
    ):
        self._storage = storage
        self._auth = auth
        self._notifier = notifier
        self._audit_logger = audit_logger
        self._executor = query_executor or TransactionQueryExecutor(storage)
        self._categories = category_directory or CategoryDirectory(storage)

        self._filters = FilterState()
        self._transactions: list[Transaction] = []
        self._summary = Summary()
        self._loading = False
        self._issued_sequence = 0
        self._applied_sequence = 0

        self.editing: Optional[Transaction] = None
        self.form_open = False

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def user(self) -> Optional[UserIdentity]:
        return self._auth.current_user()

    @property
    def filters(self) -> FilterState:
        return self._filters

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._transactions)

    @property
    def summary(self) -> Summary:
        return self._summary

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def applied_sequence(self) -> int:
        """Sequence number of the fetch currently on display (0 = none yet)."""
        return self._applied_sequence

    @property
    def category_directory(self) -> CategoryDirectory:
        return self._categories

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def refresh(self, correlation_id: Optional[UUID] = None) -> bool:
        """
        Re-fetch transactions for the active filters and recompute the summary.

        Returns True if the response was applied. Without a user this is a
        no-op. A failed fetch keeps the previous list and summary.
        """
        user = self._auth.current_user()
        if user is None:
            return False

        self._issued_sequence += 1
        sequence = self._issued_sequence
        filters = self._filters
        self._loading = True

        try:
            transactions = await self._executor.fetch(filters, user)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_fetch_failed(
                    user_id=user.id,
                    error_message=str(e),
                    sequence=sequence,
                    correlation_id=correlation_id,
                )
            if sequence == self._issued_sequence:
                self._loading = False
                self._notifier.notify(
                    "Could not load transactions",
                    str(e),
                    NotificationSeverity.ERROR,
                )
            return False

        if sequence != self._issued_sequence:
            logger.info(
                "stale_fetch_discarded",
                sequence=sequence,
                latest_sequence=self._issued_sequence,
            )
            if self._audit_logger:
                await self._audit_logger.log_stale_fetch_discarded(
                    user_id=user.id,
                    sequence=sequence,
                    latest_sequence=self._issued_sequence,
                )
            return False

        summary = summarize(transactions)
        self._transactions = transactions
        self._summary = summary
        self._applied_sequence = sequence
        self._loading = False

        if self._audit_logger:
            await self._audit_logger.log_transactions_fetched(
                user_id=user.id,
                filters=filters.model_dump(mode="json"),
                result_count=len(transactions),
                sequence=sequence,
                correlation_id=correlation_id,
            )
            if summary.malformed_transaction_ids:
                await self._audit_logger.log_data_quality_issue(
                    user_id=user.id,
                    transaction_ids=list(summary.malformed_transaction_ids),
                )
        return True

    async def apply_filters(self, filters: FilterState) -> bool:
        """Replace the active filters and refresh."""
        self._filters = filters
        if filters.has_inverted_range:
            logger.warning(
                "inverted_date_range",
                date_from=filters.date_from.isoformat(),
                date_to=filters.date_to.isoformat(),
            )

        if self._audit_logger:
            user = self._auth.current_user()
            await self._audit_logger.log_filters_changed(
                user_id=user.id if user else None,
                filters=filters.model_dump(mode="json"),
            )
        return await self.refresh()

    async def update_filter(self, **changes) -> bool:
        return await self.apply_filters(self._filters.updated(**changes))

    async def clear_filters(self) -> bool:
        return await self.apply_filters(FilterState.cleared())

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def load_categories(self, type: Optional[TransactionType] = None) -> list[Category]:
        """Categories for the filter bar (all) or the form (one type). Empty on failure."""
        user = self._auth.current_user()
        if user is None:
            return []
        try:
            return await self._categories.list_categories(user, type=type)
        except StorageError as e:
            logger.warning("categories_unavailable", error=str(e))
            self._notifier.notify(
                "Could not load categories",
                str(e),
                NotificationSeverity.ERROR,
            )
            return []

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    async def start_session(self, seed_categories: bool = False) -> bool:
        """First load after sign-in."""
        user = self._auth.current_user()
        if user is None:
            return False

        if self._audit_logger:
            await self._audit_logger.log_user_signed_in(user.id)

        if seed_categories:
            try:
                await self._categories.seed_defaults(user)
            except StorageError as e:
                logger.warning("category_seeding_failed", error=str(e))

        return await self.refresh()

    async def sign_out(self) -> None:
        """Sign out and drop everything that belonged to the user."""
        user = self._auth.current_user()
        await self._auth.sign_out()

        # Invalidate any fetch still in flight
        self._issued_sequence += 1
        self._filters = FilterState()
        self._transactions = []
        self._summary = Summary()
        self._loading = False
        self.close_form()

        if user and self._audit_logger:
            await self._audit_logger.log_user_signed_out(user.id)

    # ------------------------------------------------------------------
    # Form state
    # ------------------------------------------------------------------

    def open_form(self, transaction: Optional[Transaction] = None) -> TransactionFormData:
        """Open the form, prefilled when editing."""
        self.editing = transaction
        self.form_open = True
        if transaction is not None:
            return TransactionFormData.from_transaction(transaction)
        return TransactionFormData()

    def close_form(self) -> None:
        self.editing = None
        self.form_open = False


class TransactionCommandHandler:
    """
    Applies one mutation to one transaction, then forces a full re-fetch.

    No optimistic update: on failure the displayed list and summary stay
    exactly as they were and the user gets an error notification.
    """

    def __init__(
        self,
        storage: RowStoreInterface,
        auth: AuthProviderInterface,
        notifier: NotifierInterface,
        view_model: DashboardViewModel,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._auth = auth
        self._notifier = notifier
        self._view_model = view_model
        self._validator = validator or TransactionValidator()
        self._audit_logger = audit_logger

    async def create(self, form: TransactionFormData) -> CommandOutcome:
        return await self._save(form, transaction_id=None)

    async def update(self, transaction_id: str, form: TransactionFormData) -> CommandOutcome:
        return await self._save(form, transaction_id=transaction_id)

    async def submit(self, form: TransactionFormData) -> CommandOutcome:
        """Create or update, depending on what the view model is editing."""
        editing = self._view_model.editing
        if editing is not None:
            return await self.update(editing.id, form)
        return await self.create(form)

    async def delete(self, transaction_id: str) -> CommandOutcome:
        """Delete unconditionally (no confirmation step), then re-fetch."""
        user = self._auth.current_user()
        if user is None:
            return CommandOutcome(success=False, message="Not signed in")

        correlation_id = create_correlation_id()

        try:
            deleted = await self._storage.delete(TRANSACTIONS, transaction_id, owner_id=user.id)
        except StorageError as e:
            return await self._fail("delete", user, e, correlation_id, transaction_id)

        if not deleted:
            logger.info("delete_matched_nothing", transaction_id=transaction_id)

        if self._audit_logger:
            await self._audit_logger.log_transaction_deleted(
                transaction_id=transaction_id,
                user_id=user.id,
                correlation_id=correlation_id,
            )

        self._notifier.notify(
            "Success!",
            "Transaction deleted.",
            NotificationSeverity.SUCCESS,
        )
        await self._view_model.refresh(correlation_id)
        return CommandOutcome(
            success=True,
            message="Transaction deleted.",
            transaction_id=transaction_id,
        )

    async def _save(
        self,
        form: TransactionFormData,
        transaction_id: Optional[str],
    ) -> CommandOutcome:
        user = self._auth.current_user()
        if user is None:
            return CommandOutcome(success=False, message="Not signed in")

        correlation_id = create_correlation_id()
        operation = "update" if transaction_id else "create"

        # Parsing and required fields are checked before the store is touched
        result = self._validator.validate(form)
        if not result.is_valid:
            return await self._reject(user, result, correlation_id)

        try:
            categories = await self._view_model.category_directory.list_categories(
                user, type=None
            )
            draft = self._validator.to_draft(form, user, categories)
        except TransactionValidationError as e:
            return await self._reject(user, e.result, correlation_id)
        except StorageError as e:
            return await self._fail(operation, user, e, correlation_id, transaction_id)

        try:
            if transaction_id:
                row = await self._storage.update(
                    TRANSACTIONS, transaction_id, draft.to_row(), owner_id=user.id
                )
            else:
                row = await self._storage.insert(TRANSACTIONS, draft.to_row())
        except StorageError as e:
            return await self._fail(operation, user, e, correlation_id, transaction_id)

        saved_id = str(row.get("id") or transaction_id)

        if self._audit_logger:
            log = (
                self._audit_logger.log_transaction_updated
                if transaction_id
                else self._audit_logger.log_transaction_created
            )
            await log(
                transaction_id=saved_id,
                user_id=user.id,
                amount=str(draft.amount),
                transaction_type=draft.type.value,
                correlation_id=correlation_id,
            )

        message = f"Transaction {'updated' if transaction_id else 'created'} successfully."
        self._notifier.notify("Success!", message, NotificationSeverity.SUCCESS)

        self._view_model.close_form()
        await self._view_model.refresh(correlation_id)
        return CommandOutcome(
            success=True,
            message=message,
            transaction_id=saved_id,
            validation=result,
        )

    async def _reject(
        self,
        user: UserIdentity,
        result: ValidationResult,
        correlation_id: UUID,
    ) -> CommandOutcome:
        message = self._validator.get_user_friendly_summary(result)
        if self._audit_logger:
            await self._audit_logger.log_validation_failed(
                user_id=user.id,
                issues=[
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in result.errors
                ],
                correlation_id=correlation_id,
            )
        self._notifier.notify("Invalid transaction", message, NotificationSeverity.ERROR)
        return CommandOutcome(success=False, message=message, validation=result)

    async def _fail(
        self,
        operation: str,
        user: UserIdentity,
        error: StorageError,
        correlation_id: UUID,
        transaction_id: Optional[str] = None,
    ) -> CommandOutcome:
        if self._audit_logger:
            await self._audit_logger.log_mutation_failed(
                operation=operation,
                user_id=user.id,
                error_message=str(error),
                correlation_id=correlation_id,
                transaction_id=transaction_id,
            )
        self._notifier.notify("Error", str(error), NotificationSeverity.ERROR)
        return CommandOutcome(
            success=False,
            message=str(error),
            transaction_id=transaction_id,
        )


class AppComponents(NamedTuple):
    view_model: DashboardViewModel
    commands: TransactionCommandHandler
    auth: SessionAuthProvider
    notifications: NotificationCenter
    storage: RowStoreInterface


def create_app_components(
    use_storage: bool = True,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to try the configured hosted backend.
                    Set to False to run purely in memory.
    """
    app_settings = get_settings().app
    configure_logging(app_settings.log_level)

    storage: Optional[RowStoreInterface] = None
    audit_logger = None

    if use_storage and app_settings.storage_backend == "google_sheets":
        try:
            sheets_client = GoogleSheetsClient()
            sheets_client.get_spreadsheet()
            storage = GoogleSheetsRowStore(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Backend not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e), fallback="memory")

    if storage is None:
        storage = InMemoryRowStore()
        audit_logger = AuditLogger(InMemoryAuditStorage())

    auth = SessionAuthProvider()
    notifications = NotificationCenter()

    view_model = DashboardViewModel(
        storage=storage,
        auth=auth,
        notifier=notifications,
        audit_logger=audit_logger,
    )
    commands = TransactionCommandHandler(
        storage=storage,
        auth=auth,
        notifier=notifications,
        view_model=view_model,
        validator=TransactionValidator(app_settings),
        audit_logger=audit_logger,
    )

    return AppComponents(view_model, commands, auth, notifications, storage)
