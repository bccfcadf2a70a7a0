"""
Abstract Row Store Interface

DESIGN DECISION: The tracker does not own a database. Persistence, querying
and owner scoping belong to an external row store addressed by collection
name. We define an abstract interface for it so that:
1. The hosted backend can be swapped (Google Sheets today)
2. In-memory storage can be used for testing and local mode
3. The dashboard stays decoupled from any storage client

Queries are declarative: a SelectQuery describes predicates, ordering and
joins, and the store evaluates it. The query object is immutable, so the
query builder's output can be compared directly in tests.

Values in rows are plain strings/numbers. Dates travel as ISO
'YYYY-MM-DD' strings, which order correctly as text.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from fintrack.models.audit import AuditEvent


OWNER_COLUMN = "user_id"


class PredicateOp(str, Enum):
    """Comparison operators a store must support."""
    EQ = "eq"
    GTE = "gte"
    LTE = "lte"


def _comparable(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return str(value)


class Predicate(BaseModel):
    """A single `column <op> value` constraint."""
    model_config = ConfigDict(frozen=True)

    column: str
    op: PredicateOp
    value: Any

    def matches(self, row: dict) -> bool:
        actual = row.get(self.column)
        if actual is None or actual == "":
            return False

        left, right = _comparable(actual), _comparable(self.value)
        if type(left) is not type(right):
            left, right = str(actual), str(self.value)

        if self.op == PredicateOp.EQ:
            return left == right
        if self.op == PredicateOp.GTE:
            return left >= right
        return left <= right


class OrderBy(BaseModel):
    model_config = ConfigDict(frozen=True)

    column: str
    descending: bool = False


class Join(BaseModel):
    """
    Read-time join of a child collection.

    The child row whose `id` equals `row[foreign_key]` is projected onto
    `columns` and attached under the child collection's name.
    """
    model_config = ConfigDict(frozen=True)

    collection: str
    foreign_key: str
    columns: tuple[str, ...]


class SelectQuery(BaseModel):
    """
    Immutable description of a read.

    Builder methods return new instances:

        SelectQuery(collection="transactions").eq("user_id", uid).order("date", descending=True)
    """
    model_config = ConfigDict(frozen=True)

    collection: str
    predicates: tuple[Predicate, ...] = ()
    order_by: tuple[OrderBy, ...] = ()
    joins: tuple[Join, ...] = ()

    def _with_predicate(self, column: str, op: PredicateOp, value: Any) -> "SelectQuery":
        predicate = Predicate(column=column, op=op, value=value)
        return self.model_copy(update={"predicates": self.predicates + (predicate,)})

    def eq(self, column: str, value: Any) -> "SelectQuery":
        return self._with_predicate(column, PredicateOp.EQ, value)

    def gte(self, column: str, value: Any) -> "SelectQuery":
        return self._with_predicate(column, PredicateOp.GTE, value)

    def lte(self, column: str, value: Any) -> "SelectQuery":
        return self._with_predicate(column, PredicateOp.LTE, value)

    def order(self, column: str, descending: bool = False) -> "SelectQuery":
        clause = OrderBy(column=column, descending=descending)
        return self.model_copy(update={"order_by": self.order_by + (clause,)})

    def join(self, collection: str, foreign_key: str, columns: tuple[str, ...]) -> "SelectQuery":
        clause = Join(collection=collection, foreign_key=foreign_key, columns=tuple(columns))
        return self.model_copy(update={"joins": self.joins + (clause,)})

    def matches(self, row: dict) -> bool:
        return all(predicate.matches(row) for predicate in self.predicates)

    def predicate_for(self, column: str, op: PredicateOp) -> Optional[Predicate]:
        """Find the predicate on `column` with operator `op`, if any."""
        for predicate in self.predicates:
            if predicate.column == column and predicate.op == op:
                return predicate
        return None

    def apply(self, rows: list[dict], related: dict[str, list[dict]]) -> list[dict]:
        """
        Evaluate this query over already-loaded rows.

        Used by stores that cannot push the query down to their backend.
        `related` maps child collection names to their rows for joins.
        Sorting is stable, so rows that tie keep storage order.
        """
        result = [dict(row) for row in rows if self.matches(row)]

        for join in self.joins:
            children = {
                str(child.get("id")): child
                for child in related.get(join.collection, [])
            }
            for row in result:
                child = children.get(str(row.get(join.foreign_key)))
                row[join.collection] = (
                    {column: child.get(column) for column in join.columns}
                    if child else None
                )

        # Apply the least significant key first; stable sorts compose.
        # Rows without a value sort last in either direction.
        for clause in reversed(self.order_by):
            present = [row for row in result if row.get(clause.column) not in (None, "")]
            missing = [row for row in result if row.get(clause.column) in (None, "")]
            present.sort(key=lambda row: str(row[clause.column]), reverse=clause.descending)
            result = present + missing
        return result

    def describe(self) -> str:
        """Human-readable description, used in logs."""
        parts = [self.collection]
        parts.extend(f"{p.column} {p.op.value} {p.value}" for p in self.predicates)
        parts.extend(
            f"order {o.column} {'desc' if o.descending else 'asc'}" for o in self.order_by
        )
        return " | ".join(parts)


class RowStoreInterface(ABC):
    """
    Abstract interface for the persistence/query collaborator.

    Any backend (Google Sheets, a hosted Postgres, etc.) must implement
    these methods. Mutations are always scoped to the owner.
    """

    @abstractmethod
    async def select(self, query: SelectQuery) -> list[dict]:
        """
        Run a read.

        Returns:
            Matching rows, joined and ordered as the query describes

        Raises:
            StorageError: If the backend call fails
        """
        pass

    @abstractmethod
    async def insert(self, collection: str, values: dict) -> dict:
        """
        Insert one row.

        Returns:
            The stored row, including its generated `id`

        Raises:
            StorageError: If insert fails
        """
        pass

    @abstractmethod
    async def update(
        self,
        collection: str,
        row_id: str,
        values: dict,
        owner_id: str,
    ) -> dict:
        """
        Replace the mutable fields of one row in a single request.

        Raises:
            NotFoundError: If no row with this id belongs to the owner
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete(self, collection: str, row_id: str, owner_id: str) -> bool:
        """
        Delete one row.

        Returns:
            True if a row was deleted, False if nothing matched
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events for a correlation ID, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations (network, permission, constraint)."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class PermissionDeniedError(StorageError):
    """The backend refused the operation for this identity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
