"""
In-Memory Row Store

Keeps collections as lists of dicts. Used by the test suite and as the
local backend when no hosted store is configured. Data lives only as long
as the process.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from fintrack.models.audit import AuditEvent
from fintrack.services.storage.interface import (
    OWNER_COLUMN,
    AuditStorageInterface,
    NotFoundError,
    RowStoreInterface,
    SelectQuery,
)


class InMemoryRowStore(RowStoreInterface):
    """
    Row store backed by plain Python lists.

    Every call is recorded in `calls` as (operation, collection) so tests
    can assert whether the store was touched at all.
    """

    def __init__(self, collections: Optional[dict[str, list[dict]]] = None):
        self._collections: dict[str, list[dict]] = {
            name: [dict(row) for row in rows]
            for name, rows in (collections or {}).items()
        }
        self.calls: list[tuple[str, str]] = []

    def rows(self, collection: str) -> list[dict]:
        """Snapshot of a collection in storage order."""
        return [dict(row) for row in self._collections.get(collection, [])]

    async def select(self, query: SelectQuery) -> list[dict]:
        self.calls.append(("select", query.collection))
        related = {
            join.collection: self._collections.get(join.collection, [])
            for join in query.joins
        }
        return query.apply(self._collections.get(query.collection, []), related)

    async def insert(self, collection: str, values: dict) -> dict:
        self.calls.append(("insert", collection))
        row = dict(values)
        row.setdefault("id", str(uuid4()))
        row.setdefault("created_at", datetime.utcnow().isoformat())
        self._collections.setdefault(collection, []).append(row)
        return dict(row)

    async def update(
        self,
        collection: str,
        row_id: str,
        values: dict,
        owner_id: str,
    ) -> dict:
        self.calls.append(("update", collection))
        row = self._find(collection, row_id, owner_id)
        if row is None:
            raise NotFoundError(f"{collection} row not found: {row_id}")

        changes = {k: v for k, v in values.items() if k != "id"}
        row.update(changes)
        return dict(row)

    async def delete(self, collection: str, row_id: str, owner_id: str) -> bool:
        self.calls.append(("delete", collection))
        row = self._find(collection, row_id, owner_id)
        if row is None:
            return False
        self._collections[collection].remove(row)
        return True

    def _find(self, collection: str, row_id: str, owner_id: str) -> Optional[dict]:
        for row in self._collections.get(collection, []):
            if str(row.get("id")) == str(row_id) and str(row.get(OWNER_COLUMN)) == str(owner_id):
                return row
        return None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log kept in a list."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self.events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]
