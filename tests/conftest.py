"""
Shared fixtures.

Everything runs against the in-memory row store; no real backend calls.
"""

import asyncio

import pytest

from fintrack.audit import AuditLogger
from fintrack.config import AppSettings
from fintrack.models import UserIdentity
from fintrack.orchestrator import DashboardViewModel, TransactionCommandHandler
from fintrack.queries import TRANSACTIONS
from fintrack.services.auth import SessionAuthProvider
from fintrack.services.notifications import NotificationCenter
from fintrack.services.storage import (
    InMemoryAuditStorage,
    InMemoryRowStore,
    SelectQuery,
    StorageError,
)
from fintrack.validation import TransactionValidator


USER_ID = "user-1"
OTHER_USER_ID = "user-2"


def category_rows() -> list[dict]:
    return [
        {"id": "cat-salary", "user_id": USER_ID, "name": "Salary", "icon": "Briefcase", "color": "#16a34a", "type": "income"},
        {"id": "cat-freelance", "user_id": USER_ID, "name": "Freelance", "icon": "Laptop", "color": "#22c55e", "type": "income"},
        {"id": "cat-food", "user_id": USER_ID, "name": "Food", "icon": "Utensils", "color": "#ef4444", "type": "expense"},
        {"id": "cat-transport", "user_id": USER_ID, "name": "Transport", "icon": "Car", "color": "#f97316", "type": "expense"},
        {"id": "cat-other-food", "user_id": OTHER_USER_ID, "name": "Food", "icon": "Utensils", "color": "#ef4444", "type": "expense"},
    ]


def transaction_rows() -> list[dict]:
    """
    user-1: income 5800.00, expense 225.75, balance 5574.25.
    user-2 has one row that must never show up for user-1.
    """
    return [
        {"id": "tx-1", "user_id": USER_ID, "amount": "5000.00", "description": "March salary", "date": "2024-03-01", "type": "income", "category_id": "cat-salary"},
        {"id": "tx-2", "user_id": USER_ID, "amount": "120.50", "description": "Groceries", "date": "2024-03-05", "type": "expense", "category_id": "cat-food"},
        {"id": "tx-3", "user_id": USER_ID, "amount": "60", "description": "", "date": "2024-03-10", "type": "expense", "category_id": "cat-transport"},
        {"id": "tx-4", "user_id": USER_ID, "amount": "800", "description": "Website", "date": "2024-02-20", "type": "income", "category_id": "cat-freelance"},
        {"id": "tx-5", "user_id": USER_ID, "amount": "45.25", "description": "Dinner", "date": "2024-02-25", "type": "expense", "category_id": "cat-food"},
        {"id": "tx-9", "user_id": OTHER_USER_ID, "amount": "999", "description": "Not yours", "date": "2024-03-05", "type": "expense", "category_id": "cat-other-food"},
    ]


def seed() -> dict[str, list[dict]]:
    return {"categories": category_rows(), TRANSACTIONS: transaction_rows()}


class FlakyRowStore(InMemoryRowStore):
    """In-memory store that fails on demand."""

    def __init__(self, collections=None):
        super().__init__(collections)
        self.fail_selects = False
        self.fail_writes = False

    async def select(self, query: SelectQuery) -> list[dict]:
        if self.fail_selects:
            self.calls.append(("select", query.collection))
            raise StorageError("backend unavailable")
        return await super().select(query)

    async def insert(self, collection, values):
        if self.fail_writes:
            self.calls.append(("insert", collection))
            raise StorageError("permission denied")
        return await super().insert(collection, values)

    async def update(self, collection, row_id, values, owner_id):
        if self.fail_writes:
            self.calls.append(("update", collection))
            raise StorageError("permission denied")
        return await super().update(collection, row_id, values, owner_id)

    async def delete(self, collection, row_id, owner_id):
        if self.fail_writes:
            self.calls.append(("delete", collection))
            raise StorageError("permission denied")
        return await super().delete(collection, row_id, owner_id)


class GatedRowStore(InMemoryRowStore):
    """
    Holds every transaction read until the test opens its gate.

    Reads whose index is in `failing_reads` raise once their gate opens.
    """

    def __init__(self, collections=None):
        super().__init__(collections)
        self.gates: list[asyncio.Event] = []
        self.failing_reads: set[int] = set()

    async def select(self, query: SelectQuery) -> list[dict]:
        if query.collection == TRANSACTIONS:
            index = len(self.gates)
            gate = asyncio.Event()
            self.gates.append(gate)
            await gate.wait()
            if index in self.failing_reads:
                raise StorageError("backend unavailable")
        return await super().select(query)

    async def wait_for_reads(self, count: int) -> None:
        while len(self.gates) < count:
            await asyncio.sleep(0)


@pytest.fixture
def app_settings():
    return AppSettings(
        currency_symbol="R$",
        decimal_separator=",",
        thousands_separator=".",
        date_format="%d/%m/%Y",
        max_transaction_amount=1000000.0,
        future_date_tolerance_days=7,
    )


@pytest.fixture
def user():
    return UserIdentity(id=USER_ID, display_name="Ana", email="ana@example.com")


@pytest.fixture
def other_user():
    return UserIdentity(id=OTHER_USER_ID, display_name="Bruno", email="bruno@example.com")


@pytest.fixture
def store():
    return FlakyRowStore(seed())


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def auth(user):
    return SessionAuthProvider(user)


@pytest.fixture
def notifier():
    return NotificationCenter()


@pytest.fixture
def view_model(store, auth, notifier, audit_logger):
    return DashboardViewModel(
        storage=store,
        auth=auth,
        notifier=notifier,
        audit_logger=audit_logger,
    )


@pytest.fixture
def commands(store, auth, notifier, view_model, audit_logger, app_settings):
    return TransactionCommandHandler(
        storage=store,
        auth=auth,
        notifier=notifier,
        view_model=view_model,
        validator=TransactionValidator(app_settings),
        audit_logger=audit_logger,
    )
