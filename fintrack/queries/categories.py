"""
Category Directory

Read access to a user's categories, plus a starter set for users who have
none yet. The form asks for categories of one type; the filter bar asks for
all of them.
"""

from typing import Optional

import structlog
from pydantic import ValidationError

from fintrack.models.finance import Category, TransactionType, UserIdentity
from fintrack.queries.builder import CATEGORIES
from fintrack.services.storage import OWNER_COLUMN, RowStoreInterface, SelectQuery


logger = structlog.get_logger(__name__)


# (name, icon, color, type)
DEFAULT_CATEGORIES = [
    ("Salary", "Briefcase", "#16a34a", TransactionType.INCOME),
    ("Freelance", "Laptop", "#22c55e", TransactionType.INCOME),
    ("Investments", "TrendingUp", "#15803d", TransactionType.INCOME),
    ("Gifts", "Gift", "#4ade80", TransactionType.INCOME),
    ("Food", "Utensils", "#ef4444", TransactionType.EXPENSE),
    ("Transport", "Car", "#f97316", TransactionType.EXPENSE),
    ("Housing", "Home", "#eab308", TransactionType.EXPENSE),
    ("Health", "Heart", "#ec4899", TransactionType.EXPENSE),
    ("Leisure", "Gamepad2", "#8b5cf6", TransactionType.EXPENSE),
    ("Shopping", "ShoppingCart", "#06b6d4", TransactionType.EXPENSE),
    ("Bills", "Receipt", "#64748b", TransactionType.EXPENSE),
]


class CategoryDirectory:
    """User-owned categories, ordered by name."""

    def __init__(self, storage: RowStoreInterface):
        self._storage = storage

    async def list_categories(
        self,
        user: UserIdentity,
        type: Optional[TransactionType] = None,
    ) -> list[Category]:
        """
        List the user's categories.

        Args:
            user: Owner
            type: Restrict to one transaction type (the form does this)

        Raises:
            StorageError: If the store read fails
        """
        query = SelectQuery(collection=CATEGORIES).eq(OWNER_COLUMN, user.id).order("name")
        if type is not None:
            query = query.eq("type", type.value)

        categories = []
        for row in await self._storage.select(query):
            try:
                categories.append(Category.from_row(row))
            except (ValidationError, KeyError) as e:
                logger.warning("category_row_unreadable", row_id=str(row.get("id")), error=str(e))
        return categories

    async def get_category(self, user: UserIdentity, category_id: str) -> Optional[Category]:
        for category in await self.list_categories(user):
            if category.id == category_id:
                return category
        return None

    async def seed_defaults(self, user: UserIdentity) -> list[Category]:
        """
        Install the starter categories if the user has none.

        Returns the user's categories either way.
        """
        existing = await self.list_categories(user)
        if existing:
            return existing

        for name, icon, color, category_type in DEFAULT_CATEGORIES:
            await self._storage.insert(
                CATEGORIES,
                {
                    OWNER_COLUMN: user.id,
                    "name": name,
                    "icon": icon,
                    "color": color,
                    "type": category_type.value,
                },
            )
        logger.info("default_categories_seeded", user_id=user.id, count=len(DEFAULT_CATEGORIES))
        return await self.list_categories(user)
