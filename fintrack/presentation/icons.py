"""
Category icon table.

Categories store an icon identifier. The identifier is resolved through
this fixed table; unknown identifiers get the circle fallback.
"""

from enum import Enum
from typing import Optional


class CategoryIcon(str, Enum):
    """Icon identifiers a category may carry."""
    BRIEFCASE = "Briefcase"
    LAPTOP = "Laptop"
    TRENDING_UP = "TrendingUp"
    GIFT = "Gift"
    UTENSILS = "Utensils"
    CAR = "Car"
    HOME = "Home"
    HEART = "Heart"
    GAMEPAD = "Gamepad2"
    SHOPPING_CART = "ShoppingCart"
    RECEIPT = "Receipt"
    GRADUATION_CAP = "GraduationCap"
    PLANE = "Plane"
    COFFEE = "Coffee"
    PIGGY_BANK = "PiggyBank"
    WALLET = "Wallet"
    CIRCLE = "Circle"


ICON_GLYPHS: dict[CategoryIcon, str] = {
    CategoryIcon.BRIEFCASE: "💼",
    CategoryIcon.LAPTOP: "💻",
    CategoryIcon.TRENDING_UP: "📈",
    CategoryIcon.GIFT: "🎁",
    CategoryIcon.UTENSILS: "🍴",
    CategoryIcon.CAR: "🚗",
    CategoryIcon.HOME: "🏠",
    CategoryIcon.HEART: "❤️",
    CategoryIcon.GAMEPAD: "🎮",
    CategoryIcon.SHOPPING_CART: "🛒",
    CategoryIcon.RECEIPT: "🧾",
    CategoryIcon.GRADUATION_CAP: "🎓",
    CategoryIcon.PLANE: "✈️",
    CategoryIcon.COFFEE: "☕",
    CategoryIcon.PIGGY_BANK: "🐷",
    CategoryIcon.WALLET: "👛",
    CategoryIcon.CIRCLE: "⚪",
}


def resolve_icon(identifier: Optional[str]) -> str:
    """Glyph for an icon identifier, falling back to the circle."""
    try:
        return ICON_GLYPHS[CategoryIcon(identifier)]
    except ValueError:
        return ICON_GLYPHS[CategoryIcon.CIRCLE]
