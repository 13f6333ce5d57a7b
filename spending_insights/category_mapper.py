"""Map bank-supplied category names onto the display icon/color system.

Banks and aggregators often attach their own category to a transaction. When
that label is informative it is shown verbatim; only the icon and color are
derived here. Uninformative labels (see :data:`GENERIC_CATEGORIES`) are
rejected by :func:`is_generic_category` so the caller can fall back to
keyword inference.
"""

from __future__ import annotations

from .category_rules import CATEGORY_COLORS, INCOME, OTHER
from .models import CategoryInfo

# ISO 20022 family/sub-family names and aggregator labels too vague to display.
GENERIC_CATEGORIES: frozenset[str] = frozenset(
    {
        "Domestic Credit Transfer",
        "Issued Credit Transfers",
        "Payments",
        "Credit Transfers",
        "Debit Transfers",
        "Card Payments",
        "Other",
        "Transfer",
        "Deposit",
        "Withdrawal",
        "Direct Debit",
        "Standing Order",
        "Fee",
        "Interest",
        "Adjustment",
        "Refund",
        "Salary",
        "Pension",
        "Loan",
        "Tax",
        "Dividend",
        "Rent",
        "Mortgage",
        "Insurance",
        "Utility",
        "Subscription",
        "Cash",
        "ATM",
        "Unknown",
    }
)

_GENERIC_FOLDED: frozenset[str] = frozenset(c.casefold() for c in GENERIC_CATEGORIES)

# (substrings of the lowercased name, icon, color); first match wins.
_NAME_BUCKETS: tuple[tuple[tuple[str, ...], str, str], ...] = (
    (("grocer", "food", "supermarket"), "🛒", "orange"),
    (("dining", "restaurant", "cafe"), "🍽️", "orange"),
    (("shop", "retail"), "🛍️", "purple"),
    (("subscri", "stream"), "📺", "blue"),
    (("transport", "travel", "fuel"), "🚗", "cyan"),
    (("housing", "rent", "mortgage"), "🏠", "indigo"),
    (("util", "bill", "electric"), "💡", "yellow"),
    (("health", "medical", "pharmacy"), "🏥", "pink"),
    (("entertain", "cinema", "game"), "🎬", "purple"),
    (("cash", "atm"), "💵", "slate"),
    (("transfer",), "↔️", "slate"),
    (("insurance",), "🛡️", "blue"),
    (("business", "office"), "💼", "slate"),
)


def is_generic_category(name: str | None) -> bool:
    """Return True when ``name`` is missing or too vague to display."""

    if not isinstance(name, str) or not name.strip():
        return True
    return name.strip().casefold() in _GENERIC_FOLDED


def map_category_to_info(category_name: str, amount: float) -> CategoryInfo:
    """Keep ``category_name`` verbatim and pick an icon/color for it.

    Credits, and any name mentioning income or salary, always get the Income
    icon/color. Otherwise the lowercased name is matched against keyword
    buckets; names that match nothing get Other's icon/color.
    """

    lowered = category_name.lower()
    if amount >= 0 or "income" in lowered or "salary" in lowered:
        return CategoryInfo(category_name, INCOME.icon, INCOME.color)

    for needles, icon, color in _NAME_BUCKETS:
        if any(n in lowered for n in needles):
            return CategoryInfo(category_name, icon, CATEGORY_COLORS[color])
    return CategoryInfo(category_name, OTHER.icon, OTHER.color)


__all__ = ["GENERIC_CATEGORIES", "is_generic_category", "map_category_to_info"]
