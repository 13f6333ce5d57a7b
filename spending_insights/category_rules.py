"""Keyword rules that infer a display category from transaction text.

Rules are ordered tables of ``(pattern, CategoryInfo)``; earlier entries win.
Credits and debits have separate tables so a credit can never land in an
expense category. Patterns are unanchored substring regexes over the
lowercased ``description + " " + merchant`` text, which keeps short tokens
like ``bp`` or ``ee`` matching inside longer merchant strings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .models import CategoryInfo

CATEGORY_COLORS: dict[str, str] = {
    "green": "#22C55E",
    "orange": "#F97316",
    "purple": "#8B5CF6",
    "blue": "#3B82F6",
    "cyan": "#06B6D4",
    "indigo": "#6366F1",
    "yellow": "#EAB308",
    "pink": "#EC4899",
    "slate": "#64748B",
    "red": "#EF4444",
    "emerald": "#10B981",
}


@dataclass(frozen=True, slots=True)
class CategoryRule:
    pattern: re.Pattern[str]
    info: CategoryInfo

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None


def _rule(pattern: str, category: str, icon: str, color: str) -> CategoryRule:
    return CategoryRule(re.compile(pattern), CategoryInfo(category, icon, CATEGORY_COLORS[color]))


INCOME = CategoryInfo("Income", "💰", CATEGORY_COLORS["green"])
OTHER = CategoryInfo("Other", "📌", CATEGORY_COLORS["slate"])

CREDIT_RULES: tuple[CategoryRule, ...] = (
    _rule(r"salary|payroll|wages|income", "Income", "💰", "green"),
    _rule(r"transfer|sent from", "Transfer In", "↓", "green"),
    _rule(r"refund|return", "Refund", "↩️", "green"),
    _rule(r"interest|dividend", "Interest", "📈", "green"),
)

DEBIT_RULES: tuple[CategoryRule, ...] = (
    _rule(
        r"grocery|supermarket|tesco|sainsbury|asda|lidl|aldi|waitrose|morrisons|co-op|food",
        "Groceries",
        "🛒",
        "orange",
    ),
    _rule(
        r"restaurant|cafe|coffee|starbucks|costa|pret|mcdonald|burger|pizza"
        r"|uber eats|deliveroo|just eat",
        "Dining",
        "🍽️",
        "orange",
    ),
    _rule(r"amazon|ebay|online|shop|store|retail|purchase", "Shopping", "🛍️", "purple"),
    _rule(r"netflix|spotify|disney|prime|subscription|membership", "Subscriptions", "📺", "blue"),
    _rule(
        r"uber|lyft|taxi|train|bus|transport|tfl|rail|parking|petrol|fuel|shell|bp|esso",
        "Transport",
        "🚗",
        "cyan",
    ),
    _rule(r"rent|mortgage|housing|landlord", "Housing", "🏠", "indigo"),
    _rule(
        r"electric|gas|water|utility|council tax|broadband|internet|phone|mobile"
        r"|vodafone|ee|o2|three",
        "Utilities",
        "💡",
        "yellow",
    ),
    _rule(r"health|pharmacy|doctor|hospital|dentist|gym|fitness", "Health", "🏥", "pink"),
    _rule(r"entertainment|cinema|theatre|game|ticket|event", "Entertainment", "🎬", "purple"),
    _rule(r"atm|cash|withdrawal", "Cash", "💵", "slate"),
    _rule(r"transfer|sent to|payment to", "Transfer Out", "↑", "slate"),
    _rule(r"insurance|premium", "Insurance", "🛡️", "blue"),
    _rule(r"office|supplies|business|work", "Business", "💼", "slate"),
)

KNOWN_CATEGORIES: frozenset[str] = frozenset(
    {INCOME.category, OTHER.category}
    | {r.info.category for r in CREDIT_RULES}
    | {r.info.category for r in DEBIT_RULES}
)


def _first_match(rules: tuple[CategoryRule, ...], text: str, default: CategoryInfo) -> CategoryInfo:
    for rule in rules:
        if rule.matches(text):
            return rule.info
    return default


def infer_category(description: str | None, merchant: str | None, amount: float) -> CategoryInfo:
    """Infer a category from free text and the sign of ``amount``.

    Credits (``amount >= 0``) resolve to Income, Transfer In, Refund or
    Interest and default to Income. Debits walk :data:`DEBIT_RULES` and
    default to Other. Pure and total: every input yields one result.
    """

    combined = f"{description or ''} {merchant or ''}".lower()
    if amount >= 0:
        return _first_match(CREDIT_RULES, combined, INCOME)
    return _first_match(DEBIT_RULES, combined, OTHER)


__all__ = [
    "CATEGORY_COLORS",
    "CategoryRule",
    "CREDIT_RULES",
    "DEBIT_RULES",
    "INCOME",
    "OTHER",
    "KNOWN_CATEGORIES",
    "infer_category",
]
