"""Data models and type aliases for ``spending_insights``.

Raw transactions stay opaque mappings: banking aggregators and document
stores disagree on field names and nesting, and the enricher is the only
place that knows the variants. Everything derived from them is a frozen
dataclass so results can be shared between aggregations without copying.
Saved budgets and goals come from a document store and are validated with
Pydantic on the way in.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Raw records
# ---------------------------------------------------------------------------

TransactionRecord: TypeAlias = Mapping[str, Any]
"""A single raw transaction as handed over by the aggregator or storage layer.

Notes
-----
- Amount, currency, description, counterparty, category and date may each
  live under several field names; see :mod:`spending_insights.enrichment`.
- Amount sign decides direction: ``>= 0`` is a credit, ``< 0`` a debit.
"""


class TimeWindow(StrEnum):
    """Named relative date ranges used to scope aggregation queries."""

    THIS_MONTH = "thisMonth"
    LAST_MONTH = "lastMonth"
    LAST_3_MONTHS = "last3Months"
    THIS_YEAR = "thisYear"
    ALL = "all"


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CategoryInfo:
    """Display category with its icon glyph and hex color."""

    category: str
    icon: str
    color: str


@dataclass(frozen=True, slots=True)
class EnrichedTransaction:
    """Normalized, categorized view of one raw transaction.

    ``original_category`` holds the bank-supplied category when it was
    informative enough to keep; otherwise it is ``None`` and
    ``inferred_category`` holds the keyword-derived one. Exactly one of the
    two is set.
    """

    id: str | None
    amount: float
    currency: str
    description: str
    merchant: str
    category: str
    category_icon: str
    category_color: str
    date: str | None
    is_credit: bool
    original_category: str | None
    inferred_category: str | None
    payee_name: str | None = None
    payer_name: str | None = None

    @property
    def category_info(self) -> CategoryInfo:
        return CategoryInfo(self.category, self.category_icon, self.category_color)


@dataclass(frozen=True, slots=True)
class SpendingCategory:
    """Expense total for one category within a single aggregation."""

    category: str
    amount: float
    count: int
    percentage: float
    color: str
    icon: str
    suggested_budget: int


@dataclass(frozen=True, slots=True)
class BudgetedSpendingCategory(SpendingCategory):
    """A :class:`SpendingCategory` with the user's saved budget overlaid."""

    budget: float | None = None
    limit: float | None = None


@dataclass(frozen=True, slots=True)
class RecurringCharge:
    """One transaction contributing to a recurring expense."""

    id: str | None
    date: str
    amount: float


@dataclass(frozen=True, slots=True)
class RecurringExpense:
    """A merchant whose monthly spend is stable across calendar months.

    ``amount`` is the average *monthly total* and ``frequency`` the number of
    distinct calendar months, not the number of transactions.
    """

    merchant: str
    category: str
    category_icon: str
    category_color: str
    amount: float
    frequency: int
    next_date: str
    transactions: tuple[RecurringCharge, ...]


@dataclass(frozen=True, slots=True)
class IncomeExpenseSummary:
    income: float = 0.0
    expenses: float = 0.0
    net: float = 0.0


@dataclass(frozen=True, slots=True)
class BudgetUsage:
    usage: float = 0.0
    categories_over_budget: int = 0


@dataclass(frozen=True, slots=True)
class InsightsSummary:
    """Headline numbers for an insights dashboard."""

    total_spent: float
    total_income: float
    net_balance: float
    budget_usage: float
    categories_over_budget: int
    recurring_expenses_total: float
    goals_progress: float


@dataclass(frozen=True, slots=True)
class InsightsReport:
    """Everything :func:`spending_insights.api.build_insights` computes.

    ``currency`` is the currency shared by every transaction in the window,
    or the configured default when they differ or the window is empty.
    """

    window: TimeWindow
    transactions: tuple[EnrichedTransaction, ...]
    categories: tuple[BudgetedSpendingCategory, ...]
    recurring: tuple[RecurringExpense, ...]
    summary: IncomeExpenseSummary
    overview: InsightsSummary
    currency: str = "EUR"


# ---------------------------------------------------------------------------
# Saved entities (read-only inputs)
# ---------------------------------------------------------------------------


class _StoredDocument(BaseModel):
    # Stored documents use camelCase keys; accept snake_case too.
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
    )


class Budget(_StoredDocument):
    """A saved spending limit for one category."""

    id: str
    user_id: str | None = None
    category: str
    budget: float = 0.0
    spent: float = 0.0
    limit: float = 0.0
    period: Literal["monthly", "weekly", "yearly"] = "monthly"
    created_at: str | None = None
    updated_at: str | None = None

    @field_validator("category")
    @classmethod
    def _category_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("category must be non-empty")
        return v


class Goal(_StoredDocument):
    """A saved savings target."""

    id: str
    user_id: str | None = None
    name: str
    target: float = Field(default=0.0)
    saved: float = Field(default=0.0)
    monthly: float = Field(default=0.0)
    created_at: str | None = None
    updated_at: str | None = None


__all__ = [
    "TransactionRecord",
    "TimeWindow",
    "CategoryInfo",
    "EnrichedTransaction",
    "SpendingCategory",
    "BudgetedSpendingCategory",
    "RecurringCharge",
    "RecurringExpense",
    "IncomeExpenseSummary",
    "BudgetUsage",
    "InsightsSummary",
    "InsightsReport",
    "Budget",
    "Goal",
]
