"""Spending-by-category aggregation and saved-budget overlays."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import fields
from typing import Any

from .enrichment import EnrichmentCache
from .models import Budget, BudgetedSpendingCategory, BudgetUsage, SpendingCategory

DEFAULT_BUDGET_MARKUP = 1.2


def _suggested_budget(amount: float, markup: float) -> int:
    # Round first so float noise in the product does not bump the ceiling.
    return math.ceil(round(amount * markup, 6))


def calculate_spending_by_category(
    transactions: Iterable[Any],
    *,
    budget_markup: float = DEFAULT_BUDGET_MARKUP,
    cache: EnrichmentCache | None = None,
) -> list[SpendingCategory]:
    """Group expenses by category, largest total first.

    Only debits with a negative amount count. ``percentage`` is each
    category's share of the total spend (0 for every category when the total
    is 0) and ``suggested_budget`` is the spend times ``budget_markup``,
    rounded up to a whole unit.
    """

    arena = cache if cache is not None else EnrichmentCache()
    totals: dict[str, dict[str, Any]] = {}
    for tx in transactions:
        enriched = arena.get_or_enrich(tx)
        if enriched.is_credit or enriched.amount >= 0:
            continue
        bucket = totals.setdefault(
            enriched.category,
            {"amount": 0.0, "count": 0, "icon": enriched.category_icon, "color": enriched.category_color},
        )
        bucket["amount"] += abs(enriched.amount)
        bucket["count"] += 1
        bucket["icon"] = enriched.category_icon
        bucket["color"] = enriched.category_color

    total_spent = sum(b["amount"] for b in totals.values())
    categories = [
        SpendingCategory(
            category=name,
            amount=b["amount"],
            count=b["count"],
            percentage=(b["amount"] / total_spent * 100) if total_spent > 0 else 0.0,
            color=b["color"],
            icon=b["icon"],
            suggested_budget=_suggested_budget(b["amount"], budget_markup),
        )
        for name, b in totals.items()
    ]
    categories.sort(key=lambda c: c.amount, reverse=True)
    return categories


def _coerce_budgets(budgets: Iterable[Budget | Mapping[str, Any]]) -> list[Budget]:
    return [b if isinstance(b, Budget) else Budget.model_validate(b) for b in budgets]


def merge_budgets_with_spending(
    spending: Iterable[SpendingCategory],
    budgets: Iterable[Budget | Mapping[str, Any]],
) -> list[BudgetedSpendingCategory]:
    """Overlay saved budgets (matched by category name) onto computed spend.

    Computed fields are copied unchanged; ``budget`` and ``limit`` stay
    ``None`` for categories without a saved budget. Raw budget documents are
    validated into :class:`~spending_insights.models.Budget` first.
    """

    by_category = {b.category: b for b in _coerce_budgets(budgets)}
    merged: list[BudgetedSpendingCategory] = []
    for item in spending:
        saved = by_category.get(item.category)
        merged.append(
            BudgetedSpendingCategory(
                **{f.name: getattr(item, f.name) for f in fields(SpendingCategory)},
                budget=saved.budget if saved is not None else None,
                limit=saved.limit if saved is not None else None,
            )
        )
    return merged


def calculate_budget_usage(
    spending: Iterable[SpendingCategory],
    budgets: Iterable[Budget | Mapping[str, Any]],
) -> BudgetUsage:
    """Share of the combined budget limits already spent, in percent."""

    saved = _coerce_budgets(budgets)
    if not saved:
        return BudgetUsage()

    spent_by_category = {s.category: s.amount for s in spending}
    total_spent = 0.0
    total_limit = 0.0
    over = 0
    for budget in saved:
        spent = spent_by_category.get(budget.category, 0.0)
        total_spent += spent
        total_limit += budget.limit
        if spent > budget.limit:
            over += 1

    usage = (total_spent / total_limit * 100) if total_limit > 0 else 0.0
    return BudgetUsage(usage=usage, categories_over_budget=over)


__all__ = [
    "DEFAULT_BUDGET_MARKUP",
    "calculate_spending_by_category",
    "merge_budgets_with_spending",
    "calculate_budget_usage",
]
