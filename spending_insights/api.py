"""Public orchestration for the ``spending_insights`` package.

:func:`build_insights` runs the whole pipeline for one time window: filter,
enrich (once per record, through a shared cache), then aggregate categories,
recurring expenses and income/expense totals. The individual steps remain
importable from their modules for callers that only need one of them.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from .aggregation import (
    calculate_budget_usage,
    calculate_spending_by_category,
    merge_budgets_with_spending,
)
from .config import InsightsSettings, load_settings
from .enrichment import EnrichmentCache
from .logging_setup import get_logger
from .models import Budget, Goal, InsightsReport, InsightsSummary, TimeWindow
from .recurring import calculate_recurring_total, detect_recurring_expenses
from .summary import calculate_income_expenses, calculate_overall_goal_progress
from .time_windows import filter_transactions_by_time

_logger = get_logger("spending_insights.api")


def build_insights(
    transactions: Iterable[Any],
    window: TimeWindow | str = TimeWindow.ALL,
    *,
    budgets: Iterable[Budget | Mapping[str, Any]] = (),
    goals: Iterable[Goal | Mapping[str, Any]] = (),
    settings: InsightsSettings | None = None,
    now: datetime | None = None,
) -> InsightsReport:
    """Compute every insight for ``transactions`` within ``window``.

    Input
    -----
    transactions:
        Raw transaction mappings (any supported source shape) or enriched
        views.
    window:
        A :class:`~spending_insights.models.TimeWindow` or its string value.
    budgets, goals:
        Saved documents, overlaid read-only.
    settings:
        Thresholds and defaults; read from the environment when omitted.

    Output
    ------
    An :class:`~spending_insights.models.InsightsReport`.
    """

    cfg = settings if settings is not None else load_settings()
    resolved_window = TimeWindow(window)
    saved_budgets = [b if isinstance(b, Budget) else Budget.model_validate(b) for b in budgets]
    saved_goals = [g if isinstance(g, Goal) else Goal.model_validate(g) for g in goals]

    cache = EnrichmentCache(default_currency=cfg.default_currency)
    scoped = filter_transactions_by_time(transactions, resolved_window, now=now)
    enriched = tuple(cache.get_or_enrich(tx) for tx in scoped)

    spending = calculate_spending_by_category(enriched, budget_markup=cfg.budget_markup, cache=cache)
    categories = tuple(merge_budgets_with_spending(spending, saved_budgets))
    recurring = tuple(
        detect_recurring_expenses(
            enriched,
            cfg.recurring_min_transactions,
            cfg.recurring_max_variance_ratio,
            cfg.recurring_limit,
            next_date_offset_days=cfg.next_date_offset_days,
            cache=cache,
        )
    )
    totals = calculate_income_expenses(enriched, cache=cache)
    usage = calculate_budget_usage(spending, saved_budgets)

    overview = InsightsSummary(
        total_spent=totals.expenses,
        total_income=totals.income,
        net_balance=totals.net,
        budget_usage=usage.usage,
        categories_over_budget=usage.categories_over_budget,
        recurring_expenses_total=calculate_recurring_total(recurring),
        goals_progress=calculate_overall_goal_progress(saved_goals),
    )
    currencies = {tx.currency for tx in enriched}
    currency = currencies.pop() if len(currencies) == 1 else cfg.default_currency

    _logger.info(
        "insights window=%s transactions=%d categories=%d recurring=%d",
        resolved_window.value,
        len(enriched),
        len(categories),
        len(recurring),
    )
    return InsightsReport(
        window=resolved_window,
        transactions=enriched,
        categories=categories,
        recurring=recurring,
        summary=totals,
        overview=overview,
        currency=currency,
    )


__all__ = ["build_insights"]
