"""Income/expense totals and savings-goal progress."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any

from .enrichment import EnrichmentCache
from .models import Goal, IncomeExpenseSummary


def calculate_income_expenses(
    transactions: Iterable[Any], *, cache: EnrichmentCache | None = None
) -> IncomeExpenseSummary:
    """Sum credits and debits over ``transactions``.

    Positive credits add to ``income`` and negative debits add their absolute
    value to ``expenses``; zero amounts count towards neither.
    """

    arena = cache if cache is not None else EnrichmentCache()
    income = 0.0
    expenses = 0.0
    for tx in transactions:
        enriched = arena.get_or_enrich(tx)
        if enriched.is_credit and enriched.amount > 0:
            income += enriched.amount
        elif not enriched.is_credit and enriched.amount < 0:
            expenses += abs(enriched.amount)
    return IncomeExpenseSummary(income=income, expenses=expenses, net=income - expenses)


def _as_number(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    return result if math.isfinite(result) else 0.0


def calculate_goal_progress(saved: Any, target: Any) -> float:
    """Percentage of ``target`` already saved, capped at 100."""

    saved_num = _as_number(saved)
    target_num = _as_number(target)
    if target_num <= 0:
        return 0.0
    return min(saved_num / target_num * 100, 100.0)


def estimate_months_to_goal(saved: Any, target: Any, monthly: Any) -> int:
    """Whole months of ``monthly`` contributions still needed to reach ``target``.

    Returns 0 when nothing is contributed monthly or the goal is already met.
    """

    saved_num = _as_number(saved)
    target_num = _as_number(target)
    monthly_num = _as_number(monthly)
    if monthly_num <= 0 or saved_num >= target_num:
        return 0
    return math.ceil((target_num - saved_num) / monthly_num)


def calculate_overall_goal_progress(goals: Iterable[Goal | Mapping[str, Any]]) -> float:
    total_saved = 0.0
    total_target = 0.0
    for goal in goals:
        g = goal if isinstance(goal, Goal) else Goal.model_validate(goal)
        total_saved += g.saved
        total_target += g.target
    return (total_saved / total_target * 100) if total_target > 0 else 0.0


__all__ = [
    "calculate_income_expenses",
    "calculate_goal_progress",
    "estimate_months_to_goal",
    "calculate_overall_goal_progress",
]
