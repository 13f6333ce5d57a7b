"""Detection of recurring, subscription-like expenses.

A merchant counts as recurring when its expenses repeat across at least two
calendar months and the per-month totals are stable: the mean absolute
deviation of the monthly totals, relative to their mean, must not exceed
``max_variance_ratio``. Summing within a month first means a bill split into
two payments in one month still lines up with a single payment in another.

Merchants are grouped by exact enriched merchant name. "NETFLIX.COM" and
"Netflix" are different merchants.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from .enrichment import EnrichmentCache
from .logging_setup import get_logger
from .models import EnrichedTransaction, RecurringCharge, RecurringExpense
from .time_windows import parse_timestamp

DEFAULT_MIN_TRANSACTIONS = 2
DEFAULT_MAX_VARIANCE_RATIO = 0.2
DEFAULT_LIMIT = 6
DEFAULT_NEXT_DATE_OFFSET_DAYS = 30

_logger = get_logger("spending_insights.recurring")


@dataclass(frozen=True, slots=True)
class _Charge:
    when: datetime
    tx: EnrichedTransaction


def _month_totals(charges: list[_Charge]) -> dict[tuple[int, int], float]:
    totals: dict[tuple[int, int], float] = {}
    for c in charges:
        key = (c.when.year, c.when.month)
        totals[key] = totals.get(key, 0.0) + abs(c.tx.amount)
    return totals


def _evaluate(
    merchant: str,
    charges: list[_Charge],
    *,
    max_variance_ratio: float,
    next_date_offset_days: int,
) -> RecurringExpense | None:
    charges.sort(key=lambda c: c.when)
    months = _month_totals(charges)
    if len(months) < 2:
        return None

    monthly = list(months.values())
    average = sum(monthly) / len(monthly)
    if average <= 0:
        return None
    deviation = sum(abs(m - average) for m in monthly) / len(monthly)
    ratio = deviation / average
    if ratio > max_variance_ratio:
        _logger.debug("merchant=%r not recurring (variance ratio %.3f)", merchant, ratio)
        return None

    first = charges[0].tx
    next_date = charges[-1].when + timedelta(days=next_date_offset_days)
    return RecurringExpense(
        merchant=merchant,
        category=first.category,
        category_icon=first.category_icon,
        category_color=first.category_color,
        amount=average,
        frequency=len(months),
        next_date=next_date.isoformat(),
        transactions=tuple(
            RecurringCharge(id=c.tx.id, date=c.tx.date or c.when.isoformat(), amount=abs(c.tx.amount))
            for c in charges
        ),
    )


def detect_recurring_expenses(
    transactions: Iterable[Any],
    min_transactions: int = DEFAULT_MIN_TRANSACTIONS,
    max_variance_ratio: float = DEFAULT_MAX_VARIANCE_RATIO,
    limit: int | None = DEFAULT_LIMIT,
    *,
    next_date_offset_days: int = DEFAULT_NEXT_DATE_OFFSET_DAYS,
    cache: EnrichmentCache | None = None,
) -> list[RecurringExpense]:
    """Return recurring expenses, highest average monthly amount first.

    Parameters
    ----------
    transactions:
        Raw records or enriched views.
    min_transactions:
        Minimum number of expenses a merchant needs before it is considered.
    max_variance_ratio:
        Upper bound on mean absolute deviation / mean of the monthly totals.
    limit:
        Maximum number of results; ``None`` returns all of them.

    Notes
    -----
    Expenses without a parseable date cannot be placed in a month and are
    ignored. Each result's ``next_date`` is the last charge plus
    ``next_date_offset_days``.
    """

    arena = cache if cache is not None else EnrichmentCache()
    by_merchant: dict[str, list[_Charge]] = {}
    for tx in transactions:
        enriched = arena.get_or_enrich(tx)
        if enriched.is_credit or not enriched.merchant:
            continue
        when = parse_timestamp(enriched.date)
        if when is None:
            continue
        by_merchant.setdefault(enriched.merchant, []).append(_Charge(when, enriched))

    recurring: list[RecurringExpense] = []
    for merchant, charges in by_merchant.items():
        if len(charges) < min_transactions:
            continue
        found = _evaluate(
            merchant,
            charges,
            max_variance_ratio=max_variance_ratio,
            next_date_offset_days=next_date_offset_days,
        )
        if found is not None:
            recurring.append(found)

    recurring.sort(key=lambda r: r.amount, reverse=True)
    return recurring if limit is None else recurring[:limit]


def calculate_recurring_total(recurring: Iterable[RecurringExpense]) -> float:
    """Combined average monthly cost of the given recurring expenses."""

    return sum((r.amount for r in recurring), 0.0)


__all__ = [
    "DEFAULT_MIN_TRANSACTIONS",
    "DEFAULT_MAX_VARIANCE_RATIO",
    "DEFAULT_LIMIT",
    "detect_recurring_expenses",
    "calculate_recurring_total",
]
