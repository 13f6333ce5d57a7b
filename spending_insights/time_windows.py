"""Relative time windows over transaction dates.

Boundaries are computed from the wall clock at call time (or from an
explicit ``now`` for reproducible reports) in local time. Timezone-aware
timestamps are converted to the host's local time and compared as naive
datetimes, so month boundaries and month buckets follow the local calendar.
Naive timestamps are taken as-is.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from datetime import date, datetime, timedelta
from typing import Any, TypeVar

from .enrichment import resolve_date
from .models import TimeWindow


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO date or date-time into a naive datetime, or ``None``."""

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def window_bounds(window: TimeWindow | str, now: datetime | None = None) -> tuple[datetime, datetime] | None:
    """Return ``(start, end)`` for ``window``; ``end`` is exclusive.

    ``None`` means the window is unbounded (``all``). Raises ``ValueError``
    for unknown window names.
    """

    window = TimeWindow(window)
    current = parse_timestamp(now) if now is not None else datetime.now()
    if current is None:
        raise ValueError(f"invalid reference time: {now!r}")

    month_start = datetime(current.year, current.month, 1)
    # Transactions stamped later today still belong to the open windows.
    open_end = datetime(current.year, current.month, current.day) + timedelta(days=1)
    open_end = max(open_end, current)

    if window is TimeWindow.ALL:
        return None
    if window is TimeWindow.THIS_MONTH:
        return month_start, open_end
    if window is TimeWindow.LAST_MONTH:
        y, m = _shift_month(current.year, current.month, -1)
        return datetime(y, m, 1), month_start
    if window is TimeWindow.LAST_3_MONTHS:
        y, m = _shift_month(current.year, current.month, -3)
        return datetime(y, m, 1), open_end
    return datetime(current.year, 1, 1), open_end


T = TypeVar("T")


def filter_transactions_by_time(
    transactions: Iterable[T], window: TimeWindow | str, *, now: datetime | None = None
) -> list[T]:
    """Keep the transactions whose date falls inside ``window``.

    Accepts raw records or enriched views and returns the same objects.
    Records without a parseable date only survive the ``all`` window.
    """

    bounds = window_bounds(window, now)
    if bounds is None:
        return list(transactions)
    start, end = bounds
    kept: list[T] = []
    for tx in transactions:
        when = parse_timestamp(resolve_date(tx))
        if when is not None and start <= when < end:
            kept.append(tx)
    return kept


def days_remaining_in_month(now: datetime | None = None) -> int:
    """Whole days left in the current month, not counting today."""

    current = now or datetime.now()
    last_day = calendar.monthrange(current.year, current.month)[1]
    return last_day - current.day


__all__ = [
    "parse_timestamp",
    "window_bounds",
    "filter_transactions_by_time",
    "days_remaining_in_month",
]
