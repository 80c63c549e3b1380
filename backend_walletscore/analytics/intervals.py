"""
Turnover intervals: calendar-month buckets of transaction value.

The first bucket starts at the earliest transaction timestamp, every bucket
ends at the next month boundary, and the last one ends at `now`. Buckets are
half-open [start, end) except the last, which also takes transactions at `now`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable

from backend_walletscore.scoring.schemas import TurnoverInterval

LAST_MONTH_DAYS = 30
LAST_YEAR_DAYS = 365


@dataclass(frozen=True)
class TurnoverEntry:
    """One value movement: value is in native units, is_outgoing when the wallet sent it."""

    timestamp: datetime
    value: Decimal
    is_outgoing: bool


def _next_month_start(dt: datetime) -> datetime:
    if dt.month == 12:
        return datetime(dt.year + 1, 1, 1, tzinfo=dt.tzinfo)
    return datetime(dt.year, dt.month + 1, 1, tzinfo=dt.tzinfo)


def month_boundaries(start: datetime, now: datetime) -> list[tuple[datetime, datetime]]:
    """Contiguous (start, end) windows covering [start, now]; empty when start > now."""
    if start > now:
        return []
    windows: list[tuple[datetime, datetime]] = []
    cursor = start
    while True:
        boundary = _next_month_start(cursor)
        if boundary >= now:
            windows.append((cursor, now))
            return windows
        windows.append((cursor, boundary))
        cursor = boundary


def build_turnover_intervals(
    entries: Iterable[TurnoverEntry],
    now: datetime | None = None,
) -> list[TurnoverInterval]:
    """Bucket entries by month from the earliest entry to now. No entries -> no intervals."""
    items = sorted(entries, key=lambda e: e.timestamp)
    if not items:
        return []
    now = now or datetime.now(timezone.utc)
    windows = month_boundaries(items[0].timestamp, max(now, items[-1].timestamp))
    intervals = [TurnoverInterval(start_date=start, end_date=end) for start, end in windows]

    idx = 0
    last = len(intervals) - 1
    for entry in items:
        while idx < last and entry.timestamp >= intervals[idx].end_date:
            idx += 1
        bucket = intervals[idx]
        bucket.count += 1
        if entry.is_outgoing:
            bucket.amount_out_sum += entry.value
        else:
            bucket.amount_in_sum += entry.value
    for bucket in intervals:
        bucket.amount_sum = bucket.amount_in_sum - bucket.amount_out_sum
    return intervals


def balance_change_since(intervals: list[TurnoverInterval], since: datetime) -> Decimal:
    """Net flow of every bucket that ends after `since`."""
    return sum((i.amount_sum for i in intervals if i.end_date > since), Decimal(0))


def balance_change_in_last_month(intervals: list[TurnoverInterval], now: datetime) -> Decimal:
    return balance_change_since(intervals, now - timedelta(days=LAST_MONTH_DAYS))


def balance_change_in_last_year(intervals: list[TurnoverInterval], now: datetime) -> Decimal:
    return balance_change_since(intervals, now - timedelta(days=LAST_YEAR_DAYS))
