from __future__ import annotations

from datetime import date
from typing import Hashable, Iterable, Sequence, TypeVar

from .models import DailyPatternStats, TardinessCategory, TardinessRecord, TopOffender

K = TypeVar("K", bound=Hashable)

NO_REASON = "Tidak ada"


def most_frequent(items: Iterable[K]) -> tuple[K, int] | None:
    """Most frequent item; ties go to the item seen first."""
    counts: dict[K, int] = {}
    for item in items:
        counts[item] = counts.get(item, 0) + 1
    if not counts:
        return None
    # dicts keep first-insertion order and max() keeps the first maximum
    key = max(counts, key=counts.__getitem__)
    return key, counts[key]


def find_top_offender(records: Sequence[TardinessRecord]) -> TopOffender | None:
    top = most_frequent(record.name for record in records)
    if top is None:
        return None
    name, count = top
    first = next(record for record in records if record.name == name)
    return TopOffender(name=name, class_name=first.class_name, count=count)


def daily_pattern_stats(records: Sequence[TardinessRecord]) -> DailyPatternStats | None:
    if not records:
        return None

    reason = most_frequent(record.reason.strip() or NO_REASON for record in records)
    top_class = most_frequent(record.class_name for record in records)
    total = sum(record.duration_minutes for record in records)
    category_counts = {category: 0 for category in TardinessCategory}
    for record in records:
        category_counts[record.category] += 1

    return DailyPatternStats(
        most_common_reason=reason[0] if reason else NO_REASON,
        top_class=top_class[0] if top_class else "N/A",
        average_duration=int(total / len(records) + 0.5),
        category_counts=category_counts,
    )


def available_periods(records: Sequence[TardinessRecord]) -> dict[int, list[int]]:
    """Years (newest first) mapped to the sorted months that have records."""
    periods: dict[int, set[int]] = {}
    for record in records:
        day = record.local_date
        periods.setdefault(day.year, set()).add(day.month)
    return {year: sorted(periods[year]) for year in sorted(periods, reverse=True)}


def default_period(records: Sequence[TardinessRecord], today: date) -> tuple[int, int]:
    """Today's month when it has data, otherwise the latest month that does."""
    periods = available_periods(records)
    if today.month in periods.get(today.year, []):
        return today.year, today.month
    if not periods:
        return today.year, today.month
    latest_year = next(iter(periods))
    return latest_year, periods[latest_year][-1]

