"""
Borrowing tasks from recent history for days that are still short.

After fillers, a meeting-heavy day may still miss the target. The days
immediately before the batch are fetched from Chrono, aggregated with the
same rules, and their most time-consuming tasks are copied onto the short
day until the shortfall is covered.
"""

import re
from collections import defaultdict
from collections.abc import Callable
from datetime import date, timedelta

from core.config import TITLE_DATE_PATTERN
from models.config import SettleConfig
from models.entries import (
    BorrowedEntry,
    DayProjectAggregate,
    FillerEntry,
    NormalizedAggregate,
    TimeEntry,
)
from services.aggregator import aggregate
from services.hours import round_within, total_hours

HistoryProvider = Callable[[date, date], list[TimeEntry]]

_DATE_SUFFIX = re.compile(TITLE_DATE_PATTERN)


def clean_task_title(description: str, chrono_project: str) -> str:
    """Strip the ' - <Chrono project>' suffix and a trailing ', Mon D YYYY' stamp."""
    suffix = f" - {chrono_project}"
    if description.endswith(suffix):
        description = description[: -len(suffix)]
    return _DATE_SUFFIX.sub("", description)


# =============================================================================
# SHORTFALL DETECTION
# =============================================================================


def find_days_with_shortfall(
    normalized: list[NormalizedAggregate],
    fillers: list[FillerEntry],
    config: SettleConfig,
) -> dict[date, float]:
    """Meeting-heavy days whose normalized + filler hours miss the target."""
    by_date: dict[date, list[NormalizedAggregate]] = defaultdict(list)
    for entry in normalized:
        by_date[entry.date].append(entry)

    filler_hours: dict[date, float] = defaultdict(float)
    for filler in fillers:
        filler_hours[filler.date] += filler.hours

    shortfalls = {}
    for day in sorted(by_date):
        entries = by_date[day]
        logged = total_hours(e.normalized_hours for e in entries) + filler_hours[day]
        shortfall = config.target_hours - logged

        fixed_hours = total_hours(e.normalized_hours for e in entries if e.is_fixed)
        work_hours = total_hours(e.normalized_hours for e in entries if not e.is_fixed)
        meeting_heavy = fixed_hours >= config.meeting_heavy_ratio * work_hours

        if shortfall > config.hour_increment and meeting_heavy:
            shortfalls[day] = shortfall

    return shortfalls


# =============================================================================
# HISTORY
# =============================================================================


def history_window(batch_dates: list[date], lookback_days: int) -> tuple[date, date]:
    earliest = min(batch_dates)
    return earliest - timedelta(days=lookback_days), earliest - timedelta(days=1)


def rank_candidates(
    history: list[DayProjectAggregate],
) -> list[tuple[str, DayProjectAggregate]]:
    """
    Historical descriptions ordered by total hours, most first.

    An aggregate's hours are split evenly across its descriptions. Each
    description keeps the latest aggregate it appeared in as its source.
    Ties keep first-encounter order.
    """
    hours_by_task: dict[str, float] = {}
    source_by_task: dict[str, DayProjectAggregate] = {}

    for agg in history:
        if not agg.descriptions:
            continue
        share = agg.total_hours / len(agg.descriptions)
        for description in agg.descriptions:
            hours_by_task[description] = hours_by_task.get(description, 0.0) + share
            source_by_task[description] = agg

    ranked = sorted(hours_by_task, key=lambda task: -hours_by_task[task])
    return [(task, source_by_task[task]) for task in ranked]


# =============================================================================
# BORROWING
# =============================================================================


def borrow_for_meeting_only_days(
    normalized: list[NormalizedAggregate],
    fillers: list[FillerEntry],
    history_provider: HistoryProvider,
    config: SettleConfig,
) -> list[BorrowedEntry]:
    """
    Borrowed entries for short meeting-heavy days.

    History problems never fail the run: if the lookback cannot be fetched or
    aggregated, or is empty, nothing is borrowed.
    """
    shortfalls = find_days_with_shortfall(normalized, fillers, config)
    if not shortfalls:
        return []

    start, end = history_window([e.date for e in normalized], config.lookback_days)
    print(f"Borrowing for {len(shortfalls)} short day(s) from history ({start} to {end})...")

    try:
        history_entries = history_provider(start, end)
        history = aggregate(history_entries, config, start, end)
    except Exception as e:
        print(f"  Skipping borrowing, history unavailable: {e}")
        return []

    candidates = rank_candidates(history)
    if not candidates:
        print("  Skipping borrowing, no history in lookback window.")
        return []

    result = []
    for day, shortfall in shortfalls.items():
        result.extend(borrow_for_day(day, shortfall, candidates, config))
    return result


def borrow_for_day(
    day: date,
    shortfall: float,
    candidates: list[tuple[str, DayProjectAggregate]],
    config: SettleConfig,
) -> list[BorrowedEntry]:
    increment = config.hour_increment
    result = []

    for description, source in candidates:
        if shortfall < increment:
            break
        per_task = source.total_hours / max(len(source.descriptions), 1)
        hours = round_within(min(per_task, shortfall), shortfall, increment)
        if hours <= 0:
            continue

        result.append(
            BorrowedEntry(
                date=day,
                source_date=source.date,
                devpro_project=source.devpro_project,
                task_title=clean_task_title(description, source.chrono_project),
                billability=source.billability,
                hours=hours,
            )
        )
        shortfall -= hours

    return result
