"""
Daily hours normalization.

Rescales each day's aggregates so the day totals exactly the target:
- Meetings (admin projects and calendar events) keep their hours
- Entries capped by an override rule keep their hours
- Everything else is scaled proportionally
- All hours are rounded to quarter-hour increments, and the rounding
  remainder is folded into the largest scaled entry
"""

from collections import defaultdict

from models.config import SettleConfig
from models.entries import DayProjectAggregate, NormalizedAggregate
from services.hours import round_to_increment, total_hours
from services.meetings import MeetingOracle, is_calendar_event


def is_meeting_entry(
    aggregate: DayProjectAggregate, config: SettleConfig, oracle: MeetingOracle | None
) -> bool:
    if aggregate.chrono_project.startswith(config.admin_project_prefix):
        return True
    if aggregate.descriptions:
        return is_calendar_event(oracle, aggregate.descriptions[0])
    return False


def normalize(
    aggregates: list[DayProjectAggregate],
    config: SettleConfig,
    oracle: MeetingOracle | None = None,
) -> list[NormalizedAggregate]:
    """Normalize every day independently; result sorted by (date, DevPro project)."""
    by_date: dict = defaultdict(list)
    for agg in aggregates:
        by_date[agg.date].append(agg)

    result = []
    for day_aggregates in by_date.values():
        classified = [classify(agg, config, oracle) for agg in day_aggregates]
        result.extend(normalize_day(classified, config))

    result.sort(key=lambda n: (n.date, n.devpro_project))
    return result


def classify(
    aggregate: DayProjectAggregate, config: SettleConfig, oracle: MeetingOracle | None
) -> NormalizedAggregate:
    is_meeting = is_meeting_entry(aggregate, config, oracle)
    return NormalizedAggregate(
        aggregate=aggregate,
        normalized_hours=aggregate.total_hours,
        is_meeting=is_meeting,
        is_fixed=is_meeting or aggregate.max_hours is not None,
    )


def normalize_day(
    entries: list[NormalizedAggregate], config: SettleConfig
) -> list[NormalizedAggregate]:
    """Normalize one day's classified aggregates to config.target_hours."""
    increment = config.hour_increment
    target = config.target_hours

    fixed = [e for e in entries if e.is_fixed]
    scalable = [e for e in entries if not e.is_fixed]
    fixed_hours = total_hours(e.normalized_hours for e in fixed)
    scalable_hours = total_hours(e.normalized_hours for e in scalable)

    if abs(fixed_hours + scalable_hours - target) < increment / 2:
        # Already at target: no scaling, but independent rounding may drift a step
        rounded_fixed = [_rounded(e, increment) for e in fixed]
        rounded_scalable = [_rounded(e, increment) for e in scalable]
        remaining = target - total_hours(e.normalized_hours for e in rounded_fixed)
        return rounded_fixed + fold_remainder(rounded_scalable, remaining, increment)

    target_work = target - fixed_hours
    if not scalable or target_work <= 0 or scalable_hours <= 0:
        return [_rounded(e, increment) for e in entries]

    factor = target_work / scalable_hours
    scaled = [
        _with_hours(e, round_to_increment(e.normalized_hours * factor, increment))
        for e in scalable
    ]
    rounded_fixed = [_rounded(e, increment) for e in fixed]

    adjusted_target = target - total_hours(e.normalized_hours for e in rounded_fixed)
    scaled = fold_remainder(scaled, adjusted_target, increment)

    return rounded_fixed + scaled


def fold_remainder(
    scaled: list[NormalizedAggregate], target: float, increment: float
) -> list[NormalizedAggregate]:
    """Put the whole rounding remainder on the single largest entry, never below zero."""
    diff = target - total_hours(e.normalized_hours for e in scaled)
    if abs(diff) < increment / 2 or not scaled:
        return scaled

    largest = max(range(len(scaled)), key=lambda i: scaled[i].normalized_hours)
    entry = scaled[largest]
    scaled = list(scaled)
    # Rounded fixed hours can exceed the target on their own
    folded = round_to_increment(entry.normalized_hours + diff, increment)
    scaled[largest] = _with_hours(entry, max(0.0, folded))
    return scaled


def _with_hours(entry: NormalizedAggregate, hours: float) -> NormalizedAggregate:
    return NormalizedAggregate(
        aggregate=entry.aggregate,
        normalized_hours=hours,
        is_meeting=entry.is_meeting,
        is_fixed=entry.is_fixed,
    )


def _rounded(entry: NormalizedAggregate, increment: float) -> NormalizedAggregate:
    return _with_hours(entry, round_to_increment(entry.normalized_hours, increment))
