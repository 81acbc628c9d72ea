"""
Filler generation for meeting-only days.

When a day is nothing but meetings and falls short of the target, random
filler activities from the rules file are added, but only for DevPro
projects that already appear on that day and only while their billing-period
budget lasts.
"""

import random
from collections import defaultdict
from datetime import date

from models.config import Filler, SettleConfig
from models.entries import FillerEntry, NormalizedAggregate
from services.filler_budget import (
    BillingPeriod,
    FillerBudget,
    consume_budget,
    get_billing_period,
    has_remaining_budget,
    remaining_budget,
)
from services.hours import round_within, total_hours


def generate_fillers(
    normalized: list[NormalizedAggregate],
    fillers: list[Filler],
    config: SettleConfig,
    period_budgets: dict[BillingPeriod, FillerBudget] | None = None,
    rng: random.Random | None = None,
) -> list[FillerEntry]:
    """
    Filler entries for every meeting-only day that is short of target.

    Args:
        period_budgets: Remaining budgets per billing period. Consumed in
            place. None disables budget tracking.
        rng: Source of randomness; a fresh random.Random() when omitted
    """
    if not fillers:
        return []
    rng = rng or random.Random()

    by_date: dict[date, list[NormalizedAggregate]] = defaultdict(list)
    for entry in normalized:
        by_date[entry.date].append(entry)

    result = []
    for day in sorted(by_date):
        budgets = None
        if period_budgets is not None:
            budgets = period_budgets.setdefault(get_billing_period(day), {})
        result.extend(
            generate_fillers_for_day(day, by_date[day], fillers, config, budgets, rng)
        )
    return result


def generate_fillers_for_day(
    day: date,
    day_entries: list[NormalizedAggregate],
    fillers: list[Filler],
    config: SettleConfig,
    budgets: FillerBudget | None,
    rng: random.Random,
) -> list[FillerEntry]:
    if not day_entries or not all(e.is_meeting for e in day_entries):
        return []

    gap = config.target_hours - total_hours(e.normalized_hours for e in day_entries)
    if gap <= 0:
        return []
    # Anything above the synthetic cap is left for the borrower
    gap = min(gap, config.max_synthetic_hours)

    present_projects = {e.devpro_project for e in day_entries}
    return fill_gap(day, gap, fillers, present_projects, config, budgets, rng)


def fill_gap(
    day: date,
    gap: float,
    fillers: list[Filler],
    present_projects: set[str],
    config: SettleConfig,
    budgets: FillerBudget | None,
    rng: random.Random,
) -> list[FillerEntry]:
    increment = config.hour_increment
    result = []
    used: set[int] = set()

    while gap >= increment:
        candidates = [
            i
            for i, filler in enumerate(fillers)
            if i not in used
            and filler.devpro_project in present_projects
            and (
                budgets is None
                or has_remaining_budget(
                    budgets, filler.devpro_project, filler.task_title, increment
                )
            )
        ]
        if not candidates:
            break

        index = rng.choice(candidates)
        used.add(index)
        filler = fillers[index]

        cap = min(gap, _budget_left(budgets, filler))
        upper = min(filler.max_hours, cap)
        lower = min(filler.min_hours, upper)
        raw = lower if upper <= lower else rng.uniform(lower, upper)

        hours = round_within(raw, cap, increment)
        if hours <= 0:
            break
        if budgets is not None:
            hours = consume_budget(budgets, filler.devpro_project, filler.task_title, hours)

        result.append(
            FillerEntry(
                date=day,
                devpro_project=filler.devpro_project,
                task_title=filler.task_title,
                billability=filler.billability,
                hours=hours,
            )
        )
        gap -= hours

    return result


def _budget_left(budgets: FillerBudget | None, filler: Filler) -> float:
    if budgets is None:
        return float("inf")
    return remaining_budget(budgets, filler.devpro_project, filler.task_title)
