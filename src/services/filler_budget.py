"""
Filler budgets per billing period.

Billing periods are half months: the 1st-15th and the 16th-end of month.
A filler may cap how many hours it contributes per period; the remaining
allowance is recomputed every run from worklogs already in the portal.
"""

import calendar
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import NamedTuple

from core.config import HOUR_INCREMENT
from models.config import Filler
from models.portal import ExistingWorklog

UNLIMITED = math.inf


class FillerKey(NamedTuple):
    devpro_project: str
    task_title: str


FillerBudget = dict[FillerKey, float]


@dataclass(frozen=True)
class BillingPeriod:
    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


def get_billing_period(day: date) -> BillingPeriod:
    if day.day <= 15:
        return BillingPeriod(day.replace(day=1), day.replace(day=15))
    last_day = calendar.monthrange(day.year, day.month)[1]
    return BillingPeriod(day.replace(day=16), day.replace(day=last_day))


def get_billing_periods_in_range(start: date, end: date) -> list[BillingPeriod]:
    """All billing periods touched by [start, end], in order."""
    periods = []
    current = start
    while current <= end:
        period = get_billing_period(current)
        periods.append(period)
        current = period.end + timedelta(days=1)
    return periods


def calculate_remaining_budgets(
    fillers: list[Filler],
    existing_worklogs: list[ExistingWorklog],
    period: BillingPeriod,
) -> FillerBudget:
    """
    Remaining hours per filler for one billing period.

    Fillers without max_hours_per_period are UNLIMITED. Worklogs outside the
    period, or whose (project, task title) is not a filler, are ignored.
    """
    budgets: FillerBudget = {}
    for filler in fillers:
        key = FillerKey(filler.devpro_project, filler.task_title)
        cap = filler.max_hours_per_period
        budgets[key] = UNLIMITED if cap is None else cap

    for worklog in existing_worklogs:
        if not period.contains(worklog.date):
            continue
        key = FillerKey(worklog.project_short_name, worklog.task_title)
        remaining = budgets.get(key)
        if remaining is None or remaining == UNLIMITED:
            continue
        budgets[key] = max(0.0, remaining - worklog.logged_hours)

    return budgets


def remaining_budget(budgets: FillerBudget, devpro_project: str, task_title: str) -> float:
    return budgets.get(FillerKey(devpro_project, task_title), UNLIMITED)


def has_remaining_budget(
    budgets: FillerBudget,
    devpro_project: str,
    task_title: str,
    min_required: float = HOUR_INCREMENT,
) -> bool:
    return remaining_budget(budgets, devpro_project, task_title) >= min_required


def consume_budget(
    budgets: FillerBudget, devpro_project: str, task_title: str, requested_hours: float
) -> float:
    """Take up to requested_hours from the budget; returns what was granted."""
    if requested_hours <= 0:
        return 0.0
    key = FillerKey(devpro_project, task_title)
    available = budgets.get(key, UNLIMITED)
    if available == UNLIMITED:
        return requested_hours

    consumed = min(requested_hours, available)
    budgets[key] = available - consumed
    return consumed
