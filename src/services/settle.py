"""
Settle: turn a date range of Chrono entries into DevPro worklog actions.

Pipeline:
1. Fetch Chrono entries and aggregate them per day, project and description
2. Normalize each day to the target hours
3. Pad meeting-only days with fillers, within billing-period budgets
4. Borrow recent tasks for days that are still short
5. Resolve DevPro project ids and diff against existing worklogs

The resulting plan can be edited entry by entry and then applied.
"""

import random
from collections import defaultdict
from dataclasses import dataclass
from datetime import date

from core.chrono_client import ChronoClient
from core.config import EDIT_TOTAL_EPSILON, EXPENSE_TYPE
from core.portal_client import PortalClient
from core.validation import ensure_plan_valid, find_duplicate_worklogs
from models.config import SettleConfig
from models.entries import (
    ActionType,
    ApplyResult,
    BorrowedEntry,
    EditResult,
    EntryKind,
    FillerEntry,
    NormalizedAggregate,
    SettleAction,
)
from models.portal import ExistingWorklog, WorklogPayload
from services.aggregator import aggregate, resolve_project_ids
from services.borrower import borrow_for_meeting_only_days, clean_task_title
from services.filler_budget import calculate_remaining_budgets, get_billing_periods_in_range
from services.fillers import generate_fillers
from services.hours import round_to_increment, total_hours
from services.meetings import MeetingOracle, build_meeting_oracle
from services.normalizer import normalize


@dataclass
class SettleSources:
    """Where a settle run reads from: Chrono, the portal and an optional meeting oracle."""

    chrono: ChronoClient
    portal: PortalClient
    oracle: MeetingOracle | None = None

    def close(self):
        self.chrono.close()
        self.portal.close()


def open_sources(config: SettleConfig, date_from: date, date_to: date) -> SettleSources:
    """Live clients for a run over [date_from, date_to]."""
    return SettleSources(
        chrono=ChronoClient(config.chrono_api),
        portal=PortalClient(),
        oracle=build_meeting_oracle(date_from, date_to),
    )


# =============================================================================
# PLANNING
# =============================================================================


def prepare_actions(
    date_from: date,
    date_to: date,
    config: SettleConfig,
    sources: SettleSources,
    rng: random.Random | None = None,
) -> list[SettleAction]:
    """
    Build the settle plan for [date_from, date_to].

    Returns an empty list when Chrono has nothing to settle in the range.

    Raises:
        UnmappedProjectError: If a Chrono project has no mapping
        ProjectNotFoundError: If a DevPro project is not assigned to the user
        ChronoError, ApiError: On transport failures
    """
    print(f"Fetching Chrono data ({date_from} to {date_to})...")
    entries = sources.chrono.get_time_entries(date_from, date_to)
    if not entries:
        print("No entries found in Chrono for this period.")
        return []

    aggregates = aggregate(entries, config, date_from, date_to)
    if not aggregates:
        print("No work entries to process (entries without project or duration are skipped).")
        return []

    normalized = normalize(aggregates, config, sources.oracle)

    existing = fetch_existing_worklogs(sources.portal, date_from, date_to)
    for warning in find_duplicate_worklogs(existing):
        print(f"  Warning: {warning}")

    period_budgets = {
        period: calculate_remaining_budgets(list(config.fillers), existing, period)
        for period in get_billing_periods_in_range(date_from, date_to)
    }
    fillers = generate_fillers(normalized, list(config.fillers), config, period_budgets, rng)
    borrowed = borrow_for_meeting_only_days(
        normalized, fillers, sources.chrono.get_time_entries, config
    )

    user = sources.portal.get_current_user()
    projects = sources.portal.get_assigned_projects(user.unique_id, date_from)
    names = [n.devpro_project for n in normalized]
    names += [f.devpro_project for f in fillers]
    names += [b.devpro_project for b in borrowed]
    project_ids = resolve_project_ids(list(dict.fromkeys(names)), projects)

    actions = [normalized_action(n, project_ids, existing, config) for n in normalized]
    actions += [synthetic_action(f, project_ids, existing) for f in fillers + borrowed]
    actions.sort(key=lambda a: (a.date, a.devpro_project))

    print(f"✓ Planned {len(actions)} action(s) across {len({a.date for a in actions})} day(s)")
    return actions


def fetch_existing_worklogs(portal: PortalClient, date_from: date, date_to: date) -> list[ExistingWorklog]:
    """Worklogs of every month touched by the range."""
    worklogs = []
    for month in month_starts(date_from, date_to):
        worklogs.extend(portal.get_existing_worklogs(month))
    return worklogs


def month_starts(date_from: date, date_to: date) -> list[date]:
    months = []
    current = date_from.replace(day=1)
    while current <= date_to:
        months.append(current)
        if current.month == 12:
            current = current.replace(year=current.year + 1, month=1)
        else:
            current = current.replace(month=current.month + 1)
    return months


def find_existing(
    day: date, project_id: str, existing: list[ExistingWorklog]
) -> ExistingWorklog | None:
    for worklog in existing:
        if worklog.date == day and worklog.project_unique_id == project_id:
            return worklog
    return None


def task_title_for(entry: NormalizedAggregate, config: SettleConfig) -> str:
    agg = entry.aggregate
    if not agg.descriptions:
        return config.default_task_title
    return clean_task_title(agg.descriptions[0], agg.chrono_project) or config.default_task_title


def normalized_action(
    entry: NormalizedAggregate,
    project_ids: dict[str, str],
    existing: list[ExistingWorklog],
    config: SettleConfig,
) -> SettleAction:
    project_id = project_ids[entry.devpro_project]
    match = find_existing(entry.date, project_id, existing)
    return SettleAction(
        entry=entry.aggregate,
        normalized_hours=entry.normalized_hours,
        is_meeting=entry.is_meeting,
        task_title=task_title_for(entry, config),
        devpro_project_id=project_id,
        action=ActionType.UPDATE if match else ActionType.CREATE,
        existing_worklog_id=match.unique_id if match else None,
    )


def synthetic_action(
    entry: FillerEntry | BorrowedEntry,
    project_ids: dict[str, str],
    existing: list[ExistingWorklog],
) -> SettleAction:
    project_id = project_ids[entry.devpro_project]
    match = find_existing(entry.date, project_id, existing)
    return SettleAction(
        entry=entry,
        normalized_hours=entry.hours,
        is_meeting=False,
        task_title=entry.task_title,
        devpro_project_id=project_id,
        action=ActionType.UPDATE if match else ActionType.CREATE,
        existing_worklog_id=match.unique_id if match else None,
    )


# =============================================================================
# EDITING
# =============================================================================


def is_scalable(action: SettleAction) -> bool:
    if action.is_meeting or action.is_manually_fixed:
        return False
    entry = action.entry
    return not (entry.kind is EntryKind.AGGREGATE and entry.max_hours is not None)


def edit_action(
    actions: list[SettleAction], index: int, hours: float, config: SettleConfig
) -> EditResult:
    """
    Pin one action to a manual hour value and rescale the rest of its day.

    The pinned value is rounded to the hour increment. Rejected edits return
    the actions unchanged with a message; when the day would fall below
    target, minimum_hours is the smallest value that would have worked.
    """
    increment = config.hour_increment
    target = config.target_hours

    if not 0 <= index < len(actions):
        return EditResult(actions, False, f"Invalid entry number: {index + 1}")

    selected = actions[index]
    if selected.is_meeting:
        return EditResult(actions, False, "Meetings cannot be edited.")
    if hours < increment:
        return EditResult(actions, False, f"Invalid. Must be >= {increment}")

    day_indices = [i for i, a in enumerate(actions) if a.date == selected.date]
    if sum(1 for i in day_indices if is_scalable(actions[i])) < 2:
        return EditResult(
            actions, False, "Cannot edit: need at least 2 work entries to redistribute hours."
        )

    pinned = max(increment, round_to_increment(hours, increment))
    day = [actions[i] for i in day_indices]
    day[day_indices.index(index)] = selected.with_hours(pinned, is_manually_fixed=True)
    day = renormalize_day(day, config)

    day_total = total_hours(a.normalized_hours for a in day)
    if day_total < target - EDIT_TOTAL_EPSILON:
        minimum = pinned + (target - day_total)
        return EditResult(
            actions,
            False,
            f"Cannot set {pinned:.2f}h, would result in {day_total:.2f}h total "
            f"(< {target:.2f}h). Minimum for this entry: {minimum:.2f}h",
            minimum_hours=minimum,
        )

    result = list(actions)
    for i, action in zip(day_indices, day):
        result[i] = action
    return EditResult(result, True, f"Set to {pinned:.2f}h")


def renormalize_day(day: list[SettleAction], config: SettleConfig) -> list[SettleAction]:
    """Rescale the scalable actions of one day around the fixed ones."""
    increment = config.hour_increment
    scalable = [i for i, a in enumerate(day) if is_scalable(a)]
    if not scalable:
        return day

    fixed_hours = total_hours(a.normalized_hours for a in day if not is_scalable(a))
    target_work = config.target_hours - fixed_hours
    result = list(day)

    if target_work <= 0:
        for i in scalable:
            result[i] = day[i].with_hours(increment)
        return result

    scalable_hours = total_hours(day[i].normalized_hours for i in scalable)
    for i in scalable:
        if scalable_hours > 0:
            raw = day[i].normalized_hours * target_work / scalable_hours
        else:
            raw = target_work / len(scalable)
        result[i] = day[i].with_hours(max(increment, round_to_increment(raw, increment)))

    diff = target_work - total_hours(result[i].normalized_hours for i in scalable)
    if abs(diff) >= increment / 2:
        largest = max(scalable, key=lambda i: result[i].normalized_hours)
        hours = round_to_increment(result[largest].normalized_hours + diff, increment)
        result[largest] = result[largest].with_hours(max(increment, hours))

    return result


# =============================================================================
# APPLYING
# =============================================================================


def build_payload(action: SettleAction) -> WorklogPayload:
    return WorklogPayload(
        worklogDate=action.date.isoformat(),
        projectUniqueId=action.devpro_project_id,
        taskTitle=action.task_title,
        billability=action.billability,
        duration=action.normalized_hours,
        expenseType=EXPENSE_TYPE,
        uniqueId=action.existing_worklog_id if action.action is ActionType.UPDATE else None,
    )


def apply_actions(actions: list[SettleAction], client: PortalClient) -> ApplyResult:
    """
    Write the plan to the portal in order.

    Individual failures are reported and counted; the rest of the batch
    still runs.

    Raises:
        PlanValidationError: If any action has non-positive hours (nothing is written)
    """
    ensure_plan_valid(actions)

    result = ApplyResult()
    for action in actions:
        label = f"{action.date} {action.devpro_project} ({action.normalized_hours}h)"
        try:
            if action.action is ActionType.CREATE:
                client.create_worklog(build_payload(action))
                result.created += 1
                print(f"✓ Created: {label}")
            elif action.action is ActionType.UPDATE:
                client.update_worklog(build_payload(action))
                result.updated += 1
                print(f"✓ Updated: {label}")
            else:
                result.skipped += 1
        except Exception as e:
            result.errors += 1
            result.failures.append((action, str(e)))
            print(f"✗ Failed: {action.date} {action.devpro_project} - {e}")

    print(f"\nDone! Created: {result.created}, Updated: {result.updated}, Errors: {result.errors}")
    return result


def day_totals(actions: list[SettleAction]) -> dict[date, float]:
    totals: dict[date, float] = defaultdict(float)
    for action in actions:
        totals[action.date] += action.normalized_hours
    return dict(totals)


# =============================================================================
# MANUAL WORKLOGS
# =============================================================================


def resolve_project_id(client: PortalClient, short_name: str, day: date) -> str:
    """
    Look up the portal id of a project the user is assigned to on day.

    Raises:
        ProjectNotFoundError: When no assigned project has that short name
    """
    user = client.get_current_user()
    projects = client.get_assigned_projects(user.unique_id, day)
    return resolve_project_ids([short_name], projects)[short_name]


def manual_payload(
    day: date,
    project_id: str,
    task_title: str,
    hours: float,
    billability: str,
    description: str | None = None,
    unique_id: str | None = None,
) -> WorklogPayload:
    return WorklogPayload(
        worklogDate=day.isoformat(),
        projectUniqueId=project_id,
        taskTitle=task_title,
        billability=billability,
        duration=hours,
        expenseType=EXPENSE_TYPE,
        description=description,
        uniqueId=unique_id,
    )
