"""
Settle plan validation and consistency checks.
"""

from collections import defaultdict
from datetime import date

from core.errors import PlanValidationError
from models.entries import ActionType, SettleAction
from models.portal import ExistingWorklog


def find_invalid_actions(actions: list[SettleAction]) -> list[str]:
    """Describe every non-skip action whose hours are not strictly positive."""
    problems = []
    for action in actions:
        if action.action is ActionType.SKIP:
            continue
        if action.normalized_hours <= 0:
            problems.append(
                f"Invalid hours: {action.date} {action.devpro_project} "
                f"({action.normalized_hours}h)"
            )
    return problems


def ensure_plan_valid(actions: list[SettleAction]):
    """
    Raises:
        PlanValidationError: If any action would write non-positive hours
    """
    problems = find_invalid_actions(actions)
    if problems:
        raise PlanValidationError(problems)


def find_off_target_days(actions: list[SettleAction], target: float) -> dict[date, float]:
    """Days whose planned total differs from target, with that total."""
    totals: dict[date, float] = defaultdict(float)
    for action in actions:
        if action.action is not ActionType.SKIP:
            totals[action.date] += action.normalized_hours
    return {day: total for day, total in sorted(totals.items()) if abs(total - target) > 0.001}


def find_duplicate_worklogs(worklogs: list[ExistingWorklog]) -> list[str]:
    """
    Days where the portal already holds more than one worklog for a project.

    Only the first of those is matched when planning updates.
    """
    counts: dict[tuple[date, str], list[ExistingWorklog]] = defaultdict(list)
    for worklog in worklogs:
        counts[(worklog.date, worklog.project_unique_id)].append(worklog)

    warnings = []
    for (day, _), group in sorted(counts.items()):
        if len(group) > 1:
            ids = ", ".join(w.unique_id for w in group)
            warnings.append(
                f"{day} {group[0].project_short_name} has {len(group)} worklogs ({ids}); "
                f"only {group[0].unique_id} will be updated"
            )
    return warnings
