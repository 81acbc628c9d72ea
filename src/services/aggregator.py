"""
Aggregation of Chrono time entries into day/project totals.

Entries are grouped by (date, Chrono project, description) and resolved to a
DevPro project and billability: override rules on the description win,
otherwise the Chrono project's mapping applies.
"""

from collections import defaultdict
from collections.abc import Iterable
from datetime import date

from core.errors import ProjectNotFoundError, UnmappedProjectError
from models.config import SettleConfig
from models.entries import DayProjectAggregate, TimeEntry
from models.portal import Project

SECONDS_PER_HOUR = 3600.0


# =============================================================================
# FILTERING
# =============================================================================


def is_work_entry(entry: TimeEntry, config: SettleConfig) -> bool:
    """Entry has a work-category project and a positive duration."""
    if not entry.project_name or not entry.duration_seconds:
        return False
    if entry.duration_seconds <= 0:
        return False
    return entry.project_name.endswith(config.work_project_suffix)


def in_range(day: date, date_from: date | None, date_to: date | None) -> bool:
    if date_from is not None and day < date_from:
        return False
    if date_to is not None and day > date_to:
        return False
    return True


# =============================================================================
# AGGREGATION
# =============================================================================


def aggregate(
    entries: Iterable[TimeEntry],
    config: SettleConfig,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[DayProjectAggregate]:
    """
    Group entries by day, Chrono project and description.

    Returns:
        Aggregates sorted by (date, DevPro project)

    Raises:
        UnmappedProjectError: If an entry's project has no mapping and no
            override rule matches its description
    """
    grouped: dict[tuple[date, str, str], int] = defaultdict(int)

    for entry in entries:
        if not is_work_entry(entry, config):
            continue
        day = entry.start_date
        if not in_range(day, date_from, date_to):
            continue
        description = (entry.description or "").strip()
        grouped[(day, entry.project_name, description)] += entry.duration_seconds

    aggregates = []
    for (day, chrono_project, description), seconds in grouped.items():
        devpro_project, billability, max_hours = resolve_destination(
            chrono_project, description, config
        )
        hours = seconds / SECONDS_PER_HOUR
        if max_hours is not None:
            hours = min(hours, max_hours)

        aggregates.append(
            DayProjectAggregate(
                date=day,
                chrono_project=chrono_project,
                total_hours=hours,
                descriptions=(description,) if description else (),
                devpro_project=devpro_project,
                billability=billability,
                max_hours=max_hours,
            )
        )

    aggregates.sort(key=lambda a: (a.date, a.devpro_project))
    return aggregates


def resolve_destination(
    chrono_project: str, description: str, config: SettleConfig
) -> tuple[str, str, float | None]:
    """Return (DevPro project, billability, max hours) for one group."""
    override = config.find_override(description)
    if override is not None:
        return override.devpro_project, override.billability, override.max_hours

    mapping = config.mapping_for(chrono_project)
    if mapping is None:
        raise UnmappedProjectError(
            chrono_project, [m.chrono_project for m in config.mappings]
        )
    return mapping.devpro_project, mapping.billability, None


# =============================================================================
# PROJECT ID RESOLUTION
# =============================================================================


def resolve_project_ids(
    devpro_names: Iterable[str], projects: list[Project]
) -> dict[str, str]:
    """
    Map DevPro project names to portal unique ids (case-insensitive).

    Raises:
        ProjectNotFoundError: On the first name the user is not assigned to
    """
    by_name = {p.short_name.lower(): p for p in projects}
    resolved = {}

    for name in devpro_names:
        if name in resolved:
            continue
        project = by_name.get(name.lower())
        if project is None:
            raise ProjectNotFoundError(name, [p.short_name for p in projects])
        resolved[name] = project.unique_id

    return resolved
