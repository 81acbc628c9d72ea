"""
Data models for time entries and the settle plan.

Real aggregates, fillers and borrowed entries share one accessor surface
(date, devpro_project, billability, source_hours, source_label, kind) so the
plan can carry any of them without faking a source aggregate.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Union


class EntryKind(str, Enum):
    AGGREGATE = "aggregate"
    FILLER = "filler"
    BORROWED = "borrowed"


class ActionType(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    SKIP = "SKIP"


@dataclass(frozen=True)
class TimeEntry:
    """Raw Chrono time entry."""

    id: int | None
    project_name: str | None
    description: str | None
    start_time: str
    end_time: str | None = None
    duration_seconds: int | None = None

    @property
    def start_date(self) -> date:
        return date.fromisoformat(self.start_time[:10])

    @classmethod
    def from_api(cls, data: dict) -> "TimeEntry":
        project = data.get("project") or {}
        return cls(
            id=data.get("id"),
            project_name=project.get("name"),
            description=data.get("description"),
            start_time=data["start_time"],
            end_time=data.get("end_time"),
            duration_seconds=data.get("duration"),
        )


@dataclass(frozen=True)
class DayProjectAggregate:
    """Entries of one day, Chrono project and description, summed."""

    date: date
    chrono_project: str
    total_hours: float
    descriptions: tuple[str, ...]
    devpro_project: str
    billability: str
    max_hours: float | None = None

    kind = EntryKind.AGGREGATE

    @property
    def source_hours(self) -> float:
        return self.total_hours

    @property
    def source_label(self) -> str:
        return self.chrono_project


@dataclass(frozen=True)
class FillerEntry:
    """Synthetic filler activity for a meeting-only day."""

    date: date
    devpro_project: str
    task_title: str
    billability: str
    hours: float

    kind = EntryKind.FILLER

    @property
    def source_hours(self) -> float:
        return self.hours

    @property
    def source_label(self) -> str:
        return "[filler]"


@dataclass(frozen=True)
class BorrowedEntry:
    """Task copied from a previous day to close a remaining gap."""

    date: date
    source_date: date
    devpro_project: str
    task_title: str
    billability: str
    hours: float

    kind = EntryKind.BORROWED

    @property
    def source_hours(self) -> float:
        return self.hours

    @property
    def source_label(self) -> str:
        return "[borrowed]"


PlannedEntry = Union[DayProjectAggregate, FillerEntry, BorrowedEntry]


@dataclass(frozen=True)
class NormalizedAggregate:
    """Aggregate with its hours after daily normalization."""

    aggregate: DayProjectAggregate
    normalized_hours: float
    is_meeting: bool
    is_fixed: bool

    @property
    def date(self) -> date:
        return self.aggregate.date

    @property
    def devpro_project(self) -> str:
        return self.aggregate.devpro_project


@dataclass(frozen=True)
class SettleAction:
    """One planned write to the DevPro portal."""

    entry: PlannedEntry
    normalized_hours: float
    is_meeting: bool
    task_title: str
    devpro_project_id: str
    action: ActionType
    existing_worklog_id: str | None = None
    is_manually_fixed: bool = False

    @property
    def date(self) -> date:
        return self.entry.date

    @property
    def devpro_project(self) -> str:
        return self.entry.devpro_project

    @property
    def billability(self) -> str:
        return self.entry.billability

    @property
    def is_filler(self) -> bool:
        return self.entry.kind is EntryKind.FILLER

    @property
    def is_borrowed(self) -> bool:
        return self.entry.kind is EntryKind.BORROWED

    @property
    def source_date(self) -> date | None:
        return self.entry.source_date if self.is_borrowed else None

    def with_hours(self, hours: float, **changes) -> "SettleAction":
        return replace(self, normalized_hours=hours, **changes)


@dataclass
class EditResult:
    """Outcome of pinning one action to a manual hour value."""

    actions: list[SettleAction]
    accepted: bool
    message: str = ""
    minimum_hours: float | None = None


@dataclass
class ApplyResult:
    """Counts and failures from writing a plan to the portal."""

    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    failures: list[tuple[SettleAction, str]] = field(default_factory=list)
