"""Data models for time entries, the settle plan and the DevPro portal."""

from .config import Filler, OverrideRule, ProjectMapping, SettleConfig
from .entries import (
    ActionType,
    ApplyResult,
    BorrowedEntry,
    DayProjectAggregate,
    EditResult,
    EntryKind,
    FillerEntry,
    NormalizedAggregate,
    PlannedEntry,
    SettleAction,
    TimeEntry,
)
from .portal import CurrentUser, ExistingWorklog, Project, WorklogPayload

__all__ = [
    "ActionType",
    "ApplyResult",
    "BorrowedEntry",
    "CurrentUser",
    "DayProjectAggregate",
    "EditResult",
    "EntryKind",
    "ExistingWorklog",
    "Filler",
    "FillerEntry",
    "NormalizedAggregate",
    "OverrideRule",
    "PlannedEntry",
    "Project",
    "ProjectMapping",
    "SettleAction",
    "SettleConfig",
    "TimeEntry",
    "WorklogPayload",
]
