"""
DevPro time tracking portal models.

Thin dataclasses over the portal's JSON; only the fields settle needs.
"""

from dataclasses import asdict, dataclass
from datetime import date


@dataclass(frozen=True)
class Project:
    unique_id: str
    short_name: str
    is_internal: bool = False
    is_favorite: bool = False

    @classmethod
    def from_api(cls, data: dict) -> "Project":
        return cls(
            unique_id=data["uniqueId"],
            short_name=data["shortName"],
            is_internal=data.get("isInternal", False),
            is_favorite=data.get("isFavorite", False),
        )


@dataclass(frozen=True)
class CurrentUser:
    unique_id: str
    full_name: str
    email: str

    @classmethod
    def from_api(cls, data: dict) -> "CurrentUser":
        return cls(
            unique_id=data["uniqueId"],
            full_name=data.get("fullName", ""),
            email=data.get("email", ""),
        )


@dataclass(frozen=True)
class ExistingWorklog:
    """Worklog already recorded in the portal, with the day it belongs to."""

    unique_id: str
    date: date
    project_unique_id: str
    project_short_name: str
    task_title: str
    billability: str
    logged_hours: float

    @classmethod
    def from_api(cls, data: dict, day: date) -> "ExistingWorklog":
        return cls(
            unique_id=data["uniqueId"],
            date=day,
            project_unique_id=data["projectUniqueId"],
            project_short_name=data.get("projectShortName", ""),
            task_title=data.get("taskTitle", ""),
            billability=data.get("billability", ""),
            logged_hours=float(data.get("loggedHours", 0.0)),
        )


@dataclass(frozen=True)
class WorklogPayload:
    """Body for worklog/create and worklog/update."""

    worklogDate: str
    projectUniqueId: str
    taskTitle: str
    billability: str
    duration: float
    expenseType: str | None = None
    description: str | None = None
    uniqueId: str | None = None

    def to_json(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}
