"""
Pytest configuration and shared fixtures.
"""

import sys
from datetime import date
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from models.config import Filler, OverrideRule, ProjectMapping, SettleConfig
from models.entries import DayProjectAggregate, TimeEntry
from models.portal import CurrentUser, ExistingWorklog, Project

WORK_PROJECT = "Acme DevPro - Work"
OTHER_PROJECT = "Beta DevPro - Work"
MEETING_PROJECT = "Operations - DevPro - Work"


@pytest.fixture
def settle_config():
    """Rules for two client projects, an internal meetings project and fillers."""
    return SettleConfig(
        chrono_api="http://chrono.test",
        mappings=(
            ProjectMapping(WORK_PROJECT, "ACME", "Billable"),
            ProjectMapping(OTHER_PROJECT, "BETA", "Billable"),
            ProjectMapping(MEETING_PROJECT, "INTERNAL", "Non-Billable"),
        ),
        overrides=(OverrideRule("standup", "INTERNAL", "Non-Billable", max_hours=0.5),),
        fillers=(
            Filler("INTERNAL", "Documentation", "Non-Billable", 0.5, 2.0),
            Filler("INTERNAL", "Code review", "Non-Billable", 0.5, 2.0, max_hours_per_period=4.0),
        ),
    )


@pytest.fixture
def make_entry():
    """Factory for Chrono time entries."""
    counter = iter(range(1, 10_000))

    def _make(project=WORK_PROJECT, description="Feature work", day=date(2025, 11, 3), hours=1.0):
        return TimeEntry(
            id=next(counter),
            project_name=project,
            description=description,
            start_time=f"{day.isoformat()}T09:00:00",
            duration_seconds=int(hours * 3600),
        )

    return _make


@pytest.fixture
def make_aggregate():
    """Factory for day/project aggregates."""

    def _make(
        devpro_project="ACME",
        hours=1.0,
        day=date(2025, 11, 3),
        chrono_project=WORK_PROJECT,
        descriptions=("Feature work",),
        billability="Billable",
        max_hours=None,
    ):
        return DayProjectAggregate(
            date=day,
            chrono_project=chrono_project,
            total_hours=hours,
            descriptions=tuple(descriptions),
            devpro_project=devpro_project,
            billability=billability,
            max_hours=max_hours,
        )

    return _make


class FakeChrono:
    """Chrono client serving canned entries filtered by date range."""

    def __init__(self, entries=None, fail_history=False):
        self.entries = list(entries or [])
        self.fail_history = fail_history
        self.calls = []
        self.closed = False

    def get_time_entries(self, start_date, end_date):
        self.calls.append((start_date, end_date))
        if self.fail_history and len(self.calls) > 1:
            raise RuntimeError("Chrono unavailable")
        return [e for e in self.entries if start_date <= e.start_date <= end_date]

    def close(self):
        self.closed = True


class FakePortal:
    """Portal client with in-memory projects and worklogs."""

    def __init__(self, projects=None, worklogs=None, failing_ids=()):
        self.projects = projects if projects is not None else [
            Project("p-acme", "ACME"),
            Project("p-beta", "BETA"),
            Project("p-internal", "INTERNAL", is_internal=True),
        ]
        self.worklogs = list(worklogs or [])
        self.failing_ids = set(failing_ids)
        self.created = []
        self.updated = []
        self.deleted = []
        self.months = []
        self.closed = False

    def get_current_user(self):
        return CurrentUser("user-1", "Test User", "test@example.com")

    def get_assigned_projects(self, user_id, from_date):
        return self.projects

    def get_existing_worklogs(self, period):
        self.months.append(period)
        return [
            w for w in self.worklogs
            if (w.date.year, w.date.month) == (period.year, period.month)
        ]

    def get_logged_hours_by_day(self, period):
        logged = {}
        for w in self.get_existing_worklogs(period):
            logged[w.date] = logged.get(w.date, 0.0) + w.logged_hours
        return logged

    def create_worklog(self, payload):
        if payload.projectUniqueId in self.failing_ids:
            raise RuntimeError("Server error (500)")
        self.created.append(payload)
        return True

    def update_worklog(self, payload):
        if payload.projectUniqueId in self.failing_ids:
            raise RuntimeError("Server error (500)")
        self.updated.append(payload)
        return True

    def delete_worklog(self, unique_id):
        self.deleted.append(unique_id)
        return True

    def close(self):
        self.closed = True


@pytest.fixture
def fake_chrono():
    return FakeChrono


@pytest.fixture
def fake_portal():
    return FakePortal


@pytest.fixture
def make_worklog():
    def _make(project_id="p-acme", day=date(2025, 11, 3), hours=8.0, unique_id="w-1",
              project_name="ACME", task_title="Feature work"):
        return ExistingWorklog(
            unique_id=unique_id,
            date=day,
            project_unique_id=project_id,
            project_short_name=project_name,
            task_title=task_title,
            billability="Billable",
            logged_hours=hours,
        )

    return _make
