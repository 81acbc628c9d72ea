"""Tests for the manual create/update worklog scripts."""

from datetime import date

import pytest

import scripts.create_worklog
import scripts.update_worklog
from conftest import FakePortal

DAY = date(2025, 11, 3)


@pytest.fixture
def portal(monkeypatch):
    portal = FakePortal()
    monkeypatch.setattr(scripts.create_worklog, "PortalClient", lambda: portal)
    monkeypatch.setattr(scripts.update_worklog, "PortalClient", lambda: portal)
    return portal


def test_create_resolves_project_name(portal, capsys):
    code = scripts.create_worklog.main(DAY, "acme", "Code review", 1.5, billable=True)

    assert code == 0
    [payload] = portal.created
    assert payload.to_json() == {
        "worklogDate": "2025-11-03",
        "projectUniqueId": "p-acme",
        "taskTitle": "Code review",
        "billability": "Billable",
        "duration": 1.5,
        "expenseType": "None",
    }
    assert portal.closed
    assert "✓ Worklog created: Code review (1.5h) on 2025-11-03" in capsys.readouterr().out


def test_create_unknown_project(portal, capsys):
    code = scripts.create_worklog.main(DAY, "GAMMA", "Code review", 1.0)

    assert code == 1
    assert portal.created == []
    assert portal.closed
    assert "DevPro project 'GAMMA' not found." in capsys.readouterr().out


def test_create_rejects_non_positive_hours(portal):
    assert scripts.create_worklog.main(DAY, "ACME", "Code review", 0.0) == 1
    assert portal.created == []


def test_update_carries_worklog_id(portal, capsys):
    code = scripts.update_worklog.main("w-1", DAY, "BETA", "Bug fixing", 6.0, description="Release")

    assert code == 0
    [payload] = portal.updated
    assert payload.uniqueId == "w-1"
    assert payload.projectUniqueId == "p-beta"
    assert payload.billability == "NonBillable"
    assert payload.description == "Release"
    assert "✓ Worklog updated: Bug fixing (6.0h)" in capsys.readouterr().out
