"""Tests for the settle run ledger."""

import sqlite3
from datetime import date

import pytest

from conftest import WORK_PROJECT
from core.database import (
    create_run_record,
    create_tables,
    insert_actions,
    record_apply_result,
    set_run_status,
)
from models.entries import ActionType, ApplyResult, FillerEntry, SettleAction


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:")
    create_tables(connection)
    yield connection
    connection.close()


@pytest.fixture
def actions(make_aggregate):
    day = date(2025, 11, 10)
    return [
        SettleAction(make_aggregate("ACME", 6.0, day=day), 6.0, False, "Feature work", "p-acme", ActionType.UPDATE, "w-1"),
        SettleAction(
            FillerEntry(day, "INTERNAL", "Documentation", "Non-Billable", 2.0),
            2.0, False, "Documentation", "p-internal", ActionType.CREATE,
        ),
        SettleAction(make_aggregate("BETA", 0.0, day=day, chrono_project=WORK_PROJECT), 0.0, False, "Idle", "p-beta", ActionType.SKIP),
    ]


def test_run_names_get_suffixes(conn):
    first = create_run_record(conn, "batch", date(2025, 11, 10), date(2025, 11, 14))
    second = create_run_record(conn, "api", date(2025, 11, 10), date(2025, 11, 10))

    names = dict(conn.execute("SELECT id, name FROM settle_runs").fetchall())
    assert names[first] == "settle_2025_11_10_a"
    assert names[second] == "settle_2025_11_10_b"


def test_unknown_mode_is_rejected(conn):
    with pytest.raises(sqlite3.IntegrityError):
        create_run_record(conn, "nightly", date(2025, 11, 10), date(2025, 11, 10))


def test_actions_are_stored_in_plan_order(conn, actions):
    run_id = create_run_record(conn, "batch", date(2025, 11, 10), date(2025, 11, 10))

    insert_actions(conn, run_id, actions)

    rows = conn.execute(
        "SELECT position, devpro_project, kind, hours, action, existing_worklog_id, outcome "
        "FROM settle_actions WHERE run_id = ? ORDER BY position",
        (run_id,),
    ).fetchall()
    assert rows == [
        (0, "ACME", "aggregate", 6.0, "UPDATE", "w-1", "planned"),
        (1, "INTERNAL", "filler", 2.0, "CREATE", None, "planned"),
        (2, "BETA", "aggregate", 0.0, "SKIP", None, "planned"),
    ]


def test_apply_outcomes(conn, actions):
    run_id = create_run_record(conn, "batch", date(2025, 11, 10), date(2025, 11, 10))
    insert_actions(conn, run_id, actions)
    result = ApplyResult(updated=1, skipped=1, errors=1, failures=[(actions[1], "Server error (500)")])

    record_apply_result(conn, run_id, actions, result)

    outcomes = conn.execute(
        "SELECT outcome, error_message FROM settle_actions WHERE run_id = ? ORDER BY position",
        (run_id,),
    ).fetchall()
    assert outcomes == [("applied", None), ("failed", "Server error (500)"), ("skipped", None)]
    run = conn.execute("SELECT status, created, updated, errors FROM settle_runs WHERE id = ?", (run_id,)).fetchone()
    assert run == ("applied", 0, 1, 1)


def test_set_run_status(conn):
    run_id = create_run_record(conn, "day_by_day", date(2025, 11, 10), date(2025, 11, 10))

    set_run_status(conn, run_id, "skipped")

    assert conn.execute("SELECT status FROM settle_runs").fetchone() == ("skipped",)
