"""
SQLite database operations for the settle run ledger.
"""

import sqlite3
from datetime import date
from pathlib import Path

from core.config import DB_PATH
from models.entries import ActionType, ApplyResult, SettleAction

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS settle_runs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        mode TEXT NOT NULL CHECK(mode IN ('batch', 'day_by_day', 'api')),
        name TEXT UNIQUE NOT NULL,
        date_from TEXT NOT NULL,
        date_to TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'planned'
            CHECK(status IN ('planned', 'applied', 'cancelled', 'skipped')),
        created INTEGER DEFAULT 0,
        updated INTEGER DEFAULT 0,
        errors INTEGER DEFAULT 0,
        create_date TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS settle_actions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        run_id INTEGER NOT NULL,
        position INTEGER NOT NULL,
        work_date TEXT NOT NULL,
        devpro_project TEXT NOT NULL,
        devpro_project_id TEXT NOT NULL,
        task_title TEXT,
        kind TEXT NOT NULL,
        hours REAL NOT NULL,
        action TEXT NOT NULL,
        existing_worklog_id TEXT,
        manually_fixed INTEGER DEFAULT 0,
        outcome TEXT NOT NULL DEFAULT 'planned'
            CHECK(outcome IN ('planned', 'applied', 'failed', 'skipped')),
        error_message TEXT,
        FOREIGN KEY (run_id) REFERENCES settle_runs(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS api_requests (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        request_id TEXT UNIQUE NOT NULL,
        timestamp TEXT NOT NULL,
        endpoint TEXT NOT NULL,
        method TEXT NOT NULL,
        client_ip TEXT,
        date_from TEXT,
        date_to TEXT,
        status_code INTEGER NOT NULL,
        error_code TEXT,
        error_message TEXT,
        processing_time_ms INTEGER NOT NULL,
        actions_planned INTEGER,
        total_hours REAL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS api_request_details (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        request_id TEXT NOT NULL,
        detail_type TEXT NOT NULL CHECK(detail_type IN ('validation_error', 'action_failed', 'warning')),
        message TEXT NOT NULL,
        FOREIGN KEY (request_id) REFERENCES api_requests(request_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_settle_actions_run ON settle_actions(run_id)",
    "CREATE INDEX IF NOT EXISTS idx_settle_actions_date ON settle_actions(work_date)",
    "CREATE INDEX IF NOT EXISTS idx_api_requests_timestamp ON api_requests(timestamp)",
    "CREATE INDEX IF NOT EXISTS idx_api_requests_status ON api_requests(status_code)",
    "CREATE INDEX IF NOT EXISTS idx_api_request_details_request ON api_request_details(request_id)",
]


def get_connection(db_path: Path = DB_PATH) -> sqlite3.Connection:
    """Get a database connection."""
    return sqlite3.connect(db_path)


def create_tables(conn: sqlite3.Connection):
    conn.execute("PRAGMA foreign_keys = ON")
    for statement in SCHEMA:
        conn.execute(statement)
    conn.commit()


def generate_run_name(date_from: date, conn: sqlite3.Connection) -> str:
    """
    Generate unique run name with auto-incremented suffix.

    Example: settle_2025_11_07_a, settle_2025_11_07_b
    """
    base_pattern = f"settle_{date_from.strftime('%Y_%m_%d')}_"

    cursor = conn.cursor()
    cursor.execute(
        "SELECT name FROM settle_runs WHERE name LIKE ? ORDER BY name DESC",
        (f"{base_pattern}%",),
    )
    existing = cursor.fetchall()

    if not existing:
        return f"{base_pattern}a"

    highest_suffix = "a"
    for (name,) in existing:
        suffix = name.replace(base_pattern, "")
        if suffix and suffix > highest_suffix:
            highest_suffix = suffix

    return f"{base_pattern}{chr(ord(highest_suffix) + 1)}"


def create_run_record(
    conn: sqlite3.Connection, mode: str, date_from: date, date_to: date
) -> int:
    """Create run record and return run_id."""
    name = generate_run_name(date_from, conn)
    cursor = conn.cursor()
    cursor.execute(
        "INSERT INTO settle_runs (mode, name, date_from, date_to) VALUES (?, ?, ?, ?)",
        (mode, name, date_from.isoformat(), date_to.isoformat()),
    )
    conn.commit()
    return cursor.lastrowid


def insert_actions(conn: sqlite3.Connection, run_id: int, actions: list[SettleAction]):
    """Insert the planned actions linked to run_id, keeping plan order."""
    cursor = conn.cursor()
    for position, action in enumerate(actions):
        cursor.execute(
            """
            INSERT INTO settle_actions (
                run_id, position, work_date, devpro_project, devpro_project_id,
                task_title, kind, hours, action, existing_worklog_id, manually_fixed
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                run_id,
                position,
                action.date.isoformat(),
                action.devpro_project,
                action.devpro_project_id,
                action.task_title,
                action.entry.kind.value,
                action.normalized_hours,
                action.action.value,
                action.existing_worklog_id,
                int(action.is_manually_fixed),
            ),
        )
    conn.commit()


def record_apply_result(
    conn: sqlite3.Connection, run_id: int, actions: list[SettleAction], result: ApplyResult
):
    """Mark each action's outcome and the run's totals after apply_actions."""
    failures = {id(action): message for action, message in result.failures}
    cursor = conn.cursor()

    for position, action in enumerate(actions):
        if id(action) in failures:
            outcome, error = "failed", failures[id(action)]
        elif action.action is ActionType.SKIP:
            outcome, error = "skipped", None
        else:
            outcome, error = "applied", None
        cursor.execute(
            "UPDATE settle_actions SET outcome = ?, error_message = ? "
            "WHERE run_id = ? AND position = ?",
            (outcome, error, run_id, position),
        )

    cursor.execute(
        "UPDATE settle_runs SET status = 'applied', created = ?, updated = ?, errors = ? "
        "WHERE id = ?",
        (result.created, result.updated, result.errors, run_id),
    )
    conn.commit()


def set_run_status(conn: sqlite3.Connection, run_id: int, status: str):
    conn.execute("UPDATE settle_runs SET status = ? WHERE id = ?", (status, run_id))
    conn.commit()
