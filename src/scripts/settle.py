#!/usr/bin/env python3
"""
Settle Chrono time entries into DevPro worklogs.

Batch mode (--from/--to) plans the whole range, shows the draft and asks for
approval once. Without a range, day-by-day mode finds unfilled working days
in the last 45 days and walks through them one at a time.

Usage:
    uv run python src/scripts/settle.py --from 2025-11-01 --to 2025-11-15
    uv run python src/scripts/settle.py
"""

import argparse
import asyncio
import random
import sqlite3
import sys
import traceback
from datetime import date, datetime
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import DB_PATH, OUTPUT_DIR
from core.config_loader import load_settle_config
from core.database import (
    create_run_record,
    create_tables,
    get_connection,
    insert_actions,
    record_apply_result,
    set_run_status,
)
from core.graph_client import is_graph_configured
from core.validation import find_off_target_days
from models.config import SettleConfig
from models.entries import SettleAction
from services.email import send_error_email, send_summary_email
from services.reports import create_plan_excel_report, format_draft_table
from services.schedule import find_unfilled_days, unfilled_window
from services.settle import (
    SettleSources,
    apply_actions,
    edit_action,
    month_starts,
    open_sources,
    prepare_actions,
)


# =============================================================================
# PROMPTS
# =============================================================================


def prompt(message: str) -> str | None:
    """Read one answer; None on end of input."""
    try:
        return input(message).strip()
    except EOFError:
        return None


def show_draft(actions: list[SettleAction], config: SettleConfig):
    print()
    for line in format_draft_table(actions):
        print(line)
    for day, hours in find_off_target_days(actions, config.target_hours).items():
        print(f"  Warning: {day} totals {hours:.2f}h (target {config.target_hours:.2f}h)")


def prompt_edit(actions: list[SettleAction], config: SettleConfig) -> list[SettleAction]:
    """Ask which work entry to pin and to how many hours."""
    editable = [i for i, a in enumerate(actions) if not a.is_meeting]
    if not editable:
        print("No editable entries (meetings cannot be edited).")
        return actions

    print("\nEditable entries:")
    for number, i in enumerate(editable, start=1):
        action = actions[i]
        marker = "*" if action.is_manually_fixed else " "
        print(
            f"  {number}.{marker} {action.date} {action.devpro_project}: "
            f"{action.task_title} ({action.normalized_hours:.2f}h)"
        )
    print("  (* = manually fixed, won't scale)")

    answer = prompt("\nEntry number (or 'b' to go back): ")
    if not answer or answer.lower() == "b":
        return actions
    if not answer.isdigit() or not 1 <= int(answer) <= len(editable):
        print("Invalid entry number.")
        return actions
    index = editable[int(answer) - 1]

    answer = prompt(f"Current: {actions[index].normalized_hours:.2f}h. New hours: ")
    if not answer:
        return actions
    try:
        hours = float(answer)
    except ValueError:
        print(f"Invalid. Must be >= {config.hour_increment}")
        return actions

    result = edit_action(actions, index, hours, config)
    print(f"{'✓' if result.accepted else '✗'} {result.message}")
    return result.actions


# =============================================================================
# LEDGER
# =============================================================================


def open_ledger() -> sqlite3.Connection:
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(DB_PATH)
    create_tables(conn)
    return conn


def apply_and_record(
    conn: sqlite3.Connection,
    run_id: int,
    actions: list[SettleAction],
    sources: SettleSources,
    date_from: date,
    date_to: date,
    email: bool,
):
    result = apply_actions(actions, sources.portal)
    record_apply_result(conn, run_id, actions, result)
    if email:
        asyncio.run(send_summary_email(actions, result, date_from, date_to))
    return result


# =============================================================================
# MODES
# =============================================================================


def run_batch(
    date_from: date,
    date_to: date,
    config: SettleConfig,
    rng: random.Random,
    export: bool,
    email: bool,
):
    sources = open_sources(config, date_from, date_to)
    conn = open_ledger()
    try:
        actions = prepare_actions(date_from, date_to, config, sources, rng)
        if not actions:
            return

        run_id = create_run_record(conn, "batch", date_from, date_to)
        insert_actions(conn, run_id, actions)

        if export:
            output_path = OUTPUT_DIR / "plans" / f"settle_{date_from}_{date_to}_{run_id}.xlsx"
            create_plan_excel_report(actions, output_path)

        show_draft(actions, config)
        answer = (prompt("\n[A]pprove / [C]ancel: ") or "c").lower()
        if answer == "a":
            apply_and_record(conn, run_id, actions, sources, date_from, date_to, email)
        else:
            set_run_status(conn, run_id, "cancelled")
            print("Cancelled." if answer == "c" else "Unknown option. Cancelled.")
    finally:
        conn.close()
        sources.close()


def run_day_by_day(config: SettleConfig, rng: random.Random, email: bool):
    date_from, date_to = unfilled_window(date.today())
    print(f"Checking {date_from} to {date_to} for unfilled days (<{config.target_hours:g}h)...")

    sources = open_sources(config, date_from, date_to)
    conn = open_ledger()
    try:
        logged_by_day = logged_hours_by_day(sources, date_from, date_to)
        entries = sources.chrono.get_time_entries(date_from, date_to)
        if not entries:
            print(f"No entries found in Chrono for {date_from} to {date_to}.")
            return

        days = find_unfilled_days(
            [e.start_date for e in entries], logged_by_day, config.target_hours
        )
        if not days:
            print(f"All days are settled (≥{config.target_hours:g}h logged).")
            return

        print(f"{len(days)} days to settle:")
        for day in days:
            hours = logged_by_day.get(day, 0.0)
            info = "" if hours < 0.01 else f" ({hours:.1f}h)"
            print(f"  {day} {day.strftime('%a')}{info}")
        print()

        for day in days:
            hours = logged_by_day.get(day, 0.0)
            current = "empty" if hours < 0.01 else f"{hours:.1f}h logged"
            print(f"═══ {day} {day.strftime('%A')} ({current}) ═══")

            if not settle_day(day, config, sources, conn, rng, email):
                print("Cancelled.")
                return

        print("Done! All unfilled days processed.")
    finally:
        conn.close()
        sources.close()


def settle_day(
    day: date,
    config: SettleConfig,
    sources: SettleSources,
    conn: sqlite3.Connection,
    rng: random.Random,
    email: bool,
) -> bool:
    """Plan, review and apply one day. False when the user cancels everything."""
    actions = prepare_actions(day, day, config, sources, rng)
    if not actions:
        print("No entries for this day.\n")
        return True

    run_id = create_run_record(conn, "day_by_day", day, day)

    while True:
        show_draft(actions, config)
        answer = (prompt("\n[A]pprove / [E]dit / [S]kip / [C]ancel all: ") or "c").lower()
        if answer != "e":
            # Ledger keeps the plan as finally decided, edits included
            insert_actions(conn, run_id, actions)

        if answer == "a":
            apply_and_record(conn, run_id, actions, sources, day, day, email)
            print()
            return True
        if answer == "e":
            actions = prompt_edit(actions, config)
            continue
        if answer == "s":
            set_run_status(conn, run_id, "skipped")
            print("Skipped.\n")
            return True

        set_run_status(conn, run_id, "cancelled")
        if answer != "c":
            print("Unknown option.")
        return False


def logged_hours_by_day(sources: SettleSources, date_from: date, date_to: date) -> dict[date, float]:
    """Hours already in the portal per day, from the month views covering the range."""
    logged: dict[date, float] = {}
    for month in month_starts(date_from, date_to):
        logged.update(sources.portal.get_logged_hours_by_day(month))
    return logged


# =============================================================================
# MAIN
# =============================================================================


def parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def main(args: argparse.Namespace) -> int:
    """Main entry point."""
    email = args.email and is_graph_configured()
    try:
        config = load_settle_config()
    except Exception as e:
        print(f"✗ {e}")
        return 1

    rng = random.Random(args.seed)
    try:
        if args.date_from or args.date_to:
            today = date.today()
            date_from = args.date_from or today.replace(day=1)
            date_to = args.date_to or today
            if date_from > date_to:
                print(f"✗ --from {date_from} is after --to {date_to}")
                return 1
            run_batch(date_from, date_to, config, rng, args.export, email)
        else:
            run_day_by_day(config, rng, email)
    except Exception as e:
        print(f"✗ Error: {e}")
        if email:
            traceback.print_exc()
            asyncio.run(send_error_email(e))
        return 1
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Settle Chrono time into DevPro worklogs")
    parser.add_argument("--from", dest="date_from", type=parse_date, help="Start date (YYYY-MM-DD)")
    parser.add_argument("--to", dest="date_to", type=parse_date, help="End date (YYYY-MM-DD)")
    parser.add_argument("--seed", type=int, help="Seed for filler selection (reproducible plans)")
    parser.add_argument("--export", action="store_true", help="Also save the draft plan as Excel")
    parser.add_argument(
        "--email", action="store_true", help="Email the run summary (needs MS Graph credentials)"
    )
    sys.exit(main(parser.parse_args()))
