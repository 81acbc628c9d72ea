#!/usr/bin/env python3
"""
List DevPro worklogs for a month.

Usage:
    uv run python src/scripts/list_worklogs.py --period 2025-11-01
"""

import argparse
import sys
from collections import defaultdict
from datetime import date
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.errors import ApiError
from core.portal_client import PortalClient, parse_logged_hours, parse_worklogs
from models.portal import ExistingWorklog


def main(period: str) -> int:
    """Main entry point."""
    client = PortalClient()
    try:
        view = client.get_normal_view(period)
    except ApiError as e:
        print(f"✗ Error: {e}")
        return 1
    finally:
        client.close()

    print(f"Period: {period}")
    print(f"Total: {view.get('totalLoggedHours', 0)}h / {view.get('totalExpectedHours', 0)}h expected")
    print()

    by_day: dict[date, list[ExistingWorklog]] = defaultdict(list)
    for worklog in parse_worklogs(view):
        by_day[worklog.date].append(worklog)
    logged = parse_logged_hours(view)

    for day in sorted(by_day):
        print(f"[{day}] {logged.get(day, 0.0)}h")
        for w in by_day[day]:
            print(f"  • {w.project_short_name}: {w.task_title} ({w.logged_hours}h) [{w.unique_id}]")

    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="List worklogs for a period")
    parser.add_argument(
        "-p",
        "--period",
        default=date.today().replace(day=1).isoformat(),
        help="Any date in the month (YYYY-MM-DD). Defaults to the current month.",
    )
    args = parser.parse_args()

    sys.exit(main(args.period))
