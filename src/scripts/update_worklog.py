#!/usr/bin/env python3
"""
Overwrite an existing DevPro worklog (ids are shown by list_worklogs.py).

Usage:
    uv run python src/scripts/update_worklog.py 3f2a... -p ACME -t "Feature work" -H 6 -d 2025-11-03
"""

import argparse
import sys
from datetime import date
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.errors import ApiError, ProjectNotFoundError
from core.portal_client import PortalClient
from services.settle import manual_payload, resolve_project_id

BILLABLE = "Billable"
NON_BILLABLE = "NonBillable"


def main(
    unique_id: str,
    day: date,
    project: str,
    task: str,
    hours: float,
    billable: bool = False,
    description: str | None = None,
) -> int:
    """Main entry point."""
    if hours <= 0:
        print(f"✗ Hours must be positive, got {hours}")
        return 1

    client = PortalClient()
    try:
        project_id = resolve_project_id(client, project, day)
        payload = manual_payload(
            day,
            project_id,
            task,
            hours,
            BILLABLE if billable else NON_BILLABLE,
            description,
            unique_id=unique_id,
        )
        client.update_worklog(payload)
    except (ApiError, ProjectNotFoundError) as e:
        print(f"✗ Error: {e}")
        return 1
    finally:
        client.close()

    print(f"✓ Worklog updated: {task} ({hours}h)")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Update a worklog")
    parser.add_argument("id", help="Worklog unique id")
    parser.add_argument("-p", "--project", required=True, help="DevPro project short name")
    parser.add_argument("-t", "--task", required=True, help="Task title")
    parser.add_argument("-H", "--hours", type=float, required=True, help="Duration in hours")
    parser.add_argument("-d", "--date", type=date.fromisoformat, required=True, help="Date (YYYY-MM-DD)")
    parser.add_argument("-b", "--billable", action="store_true", help="Mark as billable")
    parser.add_argument("--desc", help="Description")
    args = parser.parse_args()

    sys.exit(
        main(args.id, args.date, args.project, args.task, args.hours, args.billable, args.desc)
    )
