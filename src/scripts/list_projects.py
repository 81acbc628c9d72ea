#!/usr/bin/env python3
"""
List DevPro projects assigned to the current user.

Project short names printed here are what `devpro_project` in the rules file
must match.

Usage:
    uv run python src/scripts/list_projects.py --date 2025-11-01
"""

import argparse
import sys
from datetime import date
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.errors import ApiError
from core.portal_client import PortalClient


def main(on_date: str) -> int:
    """Main entry point."""
    client = PortalClient()
    try:
        user = client.get_current_user()
        print(f"User: {user.full_name}")
        print()

        projects = client.get_assigned_projects(user.unique_id, on_date)
    except ApiError as e:
        print(f"✗ Error: {e}")
        return 1
    finally:
        client.close()

    print("Assigned projects:")
    for project in sorted(projects, key=lambda p: not p.is_favorite):
        fav = "★" if project.is_favorite else " "
        print(f"  {fav} {project.short_name}")
        print(f"    ID: {project.unique_id}")

    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="List assigned projects")
    parser.add_argument(
        "-d", "--date", default=date.today().isoformat(), help="Date (YYYY-MM-DD). Defaults to today."
    )
    args = parser.parse_args()

    sys.exit(main(args.date))
