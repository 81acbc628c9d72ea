#!/usr/bin/env python3
"""
Delete DevPro worklogs by id (ids are shown by list_worklogs.py).

Usage:
    uv run python src/scripts/delete_worklog.py 3f2a... 9b1c...
"""

import argparse
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.errors import ApiError
from core.portal_client import PortalClient


def main(ids: list[str]) -> int:
    """Main entry point."""
    client = PortalClient()
    errors = 0
    try:
        for unique_id in ids:
            try:
                client.delete_worklog(unique_id)
                print(f"✓ Deleted: {unique_id}")
            except ApiError as e:
                errors += 1
                print(f"✗ Failed: {unique_id} - {e}")
    finally:
        client.close()

    return 1 if errors else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Delete worklogs")
    parser.add_argument("ids", nargs="+", help="Worklog unique ids")
    args = parser.parse_args()

    sys.exit(main(args.ids))
