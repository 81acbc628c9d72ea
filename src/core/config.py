"""
Configuration constants and environment setup.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent
DB_PATH = Path(os.environ.get("TT_DB_PATH", PROJECT_ROOT / "data" / "db" / "tt-settle.db"))
OUTPUT_DIR = PROJECT_ROOT / "output"

# Rules file with mappings, overrides and fillers
SETTLE_CONFIG_PATH = Path(
    os.environ.get("TT_CONFIG_PATH", Path.home() / ".tt-config.yaml")
)

# =============================================================================
# SETTLE POLICY DEFAULTS (overridable from the rules file)
# =============================================================================

TARGET_HOURS = 8.0
HOUR_INCREMENT = 0.25
MAX_SYNTHETIC_HOURS = 4.0
LOOKBACK_DAYS = 7
MEETING_HEAVY_RATIO = 1.0  # meeting-heavy when fixed hours >= ratio * work hours

WORK_PROJECT_SUFFIX = "DevPro - Work"
ADMIN_PROJECT_PREFIX = "Operations -"
DEFAULT_TASK_TITLE = "Development work"

# Trailing ", Dec 3 2025" stamps that Chrono appends to calendar-event descriptions
TITLE_DATE_PATTERN = r", (Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec) \d{1,2} \d{4}$"

# Day-by-day mode looks this far back for unfilled days
UNFILLED_LOOKBACK_DAYS = 45

# A manual edit is rejected when the day ends up more than this below target
EDIT_TOTAL_EPSILON = 0.01

# =============================================================================
# CHRONO (time-entry source)
# =============================================================================

CHRONO_API_URL = os.environ.get("CHRONO_API_URL", "http://localhost:9247")
CHRONO_TIMEOUT_S = float(os.environ.get("CHRONO_TIMEOUT_S", "30"))

# =============================================================================
# DEVPRO TIME TRACKING PORTAL (destination)
# =============================================================================

TT_API_URL = os.environ.get("TT_API_URL", "https://timetrackingportal.dev.pro/api")
TT_TIMEOUT_S = float(os.environ.get("TT_TIMEOUT_S", "30"))
TT_TOKEN = os.environ.get("TT_TOKEN", "")
TT_TOKEN_PATH = Path(os.environ.get("TT_TOKEN_PATH", Path.home() / ".tt-token"))
# Command that refreshes TT_TOKEN_PATH (e.g. the browser login helper)
TT_AUTH_COMMAND = os.environ.get("TT_AUTH_COMMAND", "")
TT_PAGE_SIZE = 500
EXPENSE_TYPE = "None"

# =============================================================================
# MEETING CLASSIFICATION
# =============================================================================

# Obsidian vault with one note per calendar event
KNOWLEDGE_BASE_DIR = os.environ.get("KNOWLEDGE_BASE_DIR", "")
CALENDAR_EVENT_MARKER = "The task represents the calendar event"

# Mailbox whose calendar is consulted for meeting subjects (empty disables)
CALENDAR_USER = os.environ.get("CALENDAR_USER", "")

# =============================================================================
# EMAIL CONFIGURATION
# =============================================================================

FROM_EMAIL = os.environ.get("TT_FROM_EMAIL", "")
TO_EMAIL = os.environ.get("TT_TO_EMAIL", "")
ERROR_EMAIL = os.environ.get("TT_ERROR_EMAIL", "")

# =============================================================================
# REPORT CONFIGURATION
# =============================================================================

DRAFT_HEADERS = [
    "Date", "Chrono Project", "Chrono Entry", "DevPro Project",
    "DevPro Task", "Type", "Original Hours", "Hours", "Action",
]
MAX_ENTRY_COLUMN_WIDTH = 50

# =============================================================================
# MS GRAPH CREDENTIALS (from environment)
# =============================================================================

GRAPH_TENANT_ID = os.environ.get("MICROSOFT_GRAPH_TENANT_ID", "")
GRAPH_APP_ID = os.environ.get("MICROSOFT_GRAPH_APP_ID", "")
GRAPH_CLIENT_SECRET = os.environ.get("MICROSOFT_GRAPH_CLIENT_SECRET", "")

# =============================================================================
# API CONFIGURATION
# =============================================================================

TT_API_KEY = os.environ.get("TT_API_KEY", "")
API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8000"))
API_DEBUG = os.environ.get("API_DEBUG", "false").lower() == "true"
API_VERSION = "1.0.0"
