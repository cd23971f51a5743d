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
DB_PATH = Path(os.environ.get("QUICKCAL_DB_PATH", PROJECT_ROOT / "data" / "db" / "quickcal.db"))
COLORS_WORKBOOK_PATH = Path(
    os.environ.get("COLORS_WORKBOOK_PATH", PROJECT_ROOT / "data" / "colors.xlsx")
)

# =============================================================================
# COLOR SLOTS
# =============================================================================

COLORS_SHEET_NAME = "colors"
COLORS_HEADERS = ["colorId", "label", "background", "foreground"]

# Marker the parser leaves on labels ("#ClientA")
LABEL_MARKER = "#"

# Row cache (colors rows only)
CACHE_TTL_SECONDS = 60 * 5
CACHE_COLORS_KEY = "CACHE_COLORS_ROWS_V3"

# Allocation lock
LOCK_NAME = "colors-allocation"
LOCK_TIMEOUT_SECONDS = 30
LOCK_LEASE_SECONDS = 120
LOCK_POLL_INTERVAL_SECONDS = 0.05

# Google Calendar's palette, used by scripts/create_colors_sheet.py to provision slots
DEFAULT_COLOR_PALETTE = [
    (1, "#a4bdfc", "#1d1d1d"),
    (2, "#7ae7bf", "#1d1d1d"),
    (3, "#dbadff", "#1d1d1d"),
    (4, "#ff887c", "#1d1d1d"),
    (5, "#fbd75b", "#1d1d1d"),
    (6, "#ffb878", "#1d1d1d"),
    (7, "#46d6db", "#1d1d1d"),
    (8, "#e1e1e1", "#1d1d1d"),
    (9, "#5484ed", "#1d1d1d"),
    (10, "#51b749", "#1d1d1d"),
    (11, "#dc2127", "#1d1d1d"),
]

# =============================================================================
# PARSER CONFIGURATION
# =============================================================================

GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY", "")
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
GEMINI_TIMEOUT_SECONDS = float(os.environ.get("GEMINI_TIMEOUT_SECONDS", "30"))

# IANA zone events are interpreted in
TIME_ZONE = os.environ.get("QUICKCAL_TIME_ZONE", "UTC")

# =============================================================================
# CALENDAR CONFIGURATION
# =============================================================================

CALENDAR_USER = os.environ.get("CALENDAR_USER", "")
DEFAULT_CALENDAR_ID = "primary"
CALENDAR_ID = os.environ.get("CALENDAR_ID", "") or DEFAULT_CALENDAR_ID

# Outlook category the resolved slot is shown as, e.g. "Color 3"
COLOR_CATEGORY_FORMAT = os.environ.get("COLOR_CATEGORY_FORMAT", "Color {color_id}")

# =============================================================================
# MS GRAPH CREDENTIALS (from environment)
# =============================================================================

GRAPH_TENANT_ID = os.environ.get("MICROSOFT_GRAPH_TENANT_ID", "")
GRAPH_APP_ID = os.environ.get("MICROSOFT_GRAPH_APP_ID", "")
GRAPH_CLIENT_SECRET = os.environ.get("MICROSOFT_GRAPH_CLIENT_SECRET", "")

# =============================================================================
# API CONFIGURATION
# =============================================================================

QUICKCAL_API_KEY = os.environ.get("QUICKCAL_API_KEY", "")
API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8000"))
API_DEBUG = os.environ.get("API_DEBUG", "false").lower() == "true"
MAX_TEXT_LENGTH = int(os.environ.get("MAX_TEXT_LENGTH", "2000"))
API_VERSION = "1.0.0"
