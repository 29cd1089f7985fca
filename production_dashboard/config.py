"""
Configuration: known processes/categories, roles, cache keys, defaults,
and environment-driven runtime settings.
"""

import os
from dataclasses import dataclass
from pathlib import Path

# ---------------------------------------------------------------------------
# File paths
# ---------------------------------------------------------------------------
PROJECT_DIR = Path(__file__).resolve().parent.parent
DEFAULT_CACHE_DIR = PROJECT_DIR / ".cache"

# ---------------------------------------------------------------------------
# Site identity
# ---------------------------------------------------------------------------
SITE_NAME = "Production Floor"
DEFAULT_TIMEZONE = "Asia/Kuala_Lumpur"

# ---------------------------------------------------------------------------
# Production taxonomy
# ---------------------------------------------------------------------------
# Display order for the process breakdown. Not used to validate input:
# any other process string found in the data is appended after these.
PROCESSES: list[str] = [
    "Weighing",
    "Mixing",
    "Filling",
    "Packing",
    "Labelling",
]

CATEGORIES: list[str] = [
    "Cosmetic",
    "Pharma",
    "Food",
]

# ---------------------------------------------------------------------------
# Roles and permissions
# ---------------------------------------------------------------------------
ROLES: tuple[str, ...] = ("admin", "manager", "planner", "operator")

PLAN_ROLES = ("admin", "manager", "planner")
ACTUAL_ROLES = ("admin", "manager", "operator")
EDIT_ROLES = ("admin", "manager")
ADMIN_ROLES = ("admin",)

# ---------------------------------------------------------------------------
# Local cache keys and remote actions
# ---------------------------------------------------------------------------
CACHE_KEYS: dict[str, str] = {
    "users": "users",
    "entries": "production-entries",
    "off_days": "off-days",
    "logs": "activity-logs",
    "session": "current-session",
    "endpoint": "sheets-api-url",
}

# resource -> (read action, write action); logs and session stay local
REMOTE_ACTIONS: dict[str, tuple[str | None, str]] = {
    "users": ("getUsers", "saveUsers"),
    "entries": ("getProduction", "saveProduction"),
    "off_days": ("getOffDays", "saveOffDays"),
}

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
MAX_ACTIVITY_LOGS = 1000

# Efficiency thresholds (percent) for RAG colouring
EFFICIENCY_GREEN = 100.0
EFFICIENCY_AMBER = 75.0

CSV_HEADERS = ["Date", "Process", "Product", "Plan", "Actual", "Batch No", "Manpower"]

# ---------------------------------------------------------------------------
# Seed records written on first start
# ---------------------------------------------------------------------------
DEFAULT_USERS: list[dict] = [
    {"id": "1", "name": "System Admin", "username": "admin",
     "email": "admin@example.com", "role": "admin", "password": "admin123"},
    {"id": "2", "name": "Production Manager", "username": "manager",
     "email": "manager@example.com", "role": "manager", "password": "manager123"},
    {"id": "3", "name": "Line Planner", "username": "planner",
     "email": "planner@example.com", "role": "planner", "password": "planner123"},
    {"id": "4", "name": "Floor Operator", "username": "operator",
     "email": "operator@example.com", "role": "operator", "password": "operator123"},
]

DEFAULT_OFF_DAYS: list[dict] = [
    {"date": "2025-01-01", "description": "New Year's Day"},
    {"date": "2025-01-29", "description": "Chinese New Year"},
    {"date": "2025-03-31", "description": "Hari Raya Aidilfitri"},
    {"date": "2025-05-01", "description": "Labour Day"},
    {"date": "2025-08-31", "description": "National Day"},
    {"date": "2025-09-16", "description": "Malaysia Day"},
    {"date": "2025-12-25", "description": "Christmas Day"},
]


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from the environment."""

    sheets_url: str | None = None
    cache_dir: Path = DEFAULT_CACHE_DIR
    http_timeout: float = 15.0
    timezone: str = DEFAULT_TIMEZONE


def load_settings(environ: dict | None = None) -> Settings:
    """Build Settings from PRODUCTION_* environment variables."""
    env = os.environ if environ is None else environ

    url = env.get("PRODUCTION_SHEETS_URL", "").strip() or None
    cache_dir = Path(env.get("PRODUCTION_CACHE_DIR") or DEFAULT_CACHE_DIR)
    try:
        timeout = float(env.get("PRODUCTION_HTTP_TIMEOUT", "15"))
    except ValueError:
        timeout = 15.0

    return Settings(
        sheets_url=url,
        cache_dir=cache_dir,
        http_timeout=timeout,
        timezone=env.get("PRODUCTION_TIMEZONE") or DEFAULT_TIMEZONE,
    )
