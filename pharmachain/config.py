"""
Centralised configuration constants and environment helpers.
"""

import os
import sys

from dotenv import load_dotenv

load_dotenv()

# ── Roles / locations ────────────────────────────────────────────────
ROLES = ("admin", "state_manager", "facility_manager", "pharmacist")
FACILITY_ROLES = {"facility_manager", "pharmacist"}
LOCATION_TYPES = ("central", "state", "facility")
CENTRAL_LOCATION_ID = "central"

# ── Session store ────────────────────────────────────────────────────
SESSION_KEY = "pharmaTrackUser"
DB_URI = os.getenv("DB_URI", "sqlite:///pharmachain.db")

# Stand-in for the network latency of login, distribution and report calls.
SIMULATED_DELAY_SECONDS = float(os.getenv("SIMULATED_DELAY_SECONDS", "1.0"))

# ── Inventory / reporting ────────────────────────────────────────────
EXPIRY_ALERT_DAYS = 90
REPORT_PERIODS = {"week": 7, "month": 30, "quarter": 90, "year": 365}
DEFAULT_REPORT_PERIOD = "month"
MAX_PREVIEW_ROWS = 20

# ── Screens (path → screen, roles allowed; None = every role) ────────
ROUTES = {
    "/": "dashboard",
    "/dashboard": "dashboard",
    "/inventory": "inventory",
    "/distribution": "distribution",
    "/dispensing": "dispensing",
    "/patients": "patients",
    "/reports": "reports",
    "/settings": "settings",
}
LOGIN_PATH = "/login"

SCREEN_ROLES = {
    "dashboard": None,
    "inventory": None,
    "distribution": {"admin", "state_manager"},
    "dispensing": {"facility_manager", "pharmacist"},
    "patients": {"facility_manager", "pharmacist"},
    "reports": None,
    "settings": {"admin", "state_manager"},
}

# ── API server ───────────────────────────────────────────────────────
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
TOKEN_EXPIRY_HOURS = 24


def get_env(name: str) -> str:
    """Return an environment variable or exit with an error message."""
    value = os.getenv(name)
    if not value:
        print(f"ERROR: env var {name} is not set", file=sys.stderr)
        sys.exit(1)
    return value
