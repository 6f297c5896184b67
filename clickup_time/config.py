import os
from typing import Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

# Load variables from .env into environment
load_dotenv()

# =========================
# CLICKUP CONFIG
# =========================
CLICKUP_API_TOKEN = os.getenv("CLICKUP_API_TOKEN")
CLICKUP_TEAM_ID = os.getenv("CLICKUP_TEAM_ID")
BASE_URL = os.getenv("CLICKUP_BASE_URL", "https://api.clickup.com/api/v2")
CLICKUP_RATE_LIMIT_PER_MIN = int(os.getenv("CLICKUP_RATE_LIMIT_PER_MIN", "100"))

# IANA zone used for calendar periods and day buckets (blank = host local time)
CLICKUP_TIMEZONE = os.getenv("CLICKUP_TIMEZONE", "")

# =========================
# MCP SERVER CONFIG
# =========================
MCP_TRANSPORT = os.getenv("MCP_TRANSPORT", "sse")
MCP_HOST = os.getenv("MCP_HOST", "0.0.0.0")
MCP_PORT = int(os.getenv("MCP_PORT", "8001"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def get_timezone() -> Optional[ZoneInfo]:
    """Configured calendar zone, or None for the host's local time."""
    if not CLICKUP_TIMEZONE:
        return None
    return ZoneInfo(CLICKUP_TIMEZONE)


# =========================
# VALIDATION (FAIL FAST)
# =========================
def require_config():
    missing = []

    if not CLICKUP_API_TOKEN:
        missing.append("CLICKUP_API_TOKEN")

    if not CLICKUP_TEAM_ID:
        missing.append("CLICKUP_TEAM_ID")

    # CLICKUP_TIMEZONE is optional - host local time is used when unset

    if missing:
        raise RuntimeError(
            f"Missing required environment variables: {', '.join(missing)}"
        )
