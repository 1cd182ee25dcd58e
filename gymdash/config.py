# gymdash/config.py
import os, logging
from decimal import Decimal

# ── Helpers ───────────────────────────────────────────────────────────────────
def _env_decimal(name: str, default: str) -> Decimal:
    """
    Read a money/rate value from the environment as a Decimal.
    """
    return Decimal(os.environ.get(name, default).strip() or default)

# ── Database ─────────────────────────────────────────────────────────────────
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///gymdash.db")

# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# ── Local timezone ───────────────────────────────────────────────────────────
TZ_NAME = os.environ.get("TZ_NAME", "America/New_York")

# ── Money ────────────────────────────────────────────────────────────────────
DEFAULT_LATE_FEE      = _env_decimal("DEFAULT_LATE_FEE", "45")
DEFAULT_MODE_PREMIUM  = _env_decimal("DEFAULT_MODE_PREMIUM", "20")
PERSONAL_CLIENT_BONUS = _env_decimal("PERSONAL_CLIENT_BONUS", "0.10")

# ── Flags ────────────────────────────────────────────────────────────────────
RELOAD_PRICING_ON_START = os.environ.get("RELOAD_PRICING_ON_START", "1") in ("1", "true", "True")

# ── Startup logging ──────────────────────────────────────────────────────────
logger = logging.getLogger(__name__)
logger.info(f"[CONFIG] Loaded DATABASE_URL scheme={DATABASE_URL.split(':', 1)[0]}, TZ_NAME={TZ_NAME}")
