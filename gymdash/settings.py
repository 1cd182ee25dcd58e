# gymdash/settings.py
from decimal import Decimal

from .config import DEFAULT_MODE_PREMIUM

# ──────────────────────────────────────────────────────────────
# Central pricing & commission settings
# These seed the store the first time it is opened; after that the
# persisted tables are authoritative.
# ──────────────────────────────────────────────────────────────

# (tier, sessions_min, sessions_max, price per class)
DEFAULT_PRICING = [
    (1, 1, 12, Decimal("150")),
    (1, 13, 20, Decimal("140")),
    (1, 21, None, Decimal("130")),
    (2, 1, 12, Decimal("165")),
    (2, 13, 20, Decimal("155")),
    (2, 21, None, Decimal("145")),
    (3, 1, 12, Decimal("180")),
    (3, 13, 20, Decimal("170")),
    (3, 21, None, Decimal("160")),
]

# Volume brackets every tier must define (sessions purchased in one package)
VOLUME_BRACKETS = ((1, 12), (13, 20), (21, None))

TRAINER_TIERS = (1, 2, 3)
TRAINING_MODES = ("1v1", "1v2", "2v2")
DEFAULT_MODE = "1v1"
DEFAULT_LOCATION = "west"

# Pre-filled pay rate for a new trainer (must still be saved explicitly)
INITIAL_INCOME_RATES = [
    {"min_classes": 1, "max_classes": None, "rate": Decimal("0.50")},
]

# Sales bonus on package purchase: (min sessions, share of package value)
SALES_BONUS_BRACKETS = [
    (21, Decimal("0.05")),
    (13, Decimal("0.03")),
]

MODE_1V2_PREMIUM = DEFAULT_MODE_PREMIUM
