"""
mappers.py
───────────────────────────────────────────────
Storage rows (snake_case mappings) → immutable domain records.

Each mapper is total over well-formed rows: numbers are coerced, NULLs
become None, timestamps are cut to dates and unknown modes fall back to
1v1. A missing required column raises KeyError, which marks a broken
query rather than bad user input.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping, Optional

from .logic_models import (
    Client,
    ClientPriceEntry,
    ClientPricing,
    IncomeRate,
    LateFee,
    Package,
    PricingRow,
    Session,
    Trainer,
)
from .settings import DEFAULT_MODE, MODE_1V2_PREMIUM, TRAINING_MODES
from .week import parse_date

Row = Mapping[str, Any]


# ── Coercions ────────────────────────────────────
def _opt_int(v) -> Optional[int]:
    return None if v is None else int(v)


def _dec(v) -> Decimal:
    return v if isinstance(v, Decimal) else Decimal(str(v))


def _opt_dec(v) -> Optional[Decimal]:
    return None if v is None else _dec(v)


def _opt_date(v):
    return None if v is None else parse_date(v)


def _mode(v) -> Optional[str]:
    if v is None:
        return None
    v = str(v).strip()
    return v if v in TRAINING_MODES else DEFAULT_MODE


def _bool(v, default: bool = False) -> bool:
    return default if v is None else bool(v)


# ── Records ──────────────────────────────────────
def trainer_from_row(row: Row) -> Trainer:
    tier = int(row.get("tier") or 1)
    return Trainer(
        id=int(row["id"]),
        name=str(row["name"]),
        tier=tier if tier in (1, 2, 3) else 1,
        email=row.get("email"),
        is_active=_bool(row.get("is_active"), True),
        location=row.get("location"),
    )


def client_pricing_from_row(row: Row) -> Optional[ClientPricing]:
    """All three bracket prices must be present for a client override to exist."""
    prices = [row.get("price_1_12"), row.get("price_13_20"), row.get("price_21_plus")]
    if any(p is None for p in prices):
        return None
    premium = row.get("mode_premium")
    return ClientPricing(
        price_1_12=_dec(prices[0]),
        price_13_20=_dec(prices[1]),
        price_21_plus=_dec(prices[2]),
        mode_premium=MODE_1V2_PREMIUM if premium is None else _dec(premium),
    )


def client_from_row(row: Row) -> Client:
    return Client(
        id=int(row["id"]),
        name=str(row["name"]),
        trainer_id=int(row["trainer_id"]),
        secondary_trainer_id=_opt_int(row.get("secondary_trainer_id")),
        mode=_mode(row.get("mode")) or DEFAULT_MODE,
        pricing=client_pricing_from_row(row),
        is_active=_bool(row.get("is_active"), True),
        is_personal_client=_bool(row.get("is_personal_client")),
        location=row.get("location"),
        created_at=_opt_date(row.get("created_at")),
        archived_at=_opt_date(row.get("archived_at")),
    )


def package_from_row(row: Row) -> Package:
    return Package(
        id=int(row["id"]),
        client_id=int(row["client_id"]),
        trainer_id=int(row["trainer_id"]),
        sessions_purchased=int(row["sessions_purchased"]),
        start_date=parse_date(row["start_date"]),
        sales_bonus=_opt_dec(row.get("sales_bonus")),
        mode=_mode(row.get("mode")),
        location=row.get("location"),
    )


def session_from_row(row: Row) -> Session:
    return Session(
        id=_opt_int(row.get("id")),
        date=parse_date(row["date"]),
        trainer_id=int(row["trainer_id"]),
        client_id=int(row["client_id"]),
        package_id=_opt_int(row.get("package_id")),
        mode=_mode(row.get("mode")),
        location_override=row.get("location_override"),
    )


def late_fee_from_row(row: Row) -> LateFee:
    return LateFee(
        id=int(row["id"]),
        client_id=int(row["client_id"]),
        trainer_id=int(row["trainer_id"]),
        date=parse_date(row["date"]),
        amount=_dec(row["amount"]),
    )


def income_rate_from_row(row: Row) -> IncomeRate:
    return IncomeRate(
        id=_opt_int(row.get("id")),
        trainer_id=_opt_int(row.get("trainer_id")),
        min_classes=int(row["min_classes"]),
        max_classes=_opt_int(row.get("max_classes")),
        rate=_dec(row["rate"]),
        effective_week=_opt_date(row.get("effective_week")),
    )


def pricing_row_from_row(row: Row) -> PricingRow:
    premium = row.get("mode_1v2_premium")
    return PricingRow(
        tier=int(row["tier"]),
        sessions_min=int(row["sessions_min"]),
        sessions_max=_opt_int(row.get("sessions_max")),
        price=_dec(row["price"]),
        mode_1v2_premium=MODE_1V2_PREMIUM if premium is None else _dec(premium),
    )


def price_entry_from_row(row: Row) -> ClientPriceEntry:
    return ClientPriceEntry(
        id=_opt_int(row.get("id")),
        client_id=int(row["client_id"]),
        effective_date=parse_date(row["effective_date"]),
        pricing=client_pricing_from_row(row),
        reason=row.get("reason"),
    )
