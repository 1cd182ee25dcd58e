"""
utils.py – request payload helpers
────────────────────────────────────────────────────────────
Boundary validation for the JSON API. The core assumes well-typed
input, so everything a client sends is checked here first.
────────────────────────────────────────────────────────────
"""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping, Optional

from flask import current_app

from .logic_models import IncomeRate
from .week import parse_date

log = logging.getLogger(__name__)


class PayloadError(ValueError):
    """Malformed request body or query string (→ HTTP 400)."""


def require_int(payload: Mapping[str, Any], key: str) -> int:
    value = payload.get(key)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise PayloadError(f"{key} must be an integer")
    return value


def require_positive_int(payload: Mapping[str, Any], key: str) -> int:
    value = require_int(payload, key)
    if value <= 0:
        raise PayloadError(f"{key} must be greater than 0")
    return value


def require_int_list(payload: Mapping[str, Any], key: str) -> List[int]:
    values = payload.get(key)
    if not isinstance(values, list) or not values:
        raise PayloadError(f"{key} must be a non-empty list of integers")
    if any(isinstance(v, bool) or not isinstance(v, int) for v in values):
        raise PayloadError(f"{key} must be a non-empty list of integers")
    return values


def require_date(payload: Mapping[str, Any], key: str) -> date:
    value = payload.get(key)
    if not value or not isinstance(value, str):
        raise PayloadError(f"{key} is required (YYYY-MM-DD)")
    try:
        return parse_date(value)
    except ValueError:
        raise PayloadError(f"{key} is not a valid date: {value!r}")


def optional_date(payload: Mapping[str, Any], key: str) -> Optional[date]:
    if payload.get(key) in (None, ""):
        return None
    return require_date(payload, key)


def optional_decimal(payload: Mapping[str, Any], key: str, minimum: Decimal = Decimal("0")) -> Optional[Decimal]:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        raise PayloadError(f"{key} must be a number")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise PayloadError(f"{key} must be a number")
    if not amount.is_finite() or amount < minimum:
        raise PayloadError(f"{key} must be a number ≥ {minimum}")
    return amount


def require_decimal(payload: Mapping[str, Any], key: str, minimum: Decimal = Decimal("0")) -> Decimal:
    amount = optional_decimal(payload, key, minimum)
    if amount is None:
        raise PayloadError(f"{key} is required")
    return amount


def optional_int(payload: Mapping[str, Any], key: str) -> Optional[int]:
    if payload.get(key) is None:
        return None
    return require_int(payload, key)


def require_bool(payload: Mapping[str, Any], key: str) -> bool:
    value = payload.get(key)
    if not isinstance(value, bool):
        raise PayloadError(f"{key} must be a boolean")
    return value


def require_str(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise PayloadError(f"{key} is required")
    return value.strip()


def income_rate_from_payload(item: Mapping[str, Any]) -> IncomeRate:
    rate = require_decimal(item, "rate")
    if rate > Decimal("1"):
        raise PayloadError("rate must be a fraction between 0 and 1")
    return IncomeRate(
        min_classes=require_positive_int(item, "minClasses"),
        max_classes=optional_int(item, "maxClasses"),
        rate=rate,
    )


# ─────────────────────────────────────────────────────────────
# App-scoped objects
# ─────────────────────────────────────────────────────────────
PRICING_EXTENSION = "gymdash.pricing"


def pricing_table():
    """The PricingTable installed on the running app by create_app()."""
    return current_app.extensions[PRICING_EXTENSION]
