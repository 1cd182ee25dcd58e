"""
settings_router.py
────────────────────────────────────────────
Global pricing and per-trainer income tiers.

Endpoints:
 • GET   /pricing
 • PATCH /pricing                       {rows: [{tier, sessions_min, sessions_max, price, mode_1v2_premium?}]}
 • GET   /trainers/<id>/income-rates
 • PUT   /trainers/<id>/income-rates    {rates: [{minClasses, maxClasses, rate}], effectiveWeek?}
────────────────────────────────────────────
"""

import logging
from typing import List

from flask import Blueprint, request, jsonify

from . import crud
from .formatters import format_income_rate, format_pricing_row
from .income_rates import format_income_rates, initial_income_rates
from .logic_models import PricingRow
from .pricing import PricingConfigError
from .settings import MODE_1V2_PREMIUM, TRAINER_TIERS
from .utils import (
    PayloadError,
    income_rate_from_payload,
    optional_date,
    optional_decimal,
    optional_int,
    pricing_table,
    require_decimal,
    require_int,
    require_positive_int,
)

bp = Blueprint("settings_bp", __name__)
log = logging.getLogger(__name__)


def _items(key: str) -> List[dict]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise PayloadError("Invalid payload")
    items = data.get(key)
    if not isinstance(items, list) or not items or not all(isinstance(i, dict) for i in items):
        raise PayloadError(f"{key} must be a non-empty list of objects")
    return items


def _pricing_row(item: dict) -> PricingRow:
    tier = require_int(item, "tier")
    if tier not in TRAINER_TIERS:
        raise PayloadError(f"tier must be one of {list(TRAINER_TIERS)}")
    premium = optional_decimal(item, "mode_1v2_premium")
    return PricingRow(
        tier=tier,
        sessions_min=require_positive_int(item, "sessions_min"),
        sessions_max=optional_int(item, "sessions_max"),
        price=require_decimal(item, "price"),
        mode_1v2_premium=MODE_1V2_PREMIUM if premium is None else premium,
    )


# ── Pricing ─────────────────────────────────────────────────
@bp.route("/pricing", methods=["GET"])
def get_pricing():
    return jsonify({"ok": True, "rows": [format_pricing_row(r) for r in pricing_table().rows()]})


@bp.route("/pricing", methods=["PATCH"])
def patch_pricing():
    try:
        rows = [_pricing_row(i) for i in _items("rows")]
    except PayloadError as e:
        return jsonify({"ok": False, "error": str(e)}), 400

    try:
        crud.update_pricing(rows)
    except PricingConfigError as e:
        log.info(f"[pricing] update rejected: {e}")
        return jsonify({"ok": False, "error": str(e)}), 400
    except Exception:
        log.exception("[pricing] update failed")
        return jsonify({"ok": False, "error": "Failed to update pricing"}), 500

    table = pricing_table()
    reloaded = table.reload(crud.load_pricing_rows)
    return jsonify({
        "ok": True,
        "reloaded": reloaded,
        "rows": [format_pricing_row(r) for r in table.rows()],
    })


# ── Income rates ────────────────────────────────────────────
@bp.route("/trainers/<int:trainer_id>/income-rates", methods=["GET"])
def get_income_rates(trainer_id: int):
    if crud.get_trainer(trainer_id) is None:
        return jsonify({"ok": False, "error": f"Trainer not found for id={trainer_id}"}), 404
    rates = crud.get_income_rates(trainer_id)
    body = {
        "ok": True,
        "rates": [format_income_rate(r) for r in rates],
        "label": format_income_rates(rates),
    }
    if not rates:
        # Pre-filled form for a new trainer; nothing is saved until PUT
        body["suggested"] = [format_income_rate(r) for r in initial_income_rates()]
    return jsonify(body)


@bp.route("/trainers/<int:trainer_id>/income-rates", methods=["PUT"])
def put_income_rates(trainer_id: int):
    try:
        rates = [income_rate_from_payload(i) for i in _items("rates")]
        effective_week = optional_date(request.get_json(silent=True) or {}, "effectiveWeek")
    except PayloadError as e:
        return jsonify({"ok": False, "error": str(e)}), 400

    try:
        problem = crud.save_income_rates(trainer_id, rates, effective_week)
    except crud.NotFound as e:
        return jsonify({"ok": False, "error": str(e)}), 404
    except Exception:
        log.exception(f"[income-rates] save failed trainer={trainer_id}")
        return jsonify({"ok": False, "error": "Failed to save income rates"}), 500

    if problem:
        return jsonify({"ok": False, "error": problem}), 400

    return jsonify({"ok": True, "label": format_income_rates(rates)})
