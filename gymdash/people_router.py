"""
people_router.py
────────────────────────────────────────────
Trainers, clients and each client's price history.

Endpoints:
 • GET    /trainers?active=true
 • POST   /trainers                      {name, tier, email, location?, incomeRates?}
 • POST   /trainers/<id>/archive         {isActive}
 • GET    /clients?trainerId=&active=true
 • POST   /clients                       {name, trainerId, secondaryTrainerId?, mode?, pricing?,
                                          isPersonalClient?, location?}
 • PATCH  /clients/<id>                  {name, mode?, trainerId?, secondaryTrainerId?}
 • POST   /clients/<id>/archive          {isActive, effectiveWeek?}
 • GET    /clients/<id>/price-history?date=YYYY-MM-DD
 • POST   /clients/<id>/price-history    {effectiveDate, price1_12, price13_20, price21Plus,
                                          modePremium?, reason?}
────────────────────────────────────────────
"""

import logging
from typing import Optional

from flask import Blueprint, request, jsonify

from . import crud
from .formatters import (
    format_client,
    format_client_pricing,
    format_income_rate,
    format_price_entry,
    format_trainer,
)
from .logic_models import ClientPricing
from .pricing import client_pricing_on
from .settings import MODE_1V2_PREMIUM
from .utils import (
    PayloadError,
    income_rate_from_payload,
    optional_date,
    optional_decimal,
    optional_int,
    require_bool,
    require_date,
    require_decimal,
    require_int,
    require_str,
)

bp = Blueprint("people_bp", __name__)
log = logging.getLogger(__name__)


def _payload() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise PayloadError("Invalid payload")
    return data


def _error(e: Exception, status: int):
    return jsonify({"ok": False, "error": str(e)}), status


def _client_pricing(data: dict) -> ClientPricing:
    premium = optional_decimal(data, "modePremium")
    return ClientPricing(
        price_1_12=require_decimal(data, "price1_12"),
        price_13_20=require_decimal(data, "price13_20"),
        price_21_plus=require_decimal(data, "price21Plus"),
        mode_premium=MODE_1V2_PREMIUM if premium is None else premium,
    )


def _optional_pricing(data: dict) -> Optional[ClientPricing]:
    pricing = data.get("pricing")
    if pricing is None:
        return None
    if not isinstance(pricing, dict):
        raise PayloadError("pricing must be an object")
    return _client_pricing(pricing)


# ── Trainers ────────────────────────────────────────────────
@bp.route("/trainers", methods=["GET"])
def list_trainers():
    active_only = request.args.get("active") == "true"
    try:
        trainers = crud.list_trainers(active_only)
        rates = {t.id: crud.get_income_rates(t.id) for t in trainers}
    except Exception:
        log.exception("[trainers] list failed")
        return jsonify({"ok": False, "error": "Failed to load trainers"}), 500

    return jsonify({"ok": True, "trainers": [
        {**format_trainer(t), "incomeRates": [format_income_rate(r) for r in rates[t.id]]}
        for t in trainers
    ]})


@bp.route("/trainers", methods=["POST"])
def create_trainer():
    try:
        data = _payload()
        rates_payload = data.get("incomeRates") or []
        if not isinstance(rates_payload, list) or not all(isinstance(i, dict) for i in rates_payload):
            raise PayloadError("incomeRates must be a list of objects")
        rates = [income_rate_from_payload(i) for i in rates_payload]
        name = require_str(data, "name")
        tier = require_int(data, "tier")
        email = require_str(data, "email")
    except PayloadError as e:
        return _error(e, 400)

    try:
        trainer, saved = crud.create_trainer(name, tier, email, data.get("location"), rates)
    except crud.Rejected as e:
        return _error(e, 400)
    except Exception:
        log.exception("[trainers] create failed")
        return jsonify({"ok": False, "error": "Failed to create trainer"}), 500

    return jsonify({
        "ok": True,
        **format_trainer(trainer),
        "incomeRates": [format_income_rate(r) for r in saved],
    }), 201


@bp.route("/trainers/<int:trainer_id>/archive", methods=["POST"])
def archive_trainer(trainer_id: int):
    try:
        is_active = require_bool(_payload(), "isActive")
    except PayloadError as e:
        return _error(e, 400)

    try:
        trainer = crud.set_trainer_active(trainer_id, is_active)
    except crud.NotFound as e:
        return _error(e, 404)
    except Exception:
        log.exception(f"[trainers] archive failed trainer={trainer_id}")
        return jsonify({"ok": False, "error": "Failed to update trainer archive status"}), 500

    return jsonify({"ok": True, **format_trainer(trainer)})


# ── Clients ─────────────────────────────────────────────────
@bp.route("/clients", methods=["GET"])
def list_clients():
    raw_trainer_id = request.args.get("trainerId")
    if raw_trainer_id is not None and not raw_trainer_id.isdigit():
        return _error(PayloadError("trainerId must be an integer"), 400)
    trainer_id = int(raw_trainer_id) if raw_trainer_id is not None else None

    try:
        clients = crud.list_clients(trainer_id, request.args.get("active") == "true")
    except Exception:
        log.exception("[clients] list failed")
        return jsonify({"ok": False, "error": "Failed to fetch clients"}), 500

    return jsonify({"ok": True, "clients": [format_client(c) for c in clients]})


@bp.route("/clients", methods=["POST"])
def create_client():
    try:
        data = _payload()
        name = require_str(data, "name")
        trainer_id = require_int(data, "trainerId")
        secondary_id = optional_int(data, "secondaryTrainerId")
        pricing = _optional_pricing(data)
    except PayloadError as e:
        return _error(e, 400)

    try:
        created = crud.create_client(
            name,
            trainer_id,
            secondary_trainer_id=secondary_id,
            mode=data.get("mode"),
            pricing=pricing,
            is_personal_client=data.get("isPersonalClient") is True,
            location=data.get("location"),
        )
    except crud.Rejected as e:
        return _error(e, 400)
    except crud.NotFound as e:
        return _error(e, 404)
    except Exception:
        log.exception("[clients] create failed")
        return jsonify({"ok": False, "error": "Failed to create client"}), 500

    return jsonify({"ok": True, **format_client(created)}), 201


@bp.route("/clients/<int:client_id>", methods=["PATCH"])
def update_client(client_id: int):
    try:
        data = _payload()
        name = require_str(data, "name")
        trainer_id = optional_int(data, "trainerId")
        secondary_id = optional_int(data, "secondaryTrainerId")
    except PayloadError as e:
        return _error(e, 400)

    try:
        updated = crud.update_client(client_id, name, data.get("mode"), trainer_id, secondary_id)
    except crud.Rejected as e:
        return _error(e, 400)
    except crud.NotFound as e:
        return _error(e, 404)
    except Exception:
        log.exception(f"[clients] update failed client={client_id}")
        return jsonify({"ok": False, "error": "Failed to update client"}), 500

    return jsonify({"ok": True, **format_client(updated)})


@bp.route("/clients/<int:client_id>/archive", methods=["POST"])
def archive_client(client_id: int):
    try:
        data = _payload()
        is_active = require_bool(data, "isActive")
        effective_week = optional_date(data, "effectiveWeek")
    except PayloadError as e:
        return _error(e, 400)

    try:
        updated = crud.set_client_active(client_id, is_active, effective_week)
    except crud.Rejected as e:
        return _error(e, 400)
    except crud.NotFound as e:
        return _error(e, 404)
    except Exception:
        log.exception(f"[clients] archive failed client={client_id}")
        return jsonify({"ok": False, "error": "Failed to update client archive status"}), 500

    return jsonify({"ok": True, **format_client(updated)})


# ── Client price history ────────────────────────────────────
@bp.route("/clients/<int:client_id>/price-history", methods=["GET"])
def get_price_history(client_id: int):
    try:
        on_date = optional_date(request.args, "date")
    except PayloadError as e:
        return _error(e, 400)

    try:
        client = crud.get_client(client_id)
        history = crud.get_client_price_history(client_id) if client else []
    except Exception:
        log.exception(f"[price-history] load failed client={client_id}")
        return jsonify({"ok": False, "error": "Failed to get price history"}), 500

    if client is None:
        return jsonify({"ok": False, "error": f"Client not found for id={client_id}"}), 404

    if on_date is None:
        return jsonify({"ok": True, "history": [format_price_entry(e) for e in history]})

    in_force = [e for e in history if e.effective_date <= on_date]
    return jsonify({
        "ok": True,
        "pricing": format_client_pricing(client_pricing_on(client, on_date, history)),
        "source": "price_history" if in_force else "client_fallback",
    })


@bp.route("/clients/<int:client_id>/price-history", methods=["POST"])
def add_price_history(client_id: int):
    try:
        data = _payload()
        effective_date = require_date(data, "effectiveDate")
        pricing = _client_pricing(data)
        reason = data.get("reason") if isinstance(data.get("reason"), str) else None
    except PayloadError as e:
        return _error(e, 400)

    try:
        entry = crud.add_client_price(client_id, effective_date, pricing, reason)
    except crud.NotFound as e:
        return _error(e, 404)
    except Exception:
        log.exception(f"[price-history] add failed client={client_id}")
        return jsonify({"ok": False, "error": "Failed to add price history"}), 500

    return jsonify({"ok": True, "priceHistory": format_price_entry(entry)})
