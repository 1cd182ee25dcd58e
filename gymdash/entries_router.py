"""
entries_router.py
────────────────────────────────────────────
Daily entries a trainer logs from the dashboard.

Endpoints:
 • POST   /sessions        {date, trainerId, clientIds}
 • DELETE /sessions/<id>
 • POST   /packages        {clientId, trainerId, sessionsPurchased, startDate}
 • DELETE /packages/<id>   → sessions move to the newest sibling package
 • POST   /late-fees       {clientId, trainerId, date, amount?}
 • DELETE /late-fees/<id>
────────────────────────────────────────────
"""

import logging
from flask import Blueprint, request, jsonify

from . import crud
from .formatters import format_late_fee, format_package, format_rebalance, format_session
from .utils import (
    PayloadError,
    optional_decimal,
    pricing_table,
    require_date,
    require_int,
    require_int_list,
    require_positive_int,
)

bp = Blueprint("entries_bp", __name__)
log = logging.getLogger(__name__)


def _payload() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise PayloadError("Invalid payload")
    return data


def _bad_request(e: PayloadError):
    return jsonify({"ok": False, "error": str(e)}), 400


def _not_found(e: crud.NotFound):
    return jsonify({"ok": False, "error": str(e)}), 404


# ── Sessions ────────────────────────────────────────────────
@bp.route("/sessions", methods=["POST"])
def add_sessions():
    try:
        data = _payload()
        on_date = require_date(data, "date")
        trainer_id = require_int(data, "trainerId")
        client_ids = require_int_list(data, "clientIds")
    except PayloadError as e:
        return _bad_request(e)

    try:
        created = crud.add_sessions(on_date, trainer_id, client_ids)
    except crud.NotFound as e:
        return _not_found(e)
    except Exception:
        log.exception("[sessions] add failed")
        return jsonify({"ok": False, "error": "Failed to add sessions"}), 500

    return jsonify({
        "ok": True,
        "newSessions": [format_session(s) for s in created],
        "dropIns": [s.client_id for s in created if s.package_id is None],
    })


@bp.route("/sessions/<int:session_id>", methods=["DELETE"])
def delete_session(session_id: int):
    try:
        deleted = crud.delete_session(session_id)
    except Exception:
        log.exception(f"[sessions] delete {session_id} failed")
        return jsonify({"ok": False, "error": "Failed to delete session"}), 500
    if not deleted:
        return jsonify({"ok": False, "error": f"Session not found: {session_id}"}), 404
    return jsonify({"ok": True})


# ── Packages ────────────────────────────────────────────────
@bp.route("/packages", methods=["POST"])
def add_package():
    try:
        data = _payload()
        client_id = require_int(data, "clientId")
        trainer_id = require_int(data, "trainerId")
        sessions_purchased = require_positive_int(data, "sessionsPurchased")
        start_date = require_date(data, "startDate")
    except PayloadError as e:
        return _bad_request(e)

    try:
        pkg = crud.add_package(client_id, trainer_id, sessions_purchased, start_date, pricing_table())
    except crud.NotFound as e:
        return _not_found(e)
    except Exception:
        log.exception("[packages] add failed")
        return jsonify({"ok": False, "error": "Failed to add package"}), 500

    return jsonify({"ok": True, **format_package(pkg)})


@bp.route("/packages/<int:package_id>", methods=["DELETE"])
def delete_package(package_id: int):
    try:
        plan = crud.delete_package(package_id)
    except Exception:
        log.exception(f"[packages] delete {package_id} failed")
        return jsonify({"ok": False, "error": "Failed to delete package"}), 500
    if plan is None:
        return jsonify({"ok": False, "error": f"Package not found: {package_id}"}), 404
    return jsonify({"ok": True, **format_rebalance(plan)})


# ── Late fees ───────────────────────────────────────────────
@bp.route("/late-fees", methods=["POST"])
def add_late_fee():
    try:
        data = _payload()
        client_id = require_int(data, "clientId")
        trainer_id = require_int(data, "trainerId")
        on_date = require_date(data, "date")
        amount = optional_decimal(data, "amount")
    except PayloadError as e:
        return _bad_request(e)

    try:
        fee = crud.add_late_fee(client_id, trainer_id, on_date, amount)
    except crud.NotFound as e:
        return _not_found(e)
    except Exception:
        log.exception("[late-fees] add failed")
        return jsonify({"ok": False, "error": "Failed to add late fee"}), 500

    return jsonify({"ok": True, **format_late_fee(fee)})


@bp.route("/late-fees/<int:late_fee_id>", methods=["DELETE"])
def delete_late_fee(late_fee_id: int):
    try:
        deleted = crud.delete_late_fee(late_fee_id)
    except Exception:
        log.exception(f"[late-fees] delete {late_fee_id} failed")
        return jsonify({"ok": False, "error": "Failed to delete late fee"}), 500
    if not deleted:
        return jsonify({"ok": False, "error": f"Late fee not found: {late_fee_id}"}), 404
    return jsonify({"ok": True})
