"""
dashboard_router.py
────────────────────────────────────────────
Weekly trainer dashboard.

Endpoints:
 • GET /trainer/<id>/week?date=YYYY-MM-DD
   → breakdown rows, income summary and client rows for the
     Monday–Sunday week containing `date` (today at the gym if omitted).
────────────────────────────────────────────
"""

import logging
from flask import Blueprint, request, jsonify

from .dashboard import build_trainer_week
from .formatters import format_trainer_week
from .utils import PayloadError, optional_date, pricing_table
from .week import today

bp = Blueprint("dashboard_bp", __name__)
log = logging.getLogger(__name__)


@bp.route("/trainer/<int:trainer_id>/week", methods=["GET"])
def trainer_week(trainer_id: int):
    try:
        on_date = optional_date(request.args, "date") or today()
    except PayloadError as e:
        return jsonify({"ok": False, "error": str(e)}), 400

    try:
        week = build_trainer_week(trainer_id, on_date, pricing_table())
    except Exception:
        log.exception(f"[dashboard] week failed trainer={trainer_id} date={on_date}")
        return jsonify({"ok": False, "error": "Failed to load week"}), 500

    if week is None:
        return jsonify({"ok": False, "error": f"Trainer not found for id={trainer_id}"}), 404

    log.info(f"[dashboard] trainer={trainer_id} week={week.snapshot.week_start} classes={week.summary.total_classes}")
    return jsonify({"ok": True, **format_trainer_week(week)})
