"""
gymdash/__init__.py
────────────────────
Turns `gymdash` into a proper Flask package with an application factory.
"""

import logging
from typing import Optional

from flask import Flask, jsonify

from .config import LOG_LEVEL, RELOAD_PRICING_ON_START


def create_app(database_url: Optional[str] = None, background_reload: Optional[bool] = None) -> Flask:
    """
    Flask application factory.

    `background_reload` loads the stored pricing on a daemon thread and
    serves the seeded defaults until it lands; tests pass False to load
    it before the first request.
    """
    # ── Configure logging ──
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s :: %(message)s"
    )
    log = logging.getLogger(__name__)

    from . import crud
    from .db import init_db
    from .pricing import PricingTable
    from .utils import PRICING_EXTENSION
    from .dashboard_router import bp as dashboard_bp
    from .entries_router import bp as entries_bp
    from .people_router import bp as people_bp
    from .settings_router import bp as settings_bp

    app = Flask(__name__)

    # ── Database ──
    init_db(database_url)

    # ── Pricing table ──
    table = PricingTable()
    if RELOAD_PRICING_ON_START if background_reload is None else background_reload:
        table.reload_in_background(crud.load_pricing_rows)
    else:
        table.reload(crud.load_pricing_rows)
    app.extensions[PRICING_EXTENSION] = table

    # ── Register blueprints ──
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(entries_bp)
    app.register_blueprint(people_bp)
    app.register_blueprint(settings_bp)

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"ok": True, "status": "healthy"})

    log.info("[gymdash] app created")
    return app
