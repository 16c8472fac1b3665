# portal/app.py
"""
JSON admin surface for the lunch bot: upload the weekly menu, inspect and
edit the current order, save/restore it through the configured brain.

Run (dev):
  python -m portal.app
"""

from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, jsonify
from werkzeug.exceptions import RequestEntityTooLarge

from lunches.brain import Brain, open_brain
from lunches.config import Settings, load_settings
from lunches.order import OrderContext
from portal.routes_api import api_bp

log = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, brain: Optional[Brain] = None) -> Flask:
    settings = settings or load_settings()
    brain = brain if brain is not None else open_brain(settings.brain_url)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = settings.max_upload_mb * 1024 * 1024
    app.extensions["lunches"] = {
        "settings": settings,
        "brain": brain,
        "context": OrderContext(tz=settings.tz),
    }
    app.register_blueprint(api_bp)

    @app.errorhandler(RequestEntityTooLarge)
    def _too_large(_e):
        return jsonify({"ok": False, "error": "File too large."}), 413

    log.info("Portal ready (brain: %s)", type(brain).__name__)
    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    create_app().run(host="0.0.0.0", port=5000, debug=True)
