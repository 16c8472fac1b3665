# portal/routes_api.py
from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Any, Dict, List

import redis
from flask import Blueprint, current_app, jsonify, request
from werkzeug.utils import secure_filename

from lunches.brain import BrainError, BrainKeyError
from lunches.errors import MenuParseError, OrderSerializationError
from lunches.menu_parser import parse_menu_bytes
from lunches.order import UserChoice

log = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__, url_prefix="/api")

ALLOWED_EXTENSIONS = {"xlsx", "xlsm"}

# driver errors are not wrapped by the brain
STORE_ERRORS = (BrainError, sqlite3.Error, redis.RedisError)


def _state() -> Dict[str, Any]:
    return current_app.extensions["lunches"]


def _error(msg: str, status: int):
    return jsonify({"ok": False, "error": msg}), status


def _order_payload(order) -> Dict[str, Any]:
    return {
        "ok": True,
        "order": str(order),
        "summary": order.format(),
        "users": order.users(),
        "timestamp": order.timestamp.isoformat(timespec="microseconds"),
    }


# ------------------------
# Health
# ------------------------
@api_bp.get("/health")
def health():
    return jsonify({"ok": True, "time": datetime.now().isoformat(timespec="seconds")})


# ------------------------
# Menu
# ------------------------
@api_bp.post("/menu")
def upload_menu():
    if "file" not in request.files:
        return _error("No file field 'file' provided", 400)
    file = request.files["file"]
    name = secure_filename(file.filename or "")
    if not name:
        return _error("Empty filename", 400)
    if name.rsplit(".", 1)[-1].lower() not in ALLOWED_EXTENSIONS:
        return _error("Unsupported file type. Allowed: xlsx, xlsm", 400)

    state = _state()
    try:
        menu = parse_menu_bytes(file.read(), settings=state["settings"])
    except MenuParseError as e:
        log.warning("Rejected menu %s: %s", name, e)
        return _error(str(e), 400)

    # a new menu starts a new order cycle
    state["context"].reset(menu)
    return jsonify({"ok": True, "menu": menu.to_dict()})


@api_bp.get("/menu")
def get_menu():
    menu = _state()["context"].menu
    if menu is None:
        return _error("No menu loaded", 404)
    return jsonify({"ok": True, "menu": menu.to_dict()})


# ------------------------
# Order
# ------------------------
@api_bp.get("/order")
def get_order():
    with _state()["context"].locked() as order:
        return jsonify(_order_payload(order))


@api_bp.put("/order/<username>")
def set_order(username: str):
    ctx = _state()["context"]
    body = request.get_json(silent=True)
    raw = body.get("choices") if isinstance(body, dict) else None

    # menu and order must belong to the same cycle
    with ctx.locked() as order:
        menu = ctx.menu
        if menu is None:
            return _error("No menu loaded", 409)
        if not isinstance(raw, list) or not all(isinstance(c, list) for c in raw):
            return _error("'choices' must be a list of lists of dish names", 400)

        choices: List[UserChoice] = []
        for dishes in raw:
            choice = UserChoice()
            for dish in dishes:
                row = menu.find(str(dish))
                if row is None:
                    return _error(f"Unknown dish: {dish}", 400)
                choice.add(row)
            choices.append(choice)

        order.set(username, choices)
        return jsonify(_order_payload(order))


@api_bp.delete("/order/<username>")
def clear_order(username: str):
    with _state()["context"].locked() as order:
        cleared = order.clear_user(username)
        return jsonify({"ok": True, "cleared": cleared, "order": str(order)})


@api_bp.post("/order/save")
def save_order():
    state = _state()
    with state["context"].locked() as order:
        try:
            order.save(state["brain"], key=state["settings"].order_key)
        except STORE_ERRORS as e:
            log.error("Saving order failed: %s", e)
            return _error(str(e), 500)
        return jsonify(_order_payload(order))


@api_bp.post("/order/load")
def load_order():
    state = _state()
    with state["context"].locked() as order:
        try:
            order.load(state["brain"], key=state["settings"].order_key)
        except BrainKeyError:
            return _error("No saved order", 404)
        except OrderSerializationError as e:
            log.error("Stored order is corrupt: %s", e)
            return _error(str(e), 500)
        except STORE_ERRORS as e:
            log.error("Loading order failed: %s", e)
            return _error(str(e), 500)
        return jsonify(_order_payload(order))
