from __future__ import annotations

from functools import wraps
from typing import Any, Optional

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..users.model import Actor


def current_actor() -> Optional[Actor]:
    """Actor placed in the session by the identity provider integration."""

    if "user_id" not in session or "role" not in session:
        return None
    try:
        return Actor(user_id=int(session["user_id"]), role=Role(str(session["role"]).upper()))
    except (TypeError, ValueError):
        return None


def api_login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        actor = current_actor()
        if actor is None:
            return jsonify({"success": False, "error": "Unauthorized", "message": "Authentication required"}), 401
        return view(actor, *args, **kwargs)

    return wrapper


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def optional_int_arg(name: str) -> Optional[int]:
    value = request.args.get(name)
    if value in (None, ""):
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")


def ok(data: Any, status: int = 200):
    return jsonify({"success": True, "data": data}), status
