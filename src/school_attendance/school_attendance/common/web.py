from __future__ import annotations

from dataclasses import asdict, is_dataclass
from datetime import date, datetime, time
from enum import Enum
from functools import wraps
from typing import Any

from flask import jsonify, session

from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from ..users.model import StaffIdentity

STAFF_ROLES = {Role.SUPERADMIN, Role.ADMIN, Role.TEACHER}


def current_staff() -> StaffIdentity:
    """Identity placed in the session by the auth collaborator."""
    if "user_id" not in session or "school_id" not in session:
        raise AuthorizationError("Authentication required")
    try:
        role = Role(session.get("role"))
    except ValueError:
        raise AuthorizationError("Unknown role")
    return StaffIdentity(user_id=str(session["user_id"]), school_id=str(session["school_id"]), role=role)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Authentication required"}), 401
        return view(*args, **kwargs)

    return wrapper


def staff_required(view):
    """Allow only teachers and administrators."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Authentication required"}), 401
        if session.get("role") not in {r.value for r in STAFF_ROLES}:
            return jsonify({"success": False, "message": "Forbidden"}), 403
        return view(*args, **kwargs)

    return wrapper


def to_jsonable(value: Any) -> Any:
    """Dataclasses/enums/dates into plain JSON types (ISO dates, not HTTP dates)."""
    if is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(asdict(value))
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return value
