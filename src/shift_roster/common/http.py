"""Flask glue shared by the feature controllers: identity, input parsing, error mapping."""

from __future__ import annotations

import logging
from datetime import date, datetime
from enum import Enum
from functools import wraps
from typing import Any, Mapping, Optional, TypeVar

from flask import Flask, g, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, DomainError, ValidationError
from ..users.model import SessionUser
from .datetime_utils import at_date, parse_iso_date
from .serialization import to_json
from .validators import parse_enum

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


def current_session_user() -> SessionUser:
    """Identity set by the authentication service in the shared Flask session."""

    user_id = session.get("user_id")
    role = session.get("role")
    if user_id is None or role is None:
        raise AuthenticationError("Please log in to continue")
    try:
        return SessionUser(user_id=int(user_id), role=Role(role))
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid session")


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        g.actor = current_session_user()
        return view(*args, **kwargs)

    return wrapper


def json_response(payload: Any, status: int = 200):
    return jsonify(to_json(payload)), status


def json_body() -> Mapping[str, Any]:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def int_value(source: Mapping[str, Any], name: str, *, required: bool = False) -> Optional[int]:
    raw = source.get(name)
    if raw is None or raw == "":
        if required:
            raise ValidationError(f"{name} is required")
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a whole number")


def date_value(source: Mapping[str, Any], name: str, *, required: bool = False) -> Optional[date]:
    raw = source.get(name)
    if not raw:
        if required:
            raise ValidationError(f"{name} is required")
        return None
    try:
        return parse_iso_date(str(raw)[:10])
    except ValueError:
        raise ValidationError(f"{name} must be a date (YYYY-MM-DD)")


def datetime_value(source: Mapping[str, Any], name: str, *, work_date: Optional[date] = None) -> Optional[datetime]:
    """``HH:MM`` on ``work_date`` or a full ISO datetime."""

    raw = source.get(name)
    if not raw:
        return None
    try:
        if work_date is None:
            return datetime.fromisoformat(str(raw))
        return at_date(work_date, str(raw))
    except ValueError:
        raise ValidationError(f"{name} must be HH:MM or an ISO datetime")


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(err: DomainError):
        return jsonify({"error": str(err), "code": type(err).__name__}), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(err: HTTPException):
        return jsonify({"error": err.description, "code": type(err).__name__}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected(err: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "Internal server error", "code": "InternalError"}), 500


def enum_value(source: Mapping[str, Any], name: str, enum_cls: type[E], *, required: bool = False) -> Optional[E]:
    raw = source.get(name)
    if raw is None or raw == "":
        if required:
            raise ValidationError(f"{name} is required")
        return None
    allowed = ", ".join(str(m.value) for m in enum_cls)
    return parse_enum(enum_cls, raw, f"{name} must be one of: {allowed}")
