from __future__ import annotations

import logging
from datetime import date, datetime, time
from enum import Enum
from functools import wraps

from flask import jsonify, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    FuturePeriodRejected,
    InvalidStateTransition,
    NegativeNetSalary,
    NoActiveSalaryStructure,
    NotFound,
    PolicyNotFound,
    PresentDaysExceedMonthDays,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Order matters: first match wins.
_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFound, 404),
    (PolicyNotFound, 404),
    (InvalidStateTransition, 409),
    (NoActiveSalaryStructure, 422),
    (FuturePeriodRejected, 422),
    (PresentDaysExceedMonthDays, 422),
    (NegativeNetSalary, 422),
)


def status_for(error: DomainError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 400


def error_response(error: Exception):
    if isinstance(error, DomainError):
        return jsonify({"success": False, "code": type(error).__name__, "message": str(error)}), status_for(error)

    logger.exception("Unhandled error")
    return jsonify({"success": False, "code": "InternalError", "message": "Internal server error"}), 500


def to_json(value):
    """Convert dataclasses/enums/datetimes into JSON-friendly structures."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json(v) for v in value]
    if hasattr(value, "__dataclass_fields__"):
        return {name: to_json(getattr(value, name)) for name in value.__dataclass_fields__}
    return value


def current_user_id() -> int:
    if "user_id" not in session:
        raise AuthenticationError("Please sign in to continue")
    return int(session["user_id"])


def current_role() -> Role:
    try:
        return Role(session.get("role"))
    except ValueError:
        return Role.STAFF


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response(AuthenticationError("Please sign in to continue"))
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response(AuthenticationError("Please sign in to continue"))
        if session.get("role") != Role.ADMIN.value:
            return error_response(AuthorizationError("Administrator access required"))
        return view(*args, **kwargs)

    return wrapper
