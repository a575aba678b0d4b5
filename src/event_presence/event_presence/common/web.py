from __future__ import annotations

import logging
from functools import wraps

from flask import Flask, jsonify, request, session

from ..core.enums import OperatorType, Role
from ..core.exceptions import (
    AuthorizationError,
    Busy,
    DomainError,
    NotFoundError,
    OperatorNotResolved,
    StateError,
    ValidationError,
)
from ..operators.model import Operator
from ..operators.service import OperatorService
from .validators import parse_pagination

logger = logging.getLogger(__name__)

# Session keys written by the login flow of the surrounding application.
SESSION_OPERATOR_ID = "operator_id"
SESSION_OPERATOR_TYPE = "operator_type"
SESSION_ROLE = "role"


def error_response(status: int, code: str, message: str, **extra):
    body = {"success": False, "error": code, "message": message}
    body.update(extra)
    return jsonify(body), status


def status_for(exc: DomainError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, OperatorNotResolved):
        return 401
    if isinstance(exc, AuthorizationError):
        return 403
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, StateError):
        return 409
    if isinstance(exc, Busy):
        return 503
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        extra = {"retryable": True} if getattr(exc, "retryable", False) else {}
        scan_type = getattr(exc, "scan_type", None)
        if scan_type is not None:
            extra["scanType"] = scan_type.value
        return error_response(status_for(exc), type(exc).__name__, str(exc), **extra)

    @app.errorhandler(404)
    def handle_not_found(exc):
        return error_response(404, "NotFound", "Resource not found")

    @app.errorhandler(405)
    def handle_method_not_allowed(exc):
        return error_response(405, "MethodNotAllowed", "Method not allowed")

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.error("Unhandled exception on %s %s: %s", request.method, request.path, exc, exc_info=True)
        return error_response(500, "InternalError", "Internal server error")


def current_operator(operators: OperatorService) -> Operator:
    if SESSION_OPERATOR_ID not in session:
        raise OperatorNotResolved("Please sign in as a scanner operator")
    return operators.resolve(session.get(SESSION_OPERATOR_TYPE), session.get(SESSION_OPERATOR_ID))


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if SESSION_OPERATOR_ID not in session:
            return error_response(401, "Unauthenticated", "Please sign in to continue")
        return view(*args, **kwargs)

    return wrapper


def _has_role(*roles: Role) -> bool:
    return session.get(SESSION_OPERATOR_TYPE) == OperatorType.USER.value and session.get(SESSION_ROLE) in {
        r.value for r in roles
    }


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if SESSION_OPERATOR_ID not in session:
            return error_response(401, "Unauthenticated", "Please sign in to continue")
        if not _has_role(Role.ADMIN):
            return error_response(403, "Forbidden", "Administrator access required")
        return view(*args, **kwargs)

    return wrapper


def staff_required(view):
    """Allow admin and staff users; volunteers only scan."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if SESSION_OPERATOR_ID not in session:
            return error_response(401, "Unauthenticated", "Please sign in to continue")
        if not _has_role(Role.ADMIN, Role.STAFF):
            return error_response(403, "Forbidden", "Staff access required")
        return view(*args, **kwargs)

    return wrapper


def page_args(*, default_limit: int | None = None) -> tuple[int, int]:
    if default_limit is None:
        return parse_pagination(request.args.get("offset"), request.args.get("limit"))
    return parse_pagination(request.args.get("offset"), request.args.get("limit"), default_limit=default_limit)
