"""Standardised API error responses.

Usage
-----
    from tasktracker.utils.errors import api_error, E

    return api_error(E.NOT_FOUND, "Task not found")
    return api_error(E.VALIDATION_REQUIRED, "projectId is required")
"""

from __future__ import annotations

import logging

from flask import jsonify, request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.exceptions import HTTPException

from tasktracker.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from tasktracker.models import db

logger = logging.getLogger(__name__)


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error code constants (stable across releases)."""

    # Authentication – HTTP 401
    UNAUTHENTICATED = "ERR_UNAUTHENTICATED"

    # Validation – HTTP 400
    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"

    # Not-found – HTTP 404
    NOT_FOUND = "ERR_NOT_FOUND"

    # Conflict / integrity – HTTP 409
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"
    CONFLICT_INTEGRITY = "ERR_CONFLICT_INTEGRITY"

    # Permissions – HTTP 403
    FORBIDDEN = "ERR_FORBIDDEN"

    # Server – HTTP 500
    DATABASE = "ERR_DATABASE"
    INTERNAL = "ERR_INTERNAL"

    # Transport – HTTP 405 / 429
    METHOD_NOT_ALLOWED = "ERR_METHOD_NOT_ALLOWED"
    RATE_LIMITED = "ERR_RATE_LIMITED"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.UNAUTHENTICATED: 401,
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.CONFLICT_INTEGRITY: 409,
    E.FORBIDDEN: 403,
    E.DATABASE: 500,
    E.INTERNAL: 500,
    E.METHOD_NOT_ALLOWED: 405,
    E.RATE_LIMITED: 429,
}


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details: dict | None = None,
):
    """Return a standard JSON error response.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Human-readable explanation for developers / UI.
    status : int, optional
        HTTP status override.  Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``400``.
    details : dict, optional
        Extra structured payload (field-level validation errors etc.).

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)`` – drop-in for Flask views.
    """

    http_status = status or _DEFAULT_STATUS.get(code, 400)

    body: dict = {
        "error": message,
        "code": code,
    }
    if details:
        body["details"] = details

    return jsonify(body), http_status


# ── App-wide handlers ─────────────────────────────────────────────────

def _is_foreign_key_violation(error) -> bool:
    orig = getattr(error, "orig", None)
    if getattr(orig, "pgcode", None) == "23503":
        return True
    return "foreign key" in str(orig or error).lower()


def register_error_handlers(app):
    """Map the core exception types (and stray HTTP errors) to JSON bodies."""

    @app.errorhandler(UnauthenticatedError)
    def _handle_unauthenticated(error):
        return api_error(E.UNAUTHENTICATED, str(error))

    @app.errorhandler(ForbiddenError)
    def _handle_forbidden(error):
        return api_error(E.FORBIDDEN, str(error))

    @app.errorhandler(NotFoundError)
    def _handle_not_found(error):
        return api_error(E.NOT_FOUND, f"{error.resource} not found")

    @app.errorhandler(ValidationError)
    def _handle_validation(error):
        code = error.code or E.VALIDATION_INVALID
        return api_error(code, str(error), details=error.details)

    @app.errorhandler(ConflictError)
    def _handle_conflict(error):
        return api_error(E.CONFLICT_DUPLICATE, str(error), details={error.field: "duplicate"})

    @app.errorhandler(IntegrityError)
    def _handle_integrity(error):
        db.session.rollback()
        if _is_foreign_key_violation(error):
            logger.error("Dangling reference on %s %s: %s", request.method, request.path, error.orig)
            return api_error(E.DATABASE, "Internal server error")
        logger.warning("Integrity conflict on %s %s: %s", request.method, request.path, error.orig)
        return api_error(E.CONFLICT_INTEGRITY, "Request conflicts with existing data")

    @app.errorhandler(SQLAlchemyError)
    def _handle_database(error):
        db.session.rollback()
        logger.exception("Database error on %s %s", request.method, request.path)
        return api_error(E.DATABASE, "Internal server error")

    @app.errorhandler(404)
    def _not_found(e):
        return api_error(E.NOT_FOUND, "Not found", details={"path": request.path})

    @app.errorhandler(405)
    def _method_not_allowed(e):
        return api_error(E.METHOD_NOT_ALLOWED, "Method not allowed")

    @app.errorhandler(429)
    def _rate_limited(e):
        return api_error(E.RATE_LIMITED, "Too many requests", details={"retryAfter": e.description})

    @app.errorhandler(Exception)
    def _handle_unexpected(error):
        if isinstance(error, HTTPException):
            return api_error(E.INTERNAL if error.code >= 500 else E.VALIDATION_INVALID,
                             error.description or error.name, status=error.code)
        db.session.rollback()
        logger.exception("Unexpected error endpoint=%s", request.endpoint)
        return api_error(E.INTERNAL, "Internal server error")
