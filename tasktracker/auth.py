"""
Task Tracker: authentication helpers for blueprints.

Provides:
    - require_principal(): the acting Principal or UnauthenticatedError (401)
    - Content-Type enforcement for state-changing /api/v1 requests

Identity itself is resolved once per request by
tasktracker.middleware.jwt_auth (Bearer JWT → active user → g.principal).
Views pass the Principal explicitly into service functions.
"""

import logging

from flask import g, request

from tasktracker.core.exceptions import UnauthenticatedError
from tasktracker.core.principal import Principal
from tasktracker.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def require_principal() -> Principal:
    """Return the authenticated caller or raise UnauthenticatedError."""
    principal = getattr(g, "principal", None)
    if principal is None:
        raise UnauthenticatedError()
    return principal


# ── CSRF protection for API ──────────────────────────────────────────────────

def _check_content_type():
    """
    For state-changing requests with a body, require
    Content-Type: application/json. HTML forms cannot send that content type,
    which makes this a lightweight CSRF mitigation.
    """
    if request.method in ("POST", "PUT", "PATCH", "DELETE"):
        ct = request.content_type or ""
        if "application/json" not in ct and request.content_length and request.content_length > 0:
            return api_error(
                E.VALIDATION_INVALID,
                "Content-Type must be application/json for state-changing requests",
                status=415,
            )
    return None


def init_auth(app):
    """Install the request-level checks for API routes."""

    @app.before_request
    def _before_request_auth():
        if not request.path.startswith("/api/v1/"):
            return None
        if request.method == "OPTIONS":
            return None
        return _check_content_type()

    logger.debug("Auth checks installed")
