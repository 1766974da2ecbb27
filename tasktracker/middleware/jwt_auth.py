"""
JWT Auth Middleware: parses the Bearer token and resolves the Principal.

Sets, for every /api/v1 request:
  g.jwt_user_id   user id from a valid token's ``sub`` claim, else None
  g.principal     Principal(id, role) for an active user, else None

The role comes from the user row, not the token, so a role change or
deactivation applies to the very next request. Blueprints call
tasktracker.auth.require_principal(); this hook never rejects on its own.
"""

import logging

import jwt as pyjwt
from flask import g, request

from tasktracker.core.principal import Principal
from tasktracker.services.jwt_service import decode_access_token, user_id_from_payload
from tasktracker.services.user_service import get_active_user

logger = logging.getLogger(__name__)

# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/auth/signup",
    "/api/v1/auth/sample-login",
    "/api/v1/health",
)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.jwt_user_id = None
        g.principal = None

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        token = auth_header[7:]  # Strip "Bearer "
        try:
            payload = decode_access_token(token)
            g.jwt_user_id = user_id_from_payload(payload)
        except pyjwt.ExpiredSignatureError:
            logger.info("Expired access token on %s", path)
            return
        except pyjwt.InvalidTokenError:
            logger.warning("Invalid access token on %s", path)
            return

        user = get_active_user(g.jwt_user_id)
        if user is None:
            logger.warning("Token for unknown or inactive user=%s", g.jwt_user_id)
            return
        g.principal = Principal.for_user(user)
