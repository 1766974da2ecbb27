"""
Auth Blueprint: JWT issuance for sign-up and the demo sign-in.

Endpoints:
  POST /api/v1/auth/signup          {name, email} → 201 {user, accessToken}
  POST /api/v1/auth/sample-login    {email} → {user, accessToken, redirectUrl}
  GET  /api/v1/auth/me              current user profile

The email-only sample login exists for demos and is disabled unless
SAMPLE_LOGIN_ENABLED is set (404 otherwise).
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from tasktracker.auth import require_principal
from tasktracker.core.exceptions import NotFoundError
from tasktracker.services import user_service
from tasktracker.services.jwt_service import generate_access_token

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")

ADMIN_DASHBOARD_URL = "/admin/dashboard"
DEVELOPER_DASHBOARD_URL = "/developer/dashboard"


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/signup
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/signup", methods=["POST"])
def signup():
    """
    Create a DEVELOPER account and return an access token.

    Body: { "name": "...", "email": "..." }
    """
    data = _json_body()
    user = user_service.signup(data.get("name"), data.get("email"))
    return jsonify({
        "user": user.to_dict(),
        "accessToken": generate_access_token(user.id, user.role),
    }), 201


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/sample-login
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/sample-login", methods=["POST"])
def sample_login():
    """
    Sign in as an existing user by email alone (demo accounts).

    Body: { "email": "admin@taskmanager.com" }
    """
    if not current_app.config.get("SAMPLE_LOGIN_ENABLED"):
        raise NotFoundError(resource="Endpoint")

    user = user_service.find_user_for_sign_in(_json_body().get("email"))
    logger.info("Sample login for user=%s", user.id)
    return jsonify({
        "user": user.to_dict(),
        "accessToken": generate_access_token(user.id, user.role),
        "redirectUrl": ADMIN_DASHBOARD_URL if user.is_admin else DEVELOPER_DASHBOARD_URL,
    })


# ═══════════════════════════════════════════════════════════════
# GET /api/v1/auth/me
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/me", methods=["GET"])
def me():
    principal = require_principal()
    user = user_service.get_active_user(principal.id)
    return jsonify(user.to_dict(include_counts=True))
