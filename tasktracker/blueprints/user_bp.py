"""
User blueprint: admin user management.

Endpoints:
    GET   /api/v1/users    active users with assigned-task counts (ADMIN)
    PATCH /api/v1/users    {userId, role} role change (ADMIN)
"""

import logging

from flask import Blueprint, jsonify, request

from tasktracker.auth import require_principal
from tasktracker.services import user_service

logger = logging.getLogger(__name__)

user_bp = Blueprint("users", __name__, url_prefix="/api/v1/users")


@user_bp.route("", methods=["GET"])
def list_users():
    principal = require_principal()
    users = user_service.list_users(principal)
    return jsonify([u.to_dict(include_counts=True) for u in users])


@user_bp.route("", methods=["PATCH"])
def change_role():
    principal = require_principal()
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        data = {}
    user = user_service.change_role(data.get("userId"), data.get("role"), principal)
    return jsonify(user.to_dict())
