"""
Notification blueprint: the caller's own in-app notifications.

Endpoints:
    GET   /api/v1/notifications                 newest first (limit 50)
    GET   /api/v1/notifications/unread-count    {unread}
    PATCH /api/v1/notifications                 {notificationIds[]} | {markAllAsRead: true}
"""

import logging

from flask import Blueprint, jsonify, request

from tasktracker.auth import require_principal
from tasktracker.core.exceptions import ValidationError
from tasktracker.services.notification import NotificationService
from tasktracker.utils.errors import E

logger = logging.getLogger(__name__)

notification_bp = Blueprint("notifications", __name__, url_prefix="/api/v1/notifications")


@notification_bp.route("", methods=["GET"])
def list_notifications():
    principal = require_principal()
    items = NotificationService.list_for_user(principal.id)
    return jsonify([n.to_dict() for n in items])


@notification_bp.route("/unread-count", methods=["GET"])
def unread_count():
    principal = require_principal()
    return jsonify({"unread": NotificationService.unread_count(principal.id)})


@notification_bp.route("", methods=["PATCH"])
def mark_notifications():
    principal = require_principal()
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        data = {}

    if data.get("markAllAsRead"):
        updated = NotificationService.mark_all_read(principal.id)
    elif isinstance(data.get("notificationIds"), list):
        updated = NotificationService.mark_read(principal.id, data["notificationIds"])
    else:
        raise ValidationError(
            "Provide notificationIds (list) or markAllAsRead",
            details={"notificationIds": "required"},
            code=E.VALIDATION_REQUIRED,
        )

    logger.debug("Marked %d notification(s) read for user=%s", updated, principal.id)
    return jsonify({"message": "Notifications updated successfully", "updated": updated})
