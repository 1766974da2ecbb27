"""
Task blueprint: task lifecycle and time tracking endpoints.

Endpoints:
    GET    /api/v1/tasks?projectId&moduleId&userId&status   list (userId=me)
    POST   /api/v1/tasks                                    create (ADMIN)
    GET    /api/v1/tasks/<id>                               detail
    PATCH  /api/v1/tasks/<id>                               update (ADMIN or assignee)
    DELETE /api/v1/tasks/<id>                               delete (ADMIN)
    POST   /api/v1/tasks/<id>/time-logs                     log a work session (assignee)

Service layer owns all business logic and commits; errors are mapped to
JSON by the app-wide handlers.
"""

import logging

from flask import Blueprint, jsonify, request

from tasktracker.auth import require_principal
from tasktracker.services import task_lifecycle, time_tracking

logger = logging.getLogger(__name__)

task_bp = Blueprint("tasks", __name__, url_prefix="/api/v1/tasks")


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@task_bp.route("", methods=["GET"])
def list_tasks():
    principal = require_principal()
    tasks = task_lifecycle.list_tasks(
        principal,
        project_id=request.args.get("projectId"),
        module_id=request.args.get("moduleId"),
        user_id=request.args.get("userId"),
        status=request.args.get("status"),
    )
    return jsonify([t.to_dict() for t in tasks]), 200


@task_bp.route("", methods=["POST"])
def create_task():
    principal = require_principal()
    task = task_lifecycle.create_task(_json_body(), principal)
    return jsonify(task.to_dict()), 201


@task_bp.route("/<int:task_id>", methods=["GET"])
def get_task(task_id):
    principal = require_principal()
    task = task_lifecycle.get_task(task_id, principal)
    return jsonify(task.to_dict()), 200


@task_bp.route("/<int:task_id>", methods=["PATCH"])
def update_task(task_id):
    principal = require_principal()
    task = task_lifecycle.update_task(task_id, _json_body(), principal)
    return jsonify(task.to_dict()), 200


@task_bp.route("/<int:task_id>", methods=["DELETE"])
def delete_task(task_id):
    principal = require_principal()
    task_lifecycle.delete_task(task_id, principal)
    return jsonify({"message": "Task deleted successfully"}), 200


# ── Time tracking ────────────────────────────────────────────────────────────


@task_bp.route("/<int:task_id>/time-logs", methods=["POST"])
def log_time(task_id):
    """Body: {startTime, endTime, description?} → 201 TaskTimeLog."""
    principal = require_principal()
    data = _json_body()
    time_log = time_tracking.log_time(
        task_id,
        principal,
        data.get("startTime"),
        data.get("endTime"),
        data.get("description"),
    )
    return jsonify(time_log.to_dict()), 201
