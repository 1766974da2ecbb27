"""
Project blueprint: projects and their modules.

Endpoints:
    GET    /api/v1/projects              list with modules and counts
    POST   /api/v1/projects              create (ADMIN)
    GET    /api/v1/projects/<id>         detail
    DELETE /api/v1/projects/<id>         delete with cascade (ADMIN)
    GET    /api/v1/modules?projectId     list
    POST   /api/v1/modules               create with functionalities (ADMIN)
    DELETE /api/v1/modules/<id>          delete (ADMIN)
"""

import logging

from flask import Blueprint, jsonify, request

from tasktracker.auth import require_principal
from tasktracker.services import project_service

logger = logging.getLogger(__name__)

project_bp = Blueprint("projects", __name__, url_prefix="/api/v1")


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


# ═════════════════════════════════════════════════════════════════════════
# Projects
# ═════════════════════════════════════════════════════════════════════════


@project_bp.route("/projects", methods=["GET"])
def list_projects():
    require_principal()
    projects = project_service.list_projects()
    return jsonify([p.to_dict(include_modules=True) for p in projects])


@project_bp.route("/projects", methods=["POST"])
def create_project():
    principal = require_principal()
    project = project_service.create_project(_json_body(), principal)
    return jsonify(project.to_dict(include_modules=True)), 201


@project_bp.route("/projects/<int:project_id>", methods=["GET"])
def get_project(project_id):
    require_principal()
    project = project_service.get_project(project_id)
    return jsonify(project.to_dict(include_modules=True))


@project_bp.route("/projects/<int:project_id>", methods=["DELETE"])
def delete_project(project_id):
    principal = require_principal()
    project_service.delete_project(project_id, principal)
    return jsonify({"message": "Project deleted successfully"})


# ═════════════════════════════════════════════════════════════════════════
# Modules
# ═════════════════════════════════════════════════════════════════════════


@project_bp.route("/modules", methods=["GET"])
def list_modules():
    require_principal()
    modules = project_service.list_modules(request.args.get("projectId"))
    return jsonify([m.to_dict(include_functionalities=True) for m in modules])


@project_bp.route("/modules", methods=["POST"])
def create_module():
    principal = require_principal()
    module = project_service.create_module(_json_body(), principal)
    return jsonify(module.to_dict(include_functionalities=True)), 201


@project_bp.route("/modules/<int:module_id>", methods=["DELETE"])
def delete_module(module_id):
    principal = require_principal()
    project_service.delete_module(module_id, principal)
    return jsonify({"message": "Module deleted successfully"})
