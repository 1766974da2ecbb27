"""Project and module CRUD service. Mutations are ADMIN only."""

from __future__ import annotations

import logging

from tasktracker.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from tasktracker.models import db
from tasktracker.models.project import FUNCTIONALITY_TYPES, Functionality, Module, Project
from tasktracker.models.task import DEFAULT_PRIORITY, TASK_PRIORITIES
from tasktracker.utils.errors import E
from tasktracker.utils.helpers import (
    parse_optional_datetime,
    parse_optional_int,
    parse_optional_text,
    transaction,
)

logger = logging.getLogger(__name__)


def _require_admin(principal, action: str) -> None:
    if not principal.is_admin:
        logger.warning("Forbidden %s by user=%s", action, principal.id)
        raise ForbiddenError(action=action, user_id=principal.id)


def _clean(value) -> str:
    return str(value or "").strip()


# ═══════════════════════════════════════════════════════════════
# Projects
# ═══════════════════════════════════════════════════════════════
def list_projects() -> list[Project]:
    """All projects, newest first."""
    return Project.query.order_by(Project.created_at.desc(), Project.id.desc()).all()


def get_project(project_id: int) -> Project:
    project = db.session.get(Project, project_id)
    if project is None:
        raise NotFoundError(resource="Project", resource_id=project_id)
    return project


def create_project(data: dict, principal) -> Project:
    """Create a project owned by the calling admin (status PLANNING, progress 0)."""
    _require_admin(principal, "project.create")

    name = _clean(data.get("name"))
    if not name:
        raise ValidationError("Project name is required", details={"name": "required"}, code=E.VALIDATION_REQUIRED)

    project = Project(
        name=name,
        description=parse_optional_text(data.get("description"), "description"),
        start_date=parse_optional_datetime(data.get("startDate"), "startDate"),
        end_date=parse_optional_datetime(data.get("endDate"), "endDate"),
        creator_id=principal.id,
    )
    with transaction():
        db.session.add(project)
    logger.info("Project %s created by user=%s", project.id, principal.id)
    return project


def delete_project(project_id: int, principal) -> None:
    """Delete a project; modules, tasks, requirements and resources cascade."""
    _require_admin(principal, "project.delete")
    project = get_project(project_id)
    with transaction():
        db.session.delete(project)
    logger.info("Project %s deleted by user=%s", project_id, principal.id)


# ═══════════════════════════════════════════════════════════════
# Modules
# ═══════════════════════════════════════════════════════════════
def list_modules(project_id=None) -> list[Module]:
    """Modules newest first, optionally narrowed to one project."""
    project_id = parse_optional_int(project_id, "projectId")
    query = Module.query
    if project_id is not None:
        query = query.filter(Module.project_id == project_id)
    return query.order_by(Module.created_at.desc(), Module.id.desc()).all()


def _build_functionalities(raw) -> list[Functionality]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError(
            "functionalities must be a list", details={"functionalities": "invalid"}, code=E.VALIDATION_INVALID,
        )
    items = []
    for i, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ValidationError(
                "Each functionality must be an object",
                details={f"functionalities[{i}]": "invalid"}, code=E.VALIDATION_INVALID,
            )
        name = _clean(entry.get("name"))
        if not name:
            raise ValidationError(
                "Functionality name is required",
                details={f"functionalities[{i}].name": "required"}, code=E.VALIDATION_REQUIRED,
            )
        ftype = entry.get("type")
        if ftype not in FUNCTIONALITY_TYPES:
            raise ValidationError(
                f"Invalid functionality type: {ftype!r}",
                details={f"functionalities[{i}].type": f"must be one of {', '.join(FUNCTIONALITY_TYPES)}"},
                code=E.VALIDATION_INVALID,
            )
        description = parse_optional_text(entry.get("description"), f"functionalities[{i}].description")
        items.append(Functionality(name=name, description=description, type=ftype))
    return items


def create_module(data: dict, principal) -> Module:
    """Create a module and its functionalities in one transaction."""
    _require_admin(principal, "module.create")

    name = _clean(data.get("name"))
    project_id = parse_optional_int(data.get("projectId"), "projectId")
    if not name or not project_id:
        details = {}
        if not name:
            details["name"] = "required"
        if not project_id:
            details["projectId"] = "required"
        raise ValidationError("Module name and project ID are required", details=details, code=E.VALIDATION_REQUIRED)

    priority = data.get("priority") or DEFAULT_PRIORITY
    if priority not in TASK_PRIORITIES:
        raise ValidationError(
            f"Invalid priority: {priority!r}",
            details={"priority": f"must be one of {', '.join(TASK_PRIORITIES)}"},
            code=E.VALIDATION_INVALID,
        )
    functionalities = _build_functionalities(data.get("functionalities"))

    module = Module(
        name=name,
        description=parse_optional_text(data.get("description"), "description"),
        priority=priority,
        project_id=project_id,
        creator_id=principal.id,
    )
    module.functionalities = functionalities
    with transaction():
        db.session.add(module)
    logger.info(
        "Module %s created in project=%s with %d functionality(ies)",
        module.id, project_id, len(functionalities),
    )
    return module


def delete_module(module_id: int, principal) -> None:
    """Delete a module; functionalities cascade, task links are set to NULL."""
    _require_admin(principal, "module.delete")
    module = db.session.get(Module, module_id)
    if module is None:
        raise NotFoundError(resource="Module", resource_id=module_id)
    with transaction():
        db.session.delete(module)
    logger.info("Module %s deleted by user=%s", module_id, principal.id)
