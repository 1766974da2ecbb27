"""
Task Lifecycle Service

Owns who may read/mutate a Task and the side effects of status changes:
  - Create / Delete: ADMIN only
  - Update: ADMIN, or a user holding an assignment on the task
  - Read / List: any authenticated principal

Status machine:
  Any status may move to any other (no transition table). Two effects are
  mandatory and live in apply_status_change():
    - entering COMPLETED stamps completed_at and notifies every ADMIN
    - leaving COMPLETED clears completed_at

Notifications are queued while the task mutation is built and are only
delivered after it commits (see services.notification).

Usage:
    from tasktracker.services.task_lifecycle import create_task, update_task

    task = create_task({"title": "Login UI", "projectId": 1}, principal)
    task = update_task(task.id, {"status": "COMPLETED"}, principal)
"""

import logging
from datetime import datetime, timezone
from functools import partial

from sqlalchemy.orm import joinedload, selectinload

from tasktracker.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from tasktracker.models import db
from tasktracker.models.task import (
    DEFAULT_PRIORITY,
    STATUS_COMPLETED,
    STATUS_PENDING,
    TASK_LINK_FIELDS,
    TASK_PRIORITIES,
    TASK_STATUSES,
    Task,
    TaskAssignment,
    TaskTimeLog,
)
from tasktracker.services.notification import NotificationService
from tasktracker.utils.errors import E
from tasktracker.utils.helpers import (
    parse_optional_datetime,
    parse_optional_int,
    parse_optional_text,
    transaction,
)

logger = logging.getLogger(__name__)

# Optional allow-list {from_status: {to_status, ...}}. None means every
# status is reachable from every other.
TASK_TRANSITIONS = None


def _task_query():
    """Task query with the relations every response renders."""
    return Task.query.options(
        selectinload(Task.assignments).joinedload(TaskAssignment.user),
        selectinload(Task.time_logs).joinedload(TaskTimeLog.user),
        joinedload(Task.project),
        joinedload(Task.module),
        joinedload(Task.functionality),
    )


def _get_task_or_404(task_id) -> Task:
    task = _task_query().filter(Task.id == task_id).one_or_none()
    if task is None:
        raise NotFoundError(resource="Task", resource_id=task_id)
    return task


def _require_admin(principal, action):
    if not principal.is_admin:
        logger.warning("Forbidden %s by user=%s role=%s", action, principal.id, principal.role)
        raise ForbiddenError(action=action, user_id=principal.id)


def _check_choice(value, allowed, field):
    if value not in allowed:
        raise ValidationError(
            f"Invalid {field}: {value!r}",
            details={field: f"must be one of {', '.join(allowed)}"},
            code=E.VALIDATION_INVALID,
        )


def _parse_assignee_ids(raw):
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError(
            "assignedUserIds must be a list", details={"assignedUserIds": "invalid"}, code=E.VALIDATION_INVALID,
        )
    ids = []
    for value in raw:
        uid = parse_optional_int(value, "assignedUserIds")
        if uid is not None and uid not in ids:
            ids.append(uid)
    return ids


# ═════════════════════════════════════════════════════════════════════════════
# Status machine
# ═════════════════════════════════════════════════════════════════════════════


def is_transition_allowed(old_status, new_status) -> bool:
    if TASK_TRANSITIONS is None:
        return True
    return new_status in TASK_TRANSITIONS.get(old_status, ())


def apply_status_change(task, new_status, *, now=None) -> list:
    """
    Move ``task`` to ``new_status`` and apply the mandatory side effects.

    Mutates the task in the current session without committing.

    Returns:
        Deferred follow-ups (zero-argument callables) the caller must run
        after its transaction commits.
    """
    _check_choice(new_status, TASK_STATUSES, "status")
    old_status = task.status
    if not is_transition_allowed(old_status, new_status):
        raise ValidationError(
            f"Cannot move task from {old_status} to {new_status}",
            details={"status": "transition not allowed"},
            code=E.VALIDATION_INVALID,
        )

    task.status = new_status
    follow_ups = []
    if new_status == STATUS_COMPLETED:
        task.completed_at = now or datetime.now(timezone.utc)
        follow_ups.append(partial(NotificationService.notify_task_completed, task.id, task.title))
    elif old_status == STATUS_COMPLETED:
        task.completed_at = None

    if old_status != new_status:
        logger.info("Task %s status %s -> %s", task.id, old_status, new_status, extra={"task_id": task.id})
    return follow_ups


def _run_follow_ups(follow_ups):
    for follow_up in follow_ups:
        follow_up()


# ═════════════════════════════════════════════════════════════════════════════
# Read
# ═════════════════════════════════════════════════════════════════════════════


def get_task(task_id, principal) -> Task:
    """Any authenticated principal may read any task."""
    return _get_task_or_404(task_id)


def list_tasks(principal, *, project_id=None, module_id=None, user_id=None, status=None) -> list[Task]:
    """
    List tasks newest first; filters combine with AND.

    ``user_id`` may be the literal "me" for the caller's own assignments.
    """
    if user_id == "me":
        user_id = principal.id
    project_id = parse_optional_int(project_id, "projectId")
    module_id = parse_optional_int(module_id, "moduleId")
    user_id = parse_optional_int(user_id, "userId")

    q = _task_query()
    if project_id is not None:
        q = q.filter(Task.project_id == project_id)
    if module_id is not None:
        q = q.filter(Task.module_id == module_id)
    if user_id is not None:
        q = q.filter(Task.assignments.any(TaskAssignment.user_id == user_id))
    if status:
        _check_choice(status, TASK_STATUSES, "status")
        q = q.filter(Task.status == status)
    return q.order_by(Task.created_at.desc(), Task.id.desc()).all()


# ═════════════════════════════════════════════════════════════════════════════
# Create / Update / Delete
# ═════════════════════════════════════════════════════════════════════════════


def create_task(data: dict, principal) -> Task:
    """
    Create a task with optional assignees (ADMIN only).

    Task and assignment rows are one transaction; a dangling projectId or
    user id fails the whole create. TASK_ASSIGNED notifications follow
    after commit.
    """
    _require_admin(principal, "task.create")

    raw_title = data.get("title")
    title = raw_title.strip() if isinstance(raw_title, str) else ""
    project_id = parse_optional_int(data.get("projectId"), "projectId")
    if not title or not project_id:
        details = {}
        if not title:
            details["title"] = "required"
        if not project_id:
            details["projectId"] = "required"
        raise ValidationError("Task title and project ID are required", details=details, code=E.VALIDATION_REQUIRED)

    priority = data.get("priority") or DEFAULT_PRIORITY
    _check_choice(priority, TASK_PRIORITIES, "priority")
    description = parse_optional_text(data.get("description"), "description")
    assignee_ids = _parse_assignee_ids(data.get("assignedUserIds"))

    task = Task(
        title=title,
        description=description,
        priority=priority,
        status=STATUS_PENDING,
        estimated_hours=parse_optional_int(data.get("estimatedHours"), "estimatedHours"),
        start_date=parse_optional_datetime(data.get("startDate"), "startDate"),
        due_date=parse_optional_datetime(data.get("dueDate"), "dueDate"),
        project_id=project_id,
    )
    for field, column in TASK_LINK_FIELDS.items():
        setattr(task, column, parse_optional_int(data.get(field), field))

    with transaction():
        db.session.add(task)
        db.session.flush()
        for uid in assignee_ids:
            db.session.add(TaskAssignment(task_id=task.id, user_id=uid, assigned_by=principal.id))

    task_id, task_title = task.id, task.title
    logger.info(
        "Task %s created by user=%s with %d assignee(s)", task_id, principal.id, len(assignee_ids),
        extra={"task_id": task_id, "user_id": principal.id},
    )
    if assignee_ids:
        NotificationService.notify_task_assigned(task_id, task_title, assignee_ids)
    return _get_task_or_404(task_id)


def update_task(task_id, data: dict, principal) -> Task:
    """
    Apply a partial update (ADMIN or assignee).

    Supported fields: title, description, priority, estimatedHours, dueDate,
    status. A falsy title/priority/dueDate/status is ignored; description
    and estimatedHours may be cleared with null.
    """
    task = _get_task_or_404(task_id)
    if not (principal.is_admin or task.is_assigned_to(principal.id)):
        logger.warning("Forbidden task.update task=%s by user=%s", task_id, principal.id)
        raise ForbiddenError(action="task.update", user_id=principal.id)

    # Validate everything before touching the row
    status = data.get("status")
    if status:
        _check_choice(status, TASK_STATUSES, "status")
    priority = data.get("priority")
    if priority:
        _check_choice(priority, TASK_PRIORITIES, "priority")
    estimated_hours = parse_optional_int(data.get("estimatedHours"), "estimatedHours")
    due_date = parse_optional_datetime(data.get("dueDate"), "dueDate")
    title = data.get("title")
    if title is not None and not isinstance(title, str):
        raise ValidationError("title must be a string", details={"title": "invalid"}, code=E.VALIDATION_INVALID)
    description = parse_optional_text(data.get("description"), "description")

    follow_ups = []
    with transaction():
        if title and title.strip():
            task.title = title.strip()
        if "description" in data:
            task.description = description
        if priority:
            task.priority = priority
        if "estimatedHours" in data:
            task.estimated_hours = estimated_hours
        if due_date is not None:
            task.due_date = due_date
        if status:
            follow_ups = apply_status_change(task, status)

    logger.info("Task %s updated by user=%s", task_id, principal.id, extra={"task_id": task_id})
    _run_follow_ups(follow_ups)
    return _get_task_or_404(task_id)


def delete_task(task_id, principal) -> None:
    """Remove a task; assignments and time logs cascade (ADMIN only)."""
    _require_admin(principal, "task.delete")
    task = db.session.get(Task, task_id)
    if task is None:
        raise NotFoundError(resource="Task", resource_id=task_id)
    with transaction():
        db.session.delete(task)
    logger.info("Task %s deleted by user=%s", task_id, principal.id, extra={"task_id": task_id})
