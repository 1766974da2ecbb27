"""
Time Tracking Service

Records work sessions (TaskTimeLog) against a task and keeps the task's
derived ``actual_hours`` in sync:

    duration      = round((end - start) in minutes)
    actual_hours  = round(sum(duration of every log on the task) / 60)

Rounding is half-up. The insert, the re-sum and the write-back share one
transaction that starts by locking the task row (SELECT ... FOR UPDATE), so
concurrent sessions on the same task serialize and never lose an update.
On SQLite, where FOR UPDATE is a no-op, the database-level write lock gives
the same ordering.

Only assignees may log time; admins get no bypass because a time log is a
personal work record.
"""

import logging

from sqlalchemy import func, select

from tasktracker.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from tasktracker.models import db
from tasktracker.models.task import Task, TaskAssignment, TaskTimeLog
from tasktracker.utils.errors import E
from tasktracker.utils.helpers import parse_datetime, parse_optional_text, round_half_up, transaction

logger = logging.getLogger(__name__)


def duration_minutes(start_time, end_time) -> int:
    """Whole minutes between two datetimes, rounded half-up."""
    return round_half_up((end_time - start_time).total_seconds() / 60)


def log_time(task_id, principal, start_time, end_time, description=None) -> TaskTimeLog:
    """
    Append one work session to a task and refresh its actual hours.

    Args:
        task_id: Task to log against.
        principal: Acting caller; must hold an assignment on the task.
        start_time / end_time: ISO-8601 strings or datetimes.
        description: Optional free text.

    Raises:
        NotFoundError: task does not exist.
        ForbiddenError: caller is not assigned to the task.
        ValidationError: missing/unparsable times, end not after start, or a
            non-string description.
    """
    with transaction():
        task = db.session.execute(
            select(Task).where(Task.id == task_id).with_for_update()
        ).scalar_one_or_none()
        if task is None:
            raise NotFoundError(resource="Task", resource_id=task_id)

        assigned = db.session.execute(
            select(TaskAssignment.id).where(
                TaskAssignment.task_id == task.id,
                TaskAssignment.user_id == principal.id,
            )
        ).first()
        if assigned is None:
            logger.warning("Forbidden time log on task=%s by user=%s", task_id, principal.id)
            raise ForbiddenError(action="task.log_time", user_id=principal.id)

        start = parse_datetime(start_time, "startTime")
        end = parse_datetime(end_time, "endTime")
        if end <= start:
            raise ValidationError(
                "endTime must be after startTime",
                details={"endTime": "must be after startTime"},
                code=E.VALIDATION_INVALID,
            )
        description = parse_optional_text(description, "description")

        time_log = TaskTimeLog(
            task_id=task.id,
            user_id=principal.id,
            start_time=start,
            end_time=end,
            duration=duration_minutes(start, end),
            description=description,
        )
        db.session.add(time_log)
        db.session.flush()

        total_minutes = db.session.execute(
            select(func.coalesce(func.sum(TaskTimeLog.duration), 0)).where(TaskTimeLog.task_id == task.id)
        ).scalar_one()
        task.actual_hours = round_half_up(total_minutes / 60)

    logger.info(
        "Logged %d min on task=%s by user=%s (actual_hours=%s)",
        time_log.duration, task_id, principal.id, task.actual_hours,
        extra={"task_id": task_id, "user_id": principal.id},
    )
    return time_log
