"""
Notification Service.

Central service for querying a recipient's notifications and for fanning out
new ones when task lifecycle events happen (assignment, completion).

Fan-out is best effort: it always runs after the triggering task mutation has
committed, in a transaction of its own. A failure is rolled back and logged,
never raised, so it can neither revert nor obscure the task change.
"""

import logging
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import select

from tasktracker.models import db
from tasktracker.models.auth import ROLE_ADMIN, User
from tasktracker.models.notification import (
    TYPE_TASK_ASSIGNED,
    TYPE_TASK_COMPLETED,
    Notification,
)

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50


class NotificationService:
    """Stateless service class for notification operations."""

    # ── Query ─────────────────────────────────────────────────────────────

    @staticmethod
    def list_for_user(user_id, limit=None):
        """Retrieve a user's notifications, newest first."""
        if limit is None:
            limit = current_app.config.get("NOTIFICATION_LIST_LIMIT", DEFAULT_LIST_LIMIT)
        return (
            Notification.query.filter_by(user_id=user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def unread_count(user_id):
        """Return count of unread notifications."""
        return Notification.query.filter_by(user_id=user_id, is_read=False).count()

    # ── Actions ───────────────────────────────────────────────────────────

    @staticmethod
    def mark_read(user_id, notification_ids):
        """Mark the given notifications as read.

        Ids belonging to other users are silently skipped.
        Returns the number of rows updated.
        """
        ids = [i for i in notification_ids if isinstance(i, int) and not isinstance(i, bool)]
        if not ids:
            return 0
        now = datetime.now(timezone.utc)
        count = (
            Notification.query.filter(
                Notification.user_id == user_id,
                Notification.id.in_(ids),
                Notification.is_read.is_(False),
            )
            .update({"is_read": True, "read_at": now}, synchronize_session="fetch")
        )
        db.session.commit()
        return count

    @staticmethod
    def mark_all_read(user_id):
        """Mark all notifications for a user as read."""
        now = datetime.now(timezone.utc)
        count = (
            Notification.query.filter_by(user_id=user_id, is_read=False)
            .update({"is_read": True, "read_at": now}, synchronize_session="fetch")
        )
        db.session.commit()
        return count

    # ── Task lifecycle fan-out ────────────────────────────────────────────

    @staticmethod
    def notify_task_assigned(task_id, task_title, user_ids):
        """One TASK_ASSIGNED notification per assignee."""

        def build():
            return [
                Notification(
                    user_id=uid,
                    title="Task Assigned",
                    message=f"You have been assigned a new task: {task_title}",
                    type=TYPE_TASK_ASSIGNED,
                    data={"taskId": task_id},
                )
                for uid in user_ids
            ]

        return _fan_out(TYPE_TASK_ASSIGNED, task_id, build)

    @staticmethod
    def notify_task_completed(task_id, task_title):
        """One TASK_COMPLETED notification per ADMIN user."""

        def build():
            admin_ids = db.session.scalars(
                select(User.id).where(User.role == ROLE_ADMIN).order_by(User.id)
            ).all()
            return [
                Notification(
                    user_id=admin_id,
                    title="Task Completed",
                    message=f'Task "{task_title}" has been completed',
                    type=TYPE_TASK_COMPLETED,
                    data={"taskId": task_id},
                )
                for admin_id in admin_ids
            ]

        return _fan_out(TYPE_TASK_COMPLETED, task_id, build)


def _fan_out(kind, task_id, build):
    """Persist the notifications produced by ``build`` in their own commit.

    Returns the created rows, or an empty list if anything failed.
    """
    try:
        rows = build()
        if not rows:
            return []
        db.session.add_all(rows)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception(
            "Notification fan-out failed",
            extra={"notification_type": kind, "task_id": task_id},
        )
        return []

    logger.info(
        "Fanned out %d %s notification(s)", len(rows), kind,
        extra={"task_id": task_id},
    )
    return rows
