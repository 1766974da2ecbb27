"""
Notification domain model.

Models:
    - Notification: in-app notification record with read tracking
"""

from datetime import datetime, timezone

from tasktracker.models import db, iso

# ── Constants ────────────────────────────────────────────────────────────────

TYPE_TASK_ASSIGNED = "TASK_ASSIGNED"
TYPE_TASK_COMPLETED = "TASK_COMPLETED"

NOTIFICATION_TYPES = {
    TYPE_TASK_ASSIGNED,
    TYPE_TASK_COMPLETED,
    "TASK_UPDATED",
    "COMMENT_ADDED",
    "DEADLINE_REMINDER",
    "PROJECT_UPDATE",
}


class Notification(db.Model):
    """
    In-app notification entity.

    One record per recipient per event.
    """

    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = db.Column(db.String(300), nullable=False)
    message = db.Column(db.Text, default="")
    type = db.Column(db.String(30), nullable=False)
    data = db.Column(db.JSON, nullable=True, comment="Opaque payload, e.g. {taskId}")

    # Read tracking
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    read_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)

    def mark_read(self):
        self.is_read = True
        self.read_at = datetime.now(timezone.utc)

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "message": self.message,
            "type": self.type,
            "data": self.data,
            "isRead": self.is_read,
            "readAt": iso(self.read_at),
            "createdAt": iso(self.created_at),
        }

    def __repr__(self):
        return f"<Notification {self.id}: {self.title[:40]}>"
