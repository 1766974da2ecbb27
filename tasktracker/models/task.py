"""
Task domain models.

Models:
    - Task: unit of trackable work (status, priority, estimates, links)
    - TaskAssignment: many-to-many Task ↔ User, grants mutation rights
    - TaskTimeLog: immutable work session; feeds Task.actual_hours

Invariants:
    - completed_at is set iff the last applied status transition entered
      COMPLETED (see services.task_lifecycle.apply_status_change).
    - actual_hours is a materialized aggregate of the task's time logs and is
      only written by services.time_tracking.
"""

from datetime import datetime, timezone

from tasktracker.models import db, iso

# ── Constants ────────────────────────────────────────────────────────────────

STATUS_PENDING = "PENDING"
STATUS_IN_PROGRESS = "IN_PROGRESS"
STATUS_DELAYED = "DELAYED"
STATUS_COMPLETED = "COMPLETED"
STATUS_CANCELLED = "CANCELLED"

TASK_STATUSES = (STATUS_PENDING, STATUS_IN_PROGRESS, STATUS_DELAYED, STATUS_COMPLETED, STATUS_CANCELLED)
TASK_PRIORITIES = ("LOW", "MEDIUM", "HIGH", "URGENT")
DEFAULT_PRIORITY = "MEDIUM"

# Optional categorization links: request field → column
TASK_LINK_FIELDS = {
    "moduleId": "module_id",
    "functionalityId": "functionality_id",
    "requirementId": "requirement_id",
    "frontendResourceId": "frontend_resource_id",
    "backendResourceId": "backend_resource_id",
    "apiEndpointId": "api_endpoint_id",
    "databaseTableId": "database_table_id",
}


def _utcnow():
    return datetime.now(timezone.utc)


def _summary(obj):
    return obj.to_summary() if obj is not None else None


class Task(db.Model):
    __tablename__ = "tasks"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING, index=True)
    priority = db.Column(db.String(20), nullable=False, default=DEFAULT_PRIORITY)
    estimated_hours = db.Column(db.Integer, nullable=True)
    actual_hours = db.Column(db.Integer, nullable=False, default=0, comment="round(sum(time_logs.duration) / 60)")
    start_date = db.Column(db.DateTime(timezone=True))
    due_date = db.Column(db.DateTime(timezone=True))
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    project_id = db.Column(db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    module_id = db.Column(db.Integer, db.ForeignKey("modules.id", ondelete="SET NULL"), nullable=True, index=True)
    functionality_id = db.Column(
        db.Integer, db.ForeignKey("functionalities.id", ondelete="SET NULL"), nullable=True,
    )
    requirement_id = db.Column(db.Integer, db.ForeignKey("requirements.id", ondelete="SET NULL"), nullable=True)
    frontend_resource_id = db.Column(
        db.Integer, db.ForeignKey("frontend_resources.id", ondelete="SET NULL"), nullable=True,
    )
    backend_resource_id = db.Column(
        db.Integer, db.ForeignKey("backend_resources.id", ondelete="SET NULL"), nullable=True,
    )
    api_endpoint_id = db.Column(db.Integer, db.ForeignKey("api_endpoints.id", ondelete="SET NULL"), nullable=True)
    database_table_id = db.Column(
        db.Integer, db.ForeignKey("database_tables.id", ondelete="SET NULL"), nullable=True,
    )

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    project = db.relationship("Project", back_populates="tasks")
    module = db.relationship("Module", back_populates="tasks")
    functionality = db.relationship("Functionality")
    requirement = db.relationship("Requirement")
    frontend_resource = db.relationship("FrontendResource")
    backend_resource = db.relationship("BackendResource")
    api_endpoint = db.relationship("ApiEndpoint")
    database_table = db.relationship("DatabaseTable")

    assignments = db.relationship(
        "TaskAssignment", back_populates="task", order_by="TaskAssignment.id",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    time_logs = db.relationship(
        "TaskTimeLog", back_populates="task",
        order_by=lambda: (TaskTimeLog.start_time.desc(), TaskTimeLog.id.desc()),
        cascade="all, delete-orphan", passive_deletes=True,
    )

    def is_assigned_to(self, user_id) -> bool:
        return any(a.user_id == user_id for a in self.assignments)

    def to_dict(self, include_time_logs=True):
        d = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "estimatedHours": self.estimated_hours,
            "actualHours": self.actual_hours,
            "startDate": iso(self.start_date),
            "dueDate": iso(self.due_date),
            "completedAt": iso(self.completed_at),
            "projectId": self.project_id,
            "project": _summary(self.project),
            "module": _summary(self.module),
            "functionality": _summary(self.functionality),
            "requirement": _summary(self.requirement),
            "frontendResource": _summary(self.frontend_resource),
            "backendResource": _summary(self.backend_resource),
            "apiEndpoint": _summary(self.api_endpoint),
            "databaseTable": _summary(self.database_table),
            "assignments": [a.to_dict() for a in self.assignments],
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
        for field, column in TASK_LINK_FIELDS.items():
            d[field] = getattr(self, column)
        if include_time_logs:
            d["timeLogs"] = [log.to_dict() for log in self.time_logs]
        return d

    def __repr__(self):
        return f"<Task {self.id}: {self.title[:40]} [{self.status}]>"


class TaskAssignment(db.Model):
    __tablename__ = "task_assignments"

    id = db.Column(db.Integer, primary_key=True)
    task_id = db.Column(db.Integer, db.ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    assigned_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        db.UniqueConstraint("task_id", "user_id", name="uq_task_assignments_task_user"),
    )

    task = db.relationship("Task", back_populates="assignments")
    user = db.relationship("User", back_populates="assignments", foreign_keys=[user_id])

    def to_dict(self):
        return {
            "id": self.id,
            "taskId": self.task_id,
            "userId": self.user_id,
            "assignedBy": self.assigned_by,
            "assignedAt": iso(self.assigned_at),
            "user": _summary(self.user),
        }


class TaskTimeLog(db.Model):
    """One continuous work interval. Append-only: no update/delete path."""

    __tablename__ = "task_time_logs"

    id = db.Column(db.Integer, primary_key=True)
    task_id = db.Column(db.Integer, db.ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time = db.Column(db.DateTime(timezone=True), nullable=False)
    end_time = db.Column(db.DateTime(timezone=True), nullable=False)
    duration = db.Column(db.Integer, nullable=False, comment="minutes, round(end - start)")
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    task = db.relationship("Task", back_populates="time_logs")
    user = db.relationship("User")

    def to_dict(self):
        return {
            "id": self.id,
            "taskId": self.task_id,
            "userId": self.user_id,
            "startTime": iso(self.start_time),
            "endTime": iso(self.end_time),
            "duration": self.duration,
            "description": self.description,
            "createdAt": iso(self.created_at),
            "user": {"id": self.user.id, "name": self.user.name} if self.user else None,
        }
