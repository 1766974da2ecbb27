"""
Auth models — users and their platform role.

A user is created on sign-up (or by the seed script) as a DEVELOPER and is
only promoted/demoted through the admin role-change operation. Users are
never hard-deleted; ``is_active`` gates sign-in instead.
"""

from datetime import datetime, timezone

from tasktracker.models import db, iso

ROLE_ADMIN = "ADMIN"
ROLE_DEVELOPER = "DEVELOPER"
USER_ROLES = (ROLE_ADMIN, ROLE_DEVELOPER)


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(320), unique=True, nullable=False, index=True)
    name = db.Column(db.String(200))
    role = db.Column(db.String(20), nullable=False, default=ROLE_DEVELOPER)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    assignments = db.relationship(
        "TaskAssignment", back_populates="user", lazy="dynamic",
        foreign_keys="TaskAssignment.user_id", passive_deletes=True,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_summary(self) -> dict:
        """Compact form embedded in tasks, assignments and projects."""
        return {"id": self.id, "name": self.name, "email": self.email}

    def to_dict(self, include_counts=False) -> dict:
        d = {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "isActive": self.is_active,
            "createdAt": iso(self.created_at),
        }
        if include_counts:
            d["assignedTaskCount"] = self.assignments.count()
        return d

    def __repr__(self):
        return f"<User {self.id}: {self.email} ({self.role})>"
