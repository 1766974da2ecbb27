"""
Project domain models — Project → Module → Functionality hierarchy plus the
project-owned categorization records (requirements and resources).

Ownership:
    - Project strictly owns Modules, Requirements and Resources (CASCADE).
    - Module strictly owns Functionalities (CASCADE).
    - Tasks reference Modules/Functionalities/Requirements/Resources through
      nullable links that are SET NULL when the referenced row goes away.
"""

from datetime import datetime, timezone

from tasktracker.models import db, iso

# ── Constants ────────────────────────────────────────────────────────────────

PROJECT_STATUSES = ("PLANNING", "IN_PROGRESS", "ON_HOLD", "COMPLETED", "CANCELLED")
MODULE_STATUSES = ("PLANNING", "IN_PROGRESS", "TESTING", "COMPLETED", "ON_HOLD")
FUNCTIONALITY_TYPES = ("FRONTEND", "BACKEND", "API", "DATABASE", "INTEGRATION", "TESTING")
REQUIREMENT_STATUSES = ("DRAFT", "REVIEW", "APPROVED", "REJECTED", "IMPLEMENTED")


def _utcnow():
    return datetime.now(timezone.utc)


class Project(db.Model):
    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    status = db.Column(db.String(30), nullable=False, default="PLANNING")
    progress = db.Column(db.Integer, nullable=False, default=0, comment="0-100")
    start_date = db.Column(db.DateTime(timezone=True))
    end_date = db.Column(db.DateTime(timezone=True))
    creator_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        db.CheckConstraint("progress >= 0 AND progress <= 100", name="ck_projects_progress_range"),
    )

    creator = db.relationship("User", foreign_keys=[creator_id])
    modules = db.relationship(
        "Module", back_populates="project", lazy="dynamic",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    tasks = db.relationship(
        "Task", back_populates="project", lazy="dynamic",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    requirements = db.relationship("Requirement", lazy="dynamic", cascade="all, delete-orphan", passive_deletes=True)
    frontend_resources = db.relationship(
        "FrontendResource", lazy="dynamic", cascade="all, delete-orphan", passive_deletes=True,
    )
    backend_resources = db.relationship(
        "BackendResource", lazy="dynamic", cascade="all, delete-orphan", passive_deletes=True,
    )
    api_endpoints = db.relationship("ApiEndpoint", lazy="dynamic", cascade="all, delete-orphan", passive_deletes=True)
    database_tables = db.relationship(
        "DatabaseTable", lazy="dynamic", cascade="all, delete-orphan", passive_deletes=True,
    )

    def to_summary(self):
        return {"id": self.id, "name": self.name}

    def to_dict(self, include_modules=False):
        d = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status,
            "progress": self.progress,
            "startDate": iso(self.start_date),
            "endDate": iso(self.end_date),
            "creatorId": self.creator_id,
            "creator": self.creator.to_summary() if self.creator else None,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
        if include_modules:
            d["modules"] = [
                m.to_dict(include_functionalities=True)
                for m in self.modules.order_by(Module.created_at.desc(), Module.id.desc())
            ]
            d["counts"] = {
                "tasks": self.tasks.count(),
                "requirements": self.requirements.count(),
                "frontendResources": self.frontend_resources.count(),
                "backendResources": self.backend_resources.count(),
                "apiEndpoints": self.api_endpoints.count(),
                "databaseTables": self.database_tables.count(),
            }
        return d

    def __repr__(self):
        return f"<Project {self.id}: {self.name}>"


class Module(db.Model):
    __tablename__ = "modules"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    status = db.Column(db.String(30), nullable=False, default="PLANNING")
    priority = db.Column(db.String(20), nullable=False, default="MEDIUM")
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    creator_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    project = db.relationship("Project", back_populates="modules")
    creator = db.relationship("User", foreign_keys=[creator_id])
    functionalities = db.relationship(
        "Functionality", back_populates="module", order_by="Functionality.id",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    tasks = db.relationship("Task", back_populates="module", lazy="dynamic", passive_deletes=True)

    def to_summary(self):
        return {"id": self.id, "name": self.name}

    def to_dict(self, include_functionalities=False):
        d = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "projectId": self.project_id,
            "project": self.project.to_summary() if self.project else None,
            "creatorId": self.creator_id,
            "creator": self.creator.to_summary() if self.creator else None,
            "taskCount": self.tasks.count(),
            "createdAt": iso(self.created_at),
        }
        if include_functionalities:
            d["functionalities"] = [f.to_dict() for f in self.functionalities]
        return d

    def __repr__(self):
        return f"<Module {self.id}: {self.name}>"


class Functionality(db.Model):
    __tablename__ = "functionalities"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    type = db.Column(db.String(20), nullable=False, comment="FRONTEND | BACKEND | API | DATABASE | INTEGRATION | TESTING")
    status = db.Column(db.String(30), nullable=False, default="PLANNING")
    module_id = db.Column(db.Integer, db.ForeignKey("modules.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    module = db.relationship("Module", back_populates="functionalities")

    def to_summary(self):
        return {"id": self.id, "name": self.name, "type": self.type}

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "status": self.status,
            "moduleId": self.module_id,
        }


class Requirement(db.Model):
    __tablename__ = "requirements"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default="DRAFT")
    priority = db.Column(db.String(20), nullable=False, default="MEDIUM")
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    creator_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    def to_summary(self):
        return {"id": self.id, "title": self.title}


# ── Resources (project-owned, referenced by tasks) ──────────────────────────


class FrontendResource(db.Model):
    __tablename__ = "frontend_resources"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    type = db.Column(db.String(30), nullable=False, default="PAGE", comment="PAGE | COMPONENT | LAYOUT | HOOK | ...")
    path = db.Column(db.String(500))
    description = db.Column(db.Text)
    version = db.Column(db.String(30))
    status = db.Column(db.String(30), nullable=False, default="PLANNING")
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    creator_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    def to_summary(self):
        return {"id": self.id, "name": self.name, "type": self.type}


class BackendResource(db.Model):
    __tablename__ = "backend_resources"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    type = db.Column(db.String(30), nullable=False, default="SERVICE", comment="CONTROLLER | SERVICE | MODEL | ...")
    path = db.Column(db.String(500))
    description = db.Column(db.Text)
    version = db.Column(db.String(30))
    status = db.Column(db.String(30), nullable=False, default="PLANNING")
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    creator_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    def to_summary(self):
        return {"id": self.id, "name": self.name, "type": self.type}


class ApiEndpoint(db.Model):
    __tablename__ = "api_endpoints"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    method = db.Column(db.String(10), nullable=False, default="GET")
    path = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text)
    status = db.Column(db.String(30), nullable=False, default="PLANNING")
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    backend_resource_id = db.Column(
        db.Integer, db.ForeignKey("backend_resources.id", ondelete="SET NULL"), nullable=True,
    )
    creator_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    def to_summary(self):
        return {"id": self.id, "name": self.name, "method": self.method, "path": self.path}


class DatabaseTable(db.Model):
    __tablename__ = "database_tables"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    schema = db.Column(db.JSON, default=dict, comment="Column layout as {columns: [...]}")
    status = db.Column(db.String(30), nullable=False, default="PLANNING")
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    creator_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    def to_summary(self):
        return {"id": self.id, "name": self.name}
