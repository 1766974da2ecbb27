#!/usr/bin/env python3
"""
Task Tracker — Demo Data Seed Script.

Creates the demo accounts used by the sample sign-in plus one project:
  - admin@taskmanager.com (ADMIN), developer1/developer2 (DEVELOPER)
  - "E-commerce Platform" with two modules and ten functionalities
  - one requirement, one of each resource kind
  - two assigned tasks and their TASK_ASSIGNED notifications

Usage:
    python scripts/seed_demo_data.py             # Reset tables, then seed
    python scripts/seed_demo_data.py --append    # Keep existing rows
    python scripts/seed_demo_data.py --verbose
"""

import argparse
import sys
from datetime import datetime, timedelta, timezone

sys.path.insert(0, ".")

from tasktracker import create_app
from tasktracker.models import db
from tasktracker.models.auth import ROLE_ADMIN, ROLE_DEVELOPER, User
from tasktracker.models.notification import TYPE_TASK_ASSIGNED, Notification
from tasktracker.models.project import (
    ApiEndpoint,
    BackendResource,
    DatabaseTable,
    FrontendResource,
    Functionality,
    Module,
    Project,
    Requirement,
)
from tasktracker.models.task import Task, TaskAssignment

_now = datetime.now(timezone.utc)


# ═══════════════════════════════════════════════════════════════════════════
# DATA
# ═══════════════════════════════════════════════════════════════════════════

USERS = [
    {"email": "admin@taskmanager.com", "name": "Admin User", "role": ROLE_ADMIN},
    {"email": "developer1@taskmanager.com", "name": "John Developer", "role": ROLE_DEVELOPER},
    {"email": "developer2@taskmanager.com", "name": "Jane Developer", "role": ROLE_DEVELOPER},
]

MODULES = [
    {
        "name": "User Management",
        "description": "User registration, authentication, and profile management",
        "status": "IN_PROGRESS",
        "priority": "HIGH",
        "functionalities": [
            ("User Authentication", "Login, logout, and session management", "BACKEND", "IN_PROGRESS"),
            ("User Profile", "User profile management and settings", "FRONTEND", "PLANNING"),
            ("User Validation", "Form validation and input sanitization", "FRONTEND", "PLANNING"),
            ("User Database Schema", "Database tables and relationships for users", "DATABASE", "COMPLETED"),
        ],
    },
    {
        "name": "Product Catalog",
        "description": "Product listing, search, and categorization",
        "status": "PLANNING",
        "priority": "MEDIUM",
        "functionalities": [
            ("Product Listing", "Display products with pagination and filtering", "FRONTEND", "PLANNING"),
            ("Product Search", "Search functionality with filters and sorting", "BACKEND", "PLANNING"),
            ("Product API Endpoints", "REST API for product CRUD operations", "API", "PLANNING"),
            ("Product Database Schema", "Database tables for products, categories, and inventory",
             "DATABASE", "PLANNING"),
            ("Payment Integration", "Integration with payment gateways", "INTEGRATION", "PLANNING"),
            ("Product Testing Suite", "Unit and integration tests for product features", "TESTING", "PLANNING"),
        ],
    },
]

USERS_TABLE_SCHEMA = {
    "columns": [
        {"name": "id", "type": "INTEGER", "primaryKey": True},
        {"name": "email", "type": "VARCHAR(255)", "unique": True},
        {"name": "name", "type": "VARCHAR(255)"},
        {"name": "created_at", "type": "TIMESTAMP"},
    ],
}


def _p(msg, verbose):
    if verbose:
        print(msg)


# ═══════════════════════════════════════════════════════════════════════════
# SEED
# ═══════════════════════════════════════════════════════════════════════════

def seed_users(verbose=False):
    """Upsert the three demo accounts by email."""
    users = {}
    for data in USERS:
        user = User.query.filter_by(email=data["email"]).first()
        if user is None:
            user = User(is_active=True, **data)
            db.session.add(user)
            _p(f"   👤 {data['email']} ({data['role']})", verbose)
        users[data["email"]] = user
    db.session.flush()
    print(f"   ✅ {len(users)} users")
    return users


def seed_project(admin, verbose=False):
    """Project with modules, functionalities, a requirement and resources."""
    project = Project(
        name="E-commerce Platform",
        description=(
            "A comprehensive e-commerce platform with user management, "
            "product catalog, and payment processing"
        ),
        status="IN_PROGRESS",
        progress=25,
        start_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        end_date=datetime(2024, 6, 30, tzinfo=timezone.utc),
        creator_id=admin.id,
    )
    db.session.add(project)
    db.session.flush()

    functionalities = {}
    for data in MODULES:
        module = Module(
            name=data["name"],
            description=data["description"],
            status=data["status"],
            priority=data["priority"],
            project_id=project.id,
            creator_id=admin.id,
        )
        module.functionalities = [
            Functionality(name=name, description=desc, type=ftype, status=status)
            for name, desc, ftype, status in data["functionalities"]
        ]
        db.session.add(module)
        db.session.flush()
        for f in module.functionalities:
            functionalities[f.name] = f
        _p(f"   📦 {module.name}: {len(module.functionalities)} functionalities", verbose)

    owned = {"project_id": project.id, "creator_id": admin.id}
    requirement = Requirement(
        title="Secure User Authentication",
        description="Implement secure JWT-based authentication",
        status="APPROVED",
        priority="HIGH",
        **owned,
    )
    login_page = FrontendResource(
        name="Login Page", type="PAGE", path="/auth/login",
        description="User login page with form validation", version="1.0.0", status="IN_PROGRESS", **owned,
    )
    auth_controller = BackendResource(
        name="AuthController", type="CONTROLLER", path="/controllers/auth.controller.ts",
        description="Authentication controller with login/logout endpoints", version="1.0.0",
        status="IN_PROGRESS", **owned,
    )
    db.session.add_all([requirement, login_page, auth_controller])
    db.session.flush()

    login_api = ApiEndpoint(
        name="User Login", method="POST", path="/api/auth/login",
        description="Authenticate user and return JWT token", status="IN_PROGRESS",
        backend_resource_id=auth_controller.id, **owned,
    )
    users_table = DatabaseTable(
        name="users", description="User accounts and profile information",
        schema=USERS_TABLE_SCHEMA, status="COMPLETED", **owned,
    )
    db.session.add_all([login_api, users_table])
    db.session.flush()
    print(f"   ✅ project '{project.name}' with {len(MODULES)} modules, "
          f"{len(functionalities)} functionalities, 1 requirement, 4 resources")

    return {
        "project": project,
        "modules": {m.name: m for m in project.modules},
        "functionalities": functionalities,
        "requirement": requirement,
        "login_page": login_page,
        "auth_controller": auth_controller,
        "login_api": login_api,
        "users_table": users_table,
    }


def seed_tasks(refs, admin, assignees, verbose=False):
    """Two tasks, one assignee each, plus the matching assignment notifications."""
    user_module = refs["modules"]["User Management"]
    tasks = [
        (
            Task(
                title="Implement JWT Authentication",
                description="Create JWT token generation and validation middleware",
                status="IN_PROGRESS",
                priority="HIGH",
                estimated_hours=8,
                start_date=_now,
                due_date=_now + timedelta(days=7),
                project_id=refs["project"].id,
                module_id=user_module.id,
                functionality_id=refs["functionalities"]["User Authentication"].id,
                requirement_id=refs["requirement"].id,
                backend_resource_id=refs["auth_controller"].id,
                api_endpoint_id=refs["login_api"].id,
                database_table_id=refs["users_table"].id,
            ),
            assignees[0],
        ),
        (
            Task(
                title="Create Login UI",
                description="Design and implement the login page with form validation",
                status="PENDING",
                priority="MEDIUM",
                estimated_hours=6,
                due_date=_now + timedelta(days=5),
                project_id=refs["project"].id,
                module_id=user_module.id,
                functionality_id=refs["functionalities"]["User Profile"].id,
                frontend_resource_id=refs["login_page"].id,
            ),
            assignees[1],
        ),
    ]
    for task, user in tasks:
        db.session.add(task)
        db.session.flush()
        db.session.add(TaskAssignment(task_id=task.id, user_id=user.id, assigned_by=admin.id))
        db.session.add(Notification(
            user_id=user.id,
            title="Task Assigned",
            message=f"You have been assigned a new task: {task.title}",
            type=TYPE_TASK_ASSIGNED,
            data={"taskId": task.id},
        ))
        _p(f"   📝 {task.title} → {user.email}", verbose)
    db.session.flush()
    print(f"   ✅ {len(tasks)} tasks with assignments and notifications")


def seed_all(app, append=False, verbose=False):
    with app.app_context():
        if not append:
            db.drop_all()
            db.create_all()
            print("   🧹 tables reset")

        users = seed_users(verbose)
        admin = users["admin@taskmanager.com"]
        refs = seed_project(admin, verbose)
        seed_tasks(
            refs,
            admin,
            [users["developer1@taskmanager.com"], users["developer2@taskmanager.com"]],
            verbose,
        )
        db.session.commit()

        print(f"\n{'=' * 60}")
        print("🎉 DEMO DATA SEED COMPLETE")
        print(f"{'=' * 60}\n")


def main():
    parser = argparse.ArgumentParser(description="Seed demo data")
    parser.add_argument("--append", action="store_true")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    app = create_app()
    print(f"🎯 DB: {app.config['SQLALCHEMY_DATABASE_URI']}\n")
    seed_all(app, append=args.append, verbose=args.verbose)


if __name__ == "__main__":
    main()
