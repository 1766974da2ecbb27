"""
Shared pytest fixtures for the Task Tracker test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - make_user / admin / developer / other_developer: User rows
    - project: Pre-created Project owned by ``admin``
    - auth_headers: Bearer headers for a user
"""

import pytest

from tasktracker import create_app
from tasktracker.models import db as _db
from tasktracker.models.auth import ROLE_ADMIN, ROLE_DEVELOPER, User
from tasktracker.models.project import Project
from tasktracker.services.jwt_service import generate_access_token


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Users ────────────────────────────────────────────────────────────────


@pytest.fixture()
def make_user():
    """Factory: make_user("dev@taskmanager.com", role=..., is_active=...)."""
    counter = {"n": 0}

    def _make(email=None, *, name=None, role=ROLE_DEVELOPER, is_active=True):
        counter["n"] += 1
        email = email or f"user{counter['n']}@taskmanager.com"
        user = User(email=email, name=name or email.split("@")[0], role=role, is_active=is_active)
        _db.session.add(user)
        _db.session.commit()
        return user

    return _make


@pytest.fixture()
def admin(make_user):
    return make_user("admin@taskmanager.com", name="Admin User", role=ROLE_ADMIN)


@pytest.fixture()
def developer(make_user):
    return make_user("developer1@taskmanager.com", name="John Developer")


@pytest.fixture()
def other_developer(make_user):
    return make_user("developer2@taskmanager.com", name="Jane Developer")


@pytest.fixture()
def auth_headers():
    """Return a function building Authorization headers for a user."""

    def _headers(user):
        return {"Authorization": f"Bearer {generate_access_token(user.id, user.role)}"}

    return _headers


# ── Domain fixtures ──────────────────────────────────────────────────────


@pytest.fixture()
def project(admin):
    """A project owned by the admin user."""
    proj = Project(name="E-commerce Platform", description="Online shop", creator_id=admin.id)
    _db.session.add(proj)
    _db.session.commit()
    return proj
