"""
Tests — Auth & Users API.

Covers:
    - signup: 201 with token, duplicate email 409, bad email 400
    - sample-login: redirect by role, unknown 404, inactive 403, disabled 404
    - /auth/me profile with assigned-task count
    - /users list and role change (ADMIN only)
"""

import pytest

from tasktracker.models import db
from tasktracker.models.auth import User
from tasktracker.models.task import Task, TaskAssignment
from tasktracker.services.jwt_service import decode_access_token


# ═════════════════════════════════════════════════════════════════════════════
# Sign-up
# ═════════════════════════════════════════════════════════════════════════════


class TestSignup:
    def test_signup_creates_developer(self, client):
        res = client.post("/api/v1/auth/signup", json={"name": "Ada", "email": "Ada@TaskManager.com"})
        assert res.status_code == 201
        body = res.get_json()
        assert body["user"]["email"] == "ada@taskmanager.com"
        assert body["user"]["role"] == "DEVELOPER"
        assert body["user"]["isActive"] is True
        assert decode_access_token(body["accessToken"])["sub"] == str(body["user"]["id"])

    def test_token_works_immediately(self, client):
        token = client.post(
            "/api/v1/auth/signup", json={"name": "Ada", "email": "ada@taskmanager.com"},
        ).get_json()["accessToken"]
        res = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 200
        assert res.get_json()["name"] == "Ada"

    def test_duplicate_email(self, client, developer):
        res = client.post("/api/v1/auth/signup", json={"name": "Copy", "email": "developer1@taskmanager.com"})
        assert res.status_code == 409
        assert res.get_json()["code"] == "ERR_CONFLICT_DUPLICATE"
        assert User.query.count() == 1

    @pytest.mark.parametrize("payload", [
        {"name": "No Email"},
        {"name": "Bad", "email": "not-an-email"},
        {"email": "nameless@taskmanager.com"},
    ])
    def test_invalid_payloads(self, client, payload):
        res = client.post("/api/v1/auth/signup", json=payload)
        assert res.status_code == 400
        assert User.query.count() == 0


# ═════════════════════════════════════════════════════════════════════════════
# Sample login
# ═════════════════════════════════════════════════════════════════════════════


class TestSampleLogin:
    def test_admin_redirect(self, client, admin):
        res = client.post("/api/v1/auth/sample-login", json={"email": "admin@taskmanager.com"})
        assert res.status_code == 200
        body = res.get_json()
        assert body["redirectUrl"] == "/admin/dashboard"
        assert body["user"]["id"] == admin.id
        assert decode_access_token(body["accessToken"])["role"] == "ADMIN"

    def test_developer_redirect(self, client, developer):
        res = client.post("/api/v1/auth/sample-login", json={"email": "developer1@taskmanager.com"})
        assert res.get_json()["redirectUrl"] == "/developer/dashboard"

    def test_unknown_email(self, client):
        res = client.post("/api/v1/auth/sample-login", json={"email": "nobody@taskmanager.com"})
        assert res.status_code == 404

    def test_inactive_user(self, client, make_user):
        make_user("gone@taskmanager.com", is_active=False)
        res = client.post("/api/v1/auth/sample-login", json={"email": "gone@taskmanager.com"})
        assert res.status_code == 403
        assert res.get_json()["error"] == "Account is inactive"

    def test_disabled(self, app, client, admin):
        app.config["SAMPLE_LOGIN_ENABLED"] = False
        try:
            res = client.post("/api/v1/auth/sample-login", json={"email": "admin@taskmanager.com"})
        finally:
            app.config["SAMPLE_LOGIN_ENABLED"] = True
        assert res.status_code == 404


# ═════════════════════════════════════════════════════════════════════════════
# Profile & user administration
# ═════════════════════════════════════════════════════════════════════════════


class TestMe:
    def test_me_includes_assigned_count(self, client, developer, project, auth_headers):
        task = Task(title="Create Login UI", project_id=project.id)
        db.session.add(task)
        db.session.flush()
        db.session.add(TaskAssignment(task_id=task.id, user_id=developer.id))
        db.session.commit()

        res = client.get("/api/v1/auth/me", headers=auth_headers(developer))
        assert res.status_code == 200
        body = res.get_json()
        assert body["email"] == "developer1@taskmanager.com"
        assert body["assignedTaskCount"] == 1

    def test_me_requires_auth(self, client):
        assert client.get("/api/v1/auth/me").status_code == 401


class TestUsers:
    def test_admin_lists_active_users(self, client, admin, developer, make_user, auth_headers):
        make_user("inactive@taskmanager.com", is_active=False)
        res = client.get("/api/v1/users", headers=auth_headers(admin))
        assert res.status_code == 200
        emails = {u["email"] for u in res.get_json()}
        assert emails == {"admin@taskmanager.com", "developer1@taskmanager.com"}
        assert all("assignedTaskCount" in u for u in res.get_json())

    def test_developer_cannot_list(self, client, developer, auth_headers):
        assert client.get("/api/v1/users", headers=auth_headers(developer)).status_code == 403

    def test_change_role(self, client, admin, developer, auth_headers):
        res = client.patch(
            "/api/v1/users", json={"userId": developer.id, "role": "ADMIN"}, headers=auth_headers(admin),
        )
        assert res.status_code == 200
        assert res.get_json()["role"] == "ADMIN"

        # The promoted developer can now reach admin-only endpoints with the old token
        assert client.get("/api/v1/users", headers=auth_headers(developer)).status_code == 200

    @pytest.mark.parametrize("payload, status", [
        ({"role": "ADMIN"}, 400),
        ({"userId": 1}, 400),
        ({"userId": 1, "role": "OWNER"}, 400),
        ({"userId": 999, "role": "ADMIN"}, 404),
    ])
    def test_change_role_errors(self, client, admin, auth_headers, payload, status):
        res = client.patch("/api/v1/users", json=payload, headers=auth_headers(admin))
        assert res.status_code == status

    def test_developer_cannot_change_roles(self, client, developer, other_developer, auth_headers):
        res = client.patch(
            "/api/v1/users",
            json={"userId": other_developer.id, "role": "ADMIN"},
            headers=auth_headers(developer),
        )
        assert res.status_code == 403
        db.session.expire_all()
        assert db.session.get(User, other_developer.id).role == "DEVELOPER"
