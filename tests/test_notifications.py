"""
Tests — Notifications (service + API).

Covers:
    - list newest first, capped by NOTIFICATION_LIST_LIMIT
    - recipient isolation for list / mark-read / mark-all
    - unread count
    - PATCH /notifications validation and response shape
"""

from datetime import datetime, timedelta, timezone

import pytest

from tasktracker.models import db
from tasktracker.models.notification import TYPE_TASK_ASSIGNED, Notification
from tasktracker.services.notification import NotificationService


def _notify(user, n=1, start=None):
    start = start or datetime(2026, 5, 1, 8, 0, tzinfo=timezone.utc)
    rows = [
        Notification(
            user_id=user.id,
            title=f"Note {i}",
            message="msg",
            type=TYPE_TASK_ASSIGNED,
            data={"taskId": i},
            created_at=start + timedelta(minutes=i),
        )
        for i in range(n)
    ]
    db.session.add_all(rows)
    db.session.commit()
    return rows


# ═════════════════════════════════════════════════════════════════════════════
# Service
# ═════════════════════════════════════════════════════════════════════════════


class TestNotificationService:
    def test_list_newest_first_and_limited(self, developer):
        _notify(developer, n=55)
        items = NotificationService.list_for_user(developer.id)
        assert len(items) == 50
        assert items[0].title == "Note 54"
        assert items[-1].title == "Note 5"

    def test_list_respects_configured_limit(self, app, developer):
        _notify(developer, n=5)
        app.config["NOTIFICATION_LIST_LIMIT"] = 3
        try:
            assert len(NotificationService.list_for_user(developer.id)) == 3
        finally:
            app.config["NOTIFICATION_LIST_LIMIT"] = 50

    def test_mark_read_only_touches_own_rows(self, developer, other_developer):
        mine = _notify(developer, n=2)
        theirs = _notify(other_developer, n=1)
        ids = [mine[0].id, theirs[0].id]

        updated = NotificationService.mark_read(developer.id, ids)

        assert updated == 1
        db.session.expire_all()
        assert db.session.get(Notification, mine[0].id).is_read is True
        assert db.session.get(Notification, mine[0].id).read_at is not None
        assert db.session.get(Notification, mine[1].id).is_read is False
        assert db.session.get(Notification, theirs[0].id).is_read is False

    def test_mark_all_and_unread_count(self, developer, other_developer):
        _notify(developer, n=3)
        _notify(other_developer, n=2)
        assert NotificationService.unread_count(developer.id) == 3

        assert NotificationService.mark_all_read(developer.id) == 3
        assert NotificationService.unread_count(developer.id) == 0
        assert NotificationService.unread_count(other_developer.id) == 2

    def test_fan_out_with_no_admins_creates_nothing(self, developer):
        assert NotificationService.notify_task_completed(1, "Lonely") == []
        assert Notification.query.count() == 0


# ═════════════════════════════════════════════════════════════════════════════
# API
# ═════════════════════════════════════════════════════════════════════════════


class TestNotificationAPI:
    def test_requires_auth(self, client):
        res = client.get("/api/v1/notifications")
        assert res.status_code == 401
        assert res.get_json()["code"] == "ERR_UNAUTHENTICATED"

    def test_list_shape(self, client, developer, auth_headers):
        _notify(developer, n=2)
        res = client.get("/api/v1/notifications", headers=auth_headers(developer))
        assert res.status_code == 200
        body = res.get_json()
        assert [n["title"] for n in body] == ["Note 1", "Note 0"]
        assert body[0]["isRead"] is False
        assert body[0]["data"] == {"taskId": 1}
        assert body[0]["type"] == "TASK_ASSIGNED"

    def test_patch_ids(self, client, developer, auth_headers):
        rows = _notify(developer, n=2)
        res = client.patch(
            "/api/v1/notifications",
            json={"notificationIds": [rows[0].id]},
            headers=auth_headers(developer),
        )
        assert res.status_code == 200
        assert res.get_json() == {"message": "Notifications updated successfully", "updated": 1}

        count = client.get("/api/v1/notifications/unread-count", headers=auth_headers(developer))
        assert count.get_json() == {"unread": 1}

    def test_patch_mark_all(self, client, developer, auth_headers):
        _notify(developer, n=4)
        res = client.patch(
            "/api/v1/notifications", json={"markAllAsRead": True}, headers=auth_headers(developer),
        )
        assert res.status_code == 200
        assert res.get_json()["updated"] == 4

    @pytest.mark.parametrize("payload", [{}, {"notificationIds": "1,2"}, {"markAllAsRead": False}])
    def test_patch_requires_ids_or_mark_all(self, client, developer, auth_headers, payload):
        res = client.patch("/api/v1/notifications", json=payload, headers=auth_headers(developer))
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_REQUIRED"
