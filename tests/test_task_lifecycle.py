"""
Tests — Task Lifecycle Service.

Covers:
    - Create: admin-only, required fields, assignments + TASK_ASSIGNED fan-out
    - Create atomicity: dangling project / user ids leave nothing behind
    - Update: admin or assignee, validation before mutation
    - Status side effects: completed_at set/cleared, TASK_COMPLETED per admin
    - Fan-out failure isolation
    - Delete: admin-only, cascade of assignments and time logs
    - List filters
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from tasktracker.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from tasktracker.core.principal import Principal
from tasktracker.models import as_utc, db
from tasktracker.models.auth import ROLE_ADMIN
from tasktracker.models.notification import TYPE_TASK_ASSIGNED, TYPE_TASK_COMPLETED, Notification
from tasktracker.models.task import Task, TaskAssignment, TaskTimeLog
from tasktracker.services import notification as notification_module
from tasktracker.services import task_lifecycle
from tasktracker.services.task_lifecycle import (
    apply_status_change,
    create_task,
    delete_task,
    get_task,
    list_tasks,
    update_task,
)


def _as_admin(user):
    return Principal.for_user(user)


def _new_task(admin, project, **fields):
    data = {"title": "Implement JWT Authentication", "projectId": project.id}
    data.update(fields)
    return create_task(data, _as_admin(admin))


# ═════════════════════════════════════════════════════════════════════════════
# Create
# ═════════════════════════════════════════════════════════════════════════════


class TestCreateTask:
    def test_create_defaults(self, admin, project):
        task = _new_task(admin, project, description="JWT based auth")
        assert task.id is not None
        assert task.status == "PENDING"
        assert task.priority == "MEDIUM"
        assert task.completed_at is None
        assert task.actual_hours == 0
        assert task.project_id == project.id

    def test_create_with_assignees_notifies_each(self, admin, project, developer, other_developer):
        task = _new_task(admin, project, assignedUserIds=[developer.id, other_developer.id])

        assignments = TaskAssignment.query.filter_by(task_id=task.id).all()
        assert sorted(a.user_id for a in assignments) == sorted([developer.id, other_developer.id])
        assert all(a.assigned_by == admin.id for a in assignments)

        notes = Notification.query.filter_by(type=TYPE_TASK_ASSIGNED).all()
        assert sorted(n.user_id for n in notes) == sorted([developer.id, other_developer.id])
        for n in notes:
            assert n.title == "Task Assigned"
            assert n.message == "You have been assigned a new task: Implement JWT Authentication"
            assert n.data == {"taskId": task.id}
            assert n.is_read is False

    def test_duplicate_assignee_ids_collapse(self, admin, project, developer):
        task = _new_task(admin, project, assignedUserIds=[developer.id, developer.id, str(developer.id)])
        assert TaskAssignment.query.filter_by(task_id=task.id).count() == 1
        assert Notification.query.count() == 1

    def test_developer_cannot_create(self, project, developer):
        with pytest.raises(ForbiddenError):
            create_task({"title": "x", "projectId": project.id}, Principal.for_user(developer))
        assert Task.query.count() == 0

    @pytest.mark.parametrize("payload", [
        {"projectId": 1},
        {"title": "   ", "projectId": 1},
        {"title": "No project"},
        {"title": "Zero project", "projectId": 0},
    ])
    def test_missing_required_fields(self, admin, payload):
        with pytest.raises(ValidationError) as exc:
            create_task(payload, _as_admin(admin))
        assert str(exc.value) == "Task title and project ID are required"

    def test_invalid_priority(self, admin, project):
        with pytest.raises(ValidationError):
            _new_task(admin, project, priority="CRITICAL")

    def test_estimated_hours_coerced(self, admin, project):
        task = _new_task(admin, project, estimatedHours="8")
        assert task.estimated_hours == 8

    def test_dangling_project_fails_atomically(self, admin):
        with pytest.raises(IntegrityError):
            create_task({"title": "Orphan", "projectId": 9999}, _as_admin(admin))
        assert Task.query.count() == 0

    def test_unknown_assignee_fails_whole_create(self, admin, project, developer):
        with pytest.raises(IntegrityError):
            _new_task(admin, project, assignedUserIds=[developer.id, 9999])
        assert Task.query.count() == 0
        assert TaskAssignment.query.count() == 0
        assert Notification.query.count() == 0

    def test_round_trip_read(self, admin, project, developer):
        due = "2026-12-01T09:00:00Z"
        created = _new_task(
            admin, project, priority="HIGH", estimatedHours=16, dueDate=due,
            assignedUserIds=[developer.id],
        )
        read = get_task(created.id, Principal.for_user(developer))
        d = read.to_dict()
        assert d["title"] == "Implement JWT Authentication"
        assert d["priority"] == "HIGH"
        assert d["estimatedHours"] == 16
        assert d["dueDate"].startswith("2026-12-01T09:00:00")
        assert d["project"] == {"id": project.id, "name": "E-commerce Platform"}
        assert [a["userId"] for a in d["assignments"]] == [developer.id]
        assert d["timeLogs"] == []


# ═════════════════════════════════════════════════════════════════════════════
# Update
# ═════════════════════════════════════════════════════════════════════════════


class TestUpdateTask:
    def test_assignee_can_update(self, admin, project, developer):
        task = _new_task(admin, project, assignedUserIds=[developer.id])
        updated = update_task(task.id, {"title": "Renamed", "priority": "URGENT"}, Principal.for_user(developer))
        assert updated.title == "Renamed"
        assert updated.priority == "URGENT"

    def test_non_assignee_forbidden_and_unchanged(self, admin, project, developer, other_developer):
        task = _new_task(admin, project, assignedUserIds=[developer.id])
        with pytest.raises(ForbiddenError):
            update_task(task.id, {"title": "Hijack", "status": "COMPLETED"}, Principal.for_user(other_developer))
        db.session.expire_all()
        fresh = db.session.get(Task, task.id)
        assert fresh.title == "Implement JWT Authentication"
        assert fresh.status == "PENDING"
        assert fresh.completed_at is None

    def test_admin_can_update_without_assignment(self, admin, project):
        task = _new_task(admin, project)
        updated = update_task(task.id, {"status": "IN_PROGRESS"}, _as_admin(admin))
        assert updated.status == "IN_PROGRESS"

    def test_unknown_task(self, admin):
        with pytest.raises(NotFoundError):
            update_task(12345, {"title": "x"}, _as_admin(admin))

    def test_invalid_status_rejected_before_mutation(self, admin, project):
        task = _new_task(admin, project)
        with pytest.raises(ValidationError):
            update_task(task.id, {"title": "Changed", "status": "DONE"}, _as_admin(admin))
        db.session.expire_all()
        assert db.session.get(Task, task.id).title == "Implement JWT Authentication"

    def test_empty_title_ignored(self, admin, project):
        task = _new_task(admin, project)
        updated = update_task(task.id, {"title": ""}, _as_admin(admin))
        assert updated.title == "Implement JWT Authentication"

    def test_description_and_estimate_can_be_cleared(self, admin, project):
        task = _new_task(admin, project, description="text", estimatedHours=4)
        updated = update_task(task.id, {"description": None, "estimatedHours": None}, _as_admin(admin))
        assert updated.description is None
        assert updated.estimated_hours is None

    @pytest.mark.parametrize("description", [{"a": 1}, ["x"], 7])
    def test_non_string_description_rejected(self, admin, project, description):
        task = _new_task(admin, project, description="keep")
        with pytest.raises(ValidationError) as exc:
            update_task(task.id, {"description": description, "title": "Changed"}, _as_admin(admin))
        assert exc.value.details == {"description": "invalid"}
        db.session.expire_all()
        got = db.session.get(Task, task.id)
        assert (got.title, got.description) == ("Implement JWT Authentication", "keep")


# ═════════════════════════════════════════════════════════════════════════════
# Status side effects
# ═════════════════════════════════════════════════════════════════════════════


class TestStatusSideEffects:
    def test_pending_to_completed_by_assignee(self, admin, project, developer, make_user):
        second_admin = make_user("lead@taskmanager.com", role=ROLE_ADMIN)
        task = _new_task(admin, project, assignedUserIds=[developer.id])
        dev = Principal.for_user(developer)

        update_task(task.id, {"status": "IN_PROGRESS"}, dev)
        before = datetime.now(timezone.utc)
        done = update_task(task.id, {"status": "COMPLETED"}, dev)

        assert done.status == "COMPLETED"
        completed_at = as_utc(done.completed_at)
        assert completed_at is not None
        assert completed_at <= datetime.now(timezone.utc)
        assert completed_at >= before.replace(microsecond=0)

        notes = Notification.query.filter_by(type=TYPE_TASK_COMPLETED).all()
        assert sorted(n.user_id for n in notes) == sorted([admin.id, second_admin.id])
        assert all(n.data == {"taskId": task.id} for n in notes)
        assert notes[0].title == "Task Completed"
        assert notes[0].message == 'Task "Implement JWT Authentication" has been completed'

    def test_leaving_completed_clears_timestamp(self, admin, project):
        task = _new_task(admin, project)
        update_task(task.id, {"status": "COMPLETED"}, _as_admin(admin))
        reopened = update_task(task.id, {"status": "IN_PROGRESS"}, _as_admin(admin))
        assert reopened.completed_at is None

    def test_non_completion_transition_sends_nothing(self, admin, project):
        task = _new_task(admin, project)
        update_task(task.id, {"status": "DELAYED"}, _as_admin(admin))
        assert Notification.query.filter_by(type=TYPE_TASK_COMPLETED).count() == 0

    def test_apply_status_change_returns_follow_up(self, admin, project):
        task = _new_task(admin, project)
        stamp = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        follow_ups = apply_status_change(task, "COMPLETED", now=stamp)
        assert task.completed_at == stamp
        assert len(follow_ups) == 1
        db.session.commit()
        follow_ups[0]()
        assert Notification.query.filter_by(type=TYPE_TASK_COMPLETED, user_id=admin.id).count() == 1

    def test_transition_table_can_be_substituted(self, admin, project, monkeypatch):
        monkeypatch.setattr(task_lifecycle, "TASK_TRANSITIONS", {"PENDING": {"IN_PROGRESS"}})
        task = _new_task(admin, project)
        with pytest.raises(ValidationError):
            update_task(task.id, {"status": "COMPLETED"}, _as_admin(admin))
        assert update_task(task.id, {"status": "IN_PROGRESS"}, _as_admin(admin)).status == "IN_PROGRESS"

    def test_fan_out_failure_does_not_revert_completion(self, admin, project, monkeypatch):
        task = _new_task(admin, project)

        def _boom(**kwargs):
            raise RuntimeError("notification store down")

        monkeypatch.setattr(notification_module, "Notification", _boom)
        done = update_task(task.id, {"status": "COMPLETED"}, _as_admin(admin))
        assert done.status == "COMPLETED"
        monkeypatch.undo()

        db.session.expire_all()
        fresh = db.session.get(Task, task.id)
        assert fresh.status == "COMPLETED"
        assert fresh.completed_at is not None
        assert Notification.query.count() == 0


# ═════════════════════════════════════════════════════════════════════════════
# Delete / List
# ═════════════════════════════════════════════════════════════════════════════


class TestDeleteAndList:
    def test_developer_cannot_delete(self, admin, project, developer):
        task = _new_task(admin, project, assignedUserIds=[developer.id])
        with pytest.raises(ForbiddenError):
            delete_task(task.id, Principal.for_user(developer))
        assert get_task(task.id, Principal.for_user(developer)).id == task.id

    def test_delete_cascades(self, admin, project, developer):
        task = _new_task(admin, project, assignedUserIds=[developer.id])
        db.session.add(TaskTimeLog(
            task_id=task.id, user_id=developer.id,
            start_time=datetime(2026, 1, 1, 9, tzinfo=timezone.utc),
            end_time=datetime(2026, 1, 1, 10, tzinfo=timezone.utc),
            duration=60,
        ))
        db.session.commit()

        delete_task(task.id, _as_admin(admin))
        assert Task.query.count() == 0
        assert TaskAssignment.query.count() == 0
        assert TaskTimeLog.query.count() == 0

    def test_delete_missing(self, admin):
        with pytest.raises(NotFoundError):
            delete_task(404, _as_admin(admin))

    def test_list_filters(self, admin, project, developer, other_developer):
        first = _new_task(admin, project, title="First", assignedUserIds=[developer.id])
        second = _new_task(admin, project, title="Second", assignedUserIds=[other_developer.id])
        update_task(second.id, {"status": "IN_PROGRESS"}, _as_admin(admin))

        everything = list_tasks(_as_admin(admin))
        assert [t.id for t in everything] == [second.id, first.id]

        mine = list_tasks(Principal.for_user(developer), user_id="me")
        assert [t.id for t in mine] == [first.id]

        in_progress = list_tasks(_as_admin(admin), project_id=str(project.id), status="IN_PROGRESS")
        assert [t.id for t in in_progress] == [second.id]

    def test_list_rejects_bad_filters(self, admin):
        with pytest.raises(ValidationError):
            list_tasks(_as_admin(admin), project_id="abc")
        with pytest.raises(ValidationError):
            list_tasks(_as_admin(admin), status="DONE")
