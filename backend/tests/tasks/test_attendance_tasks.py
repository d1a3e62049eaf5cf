"""Tests for the attendance beat task and its Redis lock."""

from contextlib import contextmanager
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from tutorbook.core import task_lock as task_lock_module
from tutorbook.core.config import settings
from tutorbook.services.attendance_monitor import AttendanceCheckSummary
from tutorbook.tasks import attendance_tasks
from tutorbook.tasks.beat_schedule import get_beat_schedule


@contextmanager
def _fake_lock(acquired):
    yield acquired


@pytest.fixture
def fake_session():
    db = MagicMock(name="session")

    @contextmanager
    def _scope():
        yield db

    with patch.object(attendance_tasks, "session_scope", _scope):
        yield db


class TestRunAttendanceCheck:
    def test_runs_monitor_when_lock_acquired(self, fake_session):
        summary = AttendanceCheckSummary(checked=2, teacher_absent=1, fully_attended=1)
        with patch.object(attendance_tasks, "task_lock", return_value=_fake_lock(True)), patch.object(
            attendance_tasks, "AttendanceMonitorService"
        ) as service_cls:
            service_cls.return_value.run_check.return_value = summary
            result = attendance_tasks.run_attendance_check()

        service_cls.assert_called_once_with(fake_session)
        assert result["checked"] == 2
        assert result["teacher_absent"] == 1

    def test_skips_when_previous_tick_still_running(self, fake_session):
        with patch.object(attendance_tasks, "task_lock", return_value=_fake_lock(False)), patch.object(
            attendance_tasks, "AttendanceMonitorService"
        ) as service_cls:
            result = attendance_tasks.run_attendance_check()

        assert result == {"skipped": True}
        service_cls.assert_not_called()

    def test_task_delegates(self):
        with patch.object(attendance_tasks, "run_attendance_check", return_value={"checked": 0}):
            assert attendance_tasks.check_absent_bookings.run() == {"checked": 0}


class TestTaskLock:
    def test_acquire_uses_set_nx_with_ttl(self):
        client = MagicMock()
        client.set.return_value = True
        with patch.object(task_lock_module, "_get_sync_redis", return_value=client):
            token = task_lock_module.acquire_task_lock("attendance-check", ttl_s=55)

        key, stored = client.set.call_args.args
        assert key == "tutorbook:lock:attendance-check"
        assert stored == token
        assert client.set.call_args.kwargs == {"nx": True, "ex": 55}

    def test_held_lock_is_not_acquired(self):
        client = MagicMock()
        client.set.return_value = None
        with patch.object(task_lock_module, "_get_sync_redis", return_value=client):
            assert task_lock_module.acquire_task_lock("attendance-check", ttl_s=55) is None

    def test_fails_open_without_redis(self):
        with patch.object(task_lock_module, "_get_sync_redis", return_value=None):
            assert task_lock_module.acquire_task_lock("attendance-check", ttl_s=55) is not None

    def test_fails_open_on_redis_error(self):
        client = MagicMock()
        client.set.side_effect = ConnectionError("reset")
        with patch.object(task_lock_module, "_get_sync_redis", return_value=client):
            assert task_lock_module.acquire_task_lock("attendance-check", ttl_s=55) is not None

    def test_release_is_scoped_to_owner_token(self):
        client = MagicMock()
        client.eval.return_value = 0
        with patch.object(task_lock_module, "_get_sync_redis", return_value=client):
            released = task_lock_module.release_task_lock("attendance-check", "stale-token")

        assert released is False
        script, numkeys, key, token = client.eval.call_args.args
        assert numkeys == 1
        assert key == "tutorbook:lock:attendance-check"
        assert token == "stale-token"
        assert 'redis.call("get", KEYS[1]) == ARGV[1]' in script
        client.delete.assert_not_called()

    def test_context_releases_only_when_acquired(self):
        client = MagicMock()
        client.set.return_value = True
        with patch.object(task_lock_module, "_get_sync_redis", return_value=client):
            with task_lock_module.task_lock("attendance-check", ttl_s=55) as acquired:
                assert acquired is True
        token = client.set.call_args.args[1]
        assert client.eval.call_args.args[2:] == ("tutorbook:lock:attendance-check", token)

        client.reset_mock()
        client.set.return_value = False
        with patch.object(task_lock_module, "_get_sync_redis", return_value=client):
            with task_lock_module.task_lock("attendance-check", ttl_s=55) as acquired:
                assert acquired is False
        client.eval.assert_not_called()


class TestTickTimeLimits:
    def test_task_is_killed_before_lock_expires(self):
        task = attendance_tasks.check_absent_bookings
        ttl = settings.attendance_lock_ttl_seconds

        assert task.time_limit < ttl
        assert task.soft_time_limit < task.time_limit


class TestBeatSchedule:
    def test_attendance_check_interval(self):
        schedule = get_beat_schedule("development")

        entry = schedule["check-absent-bookings"]
        assert entry["task"] == "tutorbook.tasks.attendance.check_absent_bookings"
        assert entry["schedule"] == timedelta(seconds=settings.attendance_check_interval_seconds)
        assert "disburse-previous-week" not in schedule

    def test_auto_disbursement_is_opt_in(self, monkeypatch):
        monkeypatch.setattr(settings, "auto_disbursement_enabled", True)

        schedule = get_beat_schedule("production")

        assert schedule["disburse-previous-week"]["task"] == "tutorbook.tasks.payroll.disburse_previous_week"
        assert schedule["check-absent-bookings"]["options"]["queue"] == "attendance"
