"""Tests for startup restoration and reconciliation."""

from datetime import date, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from easy_schedule.exceptions import StoreError
from easy_schedule.models import ScheduleAdjustment
from easy_schedule.models.notifications import (
    NotificationType,
    PendingNotification,
    RecordState,
    ScheduledNotificationRecord,
)
from easy_schedule.services.restoration import NotificationRestorer, classify_record

NOW = datetime(2024, 5, 15, 8, 0)


def make_record(notification_id, minutes_from_now, notification_type=NotificationType.EASY_SCHEDULE):
    return ScheduledNotificationRecord(
        notification_id=notification_id,
        notification_type=notification_type,
        scheduled_time=int((NOW + timedelta(minutes=minutes_from_now)).timestamp()),
        baby_id=1,
    )


def add_pending(backend, notification_id, minutes_from_now):
    backend.scheduled[notification_id] = PendingNotification(
        identifier=notification_id, fire_at=NOW + timedelta(minutes=minutes_from_now)
    )


@pytest.fixture
def restorer(backend, record_repo, reminder_scheduler, profile_provider, app_state_repo, adjustment_repo, settings, clock):
    return NotificationRestorer(
        backend,
        record_repo,
        reminder_scheduler,
        profile_provider,
        app_state_repo,
        adjustments=adjustment_repo,
        settings=settings,
        clock=clock,
    )


@pytest.fixture
def no_profile():
    provider = MagicMock()
    provider.get_active_baby_profile.return_value = None
    return provider


class TestClassifyRecord:

    @pytest.mark.parametrize("scheduled,minutes,expected", [
        (True, 30, RecordState.ACTIVE),
        (False, -30, RecordState.FIRED),
        (False, 30, RecordState.ORPHANED),
        (True, -30, RecordState.STALE),
    ])
    def test_states(self, scheduled, minutes, expected):
        record = make_record("n-1", minutes)
        ids = ["n-1"] if scheduled else ["other"]

        assert classify_record(record, ids, NOW) == expected


class TestReconcile:

    @pytest.mark.asyncio
    async def test_reconcile_all_states(self, restorer, backend, record_repo):
        for notification_id, minutes in (("active", 30), ("fired", -30), ("orphaned", 30), ("stale", -30)):
            record_repo.save(make_record(notification_id, minutes))
        add_pending(backend, "active", 30)
        add_pending(backend, "stale", -30)

        active = await restorer.reconcile(1, NotificationType.EASY_SCHEDULE)

        assert [r.notification_id for r in active] == ["active"]
        assert [r.notification_id for r in record_repo.list_records(1)] == ["active"]
        assert backend.cancel_calls == ["stale"]
        assert "active" in backend.scheduled

    @pytest.mark.asyncio
    async def test_reconcile_empty_skips_service(self, restorer, backend):
        backend.list_scheduled = AsyncMock()

        assert await restorer.reconcile(1, NotificationType.FEEDING) == []
        backend.list_scheduled.assert_not_called()

    @pytest.mark.asyncio
    async def test_reconcile_only_touches_type(self, restorer, record_repo):
        record_repo.save(make_record("easy", 30))
        record_repo.save(make_record("feed", 30, NotificationType.FEEDING))

        await restorer.reconcile(1, NotificationType.FEEDING)

        assert record_repo.get_by_notification_id("easy") is not None
        assert record_repo.get_by_notification_id("feed") is None


class TestRestoreFeedingReminder:

    @pytest.mark.asyncio
    async def test_active_feeding_kept(self, restorer, backend, record_repo):
        record_repo.save(make_record("feed", 90, NotificationType.FEEDING))
        add_pending(backend, "feed", 90)

        record = await restorer.restore_feeding_reminder()

        assert record.notification_id == "feed"

    @pytest.mark.asyncio
    async def test_fired_feeding_removed(self, restorer, record_repo):
        record_repo.save(make_record("feed", -90, NotificationType.FEEDING))

        assert await restorer.restore_feeding_reminder() is None
        assert record_repo.count() == 0

    @pytest.mark.asyncio
    async def test_no_profile(self, backend, record_repo, reminder_scheduler, no_profile, app_state_repo, clock):
        restorer = NotificationRestorer(backend, record_repo, reminder_scheduler, no_profile, app_state_repo, clock=clock)

        assert await restorer.restore_feeding_reminder() is None

    @pytest.mark.asyncio
    async def test_service_failure_swallowed(self, restorer, backend, record_repo):
        record_repo.save(make_record("feed", 90, NotificationType.FEEDING))
        backend.list_scheduled = AsyncMock(side_effect=RuntimeError("service unavailable"))

        assert await restorer.restore_feeding_reminder() is None


class TestRestoreEasyReminders:

    @pytest.mark.asyncio
    async def test_disabled_is_noop(self, restorer, backend, record_repo):
        assert await restorer.restore_easy_reminders() is None
        assert backend.call_count == 0
        assert backend.permission_requests == 0

    @pytest.mark.asyncio
    async def test_enabled_rederives_full_set(self, restorer, app_state_repo, backend, record_repo):
        app_state_repo.set_reminder_preferences(True, advance_minutes=5)
        record_repo.save(make_record("old-orphan", 30))

        result = await restorer.restore_easy_reminders()

        assert result.scheduled_count == 21
        assert record_repo.get_by_notification_id("old-orphan") is None
        assert record_repo.count(notification_type=NotificationType.EASY_SCHEDULE) == 21

    @pytest.mark.asyncio
    async def test_repeated_restoration_no_duplicates(self, restorer, app_state_repo, backend, record_repo):
        app_state_repo.set_reminder_preferences(True)

        await restorer.restore_easy_reminders()
        await restorer.restore_easy_reminders()

        assert len(backend.scheduled) == 21
        assert record_repo.count() == 21

    @pytest.mark.asyncio
    async def test_uses_preferred_advance(self, restorer, app_state_repo, record_repo):
        app_state_repo.set_reminder_preferences(True, advance_minutes=15)

        await restorer.restore_easy_reminders()

        assert record_repo.list_records(1)[0].scheduled_at == datetime(2024, 5, 15, 8, 45)

    @pytest.mark.asyncio
    async def test_permission_denied_not_raised(self, restorer, app_state_repo, backend):
        app_state_repo.set_reminder_preferences(True)
        backend.permitted = False

        result = await restorer.restore_easy_reminders()

        assert result.permission_denied
        assert backend.schedule_calls == []

    @pytest.mark.asyncio
    async def test_errors_swallowed(self, restorer, app_state_repo, reminder_scheduler):
        app_state_repo.set_reminder_preferences(True)
        reminder_scheduler.reschedule_all = AsyncMock(side_effect=StoreError("disk full"))

        assert await restorer.restore_easy_reminders() is None


class TestRunStartupTasks:

    @pytest.mark.asyncio
    async def test_runs_all_steps(self, restorer, app_state_repo, adjustment_repo, record_repo):
        app_state_repo.set_reminder_preferences(True)
        adjustment_repo.save(ScheduleAdjustment(1, (date(2024, 5, 15) - timedelta(days=8)).isoformat(), 2, "09:00", "10:00"))

        report = await restorer.run_startup_tasks()

        assert report.success
        assert report.adjustments_deleted == 1
        assert report.feeding_record is None
        assert report.easy_result.scheduled_count == 21

    @pytest.mark.asyncio
    async def test_cleanup_failure_does_not_stop_restoration(self, restorer, app_state_repo, adjustment_repo):
        app_state_repo.set_reminder_preferences(True)
        adjustment_repo.cleanup_stale = MagicMock(side_effect=StoreError("locked"))

        report = await restorer.run_startup_tasks()

        assert not report.success
        assert report.easy_result.scheduled_count == 21
        assert report.to_dict()["errors"]

    @pytest.mark.asyncio
    async def test_easy_failure_reported(self, restorer, app_state_repo, reminder_scheduler):
        app_state_repo.set_reminder_preferences(True)
        reminder_scheduler.reschedule_all = AsyncMock(side_effect=StoreError("disk full"))

        report = await restorer.run_startup_tasks()

        assert not report.success
        assert report.easy_result is None
        assert any(error.startswith("restore_easy") for error in report.errors)

    @pytest.mark.asyncio
    async def test_feeding_failure_reported(self, restorer, backend, record_repo):
        record_repo.save(make_record("feed", 90, NotificationType.FEEDING))
        backend.list_scheduled = AsyncMock(side_effect=RuntimeError("service unavailable"))

        report = await restorer.run_startup_tasks()

        assert not report.success
        assert report.feeding_record is None
        assert report.errors == ["restore_feeding: service unavailable"]
