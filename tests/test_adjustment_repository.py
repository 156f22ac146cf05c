"""Tests for AdjustmentRepository."""

import sqlite3
from datetime import date, timedelta
from unittest.mock import patch

import pytest

from easy_schedule.exceptions import StoreError
from easy_schedule.models import ScheduleAdjustment

TODAY = date(2024, 5, 15)


def make_adjustment(order=2, start="09:15", end="10:45", day="2024-05-15", baby_id=1):
    return ScheduleAdjustment(baby_id=baby_id, adjustment_date=day, item_order=order, start_time=start, end_time=end)


class TestAdjustmentRepositoryInit:

    def test_creates_table(self, adjustment_repo):
        with adjustment_repo._get_connection() as conn:
            result = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name='easy_schedule_adjustments'"
            ).fetchone()
        assert result is not None


class TestSaveAndGet:

    def test_get_empty(self, adjustment_repo):
        assert adjustment_repo.get(1, "2024-05-15") == []

    def test_save_assigns_id(self, adjustment_repo):
        saved = adjustment_repo.save(make_adjustment())

        assert saved.id is not None
        assert saved.created_at is not None

        stored = adjustment_repo.get(1, "2024-05-15")
        assert len(stored) == 1
        assert stored[0].start_time == "09:15"
        assert stored[0].duration_minutes == 90

    def test_save_replaces_same_key(self, adjustment_repo):
        adjustment_repo.save(make_adjustment(start="09:15", end="10:45"))
        adjustment_repo.save(make_adjustment(start="09:30", end="11:00"))

        stored = adjustment_repo.get(1, "2024-05-15")
        assert len(stored) == 1
        assert stored[0].start_time == "09:30"

    def test_other_orders_untouched(self, adjustment_repo):
        adjustment_repo.save(make_adjustment(order=1, start="07:40", end="09:00"))
        adjustment_repo.save(make_adjustment(order=2))
        adjustment_repo.save(make_adjustment(order=2, start="09:20", end="11:00"))

        stored = adjustment_repo.get(1, "2024-05-15")
        assert [a.item_order for a in stored] == [1, 2]
        assert stored[0].start_time == "07:40"

    def test_scoped_by_baby_and_date(self, adjustment_repo):
        adjustment_repo.save(make_adjustment(baby_id=1))
        adjustment_repo.save(make_adjustment(baby_id=2))
        adjustment_repo.save(make_adjustment(day="2024-05-16"))

        assert len(adjustment_repo.get(1, "2024-05-15")) == 1
        assert len(adjustment_repo.get(2, "2024-05-15")) == 1
        assert adjustment_repo.count() == 3
        assert adjustment_repo.count(baby_id=1) == 2

    def test_delete_all(self, adjustment_repo):
        adjustment_repo.save(make_adjustment(order=1, start="07:40", end="09:00"))
        adjustment_repo.save(make_adjustment(order=2))
        adjustment_repo.save(make_adjustment(day="2024-05-16"))

        assert adjustment_repo.delete_all(1, "2024-05-15") == 2
        assert adjustment_repo.get(1, "2024-05-15") == []
        assert len(adjustment_repo.get(1, "2024-05-16")) == 1


class TestCleanupStale:

    def test_eight_days_removed_six_kept(self, adjustment_repo):
        adjustment_repo.save(make_adjustment(day=(TODAY - timedelta(days=8)).isoformat()))
        adjustment_repo.save(make_adjustment(day=(TODAY - timedelta(days=6)).isoformat()))

        deleted = adjustment_repo.cleanup_stale(today=TODAY)

        assert deleted == 1
        assert adjustment_repo.get(1, (TODAY - timedelta(days=8)).isoformat()) == []
        assert len(adjustment_repo.get(1, (TODAY - timedelta(days=6)).isoformat())) == 1

    def test_exactly_retention_days_kept(self, adjustment_repo):
        adjustment_repo.save(make_adjustment(day=(TODAY - timedelta(days=7)).isoformat()))

        assert adjustment_repo.cleanup_stale(today=TODAY) == 0

    def test_custom_retention(self, adjustment_repo):
        adjustment_repo.save(make_adjustment(day=(TODAY - timedelta(days=3)).isoformat()))

        assert adjustment_repo.cleanup_stale(today=TODAY, retention_days=2) == 1


class TestStoreErrors:

    def test_sqlite_error_wrapped(self, adjustment_repo):
        with patch("easy_schedule.db.repositories.base.sqlite3.connect", side_effect=sqlite3.OperationalError("locked")):
            with pytest.raises(StoreError):
                adjustment_repo.get(1, "2024-05-15")
