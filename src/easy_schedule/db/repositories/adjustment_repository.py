"""SQLite-backed store for single-day schedule adjustments.

At most one adjustment exists per (baby, date, item order). Saving
replaces the previous row for that key, and rows older than the
retention window are removed by ``cleanup_stale``.
"""

import logging
import sqlite3
from datetime import date, datetime, timedelta
from typing import List, Optional

from .base import SQLiteRepository
from ...models.schedule import ScheduleAdjustment
from ...utils.time_utils import today_string

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 7


class AdjustmentRepository(SQLiteRepository):
    """Repository for ScheduleAdjustment rows."""

    def _ensure_table_exists(self):
        """Ensure the easy_schedule_adjustments table exists."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS easy_schedule_adjustments (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    baby_id INTEGER NOT NULL,
                    adjustment_date TEXT NOT NULL,
                    item_order INTEGER NOT NULL,
                    start_time TEXT NOT NULL,
                    end_time TEXT NOT NULL,
                    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.execute("""
                CREATE UNIQUE INDEX IF NOT EXISTS idx_schedule_adjustments_key
                ON easy_schedule_adjustments(baby_id, adjustment_date, item_order)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_schedule_adjustments_date
                ON easy_schedule_adjustments(adjustment_date)
            """)

    def _row_to_adjustment(self, row: sqlite3.Row) -> ScheduleAdjustment:
        """Convert a database row to a ScheduleAdjustment."""
        created_at = row["created_at"]
        if isinstance(created_at, str) and created_at:
            created_at = datetime.fromisoformat(created_at)

        return ScheduleAdjustment(
            id=row["id"],
            baby_id=row["baby_id"],
            adjustment_date=row["adjustment_date"],
            item_order=row["item_order"],
            start_time=row["start_time"],
            end_time=row["end_time"],
            created_at=created_at,
        )

    def get(self, baby_id: int, adjustment_date: str) -> List[ScheduleAdjustment]:
        """
        Get all adjustments for a baby on a date.

        Args:
            baby_id: Baby profile ID
            adjustment_date: Date in YYYY-MM-DD format

        Returns:
            Adjustments ordered by item order, empty if none
        """
        with self._get_connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM easy_schedule_adjustments
                WHERE baby_id = ? AND adjustment_date = ?
                ORDER BY item_order
                """,
                (baby_id, adjustment_date),
            ).fetchall()
        return [self._row_to_adjustment(row) for row in rows]

    def get_today(self, baby_id: int, now: Optional[datetime] = None) -> List[ScheduleAdjustment]:
        """Get adjustments for the current local date."""
        return self.get(baby_id, today_string(now))

    def save(self, adjustment: ScheduleAdjustment) -> ScheduleAdjustment:
        """
        Save an adjustment, replacing any existing one for the same key.

        Delete and insert run in one transaction, so saves for other item
        orders on the same day are untouched.

        Args:
            adjustment: The adjustment to store

        Returns:
            The stored adjustment with its generated id
        """
        with self._get_connection() as conn:
            conn.execute(
                """
                DELETE FROM easy_schedule_adjustments
                WHERE baby_id = ? AND adjustment_date = ? AND item_order = ?
                """,
                (adjustment.baby_id, adjustment.adjustment_date, adjustment.item_order),
            )
            now = datetime.now().isoformat()
            cursor = conn.execute(
                """
                INSERT INTO easy_schedule_adjustments
                    (baby_id, adjustment_date, item_order, start_time, end_time, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    adjustment.baby_id,
                    adjustment.adjustment_date,
                    adjustment.item_order,
                    adjustment.start_time,
                    adjustment.end_time,
                    now,
                ),
            )
            adjustment.id = cursor.lastrowid
            adjustment.created_at = datetime.fromisoformat(now)

        logger.debug(
            f"Saved adjustment for baby {adjustment.baby_id} on {adjustment.adjustment_date} "
            f"(item {adjustment.item_order}: {adjustment.start_time}-{adjustment.end_time})"
        )
        return adjustment

    def delete_all(self, baby_id: int, adjustment_date: str) -> int:
        """
        Delete all adjustments for a baby on a date (reset to default schedule).

        Returns:
            Number of rows deleted
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM easy_schedule_adjustments WHERE baby_id = ? AND adjustment_date = ?",
                (baby_id, adjustment_date),
            )
            return cursor.rowcount

    def cleanup_stale(
        self,
        today: Optional[date] = None,
        retention_days: int = DEFAULT_RETENTION_DAYS,
    ) -> int:
        """
        Delete adjustments dated more than retention_days before today.

        Args:
            today: Reference date (defaults to the local date)
            retention_days: Days of history to keep

        Returns:
            Number of rows deleted
        """
        today = today or date.today()
        cutoff = (today - timedelta(days=retention_days)).isoformat()

        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM easy_schedule_adjustments WHERE adjustment_date < ?",
                (cutoff,),
            )
            deleted = cursor.rowcount

        logger.info(f"Cleaned up {deleted} schedule adjustments (cutoff: {cutoff})")
        return deleted

    def count(self, baby_id: Optional[int] = None) -> int:
        """Count stored adjustments, optionally for one baby."""
        with self._get_connection() as conn:
            if baby_id is None:
                row = conn.execute("SELECT COUNT(*) FROM easy_schedule_adjustments").fetchone()
            else:
                row = conn.execute(
                    "SELECT COUNT(*) FROM easy_schedule_adjustments WHERE baby_id = ?",
                    (baby_id,),
                ).fetchone()
        return row[0]
