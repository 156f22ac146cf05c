"""SQLite-backed store for scheduled notification records.

The record store is a cache of what was handed to the notification
service; the service itself stays authoritative and restoration
reconciles the two.
"""

import json
import logging
import sqlite3
from datetime import datetime
from typing import List, Optional

from .base import SQLiteRepository
from ...models.notifications import NotificationType, ScheduledNotificationRecord

logger = logging.getLogger(__name__)


def _now_seconds(now: Optional[datetime] = None) -> int:
    return int((now or datetime.now()).timestamp())


class NotificationRecordRepository(SQLiteRepository):
    """Repository for ScheduledNotificationRecord rows."""

    def _ensure_table_exists(self):
        """Ensure the scheduled_notifications table exists."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS scheduled_notifications (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    baby_id INTEGER NOT NULL,
                    notification_type TEXT NOT NULL,
                    notification_id TEXT NOT NULL,
                    scheduled_time INTEGER NOT NULL,
                    data TEXT,
                    created_at INTEGER NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_scheduled_notifications_baby_type
                ON scheduled_notifications(baby_id, notification_type)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_scheduled_notifications_notification_id
                ON scheduled_notifications(notification_id)
            """)

    def _row_to_record(self, row: sqlite3.Row) -> ScheduledNotificationRecord:
        """Convert a database row to a ScheduledNotificationRecord."""
        data = {}
        if row["data"]:
            try:
                parsed = json.loads(row["data"])
                if isinstance(parsed, dict):
                    data = parsed
            except json.JSONDecodeError:
                logger.warning(f"Ignoring malformed data for notification {row['notification_id']}")

        return ScheduledNotificationRecord(
            id=row["id"],
            baby_id=row["baby_id"],
            notification_type=NotificationType(row["notification_type"]),
            notification_id=row["notification_id"],
            scheduled_time=row["scheduled_time"],
            data=data,
            created_at=row["created_at"],
        )

    def save(self, record: ScheduledNotificationRecord) -> ScheduledNotificationRecord:
        """
        Insert a record.

        Args:
            record: The record to persist

        Returns:
            The record with its generated id
        """
        created_at = _now_seconds()
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO scheduled_notifications
                    (baby_id, notification_type, notification_id, scheduled_time, data, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    record.baby_id,
                    record.notification_type.value,
                    record.notification_id,
                    record.scheduled_time,
                    json.dumps(record.data) if record.data else None,
                    created_at,
                ),
            )
            record.id = cursor.lastrowid
            record.created_at = created_at
        return record

    def replace_slot(self, record: ScheduledNotificationRecord) -> ScheduledNotificationRecord:
        """Delete any record of the same (baby, type) and insert this one, in one transaction."""
        created_at = _now_seconds()
        with self._get_connection() as conn:
            conn.execute(
                "DELETE FROM scheduled_notifications WHERE baby_id = ? AND notification_type = ?",
                (record.baby_id, record.notification_type.value),
            )
            cursor = conn.execute(
                """
                INSERT INTO scheduled_notifications
                    (baby_id, notification_type, notification_id, scheduled_time, data, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    record.baby_id,
                    record.notification_type.value,
                    record.notification_id,
                    record.scheduled_time,
                    json.dumps(record.data) if record.data else None,
                    created_at,
                ),
            )
            record.id = cursor.lastrowid
            record.created_at = created_at
        return record

    def list_records(
        self,
        baby_id: int,
        notification_type: Optional[NotificationType] = None,
        include_expired: bool = True,
        now: Optional[datetime] = None,
    ) -> List[ScheduledNotificationRecord]:
        """
        List records for a baby.

        Args:
            baby_id: Baby profile ID
            notification_type: Restrict to one reminder family
            include_expired: If False, only records whose time is now or later
            now: Reference time for expiry

        Returns:
            Records ordered by scheduled time
        """
        query = "SELECT * FROM scheduled_notifications WHERE baby_id = ?"
        params: list = [baby_id]

        if notification_type is not None:
            query += " AND notification_type = ?"
            params.append(NotificationType(notification_type).value)

        if not include_expired:
            query += " AND scheduled_time >= ?"
            params.append(_now_seconds(now))

        query += " ORDER BY scheduled_time, id"

        with self._get_connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_record(row) for row in rows]

    def get_active(self, baby_id: int, now: Optional[datetime] = None) -> List[ScheduledNotificationRecord]:
        """Records whose scheduled time has not passed yet."""
        return self.list_records(baby_id, include_expired=False, now=now)

    def get_by_notification_id(
        self, notification_id: str, baby_id: Optional[int] = None
    ) -> Optional[ScheduledNotificationRecord]:
        """Look up a record by its notification service handle."""
        query = "SELECT * FROM scheduled_notifications WHERE notification_id = ?"
        params: list = [notification_id]
        if baby_id is not None:
            query += " AND baby_id = ?"
            params.append(baby_id)

        with self._get_connection() as conn:
            row = conn.execute(query, params).fetchone()
        return self._row_to_record(row) if row else None

    def delete_by_notification_id(self, notification_id: str, baby_id: Optional[int] = None) -> bool:
        """
        Delete a record by notification ID.

        Returns:
            True if a record was deleted
        """
        query = "DELETE FROM scheduled_notifications WHERE notification_id = ?"
        params: list = [notification_id]
        if baby_id is not None:
            query += " AND baby_id = ?"
            params.append(baby_id)

        with self._get_connection() as conn:
            cursor = conn.execute(query, params)
            return cursor.rowcount > 0

    def delete_by_type(self, baby_id: int, notification_type: NotificationType) -> int:
        """Delete every record of one reminder family for a baby."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM scheduled_notifications WHERE baby_id = ? AND notification_type = ?",
                (baby_id, NotificationType(notification_type).value),
            )
            return cursor.rowcount

    def prune_expired(self, before: datetime) -> int:
        """Delete records of any baby whose time is before ``before``."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM scheduled_notifications WHERE scheduled_time < ?",
                (_now_seconds(before),),
            )
            deleted = cursor.rowcount

        logger.info(f"Pruned {deleted} expired notification records")
        return deleted

    def count(
        self,
        baby_id: Optional[int] = None,
        notification_type: Optional[NotificationType] = None,
    ) -> int:
        """Count records with optional filters."""
        query = "SELECT COUNT(*) FROM scheduled_notifications WHERE 1 = 1"
        params: list = []
        if baby_id is not None:
            query += " AND baby_id = ?"
            params.append(baby_id)
        if notification_type is not None:
            query += " AND notification_type = ?"
            params.append(NotificationType(notification_type).value)

        with self._get_connection() as conn:
            return conn.execute(query, params).fetchone()[0]
