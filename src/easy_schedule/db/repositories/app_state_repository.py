"""SQLite key/value store for app-level reminder preferences."""

import logging
from datetime import datetime
from typing import Optional

from .base import SQLiteRepository
from ...config import get_settings
from ...models.notifications import ReminderPreferences

logger = logging.getLogger(__name__)

EASY_REMINDER_ENABLED = "easy_reminder_enabled"
EASY_REMINDER_ADVANCE_MINUTES = "easy_reminder_advance_minutes"


class AppStateRepository(SQLiteRepository):
    """Repository for string key/value app state."""

    def _ensure_table_exists(self):
        """Ensure the app_state table exists."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS app_state (
                    key TEXT PRIMARY KEY,
                    value TEXT,
                    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                )
            """)

    def get(self, key: str) -> Optional[str]:
        """Get a value by key, None if unset."""
        with self._get_connection() as conn:
            row = conn.execute("SELECT value FROM app_state WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: Optional[str]) -> None:
        """Set (or overwrite) a value."""
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO app_state (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, datetime.now().isoformat()),
            )

    def get_reminder_preferences(self) -> ReminderPreferences:
        """
        Load EASY reminder preferences.

        Missing or unparseable values fall back to disabled reminders and
        the configured default advance minutes.
        """
        default_advance = get_settings().reminder_advance_minutes
        enabled = self.get(EASY_REMINDER_ENABLED) == "true"

        raw_advance = self.get(EASY_REMINDER_ADVANCE_MINUTES)
        advance = default_advance
        if raw_advance:
            try:
                advance = max(0, int(raw_advance))
            except ValueError:
                logger.warning(f"Invalid reminder advance minutes {raw_advance!r}, using {default_advance}")

        return ReminderPreferences(enabled=enabled, advance_minutes=advance)

    def set_reminder_preferences(self, enabled: bool, advance_minutes: Optional[int] = None) -> None:
        """Persist EASY reminder preferences."""
        self.set(EASY_REMINDER_ENABLED, "true" if enabled else "false")
        if advance_minutes is not None:
            self.set(EASY_REMINDER_ADVANCE_MINUTES, str(advance_minutes))
