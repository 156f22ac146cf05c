"""Repository implementations for SQLite persistence."""

from .base import SQLiteRepository
from .adjustment_repository import AdjustmentRepository
from .notification_repository import NotificationRecordRepository
from .formula_repository import FormulaRepository
from .app_state_repository import AppStateRepository

__all__ = [
    "SQLiteRepository",
    "AdjustmentRepository",
    "NotificationRecordRepository",
    "FormulaRepository",
    "AppStateRepository",
]
