"""Persistence layer."""

from .repositories import (
    AdjustmentRepository,
    NotificationRecordRepository,
    FormulaRepository,
    AppStateRepository,
)
from .predefined_formulas import PREDEFINED_FORMULAS

__all__ = [
    "AdjustmentRepository",
    "NotificationRecordRepository",
    "FormulaRepository",
    "AppStateRepository",
    "PREDEFINED_FORMULAS",
]
