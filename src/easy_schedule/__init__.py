"""EASY (Eat, Activity, Sleep, Your time) schedule generation and reminders."""

from .config import Settings, get_settings
from .exceptions import (
    EasyScheduleError,
    ErrorCode,
    FormulaNotFoundError,
    NotificationSchedulingError,
    PermissionDeniedError,
    StoreError,
    ValidationError,
)
from .models import (
    ActivityType,
    BabyProfile,
    CyclePhase,
    DayOverride,
    Recurring,
    ScheduleAdjustment,
    ScheduleItem,
    ScheduleLabels,
)
from .schedule import (
    apply_adjustments,
    compute_day_progress,
    compute_progress,
    generate_schedule,
    group_schedule,
)
from .services import NotificationRestorer, ReminderScheduler, ScheduleService

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Config
    "Settings",
    "get_settings",
    # Errors
    "EasyScheduleError",
    "ErrorCode",
    "FormulaNotFoundError",
    "NotificationSchedulingError",
    "PermissionDeniedError",
    "StoreError",
    "ValidationError",
    # Models
    "ActivityType",
    "BabyProfile",
    "CyclePhase",
    "DayOverride",
    "Recurring",
    "ScheduleAdjustment",
    "ScheduleItem",
    "ScheduleLabels",
    # Schedule
    "generate_schedule",
    "group_schedule",
    "compute_progress",
    "compute_day_progress",
    "apply_adjustments",
    # Services
    "ScheduleService",
    "ReminderScheduler",
    "NotificationRestorer",
]
