"""Data models for schedules, formulas and notifications."""

from .schedule import (
    ActivityType,
    CyclePhase,
    ScheduleLabels,
    ScheduleItem,
    ItemTiming,
    ScheduleGroup,
    PhaseProgress,
    ScheduleAdjustment,
)
from .formulas import (
    FormulaRule,
    Recurring,
    DayOverride,
    FormulaSelection,
    BabyProfile,
    ProfileProvider,
)
from .notifications import (
    NotificationType,
    FeedingType,
    RecordState,
    RescheduleOutcome,
    ScheduledNotificationRecord,
    NotificationContent,
    PendingNotification,
    RescheduleResult,
    ReminderLabels,
    ReminderPreferences,
)

__all__ = [
    # Schedule
    "ActivityType",
    "CyclePhase",
    "ScheduleLabels",
    "ScheduleItem",
    "ItemTiming",
    "ScheduleGroup",
    "PhaseProgress",
    "ScheduleAdjustment",
    # Formulas
    "FormulaRule",
    "Recurring",
    "DayOverride",
    "FormulaSelection",
    "BabyProfile",
    "ProfileProvider",
    # Notifications
    "NotificationType",
    "FeedingType",
    "RecordState",
    "RescheduleOutcome",
    "ScheduledNotificationRecord",
    "NotificationContent",
    "PendingNotification",
    "RescheduleResult",
    "ReminderLabels",
    "ReminderPreferences",
]
