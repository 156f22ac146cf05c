"""Application services: schedule building, reminders, restoration and cleanup."""

from .schedule_service import ScheduleService, DaySchedule
from .notification_backend import NotificationBackend, SchedulerNotificationBackend
from .reminder_scheduler import ReminderScheduler, ReminderTrigger, derive_reminder_triggers
from .restoration import NotificationRestorer, StartupReport, classify_record
from .cleanup_scheduler import CleanupScheduler, CleanupReport, CleanupResult

__all__ = [
    # Schedule
    "ScheduleService",
    "DaySchedule",
    # Notifications
    "NotificationBackend",
    "SchedulerNotificationBackend",
    "ReminderScheduler",
    "ReminderTrigger",
    "derive_reminder_triggers",
    # Restoration
    "NotificationRestorer",
    "StartupReport",
    "classify_record",
    # Cleanup
    "CleanupScheduler",
    "CleanupReport",
    "CleanupResult",
]
