"""Notification and reminder models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from .schedule import ActivityType, ScheduleLabels


class NotificationType(str, Enum):
    """Logical reminder families tracked in the record store."""
    FEEDING = "feeding"
    EASY_SCHEDULE = "easy_schedule"


class FeedingType(str, Enum):
    BREAST = "breast"
    BOTTLE = "bottle"
    SOLIDS = "solids"


FEEDING_TYPE_LABELS = {
    FeedingType.BREAST: "Breast feeding",
    FeedingType.BOTTLE: "Bottle feeding",
    FeedingType.SOLIDS: "Solids feeding",
}


class RecordState(str, Enum):
    """Reconciliation state of a persisted record against the notification service."""
    ACTIVE = "active"      # still scheduled, time in the future
    FIRED = "fired"        # gone from the service, time passed
    ORPHANED = "orphaned"  # gone from the service before its time
    STALE = "stale"        # still scheduled but time passed


class RescheduleOutcome(str, Enum):
    SCHEDULED = "scheduled"
    PERMISSION_DENIED = "permission_denied"


@dataclass
class ScheduledNotificationRecord:
    """Durable record of one outstanding notification."""
    notification_id: str
    notification_type: NotificationType
    scheduled_time: int  # unix seconds
    baby_id: int
    data: Dict[str, Any] = field(default_factory=dict)
    id: Optional[int] = None
    created_at: Optional[int] = None

    def __post_init__(self):
        if isinstance(self.notification_type, str):
            self.notification_type = NotificationType(self.notification_type)

    @property
    def scheduled_at(self) -> datetime:
        return datetime.fromtimestamp(self.scheduled_time)

    def is_past(self, now: datetime) -> bool:
        return self.scheduled_time <= int(now.timestamp())

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "notification_id": self.notification_id,
            "notification_type": self.notification_type.value,
            "scheduled_time": self.scheduled_time,
            "baby_id": self.baby_id,
            "data": self.data,
            "created_at": self.created_at,
        }


@dataclass
class NotificationContent:
    """Payload handed to the notification service."""
    title: str
    body: str
    sound: bool = True
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PendingNotification:
    """A notification the service still has scheduled."""
    identifier: str
    fire_at: datetime
    content: Optional[NotificationContent] = None


@dataclass
class RescheduleResult:
    """Outcome of re-deriving the EASY reminder set."""
    outcome: RescheduleOutcome
    scheduled_count: int = 0
    skipped_count: int = 0
    failed_count: int = 0
    cancelled_count: int = 0

    @property
    def permission_denied(self) -> bool:
        return self.outcome == RescheduleOutcome.PERMISSION_DENIED

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome.value,
            "scheduled_count": self.scheduled_count,
            "skipped_count": self.skipped_count,
            "failed_count": self.failed_count,
            "cancelled_count": self.cancelled_count,
        }


ACTIVITY_EMOJIS = {
    ActivityType.EAT: "🍼",
    ActivityType.ACTIVITY: "🧸",
    ActivityType.SLEEP: "😴",
}
DEFAULT_EMOJI = "📅"


@dataclass
class ReminderLabels(ScheduleLabels):
    """Schedule labels plus reminder title/body templates."""
    title: str = "{emoji} {activity}"
    body: str = "{activity} ends at {time} ({advance} min left)"

    def reminder_title(self, activity_type: ActivityType, activity: str) -> str:
        emoji = ACTIVITY_EMOJIS.get(activity_type, DEFAULT_EMOJI)
        return self.title.format(emoji=emoji, activity=activity)

    def reminder_body(self, activity: str, time: str, advance: int) -> str:
        return self.body.format(activity=activity, time=time, advance=advance)


@dataclass
class ReminderPreferences:
    """Caregiver's EASY reminder settings."""
    enabled: bool = False
    advance_minutes: int = 5
