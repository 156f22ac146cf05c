"""Schedule data models: cycle phases, generated items, groups and adjustments."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..utils.time_utils import MINUTES_IN_DAY, add_minutes, parse_time


class ActivityType(str, Enum):
    """Kinds of schedule items."""
    EAT = "E"
    ACTIVITY = "A"
    SLEEP = "S"
    YOUR_TIME = "Y"


class CyclePhase(BaseModel):
    """One eat/activity/sleep triple of a formula, durations in minutes."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    eat: int = Field(default=0, ge=0)
    activity: int = Field(default=0, ge=0)
    sleep: int = Field(default=0, ge=0)

    @property
    def total_minutes(self) -> int:
        return self.eat + self.activity + self.sleep


@dataclass
class ScheduleLabels:
    """Display labels for generated items. ``sleep`` takes a ``{number}`` placeholder."""
    eat: str = "Eat"
    activity: str = "Activity"
    sleep: str = "Nap {number}"
    your_time: str = "Your time"

    def sleep_label(self, nap_number: int) -> str:
        return self.sleep.replace("{number}", str(nap_number))


@dataclass(frozen=True)
class ScheduleItem:
    """
    One time-stamped segment of a generated schedule.

    ``order`` is the position in the flat sequence and is the stable key
    used by adjustments. ``start_time`` is wall-clock HH:MM and may have
    wrapped past midnight.
    """
    order: int
    activity_type: ActivityType
    label: str
    start_time: str
    duration_minutes: int

    @property
    def end_time(self) -> str:
        return add_minutes(self.start_time, self.duration_minutes)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "order": self.order,
            "activity_type": self.activity_type.value,
            "label": self.label,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration_minutes": self.duration_minutes,
        }


@dataclass(frozen=True)
class ItemTiming:
    """Absolute start/end of an item in minutes since midnight of the schedule day (not wrapped)."""
    start_minutes: int
    end_minutes: int

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes

    @property
    def spans_midnight(self) -> bool:
        return self.end_minutes > MINUTES_IN_DAY


@dataclass
class ScheduleGroup:
    """One feed-activity-sleep cycle: an E item and the items up to the next E."""
    number: int
    items: List[ScheduleItem] = field(default_factory=list)

    @property
    def orders(self) -> List[int]:
        return [item.order for item in self.items]

    @property
    def first_item(self) -> Optional[ScheduleItem]:
        return self.items[0] if self.items else None


@dataclass
class PhaseProgress:
    """Presentational state of a group for a given "now"."""
    active_item_order: Optional[int]
    past_item_orders: List[int]
    progress_ratio: float = 0.0

    def is_active(self, order: int) -> bool:
        return self.active_item_order == order

    def is_past(self, order: int) -> bool:
        return order in self.past_item_orders


@dataclass
class ScheduleAdjustment:
    """
    A single-day override of one generated item's timing.

    Stored as start/end wall-clock times; the duration is derived and
    wraps past midnight (e.g. 23:30-00:15 is 45 minutes).
    """
    baby_id: int
    adjustment_date: str  # YYYY-MM-DD
    item_order: int
    start_time: str
    end_time: str
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        # Validates both times eagerly
        parse_time(self.start_time)
        parse_time(self.end_time)

    @property
    def duration_minutes(self) -> int:
        return (parse_time(self.end_time) - parse_time(self.start_time)) % MINUTES_IN_DAY

    @classmethod
    def from_duration(
        cls,
        baby_id: int,
        adjustment_date: str,
        item_order: int,
        start_time: str,
        duration_minutes: int,
    ) -> "ScheduleAdjustment":
        """Create from a start time and a duration instead of an end time."""
        return cls(
            baby_id=baby_id,
            adjustment_date=adjustment_date,
            item_order=item_order,
            start_time=start_time,
            end_time=add_minutes(start_time, duration_minutes),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "baby_id": self.baby_id,
            "adjustment_date": self.adjustment_date,
            "item_order": self.item_order,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration_minutes": self.duration_minutes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
