"""Schedule generation, grouping and adjustment overlay (pure functions)."""

from .generator import generate_schedule, coerce_phases, total_duration
from .grouping import (
    group_schedule,
    item_timings,
    absolute_timings,
    group_base_minutes,
    normalize_now,
    classify_items,
    compute_progress,
    compute_day_progress,
)
from .overlay import apply_adjustments, shift_wake_time

__all__ = [
    "generate_schedule",
    "coerce_phases",
    "total_duration",
    "group_schedule",
    "item_timings",
    "absolute_timings",
    "group_base_minutes",
    "normalize_now",
    "classify_items",
    "compute_progress",
    "compute_day_progress",
    "apply_adjustments",
    "shift_wake_time",
]
