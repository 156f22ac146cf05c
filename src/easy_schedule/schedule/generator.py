"""EASY schedule generation.

Turns a first wake time and an ordered list of cycle phases into a flat,
contiguous sequence of schedule items: for every phase an Eat, an
Activity and a Sleep item, followed by one trailing Your-Time item.

The generator is a pure function. Adjustment overlays and reminder
derivation both rely on the same input always producing the same
sequence, so nothing here reads the clock or any store.
"""

from typing import Iterable, List, Mapping, Optional, Union

import pydantic

from ..exceptions import ValidationError
from ..models.schedule import ActivityType, CyclePhase, ScheduleItem, ScheduleLabels
from ..utils.time_utils import format_minutes, parse_time

PhaseInput = Union[CyclePhase, Mapping[str, int]]


def coerce_phases(phases: Iterable[PhaseInput]) -> List[CyclePhase]:
    """
    Validate raw phase definitions.

    Args:
        phases: CyclePhase instances or mappings with eat/activity/sleep keys

    Returns:
        List of validated CyclePhase objects

    Raises:
        ValidationError: If a duration is negative or not an integer
    """
    result = []
    for index, phase in enumerate(phases):
        if isinstance(phase, CyclePhase):
            result.append(phase)
            continue
        try:
            result.append(CyclePhase.model_validate(phase))
        except pydantic.ValidationError as e:
            raise ValidationError(
                f"Invalid phase at index {index}: {e.errors()[0]['msg']}",
                field="phases",
                details={"index": index},
            ) from e
    return result


def generate_schedule(
    first_wake_time: str,
    phases: Iterable[PhaseInput],
    labels: Optional[ScheduleLabels] = None,
    your_time_minutes: int = 0,
) -> List[ScheduleItem]:
    """
    Generate an E.A.S.Y. schedule from phases.

    Each phase emits Eat -> Activity -> Sleep, zero-duration parts
    included, and the day ends with a single Your-Time item. Start times
    wrap modulo 24h; use the absolute timings in ``grouping`` to tell
    apart identical wall-clock times on different days.

    Args:
        first_wake_time: First wake time in HH:MM format
        phases: Ordered cycle phases of the active formula
        labels: Display labels (English defaults when omitted)
        your_time_minutes: Duration of the trailing Your-Time item

    Returns:
        Schedule items ordered by ``order`` starting at 0

    Raises:
        ValidationError: On a malformed wake time, empty or invalid phases
    """
    clock = parse_time(first_wake_time)
    phase_list = coerce_phases(phases)
    if not phase_list:
        raise ValidationError("At least one phase is required", field="phases")
    if your_time_minutes < 0:
        raise ValidationError("Your-time duration must be >= 0", field="your_time_minutes")

    labels = labels or ScheduleLabels()
    items: List[ScheduleItem] = []
    offset = 0

    for index, phase in enumerate(phase_list):
        segments = (
            (ActivityType.EAT, phase.eat, labels.eat),
            (ActivityType.ACTIVITY, phase.activity, labels.activity),
            (ActivityType.SLEEP, phase.sleep, labels.sleep_label(index + 1)),
        )
        for activity_type, duration, label in segments:
            items.append(
                ScheduleItem(
                    order=len(items),
                    activity_type=activity_type,
                    label=label,
                    start_time=format_minutes(clock + offset),
                    duration_minutes=duration,
                )
            )
            offset += duration

    items.append(
        ScheduleItem(
            order=len(items),
            activity_type=ActivityType.YOUR_TIME,
            label=labels.your_time,
            start_time=format_minutes(clock + offset),
            duration_minutes=your_time_minutes,
        )
    )

    return items


def total_duration(items: Iterable[ScheduleItem]) -> int:
    """Sum of item durations in minutes."""
    return sum(item.duration_minutes for item in items)
