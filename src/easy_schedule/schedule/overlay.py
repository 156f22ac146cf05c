"""Day-scoped adjustment overlay on top of generated schedules."""

import logging
from dataclasses import replace
from typing import Iterable, List, Sequence

from ..models.schedule import ScheduleAdjustment, ScheduleItem
from ..utils.time_utils import MINUTES_IN_DAY, format_minutes, parse_time

logger = logging.getLogger(__name__)


def apply_adjustments(
    items: Sequence[ScheduleItem],
    adjustments: Iterable[ScheduleAdjustment],
) -> List[ScheduleItem]:
    """
    Substitute start/duration of adjusted items.

    Items without an adjustment are returned unchanged; the input list is
    never mutated.
    """
    by_order = {adjustment.item_order: adjustment for adjustment in adjustments}
    known_orders = {item.order for item in items}

    for order in by_order.keys() - known_orders:
        logger.debug(f"Ignoring adjustment for unknown item order {order}")

    result = []
    for item in items:
        adjustment = by_order.get(item.order)
        if adjustment is None:
            result.append(item)
            continue
        result.append(
            replace(
                item,
                start_time=adjustment.start_time,
                duration_minutes=adjustment.duration_minutes,
            )
        )
    return result


def shift_wake_time(first_wake_time: str, item_start_minutes: int, new_start_time: str) -> str:
    """
    New first wake time that moves an item to new_start_time.

    Keeps the item on the same schedule day as before, so moving a
    01:00 item that belongs to the next day to 01:30 shifts everything
    by 30 minutes rather than by a day.

    Args:
        first_wake_time: Current first wake time (HH:MM)
        item_start_minutes: Absolute start of the edited item
        new_start_time: Picked wall-clock time (HH:MM)
    """
    day_offset = item_start_minutes // MINUTES_IN_DAY
    target = day_offset * MINUTES_IN_DAY + parse_time(new_start_time)
    delta = target - item_start_minutes
    return format_minutes(parse_time(first_wake_time) + delta)
