"""Cycle grouping and "where are we now" progress for generated schedules."""

from typing import Dict, Iterable, List, Sequence

from ..models.schedule import (
    ActivityType,
    ItemTiming,
    PhaseProgress,
    ScheduleGroup,
    ScheduleItem,
)
from ..utils.time_utils import MINUTES_IN_DAY, parse_time


def group_schedule(items: Iterable[ScheduleItem]) -> List[ScheduleGroup]:
    """
    Partition items into cycles, one group per Eat-to-next-Eat span.

    The trailing Your-Time item never joins a group.
    """
    groups: List[ScheduleGroup] = []
    current: List[ScheduleItem] = []

    for item in items:
        if item.activity_type == ActivityType.YOUR_TIME:
            continue
        if item.activity_type == ActivityType.EAT and current:
            groups.append(ScheduleGroup(number=len(groups) + 1, items=current))
            current = []
        current.append(item)

    if current:
        groups.append(ScheduleGroup(number=len(groups) + 1, items=current))

    return groups


def item_timings(items: Sequence[ScheduleItem], base_minutes: int) -> Dict[int, ItemTiming]:
    """Accumulate durations from base_minutes into absolute timings keyed by order."""
    timings: Dict[int, ItemTiming] = {}
    offset = 0
    for item in items:
        start = base_minutes + offset
        timings[item.order] = ItemTiming(start, start + item.duration_minutes)
        offset += item.duration_minutes
    return timings


def _unwrap_near(clock_minutes: int, expected_minutes: int) -> int:
    """Place a wall-clock minute value on the day closest to expected_minutes."""
    days = round((expected_minutes - clock_minutes) / MINUTES_IN_DAY)
    return clock_minutes + days * MINUTES_IN_DAY


def absolute_timings(items: Sequence[ScheduleItem], first_wake_time: str) -> Dict[int, ItemTiming]:
    """
    Absolute timings from each item's own start time.

    Unlike ``item_timings`` this honours start times that no longer follow
    the previous item (adjusted items). Each HH:MM start is placed on the
    day nearest to where the previous item ended, so a 00:15 start after a
    23:30 item lands at 1455, not 15.
    """
    timings: Dict[int, ItemTiming] = {}
    expected = parse_time(first_wake_time)
    for item in items:
        start = _unwrap_near(parse_time(item.start_time), expected)
        timings[item.order] = ItemTiming(start, start + item.duration_minutes)
        expected = start + item.duration_minutes
    return timings


def group_base_minutes(
    groups: Sequence[ScheduleGroup],
    first_wake_time: str,
    items: Sequence[ScheduleItem],
) -> Dict[int, int]:
    """Absolute base minutes of each group, keyed by group number."""
    timings = absolute_timings(items, first_wake_time)
    return {
        group.number: timings[group.items[0].order].start_minutes
        for group in groups
        if group.items
    }


def normalize_now(now_minutes: int, base_minutes: int, spans_overnight: bool) -> int:
    """
    Map wall-clock "now" onto the schedule's linear timeline.

    A time earlier than base_minutes only belongs to the next calendar
    day when the schedule runs past midnight; otherwise it is simply
    before the schedule started. base_minutes must be a wall-clock value
    (0-1439), typically the wake time of the day.
    """
    if now_minutes >= base_minutes:
        return now_minutes
    if spans_overnight:
        return now_minutes + MINUTES_IN_DAY
    return now_minutes


def classify_items(
    items: Sequence[ScheduleItem],
    timings: Dict[int, ItemTiming],
    now: int,
) -> PhaseProgress:
    """Classify items against an already normalised timeline minute."""
    active_order = None
    past_orders: List[int] = []
    ratio = 0.0

    for item in items:
        timing = timings[item.order]
        if timing.start_minutes <= now < timing.end_minutes:
            active_order = item.order
            total = timing.duration_minutes
            ratio = (now - timing.start_minutes) / total if total > 0 else 0.0
            ratio = min(1.0, max(0.0, ratio))
        elif now >= timing.end_minutes:
            past_orders.append(item.order)

    return PhaseProgress(
        active_item_order=active_order,
        past_item_orders=past_orders,
        progress_ratio=ratio,
    )


def compute_progress(group: ScheduleGroup, base_minutes: int, now_minutes: int) -> PhaseProgress:
    """
    Classify the items of a standalone group as past, active or future.

    Args:
        group: The cycle to evaluate
        base_minutes: Wall-clock start of the group's first item (0-1439)
        now_minutes: Current wall-clock minutes since midnight (0-1439)

    Returns:
        PhaseProgress with the active item order (if any), the past item
        orders and the elapsed ratio of the active item clamped to [0, 1].
    """
    timings = item_timings(group.items, base_minutes)
    spans_overnight = any(t.spans_midnight for t in timings.values())
    now = normalize_now(now_minutes, base_minutes, spans_overnight)
    return classify_items(group.items, timings, now)


def compute_day_progress(
    groups: Sequence[ScheduleGroup],
    timings: Dict[int, ItemTiming],
    first_wake_time: str,
    now_minutes: int,
) -> Dict[int, PhaseProgress]:
    """
    Progress of every group of one schedule day, keyed by group number.

    "Now" is normalised once against the day's wake time, so groups that
    start after midnight compare against the same timeline as the rest
    of the day.

    Args:
        groups: Groups of the day, as returned by group_schedule
        timings: Absolute timings of the day's items keyed by order
        first_wake_time: Wake time of the day in HH:MM format
        now_minutes: Current wall-clock minutes since midnight (0-1439)
    """
    spans_overnight = any(t.spans_midnight for t in timings.values())
    now = normalize_now(now_minutes, parse_time(first_wake_time), spans_overnight)
    return {group.number: classify_items(group.items, timings, now) for group in groups}
