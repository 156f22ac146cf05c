"""Builds the displayed (and reminded) schedule of a baby for a given day.

Resolution order for the formula of a day:
1. a day-specific custom formula for that date (``DayOverride``)
2. the profile's selected formula (``Recurring``)
3. the age-based predefined formula, when the birth date is known
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Tuple

from ..config import Settings, get_settings
from ..db.repositories.adjustment_repository import AdjustmentRepository
from ..db.repositories.formula_repository import FormulaRepository
from ..exceptions import FormulaNotFoundError
from ..models.formulas import BabyProfile, DayOverride, FormulaRule, FormulaSelection, Recurring
from ..models.schedule import (
    ItemTiming,
    PhaseProgress,
    ScheduleAdjustment,
    ScheduleGroup,
    ScheduleItem,
    ScheduleLabels,
)
from ..schedule.generator import generate_schedule
from ..schedule.grouping import absolute_timings, compute_day_progress, group_schedule
from ..schedule.overlay import apply_adjustments
from ..utils.time_utils import age_in_weeks

logger = logging.getLogger(__name__)


@dataclass
class DaySchedule:
    """Everything derived for one baby on one calendar day."""
    date: str
    first_wake_time: str
    formula: FormulaRule
    selection: FormulaSelection
    base_items: List[ScheduleItem]
    items: List[ScheduleItem]
    adjustments: List[ScheduleAdjustment] = field(default_factory=list)
    groups: List[ScheduleGroup] = field(default_factory=list)
    timings: Dict[int, ItemTiming] = field(default_factory=dict)

    @property
    def is_adjusted(self) -> bool:
        return bool(self.adjustments)

    def group_base(self, group: ScheduleGroup) -> int:
        """Absolute start of a group's first item."""
        return self.timings[group.items[0].order].start_minutes

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "first_wake_time": self.first_wake_time,
            "formula_id": self.formula.id,
            "day_override": isinstance(self.selection, DayOverride),
            "items": [item.to_dict() for item in self.items],
            "groups": [group.orders for group in self.groups],
        }


class ScheduleService:
    """Formula resolution, generation and adjustment overlay for a profile."""

    def __init__(
        self,
        formulas: FormulaRepository,
        adjustments: Optional[AdjustmentRepository] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.formulas = formulas
        self.adjustments = adjustments
        self.settings = settings or get_settings()
        self._clock = clock

    def resolve_selection(self, profile: BabyProfile, on_date: date) -> FormulaSelection:
        """
        Decide which formula applies to a profile on a date.

        Raises:
            FormulaNotFoundError: If no formula is selected and none matches the age
        """
        date_str = on_date.isoformat()
        day_rule = self.formulas.get_by_date(profile.id, date_str)
        if day_rule is not None:
            return DayOverride(formula_id=day_rule.id, date=date_str)

        if profile.selected_formula_id:
            if self.formulas.get_by_id(profile.selected_formula_id, profile.id) is not None:
                return Recurring(formula_id=profile.selected_formula_id)
            logger.warning(
                f"Selected formula {profile.selected_formula_id} not found for baby {profile.id}, "
                f"falling back to age-based formula"
            )

        if profile.birth_date:
            weeks = age_in_weeks(profile.birth_date, on_date)
            rule = self.formulas.get_by_age(weeks, profile.id)
            if rule is not None:
                return Recurring(formula_id=rule.id)

        raise FormulaNotFoundError(
            profile.selected_formula_id,
            message="No formula selected for baby profile. Please select a formula first.",
        )

    def resolve_formula(self, profile: BabyProfile, on_date: date) -> Tuple[FormulaRule, FormulaSelection]:
        """Resolve the selection and load its rule."""
        selection = self.resolve_selection(profile, on_date)
        rule = self.formulas.get_by_id(selection.formula_id, profile.id)
        if rule is None:
            raise FormulaNotFoundError(selection.formula_id)
        return rule, selection

    def build_day(
        self,
        profile: BabyProfile,
        on_date: Optional[date] = None,
        labels: Optional[ScheduleLabels] = None,
        first_wake_time: Optional[str] = None,
        with_adjustments: bool = True,
    ) -> DaySchedule:
        """
        Generate a day's schedule with that day's adjustments overlaid.

        Args:
            profile: Baby profile
            on_date: Calendar day (defaults to today)
            labels: Display labels
            first_wake_time: Overrides the profile's wake time
            with_adjustments: Apply stored adjustments for the date

        Returns:
            DaySchedule with base and overlaid items, groups and timings
        """
        on_date = on_date or self._clock().date()
        wake_time = first_wake_time or profile.first_wake_time or self.settings.default_first_wake_time
        rule, selection = self.resolve_formula(profile, on_date)

        base_items = generate_schedule(
            wake_time,
            rule.phases,
            labels=labels,
            your_time_minutes=self.settings.your_time_minutes,
        )

        adjustments: List[ScheduleAdjustment] = []
        if with_adjustments and self.adjustments is not None:
            adjustments = self.adjustments.get(profile.id, on_date.isoformat())
        items = apply_adjustments(base_items, adjustments) if adjustments else list(base_items)

        return DaySchedule(
            date=on_date.isoformat(),
            first_wake_time=wake_time,
            formula=rule,
            selection=selection,
            base_items=base_items,
            items=items,
            adjustments=adjustments,
            groups=group_schedule(items),
            timings=absolute_timings(items, wake_time),
        )

    def progress_for(self, day: DaySchedule, now_minutes: int) -> Dict[int, PhaseProgress]:
        """Progress of every group of a day, keyed by group number."""
        return compute_day_progress(day.groups, day.timings, day.first_wake_time, now_minutes)

    def adjust_item(
        self,
        profile: BabyProfile,
        item_order: int,
        start_time: str,
        end_time: str,
        on_date: Optional[date] = None,
    ) -> ScheduleAdjustment:
        """Save a single-day override for one item."""
        if self.adjustments is None:
            raise RuntimeError("ScheduleService was created without an adjustment store")
        on_date = on_date or self._clock().date()
        adjustment = ScheduleAdjustment(
            baby_id=profile.id,
            adjustment_date=on_date.isoformat(),
            item_order=item_order,
            start_time=start_time,
            end_time=end_time,
        )
        return self.adjustments.save(adjustment)

    def reset_day(self, profile: BabyProfile, on_date: Optional[date] = None) -> int:
        """Drop all overrides of a day, restoring the generated schedule."""
        if self.adjustments is None:
            return 0
        on_date = on_date or self._clock().date()
        return self.adjustments.delete_all(profile.id, on_date.isoformat())
