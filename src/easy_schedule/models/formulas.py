"""Formula, formula selection and baby profile models."""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Union

from .schedule import CyclePhase


@dataclass
class FormulaRule:
    """
    A named, ordered list of cycle phases.

    Predefined rules cover an age range in weeks. Custom rules belong to
    one baby; a custom rule with ``valid_date`` set applies to that
    calendar day only.
    """
    id: str
    min_weeks: int
    max_weeks: Optional[int]
    label: str
    phases: List[CyclePhase] = field(default_factory=list)
    is_custom: bool = False
    baby_id: Optional[int] = None
    description: Optional[str] = None
    valid_date: Optional[str] = None
    source_rule_id: Optional[str] = None

    @property
    def is_day_specific(self) -> bool:
        return self.valid_date is not None

    def covers_age(self, age_weeks: int) -> bool:
        if age_weeks < self.min_weeks:
            return False
        return self.max_weeks is None or age_weeks <= self.max_weeks

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "min_weeks": self.min_weeks,
            "max_weeks": self.max_weeks,
            "label": self.label,
            "phases": [phase.model_dump() for phase in self.phases],
            "is_custom": self.is_custom,
            "baby_id": self.baby_id,
            "description": self.description,
            "valid_date": self.valid_date,
            "source_rule_id": self.source_rule_id,
        }


@dataclass(frozen=True)
class Recurring:
    """The caregiver's normal formula, reused every day."""
    formula_id: str


@dataclass(frozen=True)
class DayOverride:
    """A formula that replaces the recurring one on a single date."""
    formula_id: str
    date: str  # YYYY-MM-DD

    def applies_to(self, on_date: str) -> bool:
        return self.date == on_date


FormulaSelection = Union[Recurring, DayOverride]


@dataclass
class BabyProfile:
    """The slice of the baby profile this core reads."""
    id: int
    first_wake_time: Optional[str] = "07:00"
    selected_formula_id: Optional[str] = None
    birth_date: Optional[str] = None  # YYYY-MM-DD


class ProfileProvider(Protocol):
    """Profile store collaborator."""

    def get_active_baby_profile(self) -> Optional[BabyProfile]:
        ...
