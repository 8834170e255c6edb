"""Domain models for meal attendance."""

from dataclasses import dataclass, field
from enum import StrEnum

from mess_admin.domain.menu import MEAL_ORDER, MealType


class AttendanceDecision(StrEnum):
    """Normalized RSVP state for one user and meal."""

    YES = "Yes"
    NO = "No"
    NO_RESPONSE = "NoResponse"


@dataclass(frozen=True)
class BareFlag:
    """Attendance stored directly as a boolean."""

    value: bool


@dataclass(frozen=True)
class FlaggedObject:
    """Attendance object carrying a recognized boolean flag field."""

    value: bool


@dataclass(frozen=True)
class OpaqueObject:
    """Object or list without any recognized flag field."""


@dataclass(frozen=True)
class OtherValue:
    """Any other stored value, including a missing one."""

    value: object


AttendanceRecord = BareFlag | FlaggedObject | OpaqueObject | OtherValue


@dataclass(frozen=True)
class DailyAttendanceSummary:
    """Per-meal RSVP counts for one date."""

    date: str
    per_meal: dict[MealType, int] = field(
        default_factory=lambda: {meal: 0 for meal in MEAL_ORDER}
    )

    @property
    def total(self) -> int:
        return sum(self.per_meal.values())

    @property
    def label(self) -> str:
        """Short MM-DD label used on charts."""
        return self.date[5:]


@dataclass(frozen=True)
class Attendee:
    """A user's explicit response for a meal."""

    user_id: str
    attending: bool


@dataclass(frozen=True)
class MealAttendance:
    """All explicit responses recorded for one date and meal."""

    date: str
    meal: MealType
    attendees: list[Attendee]
    total_count: int
    serving_window: str = ""
