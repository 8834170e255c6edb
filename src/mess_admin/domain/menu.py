"""Domain models for the weekly menu schedule."""

from dataclasses import dataclass
from enum import StrEnum


class MealType(StrEnum):
    """Meal services offered each day."""

    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"


MEAL_ORDER: tuple[MealType, ...] = (MealType.BREAKFAST, MealType.LUNCH, MealType.DINNER)

DAY_NAMES: tuple[str, ...] = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class MealSlot:
    """Serving window for one meal, in minutes since midnight.

    An end earlier than the start means service ends on the following day.
    """

    start_minutes: int
    end_minutes: int
    items: tuple[str, ...] = ()

    @property
    def start(self) -> str:
        return _format_minutes(self.start_minutes)

    @property
    def end(self) -> str:
        return _format_minutes(self.end_minutes)


@dataclass(frozen=True)
class DayMenu:
    """Menu for a single weekday."""

    day: str
    breakfast: MealSlot
    lunch: MealSlot
    dinner: MealSlot

    def slot(self, meal: MealType) -> MealSlot:
        """Return the slot serving the given meal."""
        if meal is MealType.BREAKFAST:
            return self.breakfast
        if meal is MealType.LUNCH:
            return self.lunch
        return self.dinner


@dataclass(frozen=True)
class WeeklySchedule:
    """Recurring weekly menu, at most one entry per weekday name."""

    days: tuple[DayMenu, ...]

    def for_day(self, day_name: str) -> DayMenu | None:
        """Return the menu for a weekday name, if configured."""
        for day in self.days:
            if day.day == day_name:
                return day
        return None


@dataclass(frozen=True)
class ActiveMealInfo:
    """Meal the dashboard should focus on at a point in time."""

    meal: MealType
    is_live: bool
    date: str
    is_tomorrow: bool


def _format_minutes(minutes: int) -> str:
    hours, mins = divmod(minutes % MINUTES_PER_DAY, 60)
    return f"{hours:02d}:{mins:02d}"
