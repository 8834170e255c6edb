"""Time-based resolution of the current and next meal service."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from mess_admin.domain.menu import (
    MEAL_ORDER,
    MINUTES_PER_DAY,
    ActiveMealInfo,
    MealSlot,
    MealType,
    WeeklySchedule,
)
from mess_admin.services.menu import day_name_for

NOON_MINUTES = 12 * 60


@dataclass(frozen=True)
class NextMeal:
    """Upcoming meal when nothing is being served."""

    meal: MealType
    is_today: bool


def current_meal(now: datetime, schedule: WeeklySchedule) -> MealType | None:
    """Return the meal being served at `now`, if any."""
    day_menu = schedule.for_day(day_name_for(now.date()))
    if day_menu is None:
        return None
    minutes = _minutes_of(now)
    for meal in MEAL_ORDER:
        if is_time_in_slot(minutes, day_menu.slot(meal)):
            return meal
    return None


def next_meal(now: datetime, schedule: WeeklySchedule) -> NextMeal | None:
    """Return the next meal to be served, or None while a meal is live."""
    if current_meal(now, schedule) is not None:
        return None
    day_menu = schedule.for_day(day_name_for(now.date()))
    if day_menu is None:
        return NextMeal(meal=MealType.BREAKFAST, is_today=False)

    minutes = _minutes_of(now)
    upcoming = sorted(
        MEAL_ORDER, key=lambda meal: day_menu.slot(meal).start_minutes
    )
    for meal in upcoming:
        if minutes < day_menu.slot(meal).start_minutes:
            return NextMeal(meal=meal, is_today=True)
    return NextMeal(meal=MealType.BREAKFAST, is_today=False)


def active_meal_info(now: datetime, schedule: WeeklySchedule) -> ActiveMealInfo:
    """Return the live meal, else the next one, with the date it is served on."""
    today = now.date().isoformat()
    live = current_meal(now, schedule)
    if live is not None:
        return ActiveMealInfo(meal=live, is_live=True, date=today, is_tomorrow=False)

    upcoming = next_meal(now, schedule)
    if upcoming is None:
        return ActiveMealInfo(
            meal=MealType.BREAKFAST, is_live=False, date=today, is_tomorrow=False
        )
    if upcoming.is_today:
        return ActiveMealInfo(
            meal=upcoming.meal, is_live=False, date=today, is_tomorrow=False
        )
    tomorrow = (now.date() + timedelta(days=1)).isoformat()
    return ActiveMealInfo(
        meal=upcoming.meal, is_live=False, date=tomorrow, is_tomorrow=True
    )


def is_time_in_slot(minutes: int, slot: MealSlot) -> bool:
    """Return true when a minute of the day falls inside a serving window.

    Windows ending before they start wrap past midnight; early-morning minutes
    are shifted a day forward when compared with an afternoon or evening start.
    """
    start = slot.start_minutes
    end = slot.end_minutes
    if end < start:
        end += MINUTES_PER_DAY
    if minutes < start and start > NOON_MINUTES:
        minutes += MINUTES_PER_DAY
    return start <= minutes <= end


def _minutes_of(now: datetime) -> int:
    return now.hour * 60 + now.minute
