"""Weekly menu loading and lookup helpers."""

import json
from datetime import date
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from mess_admin.domain.menu import (
    DAY_NAMES,
    MEAL_ORDER,
    DayMenu,
    MealSlot,
    MealType,
    WeeklySchedule,
)


MAX_HOUR = 23
MAX_MINUTE = 59


class MenuConfigError(ValueError):
    """Raised when the static menu file cannot be used."""


class MealSlotModel(BaseModel):
    """Meal slot as stored in the menu file."""

    start: str
    end: str
    items: list[str] = Field(default_factory=list)

    @field_validator("start", "end")
    @classmethod
    def _check_clock(cls, value: str) -> str:
        parse_clock(value)
        return value


class DayMenuModel(BaseModel):
    """Day entry as stored in the menu file."""

    day: str
    breakfast: MealSlotModel
    lunch: MealSlotModel
    dinner: MealSlotModel

    @field_validator("day")
    @classmethod
    def _check_day(cls, value: str) -> str:
        if value not in DAY_NAMES:
            raise ValueError(f"unknown weekday {value!r}")
        return value


def parse_clock(value: str) -> int:
    """Parse an HH:MM 24h clock time into minutes since midnight."""
    hours_raw, sep, minutes_raw = value.strip().partition(":")
    if not sep or not hours_raw.isdigit() or not minutes_raw.isdigit():
        raise ValueError(f"invalid clock time {value!r}")
    hours = int(hours_raw)
    minutes = int(minutes_raw)
    if hours > MAX_HOUR or minutes > MAX_MINUTE:
        raise ValueError(f"invalid clock time {value!r}")
    return hours * 60 + minutes


def parse_weekly_schedule(payload: object) -> WeeklySchedule:
    """Build a schedule from decoded menu JSON."""
    if not isinstance(payload, list):
        raise MenuConfigError("menu must be a list of day entries")
    try:
        models = [DayMenuModel.model_validate(entry) for entry in payload]
    except ValidationError as exc:
        raise MenuConfigError(str(exc)) from exc

    seen: set[str] = set()
    days = []
    for model in models:
        if model.day in seen:
            raise MenuConfigError(f"duplicate menu entry for {model.day}")
        seen.add(model.day)
        days.append(
            DayMenu(
                day=model.day,
                breakfast=_to_slot(model.breakfast),
                lunch=_to_slot(model.lunch),
                dinner=_to_slot(model.dinner),
            )
        )
    return WeeklySchedule(days=tuple(days))


def load_weekly_schedule(path: str | Path) -> WeeklySchedule:
    """Load and validate the static weekly menu file."""
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise MenuConfigError(f"cannot read menu file {path}: {exc}") from exc
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MenuConfigError(f"menu file {path} is not valid JSON") from exc
    return parse_weekly_schedule(payload)


def day_name_for(day: date) -> str:
    """Return the English weekday name for a date."""
    return DAY_NAMES[day.isoweekday() % 7]


def menu_for_date(schedule: WeeklySchedule, date_key: str) -> DayMenu | None:
    """Return the menu serving an ISO date key."""
    try:
        day = date.fromisoformat(date_key)
    except ValueError:
        return None
    return schedule.for_day(day_name_for(day))


def slot_label(schedule: WeeklySchedule, date_key: str, meal: MealType) -> str:
    """Return the serving window of a meal on a date as 'HH:MM - HH:MM'."""
    day_menu = menu_for_date(schedule, date_key)
    if day_menu is None:
        return ""
    slot = day_menu.slot(meal)
    return f"{slot.start} - {slot.end}"


def day_sort_index(day_name: str) -> int:
    """Sort key for weekday names, Sunday first; unknown names last."""
    if day_name in DAY_NAMES:
        return DAY_NAMES.index(day_name)
    return len(DAY_NAMES)


def meal_sort_index(meal: str) -> int:
    """Sort key for meal names in canonical order; unknown names last."""
    for index, meal_type in enumerate(MEAL_ORDER):
        if meal == meal_type.value:
            return index
    return len(MEAL_ORDER)


def _to_slot(model: MealSlotModel) -> MealSlot:
    return MealSlot(
        start_minutes=parse_clock(model.start),
        end_minutes=parse_clock(model.end),
        items=tuple(model.items),
    )
