"""Attendance normalization and aggregation."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Protocol

from mess_admin.domain.attendance import (
    AttendanceDecision,
    AttendanceRecord,
    Attendee,
    BareFlag,
    DailyAttendanceSummary,
    FlaggedObject,
    MealAttendance,
    OpaqueObject,
    OtherValue,
)
from mess_admin.domain.menu import MEAL_ORDER, ActiveMealInfo, MealType, WeeklySchedule
from mess_admin.services.menu import slot_label

FLAG_FIELDS: tuple[str, ...] = (
    "attending",
    "isAttending",
    "isattending",
    "present",
    "isPresent",
    "ispresent",
)

HISTORY_DAYS = 7

Normalizer = Callable[[object], AttendanceDecision]


class AttendanceRepository(Protocol):
    """Read access to the attendance tree keyed by ISO date."""

    def list_latest_days(self, limit: int) -> dict[str, dict[str, object]]:
        """Return the last `limit` date keys with their day nodes."""

    def list_all_days(self) -> dict[str, dict[str, object]]:
        """Return every recorded day node."""


def classify_record(raw: object) -> AttendanceRecord:
    """Resolve a raw stored attendance value into a record variant."""
    if isinstance(raw, bool):
        return BareFlag(raw)
    if isinstance(raw, Mapping):
        for name in FLAG_FIELDS:
            value = raw.get(name)
            if isinstance(value, bool):
                return FlaggedObject(value)
        return OpaqueObject()
    if isinstance(raw, list | tuple):
        return OpaqueObject()
    return OtherValue(raw)


def normalize(raw: object) -> AttendanceDecision:
    """Strictly normalize a stored attendance value.

    Only explicit booleans count as a response; anything else is treated as
    no response.
    """
    if isinstance(raw, AttendanceDecision):
        return raw
    record = classify_record(raw)
    if isinstance(record, BareFlag | FlaggedObject):
        return _decision(record.value)
    return AttendanceDecision.NO_RESPONSE


def normalize_legacy(raw: object) -> AttendanceDecision:
    """Normalize a stored attendance value, accepting legacy RSVP markers.

    Older clients stored RSVPs as bare truthy values without a flag field, so
    any truthy value lacking an explicit flag counts as a yes here.
    """
    if isinstance(raw, AttendanceDecision):
        return raw
    record = classify_record(raw)
    if isinstance(record, BareFlag | FlaggedObject):
        return _decision(record.value)
    if isinstance(record, OpaqueObject):
        return AttendanceDecision.YES
    if record.value:
        return AttendanceDecision.YES
    return AttendanceDecision.NO_RESPONSE


def yes_user_ids(meal_node: object, policy: Normalizer = normalize_legacy) -> list[str]:
    """Return ids of users whose response in a meal node is a yes."""
    if not isinstance(meal_node, Mapping):
        return []
    return [
        str(user_id)
        for user_id, raw in meal_node.items()
        if policy(raw) is AttendanceDecision.YES
    ]


def count_meals(day_node: object) -> dict[MealType, int]:
    """Count legacy-tolerant yes responses for every meal of a day."""
    node = day_node if isinstance(day_node, Mapping) else {}
    return {meal: len(yes_user_ids(node.get(meal.value))) for meal in MEAL_ORDER}


def latest_meal(day_node: object) -> MealType:
    """Return the last meal in canonical order that holds any data."""
    node = day_node if isinstance(day_node, Mapping) else {}
    found = MealType.BREAKFAST
    for meal in MEAL_ORDER:
        if node.get(meal.value):
            found = meal
    return found


def resolve_active_meal(
    days: Mapping[str, object], today: str, fallback: ActiveMealInfo
) -> ActiveMealInfo:
    """Pick the active meal from recorded attendance, else use the fallback."""
    if not days:
        return fallback
    active_date = max(days)
    return ActiveMealInfo(
        meal=latest_meal(days[active_date]),
        is_live=active_date == today,
        date=active_date,
        is_tomorrow=active_date > today,
    )


def build_daily_stats(
    days: Mapping[str, object], limit: int = HISTORY_DAYS
) -> list[DailyAttendanceSummary]:
    """Return per-meal counts for the latest recorded dates, oldest first."""
    recent = sorted(days)[-limit:] if limit > 0 else []
    return [
        DailyAttendanceSummary(date=date_key, per_meal=count_meals(days[date_key]))
        for date_key in recent
    ]


def list_meal_attendance(days: Mapping[str, object]) -> list[MealAttendance]:
    """List explicit responses per date and meal, newest first."""
    meals: list[MealAttendance] = []
    for date_key, day_node in days.items():
        if not isinstance(day_node, Mapping):
            continue
        for meal in MEAL_ORDER:
            meal_node = day_node.get(meal.value)
            if not isinstance(meal_node, Mapping):
                continue
            attendees = []
            for user_id, raw in meal_node.items():
                decision = normalize(raw)
                if decision is AttendanceDecision.NO_RESPONSE:
                    continue
                attendees.append(
                    Attendee(
                        user_id=str(user_id),
                        attending=decision is AttendanceDecision.YES,
                    )
                )
            if not attendees:
                continue
            meals.append(
                MealAttendance(
                    date=date_key,
                    meal=meal,
                    attendees=attendees,
                    total_count=sum(1 for a in attendees if a.attending),
                )
            )
    meals.sort(key=lambda entry: MEAL_ORDER.index(entry.meal), reverse=True)
    meals.sort(key=lambda entry: entry.date, reverse=True)
    return meals


@dataclass
class AttendanceService:
    """Service for attendance history and rolling statistics."""

    repository: AttendanceRepository

    def get_history(self, schedule: WeeklySchedule) -> list[MealAttendance]:
        """Return the attendance listing annotated with serving windows."""
        entries = list_meal_attendance(self.repository.list_all_days())
        return [
            MealAttendance(
                date=entry.date,
                meal=entry.meal,
                attendees=entry.attendees,
                total_count=entry.total_count,
                serving_window=slot_label(schedule, entry.date, entry.meal),
            )
            for entry in entries
        ]

    def get_daily_stats(
        self, limit: int = HISTORY_DAYS
    ) -> list[DailyAttendanceSummary]:
        """Return the rolling per-day history for charts."""
        return build_daily_stats(self.repository.list_latest_days(limit), limit)


def _decision(value: bool) -> AttendanceDecision:  # noqa: FBT001
    return AttendanceDecision.YES if value else AttendanceDecision.NO
