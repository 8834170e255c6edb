"""Live dashboard session over the attendance, complaint and rating stores."""

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from typing import Protocol, TypeVar

from mess_admin.domain.attendance import DailyAttendanceSummary
from mess_admin.domain.changes import ChangeEvent
from mess_admin.domain.feedback import Activity, Complaint, Rating
from mess_admin.domain.menu import MEAL_ORDER, ActiveMealInfo, MealType, WeeklySchedule
from mess_admin.domain.users import UserProfile
from mess_admin.services.activity import recent_activities
from mess_admin.services.attendance import (
    HISTORY_DAYS,
    AttendanceRepository,
    build_daily_stats,
    resolve_active_meal,
    yes_user_ids,
)
from mess_admin.services.complaints import ComplaintService, parse_complaint
from mess_admin.services.meal_windows import active_meal_info
from mess_admin.services.ratings import RatingService, parse_rating
from mess_admin.services.users import UserService, parse_user_profile

ATTENDANCE_TABLE = "attendance_days"
COMPLAINTS_TABLE = "complaints"
RATINGS_TABLE = "meal_ratings"
USERS_TABLE = "users"

_LOAD_KEYS = ("attendance", "complaints", "ratings", "users")

_logger = logging.getLogger(__name__)

T = TypeVar("T")

ChangeCallback = Callable[[ChangeEvent], None]


class Subscription(Protocol):
    """Handle for a live change subscription."""

    async def close(self) -> None:
        """Stop receiving changes."""


class ChangeFeed(Protocol):
    """Push-based change notifications from the backing store."""

    async def subscribe(
        self, table: str, callback: ChangeCallback, row_filter: str | None = None
    ) -> Subscription:
        """Invoke `callback` for every change to matching rows of `table`."""


@dataclass(frozen=True)
class DashboardSnapshot:
    """Read-only view of the aggregated dashboard state."""

    active_meal_info: ActiveMealInfo
    attendance_count: int
    attendance_user_ids: tuple[str, ...]
    attendance_by_meal: dict[MealType, int]
    daily_stats: tuple[DailyAttendanceSummary, ...]
    complaints: tuple[Complaint, ...]
    ratings: tuple[Rating, ...]
    users: tuple[UserProfile, ...]
    recent_activities: tuple[Activity, ...]
    loading: bool


@dataclass
class DashboardSession:
    """Owns live subscriptions and the aggregated state for one admin context.

    Call `start()` once the context is known and `stop()` on teardown, or use
    the session as an async context manager.
    """

    user_key: str | None
    schedule: WeeklySchedule
    clock: Callable[[], datetime]
    attendance_repository: AttendanceRepository
    complaint_service: ComplaintService
    rating_service: RatingService
    user_service: UserService
    feed: ChangeFeed
    initial_query_timeout_seconds: float = 10.0

    _active: ActiveMealInfo | None = field(default=None, init=False, repr=False)
    _attendance_count: int = field(default=0, init=False, repr=False)
    _attendance_user_ids: tuple[str, ...] = field(default=(), init=False, repr=False)
    _by_meal: dict[MealType, int] = field(
        default_factory=lambda: {meal: 0 for meal in MEAL_ORDER}, init=False, repr=False
    )
    _daily_stats: list[DailyAttendanceSummary] = field(
        default_factory=list, init=False, repr=False
    )
    _complaints: dict[str, Complaint] = field(
        default_factory=dict, init=False, repr=False
    )
    _ratings: dict[str, Rating] = field(default_factory=dict, init=False, repr=False)
    _users: dict[str, UserProfile] = field(default_factory=dict, init=False, repr=False)
    _loaded: dict[str, bool] = field(
        default_factory=lambda: dict.fromkeys(_LOAD_KEYS, False), init=False, repr=False
    )
    _subscriptions: list[Subscription] = field(
        default_factory=list, init=False, repr=False
    )
    _started: bool = field(default=False, init=False, repr=False)

    async def __aenter__(self) -> "DashboardSession":
        await self.start()
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.stop()

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        """Load initial state and subscribe to live changes."""
        if self._started:
            return
        self._started = True
        self._loaded = dict.fromkeys(_LOAD_KEYS, False)
        self._active = active_meal_info(self.clock(), self.schedule)
        if not self.user_key:
            self._loaded = dict.fromkeys(_LOAD_KEYS, True)
            return

        await self._start_attendance()
        await self._start_complaints()
        await self._start_ratings()
        await self._start_users()

    async def stop(self) -> None:
        """Release every live subscription."""
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            try:
                await subscription.close()
            except Exception:
                _logger.exception("Failed to close dashboard subscription")
        self._started = False

    def snapshot(self) -> DashboardSnapshot:
        """Return the current aggregated state."""
        complaints = sorted(
            self._complaints.values(), key=lambda c: c.timestamp, reverse=True
        )
        ratings = sorted(
            self._ratings.values(), key=lambda r: r.timestamp, reverse=True
        )
        return DashboardSnapshot(
            active_meal_info=(
                self._active or active_meal_info(self.clock(), self.schedule)
            ),
            attendance_count=self._attendance_count,
            attendance_user_ids=self._attendance_user_ids,
            attendance_by_meal=dict(self._by_meal),
            daily_stats=tuple(self._daily_stats),
            complaints=tuple(complaints),
            ratings=tuple(ratings),
            users=tuple(self._users.values()),
            recent_activities=tuple(recent_activities(complaints, ratings)),
            loading=not all(self._loaded.values()),
        )

    async def _start_attendance(self) -> None:
        fallback = self._active or active_meal_info(self.clock(), self.schedule)
        try:
            days = await self._bounded(
                partial(self.attendance_repository.list_latest_days, HISTORY_DAYS)
            )
        except Exception:
            _logger.exception(
                "Failed to load attendance; falling back to the meal schedule"
            )
            self._loaded["attendance"] = True
            return

        today = self.clock().date().isoformat()
        self._active = resolve_active_meal(days, today, fallback)
        self._daily_stats = build_daily_stats(days)
        day_node = days.get(self._active.date)
        node = day_node if isinstance(day_node, Mapping) else {}
        for meal in MEAL_ORDER:
            self._apply_meal(meal, node.get(meal.value))
        self._loaded["attendance"] = True

        for meal in MEAL_ORDER:
            await self._subscribe(
                ATTENDANCE_TABLE,
                partial(self._on_attendance_change, meal),
                row_filter=f"date=eq.{self._active.date}",
            )

    async def _start_complaints(self) -> None:
        try:
            complaints = await self._bounded(self.complaint_service.list_complaints)
        except Exception:
            _logger.exception("Failed to load complaints")
        else:
            self._complaints = {c.id: c for c in complaints}
        self._loaded["complaints"] = True
        await self._subscribe(COMPLAINTS_TABLE, self._on_complaint_change)

    async def _start_ratings(self) -> None:
        try:
            ratings = await self._bounded(self.rating_service.list_ratings)
        except Exception:
            _logger.exception("Failed to load ratings")
        else:
            self._ratings = {r.id: r for r in ratings}
        self._loaded["ratings"] = True
        await self._subscribe(RATINGS_TABLE, self._on_rating_change)

    async def _start_users(self) -> None:
        try:
            users = await self._bounded(self.user_service.list_users)
        except Exception:
            _logger.exception("Failed to load users")
        else:
            self._users = {u.id: u for u in users}
        self._loaded["users"] = True
        await self._subscribe(USERS_TABLE, self._on_user_change)

    async def _bounded(self, func: Callable[[], T]) -> T:
        return await asyncio.wait_for(
            asyncio.to_thread(func), timeout=self.initial_query_timeout_seconds
        )

    async def _subscribe(
        self, table: str, callback: ChangeCallback, row_filter: str | None = None
    ) -> None:
        try:
            subscription = await self.feed.subscribe(table, callback, row_filter)
        except Exception:
            _logger.exception("Failed to subscribe to %s changes", table)
            return
        self._subscriptions.append(subscription)

    def _on_attendance_change(self, meal: MealType, event: ChangeEvent) -> None:
        record = event.record if not event.is_delete else None
        node = record.get("node") if record else None
        meal_node = node.get(meal.value) if isinstance(node, Mapping) else None
        self._apply_meal(meal, meal_node)

    def _apply_meal(self, meal: MealType, meal_node: object) -> None:
        ids = yes_user_ids(meal_node)
        self._by_meal[meal] = len(ids)
        if self._active is not None and meal is self._active.meal:
            self._attendance_count = len(ids)
            self._attendance_user_ids = tuple(ids)
        self._refresh_daily_entry()

    def _refresh_daily_entry(self) -> None:
        if self._active is None:
            return
        for index, entry in enumerate(self._daily_stats):
            if entry.date == self._active.date:
                self._daily_stats[index] = DailyAttendanceSummary(
                    date=entry.date, per_meal=dict(self._by_meal)
                )
                return

    def _on_complaint_change(self, event: ChangeEvent) -> None:
        _apply_change(self._complaints, event, parse_complaint)

    def _on_rating_change(self, event: ChangeEvent) -> None:
        _apply_change(self._ratings, event, parse_rating)

    def _on_user_change(self, event: ChangeEvent) -> None:
        _apply_change(
            self._users,
            event,
            lambda record: parse_user_profile(str(record.get("id", "")), record),
        )


def _apply_change(
    items: dict[str, T], event: ChangeEvent, parse: Callable[[dict[str, object]], T]
) -> None:
    if event.is_delete:
        old = event.old_record or {}
        items.pop(str(old.get("id", "")), None)
        return
    if event.record is None:
        return
    items[str(event.record.get("id", ""))] = parse(event.record)
