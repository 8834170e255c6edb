"""Shared test fixtures."""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import pytest

from mess_admin.config import Settings
from mess_admin.containers import AppContainer
from mess_admin.domain.changes import ChangeEvent
from mess_admin.domain.menu import WeeklySchedule
from mess_admin.services.attendance import AttendanceRepository, AttendanceService
from mess_admin.services.complaints import (
    ComplaintNotFoundError,
    ComplaintRepository,
    ComplaintService,
)
from mess_admin.services.dashboard import ChangeCallback, ChangeFeed, DashboardSession
from mess_admin.services.insights import InsightsClient, InsightsService
from mess_admin.services.menu import parse_weekly_schedule
from mess_admin.services.ratings import RatingRepository, RatingService
from mess_admin.services.users import UserRepository, UserService

ROOT = Path(__file__).resolve().parents[1]

# 2024-01-01 is a Monday.
MONDAY = datetime(2024, 1, 1, tzinfo=UTC)

_WEEKDAYS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday")


def _day(name: str, dinner_start: str = "19:30", dinner_end: str = "21:30") -> dict:
    return {
        "day": name,
        "breakfast": {"start": "07:30", "end": "09:30", "items": ["Poha", "Tea"]},
        "lunch": {"start": "12:30", "end": "14:30", "items": ["Dal", "Rice"]},
        "dinner": {"start": dinner_start, "end": dinner_end, "items": ["Roti"]},
    }


TEST_MENU: list[dict] = [
    *(_day(name) for name in _WEEKDAYS),
    _day("Saturday", dinner_start="23:00", dinner_end="01:00"),
]


def make_schedule(payload: list[dict] | None = None) -> WeeklySchedule:
    return parse_weekly_schedule(TEST_MENU if payload is None else payload)


def fixed_clock(moment: datetime) -> Callable[[], datetime]:
    return lambda: moment


@dataclass
class InMemoryAttendanceRepository(AttendanceRepository):
    """In-memory attendance tree for tests."""

    days: dict[str, dict[str, object]] = field(default_factory=dict)
    error: Exception | None = None
    delay_seconds: float = 0.0

    def list_latest_days(self, limit: int) -> dict[str, dict[str, object]]:
        if self.delay_seconds:
            time.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error
        keys = sorted(self.days, reverse=True)[:limit]
        return {key: self.days[key] for key in keys}

    def list_all_days(self) -> dict[str, dict[str, object]]:
        if self.error is not None:
            raise self.error
        return dict(self.days)


@dataclass
class InMemoryComplaintRepository(ComplaintRepository):
    """In-memory complaint store that can reject updates."""

    docs: list[dict[str, object]] = field(default_factory=list)
    list_error: Exception | None = None
    update_error: Exception | None = None
    updates: list[tuple[str, str, int]] = field(default_factory=list)

    def list_complaints(self, limit: int) -> list[dict[str, object]]:
        if self.list_error is not None:
            raise self.list_error
        return self.docs[:limit]

    def update_status(self, complaint_id: str, status: str, updated_at: int) -> None:
        if self.update_error is not None:
            raise self.update_error
        for doc in self.docs:
            if doc.get("id") == complaint_id:
                doc["status"] = status
                doc["updatedAt"] = updated_at
                self.updates.append((complaint_id, status, updated_at))
                return
        raise ComplaintNotFoundError(complaint_id)


@dataclass
class InMemoryRatingRepository(RatingRepository):
    """In-memory rating store for tests."""

    docs: list[dict[str, object]] = field(default_factory=list)

    def list_ratings(self, limit: int) -> list[dict[str, object]]:
        return self.docs[:limit]


@dataclass
class InMemoryUserRepository(UserRepository):
    """In-memory users tree for tests."""

    users: dict[str, dict[str, object]] = field(default_factory=dict)
    error: Exception | None = None
    admins: list[str] = field(default_factory=list)

    def list_users(self) -> dict[str, dict[str, object]]:
        if self.error is not None:
            raise self.error
        return dict(self.users)

    def count_admins(self) -> int:
        return len(self.admins)


@dataclass
class FakeSubscription:
    """Subscription handle that records whether it was closed."""

    table: str
    callback: ChangeCallback
    row_filter: str | None
    closed: bool = False

    async def close(self) -> None:
        self.closed = True


@dataclass
class FakeChangeFeed(ChangeFeed):
    """Change feed that lets tests push events by hand."""

    subscriptions: list[FakeSubscription] = field(default_factory=list)
    failing_tables: set[str] = field(default_factory=set)

    async def subscribe(
        self, table: str, callback: ChangeCallback, row_filter: str | None = None
    ) -> FakeSubscription:
        if table in self.failing_tables:
            raise RuntimeError(f"cannot subscribe to {table}")
        subscription = FakeSubscription(table, callback, row_filter)
        self.subscriptions.append(subscription)
        return subscription

    def emit(self, table: str, event: ChangeEvent) -> None:
        for subscription in self.subscriptions:
            if subscription.table == table and not subscription.closed:
                subscription.callback(event)

    def active(self, table: str | None = None) -> list[FakeSubscription]:
        return [
            s
            for s in self.subscriptions
            if not s.closed and (table is None or s.table == table)
        ]


@dataclass
class FakeInsightsClient(InsightsClient):
    """Fake text generator returning a fixed reply."""

    reply: str = "- Prepare more rice"
    error: Exception | None = None
    prompts: list[str] = field(default_factory=list)

    async def generate(self, *, model: str, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


def build_session(  # noqa: PLR0913
    *,
    attendance: InMemoryAttendanceRepository | None = None,
    complaints: InMemoryComplaintRepository | None = None,
    ratings: InMemoryRatingRepository | None = None,
    users: InMemoryUserRepository | None = None,
    feed: FakeChangeFeed | None = None,
    now: datetime = MONDAY.replace(hour=8),
    user_key: str | None = "admin",
    timeout: float = 5.0,
) -> DashboardSession:
    return DashboardSession(
        user_key=user_key,
        schedule=make_schedule(),
        clock=fixed_clock(now),
        attendance_repository=attendance or InMemoryAttendanceRepository(),
        complaint_service=ComplaintService(complaints or InMemoryComplaintRepository()),
        rating_service=RatingService(ratings or InMemoryRatingRepository()),
        user_service=UserService(users or InMemoryUserRepository()),
        feed=feed or FakeChangeFeed(),
        initial_query_timeout_seconds=timeout,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
        openai_api_key="openai-key",
        menu_path=str(ROOT / "menu.json"),
    )


@pytest.fixture
def attendance_repository() -> InMemoryAttendanceRepository:
    return InMemoryAttendanceRepository(
        days={
            "2023-12-31": {"Dinner": {"u1": True}},
            "2024-01-01": {
                "Breakfast": {
                    "u1": True,
                    "u2": {"attending": True},
                    "u3": False,
                },
            },
        }
    )


@pytest.fixture
def complaint_repository() -> InMemoryComplaintRepository:
    return InMemoryComplaintRepository(
        docs=[
            {
                "id": "c1",
                "userName": "Asha",
                "userEmail": "asha@example.com",
                "complaintText": "Cold food at lunch",
                "category": "Food Quality",
                "status": "Pending",
                "timestamp": 1_700_000_000_000,
            },
            {
                "id": "c2",
                "userName": "Ravi",
                "complaintText": "Dirty plates",
                "category": "Hygiene",
                "status": "Resolved",
                "timestamp": 1_700_000_100_000,
            },
        ]
    )


@pytest.fixture
def feed() -> FakeChangeFeed:
    return FakeChangeFeed()


@pytest.fixture
def container(
    settings: Settings,
    attendance_repository: InMemoryAttendanceRepository,
    complaint_repository: InMemoryComplaintRepository,
    feed: FakeChangeFeed,
) -> AppContainer:
    schedule = make_schedule()
    clock = fixed_clock(MONDAY.replace(hour=8))
    complaint_service = ComplaintService(complaint_repository)
    rating_service = RatingService(
        InMemoryRatingRepository(
            docs=[
                {
                    "id": "r1",
                    "userName": "Asha",
                    "userEmail": "asha@example.com",
                    "mealName": "Lunch",
                    "mealDate": "2024-01-01",
                    "itemRatings": {"Dal": 4, "Rice": 5},
                    "staffBehaviorRating": 4,
                    "hygieneRating": 3,
                    "timestamp": 1_700_000_050_000,
                }
            ]
        )
    )
    user_service = UserService(
        InMemoryUserRepository(
            users={"u1": {"displayName": "Asha", "email": "asha@example.com"}},
            admins=["admin-1", "admin-2"],
        )
    )
    dashboard_session = DashboardSession(
        user_key=settings.dashboard_user_key,
        schedule=schedule,
        clock=clock,
        attendance_repository=attendance_repository,
        complaint_service=complaint_service,
        rating_service=rating_service,
        user_service=user_service,
        feed=feed,
    )

    async def close_resources() -> None:
        await dashboard_session.stop()

    return AppContainer(
        settings=settings,
        schedule=schedule,
        clock=clock,
        attendance_service=AttendanceService(attendance_repository),
        complaint_service=complaint_service,
        rating_service=rating_service,
        user_service=user_service,
        insights_service=InsightsService(
            client=None, model=settings.openai_model, capacity=settings.mess_capacity
        ),
        dashboard_session=dashboard_session,
        close_resources=close_resources,
    )
