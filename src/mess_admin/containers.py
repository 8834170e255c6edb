"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

from supabase import create_client

from mess_admin.adapters.openai_insights_client import OpenAIInsightsClient
from mess_admin.adapters.supabase_attendance_repository import (
    SupabaseAttendanceRepository,
)
from mess_admin.adapters.supabase_complaint_repository import (
    SupabaseComplaintRepository,
)
from mess_admin.adapters.supabase_rating_repository import SupabaseRatingRepository
from mess_admin.adapters.supabase_realtime_feed import SupabaseRealtimeFeed
from mess_admin.adapters.supabase_user_repository import SupabaseUserRepository
from mess_admin.config import Settings
from mess_admin.domain.menu import WeeklySchedule
from mess_admin.services.attendance import AttendanceService
from mess_admin.services.complaints import ComplaintService
from mess_admin.services.dashboard import DashboardSession
from mess_admin.services.insights import InsightsService
from mess_admin.services.menu import load_weekly_schedule
from mess_admin.services.ratings import RatingService
from mess_admin.services.users import UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    schedule: WeeklySchedule
    clock: Callable[[], datetime]
    attendance_service: AttendanceService
    complaint_service: ComplaintService
    rating_service: RatingService
    user_service: UserService
    insights_service: InsightsService
    dashboard_session: DashboardSession
    close_resources: Callable[[], Awaitable[None]]


def build_clock(timezone_name: str) -> Callable[[], datetime]:
    """Return a clock reading the current time in the mess timezone."""
    tz = ZoneInfo(timezone_name)

    def now() -> datetime:
        return datetime.now(tz=tz)

    return now


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    schedule = load_weekly_schedule(resolved_settings.menu_path)
    clock = build_clock(resolved_settings.timezone)
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    attendance_repository = SupabaseAttendanceRepository(supabase_client)
    complaint_service = ComplaintService(SupabaseComplaintRepository(supabase_client))
    rating_service = RatingService(SupabaseRatingRepository(supabase_client))
    user_service = UserService(SupabaseUserRepository(supabase_client))
    feed = SupabaseRealtimeFeed.create(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    insights_client = (
        OpenAIInsightsClient.create(resolved_settings.openai_api_key)
        if resolved_settings.openai_api_key
        else None
    )
    insights_service = InsightsService(
        client=insights_client,
        model=resolved_settings.openai_model,
        capacity=resolved_settings.mess_capacity,
    )
    dashboard_session = DashboardSession(
        user_key=resolved_settings.dashboard_user_key,
        schedule=schedule,
        clock=clock,
        attendance_repository=attendance_repository,
        complaint_service=complaint_service,
        rating_service=rating_service,
        user_service=user_service,
        feed=feed,
        initial_query_timeout_seconds=resolved_settings.initial_query_timeout_seconds,
    )

    async def close_resources() -> None:
        await dashboard_session.stop()
        await feed.close()
        if insights_client is not None:
            await insights_client.close()

    return AppContainer(
        settings=resolved_settings,
        schedule=schedule,
        clock=clock,
        attendance_service=AttendanceService(attendance_repository),
        complaint_service=complaint_service,
        rating_service=rating_service,
        user_service=user_service,
        insights_service=insights_service,
        dashboard_session=dashboard_session,
        close_resources=close_resources,
    )
