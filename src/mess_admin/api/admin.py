"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from dataclasses import asdict
from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status

from mess_admin.api.models import ComplaintStatusUpdate  # noqa: TC001
from mess_admin.api.serializers import (
    serialize_active_meal,
    serialize_complaint,
    serialize_daily_stats,
    serialize_grouped_complaints,
    serialize_heatmap,
    serialize_meal_attendance,
    serialize_snapshot,
)
from mess_admin.domain.feedback import COMPLAINT_CATEGORIES, RatingFilter
from mess_admin.domain.menu import MealType  # noqa: TC001
from mess_admin.services.complaints import (
    ComplaintNotFoundError,
    ComplaintPermissionError,
    ComplaintUpdateError,
    complaint_counts,
    filter_complaints,
    group_complaints,
)
from mess_admin.services.meal_windows import active_meal_info, current_meal, next_meal

if TYPE_CHECKING:
    from mess_admin.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])

PERMISSION_HINT = (
    "Permission denied: the service role cannot update complaints. "
    "Check the row level security policies on the complaints table."
)


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/dashboard", dependencies=[Depends(require_admin)])
async def dashboard(request: Request) -> dict[str, object]:
    """Return the live dashboard aggregate."""
    container: AppContainer = request.app.state.container
    return serialize_snapshot(container.dashboard_session.snapshot())


@router.get("/meal-window", dependencies=[Depends(require_admin)])
async def meal_window(request: Request) -> dict[str, object]:
    """Return the live or upcoming meal for the current time."""
    container: AppContainer = request.app.state.container
    now = container.clock()
    upcoming = next_meal(now, container.schedule)
    live = current_meal(now, container.schedule)
    return {
        "now": now.isoformat(),
        "current": live.value if live else None,
        "next": (
            {"meal": upcoming.meal.value, "isToday": upcoming.is_today}
            if upcoming
            else None
        ),
        "active": serialize_active_meal(active_meal_info(now, container.schedule)),
    }


@router.get("/attendance", dependencies=[Depends(require_admin)])
async def attendance(
    request: Request, days: int = Query(default=7, ge=1)
) -> dict[str, object]:
    """Return per-meal attendee lists and recent daily totals."""
    container: AppContainer = request.app.state.container
    service = container.attendance_service
    return {
        "meals": [
            serialize_meal_attendance(entry)
            for entry in service.get_history(container.schedule)
        ],
        "dailyStats": [
            serialize_daily_stats(entry) for entry in service.get_daily_stats(days)
        ],
    }


@router.get("/ratings/summary", dependencies=[Depends(require_admin)])
async def ratings_summary(
    request: Request,
    month: str | None = Query(default=None, pattern=r"^\d{4}-\d{2}$"),
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    meal: list[MealType] | None = Query(default=None),
) -> dict[str, object]:
    """Return rating analytics, optionally narrowed by month, dates and meals."""
    container: AppContainer = request.app.state.container
    summary = container.rating_service.get_summary(
        RatingFilter(
            month=month or "",
            date_from=date_from.isoformat() if date_from else "",
            date_to=date_to.isoformat() if date_to else "",
            meals=tuple(m.value for m in meal or ()),
        )
    )
    return {
        "count": summary["count"],
        "total": summary["total"],
        "months": summary["months"],
        "averages": asdict(summary["averages"]),
        "items": [asdict(item) for item in summary["items"]],
        "users": [asdict(user) for user in summary["users"]],
        "meals": [asdict(entry) for entry in summary["meals"]],
        "dateGroups": [asdict(group) for group in summary["dateGroups"]],
        "heatmap": serialize_heatmap(summary["heatmap"]),
    }


@router.get("/complaints", dependencies=[Depends(require_admin)])
async def list_complaints(
    request: Request, search: str | None = None, category: str | None = None
) -> dict[str, object]:
    """Return complaints grouped by status, with optional filters."""
    container: AppContainer = request.app.state.container
    complaints = filter_complaints(
        container.complaint_service.list_complaints(), search, category
    )
    return {
        "counts": {
            key.value: value for key, value in complaint_counts(complaints).items()
        },
        "groups": serialize_grouped_complaints(group_complaints(complaints)),
        "categories": ["All", *COMPLAINT_CATEGORIES],
        "complaints": [serialize_complaint(c) for c in complaints],
    }


@router.patch("/complaints/{complaint_id}", dependencies=[Depends(require_admin)])
async def update_complaint(
    complaint_id: str, payload: ComplaintStatusUpdate, request: Request
) -> dict[str, object]:
    """Change a complaint's status."""
    container: AppContainer = request.app.state.container
    try:
        updated_at = container.complaint_service.update_status(
            complaint_id, payload.status
        )
    except ComplaintPermissionError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail=PERMISSION_HINT
        ) from exc
    except ComplaintNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Complaint not found"
        ) from exc
    except ComplaintUpdateError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to update complaint status",
        ) from exc
    return {"id": complaint_id, "status": payload.status.value, "updatedAt": updated_at}


@router.get("/users", dependencies=[Depends(require_admin)])
async def list_users(request: Request) -> dict[str, object]:
    """Return registered users with activity counters and the admin count."""
    container: AppContainer = request.app.state.container
    service = container.user_service
    return {
        "users": [asdict(user) for user in service.list_users()],
        "adminCount": service.count_admins(),
    }


@router.get("/activity", dependencies=[Depends(require_admin)])
async def activity(request: Request) -> dict[str, object]:
    """Return the merged complaint and rating activity feed."""
    container: AppContainer = request.app.state.container
    snapshot = container.dashboard_session.snapshot()
    return {"activities": [asdict(a) for a in snapshot.recent_activities]}


@router.post("/insights", dependencies=[Depends(require_admin)])
async def insights(request: Request) -> dict[str, str]:
    """Generate operational insights from the current dashboard numbers."""
    container: AppContainer = request.app.state.container
    snapshot = container.dashboard_session.snapshot()
    return {"insights": await container.insights_service.generate(snapshot)}
