"""JSON shapes returned by the admin API."""

from dataclasses import asdict

from mess_admin.domain.attendance import DailyAttendanceSummary, MealAttendance
from mess_admin.domain.feedback import Complaint, ComplaintStatus, HeatmapCell
from mess_admin.domain.menu import ActiveMealInfo, MealType
from mess_admin.services.dashboard import DashboardSnapshot


def serialize_active_meal(info: ActiveMealInfo) -> dict[str, object]:
    return {
        "meal": info.meal.value,
        "isLive": info.is_live,
        "date": info.date,
        "isTomorrow": info.is_tomorrow,
    }


def serialize_meal_counts(counts: dict[MealType, int]) -> dict[str, int]:
    return {meal.value: count for meal, count in counts.items()}


def serialize_daily_stats(entry: DailyAttendanceSummary) -> dict[str, object]:
    return {
        "date": entry.date,
        "label": entry.label,
        **serialize_meal_counts(entry.per_meal),
        "total": entry.total,
    }


def serialize_complaint(complaint: Complaint) -> dict[str, object]:
    return {
        "id": complaint.id,
        "userName": complaint.user_name,
        "userEmail": complaint.user_email,
        "userId": complaint.user_id,
        "complaintText": complaint.complaint_text,
        "category": complaint.category,
        "status": complaint.status,
        "timestamp": complaint.timestamp,
        "updatedAt": complaint.updated_at,
    }


def serialize_grouped_complaints(
    grouped: dict[ComplaintStatus, list[Complaint]],
) -> dict[str, list[dict[str, object]]]:
    return {
        status.value: [serialize_complaint(c) for c in complaints]
        for status, complaints in grouped.items()
    }


def serialize_meal_attendance(entry: MealAttendance) -> dict[str, object]:
    return {
        "date": entry.date,
        "meal": entry.meal.value,
        "servingWindow": entry.serving_window,
        "totalCount": entry.total_count,
        "attendees": [
            {"uid": attendee.user_id, "attending": attendee.attending}
            for attendee in entry.attendees
        ],
    }


def serialize_snapshot(snapshot: DashboardSnapshot) -> dict[str, object]:
    return {
        "loading": snapshot.loading,
        "activeMealInfo": serialize_active_meal(snapshot.active_meal_info),
        "attendanceCount": snapshot.attendance_count,
        "attendanceUserIds": list(snapshot.attendance_user_ids),
        "attendanceByMeal": serialize_meal_counts(snapshot.attendance_by_meal),
        "dailyStats": [serialize_daily_stats(d) for d in snapshot.daily_stats],
        "usersCount": len(snapshot.users),
        "complaintsCount": len(snapshot.complaints),
        "pendingComplaints": sum(
            1 for c in snapshot.complaints if c.status == ComplaintStatus.PENDING.value
        ),
        "ratingsCount": len(snapshot.ratings),
        "recentActivities": [asdict(a) for a in snapshot.recent_activities],
    }


def serialize_heatmap(
    heatmap: dict[str, dict[str, HeatmapCell]],
) -> list[dict[str, object]]:
    return [
        {"date": date_key, **{meal: asdict(cell) for meal, cell in row.items()}}
        for date_key, row in heatmap.items()
    ]
