"""Recent activity feed built from complaints and ratings."""

from mess_admin.domain.feedback import Activity, Complaint, Rating

ACTIVITY_LIMIT = 20


def recent_activities(
    complaints: list[Complaint], ratings: list[Rating], limit: int = ACTIVITY_LIMIT
) -> list[Activity]:
    """Merge complaint and rating events, newest first."""
    activities = [
        Activity(
            id=f"act_c_{complaint.id}",
            user_name=complaint.user_name,
            type="Complaint",
            detail=f"Reported: {complaint.category} - {complaint.status}",
            timestamp=complaint.timestamp,
        )
        for complaint in complaints
    ]
    activities.extend(
        Activity(
            id=f"act_r_{rating.id}",
            user_name=rating.user_name,
            type="Rating",
            detail=f"Rated {rating.meal_name}: {rating.average_rating:g}/5",
            timestamp=rating.timestamp,
        )
        for rating in ratings
    )
    activities.sort(key=lambda activity: activity.timestamp, reverse=True)
    return activities[:limit]
