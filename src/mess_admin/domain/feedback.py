"""Domain models for meal ratings and complaints."""

from dataclasses import dataclass, field
from enum import StrEnum


class ComplaintStatus(StrEnum):
    """Lifecycle states of a complaint."""

    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"


STATUS_ORDER: tuple[ComplaintStatus, ...] = (
    ComplaintStatus.PENDING,
    ComplaintStatus.IN_PROGRESS,
    ComplaintStatus.RESOLVED,
)

COMPLAINT_CATEGORIES: tuple[str, ...] = (
    "Food Quality",
    "Service",
    "Hygiene",
    "Staff Behavior",
    "Other",
)


@dataclass(frozen=True)
class Rating:
    """Feedback submitted for a served meal."""

    id: str
    user_name: str
    user_email: str
    meal_name: str
    meal_date: str
    item_ratings: dict[str, object]
    staff_behavior_rating: object
    hygiene_rating: object
    timestamp: int
    average_rating: float


@dataclass(frozen=True)
class Complaint:
    """Grievance raised by a mess user."""

    id: str
    user_name: str
    user_email: str
    user_id: str
    complaint_text: str
    category: str
    status: str
    timestamp: int
    updated_at: int


@dataclass(frozen=True)
class RatingAverages:
    """Average scores across ratings; None when nothing qualifies."""

    overall: float | None
    staff: float | None
    hygiene: float | None


@dataclass(frozen=True)
class ItemPerformance:
    """Average score for one menu item."""

    name: str
    avg: float
    count: int
    meal_counts: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class UserRatingStats:
    """Rating behaviour of a single user."""

    name: str
    email: str
    count: int
    avg: float
    variance: float
    anomaly: bool


@dataclass(frozen=True)
class MealRatingStats:
    """Average scores for one meal type."""

    meal: str
    avg: float
    staff_avg: float
    hygiene_avg: float
    count: int


@dataclass(frozen=True)
class MealRatingGroup:
    """Ratings left for one meal on one date."""

    date: str
    day: str
    meal: str
    ratings: tuple[Rating, ...]
    avg: float


@dataclass(frozen=True)
class RatingDateGroup:
    """Ratings for one date, split by meal."""

    date: str
    day: str
    meals: tuple[MealRatingGroup, ...]


@dataclass(frozen=True)
class HeatmapCell:
    avg: float | None = None
    count: int = 0


@dataclass(frozen=True)
class RatingFilter:
    """Narrows ratings by meal date and meal name.

    Empty fields do not filter. Dates compare as ISO strings, bounds inclusive.
    """

    month: str = ""
    date_from: str = ""
    date_to: str = ""
    meals: tuple[str, ...] = ()


@dataclass(frozen=True)
class Activity:
    """Entry in the recent activity feed."""

    id: str
    user_name: str
    type: str
    detail: str
    timestamp: int
