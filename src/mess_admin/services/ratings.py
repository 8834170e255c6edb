"""Meal rating parsing and analytics."""

import math
import statistics
import time
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from mess_admin.domain.feedback import (
    HeatmapCell,
    ItemPerformance,
    MealRatingGroup,
    MealRatingStats,
    Rating,
    RatingAverages,
    RatingDateGroup,
    RatingFilter,
    UserRatingStats,
)
from mess_admin.domain.menu import MEAL_ORDER
from mess_admin.services.menu import day_name_for, meal_sort_index

ANOMALY_VARIANCE = 1.5
ANOMALY_LOW_MEAN = 1.5
ANOMALY_HIGH_MEAN = 4.9
RATINGS_LIMIT = 100
HEATMAP_DAYS = 7


class RatingRepository(Protocol):
    """Read access to submitted meal ratings."""

    def list_ratings(self, limit: int) -> list[dict[str, object]]:
        """Return raw rating documents."""


def positive_number(value: object) -> float | None:
    """Coerce a score to a float, returning None unless it is positive."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or number <= 0:
        return None
    return number


def now_millis() -> int:
    """Current epoch time in milliseconds."""
    return int(time.time() * 1000)


def document_timestamp(doc: Mapping[str, object]) -> int:
    """Return a document timestamp, falling back to creation time, then now."""
    timestamp = doc.get("timestamp")
    if isinstance(timestamp, int | float) and not isinstance(timestamp, bool):
        return int(timestamp)
    created_at = doc.get("createdAt")
    if isinstance(created_at, int | float) and not isinstance(created_at, bool):
        return int(created_at)
    return now_millis()


def parse_rating(doc: Mapping[str, object]) -> Rating:
    """Build a rating from a stored document, deriving a missing average."""
    item_ratings_raw = doc.get("itemRatings")
    item_ratings = (
        dict(item_ratings_raw) if isinstance(item_ratings_raw, Mapping) else {}
    )
    average = positive_number(doc.get("averageRating"))
    if average is None:
        scores = [
            score
            for score in (positive_number(value) for value in item_ratings.values())
            if score is not None
        ]
        average = round(statistics.fmean(scores), 1) if scores else 0.0
    return Rating(
        id=str(doc.get("id", "")),
        user_name=str(doc.get("userName") or ""),
        user_email=str(doc.get("userEmail") or ""),
        meal_name=str(doc.get("mealName") or ""),
        meal_date=str(doc.get("mealDate") or ""),
        item_ratings=item_ratings,
        staff_behavior_rating=doc.get("staffBehaviorRating"),
        hygiene_rating=doc.get("hygieneRating"),
        timestamp=document_timestamp(doc),
        average_rating=average,
    )


def rating_averages(ratings: list[Rating]) -> RatingAverages:
    """Average overall, staff and hygiene scores over positive values only."""
    return RatingAverages(
        overall=_mean_of([r.average_rating for r in ratings]),
        staff=_mean_of([r.staff_behavior_rating for r in ratings]),
        hygiene=_mean_of([r.hygiene_rating for r in ratings]),
    )


def item_leaderboard(ratings: list[Rating]) -> list[ItemPerformance]:
    """Rank menu items by their average score, best first."""
    scores: dict[str, list[float]] = {}
    meal_counts: dict[str, dict[str, int]] = {}
    for rating in ratings:
        for item, raw_score in rating.item_ratings.items():
            score = positive_number(raw_score)
            if score is None:
                continue
            scores.setdefault(item, []).append(score)
            if rating.meal_name:
                counts = meal_counts.setdefault(item, {})
                counts[rating.meal_name] = counts.get(rating.meal_name, 0) + 1
    leaderboard = [
        ItemPerformance(
            name=item,
            avg=round(statistics.fmean(values), 1),
            count=len(values),
            meal_counts=meal_counts.get(item, {}),
        )
        for item, values in scores.items()
    ]
    leaderboard.sort(key=lambda entry: entry.avg, reverse=True)
    return leaderboard


def user_rating_stats(ratings: list[Rating]) -> list[UserRatingStats]:
    """Summarize each user's ratings and flag suspicious patterns."""
    grouped: dict[str, list[Rating]] = {}
    for rating in ratings:
        key = rating.user_email or rating.user_name or "unknown"
        grouped.setdefault(key, []).append(rating)

    stats = []
    for user_ratings in grouped.values():
        first = user_ratings[0]
        scores = [r.average_rating for r in user_ratings if r.average_rating > 0]
        mean = statistics.fmean(scores) if scores else 0.0
        variance = statistics.variance(scores) if len(scores) > 1 else 0.0
        stats.append(
            UserRatingStats(
                name=first.user_name or "?",
                email=first.user_email,
                count=len(user_ratings),
                avg=mean,
                variance=variance,
                anomaly=is_anomalous(mean, variance),
            )
        )
    stats.sort(key=lambda entry: entry.count, reverse=True)
    return stats


def is_anomalous(mean: float, variance: float) -> bool:
    """Return true for extreme averages or highly inconsistent ratings."""
    return (
        variance > ANOMALY_VARIANCE
        or mean < ANOMALY_LOW_MEAN
        or mean > ANOMALY_HIGH_MEAN
    )


def meal_rating_stats(ratings: list[Rating]) -> list[MealRatingStats]:
    """Average scores per meal type over ratings with an overall score."""
    stats = []
    for meal in MEAL_ORDER:
        rated = [
            r for r in ratings if r.meal_name == meal.value and r.average_rating > 0
        ]
        count = len(rated)
        stats.append(
            MealRatingStats(
                meal=meal.value,
                avg=(
                    _sum_of([r.average_rating for r in rated]) / count if count else 0.0
                ),
                staff_avg=(
                    _sum_of([r.staff_behavior_rating for r in rated]) / count
                    if count
                    else 0.0
                ),
                hygiene_avg=(
                    _sum_of([r.hygiene_rating for r in rated]) / count if count else 0.0
                ),
                count=count,
            )
        )
    return stats


def filter_ratings(ratings: list[Rating], rating_filter: RatingFilter) -> list[Rating]:
    """Keep ratings that match every non-empty filter field."""
    return [rating for rating in ratings if _matches(rating, rating_filter)]


def rating_months(ratings: list[Rating]) -> list[str]:
    """Return the distinct YYYY-MM months of meal dates, newest first."""
    return sorted({r.meal_date[:7] for r in ratings if r.meal_date}, reverse=True)


def group_ratings_by_date(ratings: list[Rating]) -> list[RatingDateGroup]:
    """Group ratings by meal date, newest first, then by meal.

    Meals follow canonical order; unrecognised meal names come last. Each meal
    group carries the mean of its positive overall scores (0 when none).
    """
    by_date: dict[str, dict[str, list[Rating]]] = {}
    for rating in ratings:
        meals = by_date.setdefault(rating.meal_date, {})
        meals.setdefault(rating.meal_name or "Unknown", []).append(rating)

    groups = []
    for date_key in sorted(by_date, reverse=True):
        day = _day_name(date_key)
        ordered = sorted(by_date[date_key].items(), key=lambda e: meal_sort_index(e[0]))
        groups.append(
            RatingDateGroup(
                date=date_key,
                day=day,
                meals=tuple(
                    MealRatingGroup(
                        date=date_key,
                        day=day,
                        meal=meal,
                        ratings=tuple(items),
                        avg=_mean_of([r.average_rating for r in items]) or 0.0,
                    )
                    for meal, items in ordered
                ),
            )
        )
    return groups


def rating_heatmap(
    ratings: list[Rating], days: int = HEATMAP_DAYS
) -> dict[str, dict[str, HeatmapCell]]:
    """Average overall score per meal over the latest rated dates, oldest first."""
    rated = sorted({r.meal_date for r in ratings if r.meal_date})
    dates = rated[-days:] if days > 0 else []
    scores: dict[tuple[str, str], list[float]] = {
        (date_key, meal.value): [] for date_key in dates for meal in MEAL_ORDER
    }
    for rating in ratings:
        key = (rating.meal_date, rating.meal_name)
        if key in scores and rating.average_rating > 0:
            scores[key].append(rating.average_rating)
    return {
        date_key: {
            meal.value: _heatmap_cell(scores[date_key, meal.value])
            for meal in MEAL_ORDER
        }
        for date_key in dates
    }


@dataclass
class RatingService:
    """Service for rating feeds and analytics."""

    repository: RatingRepository
    limit: int = RATINGS_LIMIT

    def list_ratings(self) -> list[Rating]:
        """Return ratings newest first."""
        docs = self.repository.list_ratings(self.limit)
        ratings = [parse_rating(doc) for doc in docs]
        ratings.sort(key=lambda rating: rating.timestamp, reverse=True)
        return ratings

    def get_summary(
        self, rating_filter: RatingFilter | None = None
    ) -> dict[str, object]:
        """Return rating analytics for the admin dashboard.

        Every figure except `total` and `months` covers the filtered ratings.
        """
        ratings = self.list_ratings()
        selected = filter_ratings(ratings, rating_filter or RatingFilter())
        return {
            "count": len(selected),
            "total": len(ratings),
            "months": rating_months(ratings),
            "averages": rating_averages(selected),
            "items": item_leaderboard(selected),
            "users": user_rating_stats(selected),
            "meals": meal_rating_stats(selected),
            "dateGroups": group_ratings_by_date(selected),
            "heatmap": rating_heatmap(selected),
        }


def _mean_of(values: list[object]) -> float | None:
    numbers = [n for n in (positive_number(v) for v in values) if n is not None]
    if not numbers:
        return None
    return statistics.fmean(numbers)


def _sum_of(values: list[object]) -> float:
    return sum(n for n in (positive_number(v) for v in values) if n is not None)


def _matches(rating: Rating, rating_filter: RatingFilter) -> bool:
    meal_date = rating.meal_date
    if rating_filter.month and not meal_date.startswith(rating_filter.month):
        return False
    if rating_filter.meals and rating.meal_name not in rating_filter.meals:
        return False
    if rating_filter.date_from and meal_date < rating_filter.date_from:
        return False
    return not (rating_filter.date_to and meal_date > rating_filter.date_to)


def _day_name(date_key: str) -> str:
    try:
        return day_name_for(date.fromisoformat(date_key))
    except ValueError:
        return ""


def _heatmap_cell(values: list[float]) -> HeatmapCell:
    if not values:
        return HeatmapCell()
    return HeatmapCell(avg=statistics.fmean(values), count=len(values))
