"""Domain models for mess users."""

from dataclasses import dataclass


@dataclass(frozen=True)
class UserProfile:
    """Registered mess user with usage counters."""

    id: str
    name: str
    email: str
    total_rsvps: int
    total_ratings: int
    total_complaints: int
    last_active: str
