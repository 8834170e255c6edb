"""Mess user profiles."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from mess_admin.domain.users import UserProfile


class UserRepository(Protocol):
    """Read access to the users tree keyed by user id."""

    def list_users(self) -> dict[str, dict[str, object]]:
        """Return raw profile nodes keyed by user id."""

    def count_admins(self) -> int:
        """Return how many accounts hold admin rights."""


def parse_user_profile(user_id: str, raw: Mapping[str, object]) -> UserProfile:
    """Map a stored profile node, accepting the older field spellings."""
    return UserProfile(
        id=user_id,
        name=str(raw.get("displayName") or raw.get("name") or "Unknown User"),
        email=str(raw.get("email") or "No Email"),
        total_rsvps=_count(raw.get("totalRSVPs", raw.get("totalRsvps"))),
        total_ratings=_count(raw.get("totalRatings")),
        total_complaints=_count(raw.get("totalComplaints")),
        last_active=str(
            raw.get("lastActive")
            or raw.get("lastSignIn")
            or datetime.now(tz=UTC).isoformat()
        ),
    )


@dataclass
class UserService:
    """Service for listing registered users."""

    repository: UserRepository

    def list_users(self) -> list[UserProfile]:
        """Return all user profiles."""
        return [
            parse_user_profile(user_id, raw)
            for user_id, raw in self.repository.list_users().items()
            if isinstance(raw, Mapping)
        ]

    def count_admins(self) -> int:
        return self.repository.count_admins()


def _count(value: object) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return 0
