"""Supabase-backed user profile repository."""

import logging
from dataclasses import dataclass

from postgrest.exceptions import APIError
from supabase import Client

from mess_admin.services.users import UserRepository

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseUserRepository(UserRepository):
    """Supabase implementation for user profiles."""

    client: Client

    def list_users(self) -> dict[str, dict[str, object]]:
        """Return profile rows keyed by user id."""
        response = self.client.table("users").select("*").execute()
        users: dict[str, dict[str, object]] = {}
        for row in response.data or []:
            user_id = row.get("id")
            if user_id is None:
                continue
            users[str(user_id)] = row
        return users

    def count_admins(self) -> int:
        """Return the number of rows in the admins table, 0 if unreadable."""
        try:
            response = (
                self.client.table("admins")
                .select("id", count="exact", head=True)
                .execute()
            )
        except APIError as exc:
            _logger.warning("Cannot count admins: %s", exc.message)
            return 0
        return response.count or 0
