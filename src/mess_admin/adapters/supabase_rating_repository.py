"""Supabase repository for meal ratings."""

from dataclasses import dataclass

from supabase import Client

from mess_admin.services.ratings import RatingRepository


@dataclass
class SupabaseRatingRepository(RatingRepository):
    """Supabase implementation for rating documents."""

    client: Client

    def list_ratings(self, limit: int) -> list[dict[str, object]]:
        """Return raw rating rows."""
        response = self.client.table("meal_ratings").select("*").limit(limit).execute()
        return response.data or []
