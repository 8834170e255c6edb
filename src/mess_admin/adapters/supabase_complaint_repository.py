"""Supabase repository for complaints."""

from dataclasses import dataclass

from postgrest.exceptions import APIError
from supabase import Client

from mess_admin.services.complaints import (
    ComplaintNotFoundError,
    ComplaintPermissionError,
    ComplaintRepository,
    ComplaintUpdateError,
)

# insufficient_privilege from Postgres, JWT rejected by PostgREST
PERMISSION_DENIED_CODES = {"42501", "PGRST301"}


@dataclass
class SupabaseComplaintRepository(ComplaintRepository):
    """Supabase implementation for complaint documents."""

    client: Client

    def list_complaints(self, limit: int) -> list[dict[str, object]]:
        """Return raw complaint rows."""
        response = self.client.table("complaints").select("*").limit(limit).execute()
        return response.data or []

    def update_status(self, complaint_id: str, status: str, updated_at: int) -> None:
        """Write a complaint's status and update time."""
        try:
            response = (
                self.client.table("complaints")
                .update({"status": status, "updatedAt": updated_at})
                .eq("id", complaint_id)
                .execute()
            )
        except APIError as exc:
            if exc.code in PERMISSION_DENIED_CODES:
                raise ComplaintPermissionError(
                    "Not authorized to update complaints"
                ) from exc
            raise ComplaintUpdateError(
                exc.message or "Complaint update failed"
            ) from exc
        if response.data:
            return
        # Row level security hides rows from updates without raising.
        if self._exists(complaint_id):
            raise ComplaintPermissionError(
                f"Complaint {complaint_id} is not writable by this role"
            )
        raise ComplaintNotFoundError(f"Complaint {complaint_id} not found")

    def _exists(self, complaint_id: str) -> bool:
        response = (
            self.client.table("complaints")
            .select("id")
            .eq("id", complaint_id)
            .limit(1)
            .execute()
        )
        return bool(response.data)
