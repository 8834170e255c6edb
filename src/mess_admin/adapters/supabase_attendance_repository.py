"""Supabase repository for the attendance tree."""

from dataclasses import dataclass

from supabase import Client

from mess_admin.services.attendance import AttendanceRepository


@dataclass
class SupabaseAttendanceRepository(AttendanceRepository):
    """Supabase implementation storing one row per attendance date key."""

    client: Client

    def list_latest_days(self, limit: int) -> dict[str, dict[str, object]]:
        """Return the last `limit` date keys with their day nodes."""
        response = (
            self.client.table("attendance_days")
            .select("date, node")
            .order("date", desc=True)
            .limit(limit)
            .execute()
        )
        return _to_days(response.data or [])

    def list_all_days(self) -> dict[str, dict[str, object]]:
        """Return every recorded day node."""
        response = (
            self.client.table("attendance_days")
            .select("date, node")
            .order("date", desc=False)
            .execute()
        )
        return _to_days(response.data or [])


def _to_days(rows: list[dict[str, object]]) -> dict[str, dict[str, object]]:
    days: dict[str, dict[str, object]] = {}
    for row in rows:
        date_key = row.get("date")
        node = row.get("node")
        if not isinstance(date_key, str) or not date_key:
            continue
        days[date_key] = node if isinstance(node, dict) else {}
    return days
