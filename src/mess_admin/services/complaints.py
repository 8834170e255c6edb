"""Complaint triage: parsing, grouping and status updates."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from mess_admin.domain.feedback import STATUS_ORDER, Complaint, ComplaintStatus
from mess_admin.services.ratings import document_timestamp, now_millis

COMPLAINTS_LIMIT = 100

_logger = logging.getLogger(__name__)


class ComplaintUpdateError(Exception):
    """Raised when a complaint status change fails."""


class ComplaintPermissionError(ComplaintUpdateError):
    """Raised when the store rejects a status change for lack of rights."""


class ComplaintNotFoundError(ComplaintUpdateError):
    """Raised when the complaint to update does not exist."""


class ComplaintRepository(Protocol):
    """Persistence interface for complaints."""

    def list_complaints(self, limit: int) -> list[dict[str, object]]:
        """Return raw complaint documents."""

    def update_status(self, complaint_id: str, status: str, updated_at: int) -> None:
        """Persist a new status and update time for a complaint."""


def parse_complaint(doc: Mapping[str, object]) -> Complaint:
    """Build a complaint from a stored document with defaults for gaps."""
    updated_at = doc.get("updatedAt")
    return Complaint(
        id=str(doc.get("id", "")),
        user_name=str(doc.get("userName") or "Unknown"),
        user_email=str(doc.get("userEmail") or ""),
        user_id=str(doc.get("userId") or ""),
        complaint_text=str(doc.get("complaintText") or ""),
        category=str(doc.get("category") or "Other"),
        status=str(doc.get("status") or ComplaintStatus.PENDING.value),
        timestamp=document_timestamp(doc),
        updated_at=(
            int(updated_at)
            if isinstance(updated_at, int | float) and not isinstance(updated_at, bool)
            else now_millis()
        ),
    )


def group_complaints(
    complaints: list[Complaint],
) -> dict[ComplaintStatus, list[Complaint]]:
    """Bucket complaints by status.

    Open complaints are listed oldest first; resolved ones newest first.
    Complaints with an unknown status are left out.
    """
    grouped: dict[ComplaintStatus, list[Complaint]] = {
        status: [] for status in STATUS_ORDER
    }
    for complaint in complaints:
        for status in STATUS_ORDER:
            if complaint.status == status.value:
                grouped[status].append(complaint)
                break
    grouped[ComplaintStatus.PENDING].sort(key=lambda c: c.timestamp)
    grouped[ComplaintStatus.IN_PROGRESS].sort(key=lambda c: c.timestamp)
    grouped[ComplaintStatus.RESOLVED].sort(key=lambda c: c.timestamp, reverse=True)
    return grouped


def complaint_counts(complaints: list[Complaint]) -> dict[ComplaintStatus, int]:
    """Count complaints per known status."""
    return {
        status: sum(1 for c in complaints if c.status == status.value)
        for status in STATUS_ORDER
    }


def filter_complaints(
    complaints: list[Complaint], search: str | None = None, category: str | None = None
) -> list[Complaint]:
    """Filter by category and a case-insensitive text search."""
    query = (search or "").strip().lower()
    results = []
    for complaint in complaints:
        if category and category != "All" and complaint.category != category:
            continue
        searchable = (complaint.user_name, complaint.complaint_text, complaint.category)
        if query and not any(query in text.lower() for text in searchable):
            continue
        results.append(complaint)
    return results


@dataclass
class ComplaintService:
    """Service for complaint listing and status management."""

    repository: ComplaintRepository
    limit: int = COMPLAINTS_LIMIT

    def list_complaints(self) -> list[Complaint]:
        """Return complaints newest first."""
        complaints = [
            parse_complaint(doc) for doc in self.repository.list_complaints(self.limit)
        ]
        complaints.sort(key=lambda complaint: complaint.timestamp, reverse=True)
        return complaints

    def update_status(self, complaint_id: str, status: ComplaintStatus) -> int:
        """Change a complaint's status and return the recorded update time."""
        updated_at = now_millis()
        try:
            self.repository.update_status(complaint_id, status.value, updated_at)
        except ComplaintUpdateError:
            _logger.warning(
                "Complaint status update rejected: id=%s status=%s",
                complaint_id,
                status.value,
            )
            raise
        return updated_at
