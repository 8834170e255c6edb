"""Pydantic models for admin API payloads."""

from pydantic import BaseModel

from mess_admin.domain.feedback import ComplaintStatus


class ComplaintStatusUpdate(BaseModel):
    """Requested complaint status change."""

    status: ComplaintStatus
