"""Operational insights generated by an LLM from aggregated numbers."""

import logging
from dataclasses import dataclass
from typing import Protocol

from mess_admin.domain.feedback import ComplaintStatus
from mess_admin.services.dashboard import DashboardSnapshot

MISSING_KEY_MESSAGE = "To enable AI insights, set OPENAI_API_KEY in your environment."
FAILURE_MESSAGE = "AI analysis failed. Please check your OpenAI configuration."

_logger = logging.getLogger(__name__)


class InsightsClient(Protocol):
    """Interface for text generation."""

    async def generate(self, *, model: str, prompt: str) -> str:
        """Return generated text for a prompt."""


@dataclass
class InsightsService:
    """Service that turns dashboard numbers into short actionable advice."""

    client: InsightsClient | None
    model: str
    capacity: int

    async def generate(self, snapshot: DashboardSnapshot) -> str:
        """Return insights text, or a hint when no client is configured."""
        if self.client is None:
            return MISSING_KEY_MESSAGE
        prompt = build_prompt(snapshot, self.capacity)
        try:
            return await self.client.generate(model=self.model, prompt=prompt)
        except Exception:
            _logger.exception("Insights generation failed")
            return FAILURE_MESSAGE


def build_prompt(snapshot: DashboardSnapshot, capacity: int) -> str:
    """Build the insights prompt from pre-aggregated dashboard numbers."""
    info = snapshot.active_meal_info
    if info.is_live:
        meal_label = f"{info.meal} (Live)"
    elif info.is_tomorrow:
        meal_label = f"Tomorrow's {info.meal} RSVPs"
    else:
        meal_label = f"Next {info.meal} RSVPs"
    pending = sum(
        1 for c in snapshot.complaints if c.status == ComplaintStatus.PENDING.value
    )
    recent = "; ".join(c.complaint_text for c in snapshot.complaints[:5])
    return (
        "As a senior mess administrator, analyze these real-time metrics:\n"
        f"- {meal_label}: {snapshot.attendance_count} / {capacity}\n"
        f"- Total Registered Users: {len(snapshot.users)}\n"
        f"- Pending Complaints: {pending}\n"
        f"- Recent Feedback: {recent or 'No major issues reported.'}\n\n"
        "Provide 3 highly actionable bulleted insights for improving operations "
        "right now. Keep it brief."
    )
