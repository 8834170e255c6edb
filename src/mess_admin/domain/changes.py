"""Domain models for store change notifications."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ChangeEvent:
    """A pushed row change from the backing store."""

    event_type: str
    record: dict[str, object] | None
    old_record: dict[str, object] | None = None

    @property
    def is_delete(self) -> bool:
        return self.event_type == "DELETE"
