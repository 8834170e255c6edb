"""Supabase Realtime change feed."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from itertools import count

from supabase import AsyncClient, acreate_client

from mess_admin.domain.changes import ChangeEvent
from mess_admin.services.dashboard import ChangeCallback, ChangeFeed, Subscription

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseSubscription(Subscription):
    """Realtime channel bound to one table subscription."""

    client: AsyncClient
    channel: object

    async def close(self) -> None:
        """Remove the channel from the realtime connection."""
        await self.client.remove_channel(self.channel)


@dataclass
class SupabaseRealtimeFeed(ChangeFeed):
    """Change feed backed by Supabase Realtime postgres_changes channels."""

    supabase_url: str
    supabase_key: str
    schema: str = "public"
    _client: AsyncClient | None = field(default=None, init=False, repr=False)
    _ids: count = field(default_factory=count, init=False, repr=False)

    @classmethod
    def create(cls, supabase_url: str, supabase_key: str) -> "SupabaseRealtimeFeed":
        """Create a feed; the realtime connection opens on first subscribe."""
        return cls(supabase_url=supabase_url, supabase_key=supabase_key)

    async def subscribe(
        self, table: str, callback: ChangeCallback, row_filter: str | None = None
    ) -> Subscription:
        """Subscribe to inserts, updates and deletes on a table."""
        client = await self._get_client()

        def handle(payload: Mapping[str, object]) -> None:
            try:
                callback(parse_change_payload(payload))
            except Exception:
                _logger.exception("Change callback failed for %s", table)

        channel = client.channel(f"{table}:{row_filter or '*'}:{next(self._ids)}")
        channel.on_postgres_changes(
            "*",
            callback=handle,
            table=table,
            schema=self.schema,
            filter=row_filter,
        )
        await channel.subscribe()
        return SupabaseSubscription(client=client, channel=channel)

    async def close(self) -> None:
        """Drop every channel and the realtime connection."""
        if self._client is None:
            return
        await self._client.remove_all_channels()
        self._client = None

    async def _get_client(self) -> AsyncClient:
        if self._client is None:
            self._client = await acreate_client(self.supabase_url, self.supabase_key)
        return self._client


def parse_change_payload(payload: Mapping[str, object]) -> ChangeEvent:
    """Convert a realtime postgres_changes payload into a change event."""
    data = payload.get("data")
    body = data if isinstance(data, Mapping) else payload
    event_type = body.get("type") or body.get("eventType") or ""
    record = body.get("record", body.get("new"))
    old_record = body.get("old_record", body.get("old"))
    return ChangeEvent(
        event_type=str(event_type).upper(),
        record=dict(record) if isinstance(record, Mapping) and record else None,
        old_record=(
            dict(old_record) if isinstance(old_record, Mapping) and old_record else None
        ),
    )
