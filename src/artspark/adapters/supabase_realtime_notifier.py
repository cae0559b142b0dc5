"""Supabase Realtime listener for photo table changes."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from itertools import count

from supabase import AsyncClient, acreate_client

from artspark.services.photos import PhotoChangeNotifier

logger = logging.getLogger(__name__)


@dataclass
class SupabaseRealtimeNotifier(PhotoChangeNotifier):
    """Notify on every insert, update or delete in the photos table."""

    supabase_url: str
    supabase_key: str
    table: str = "photos"
    schema: str = "public"
    client: AsyncClient | None = None
    _channel_ids: count = field(default_factory=count, repr=False)

    async def _get_client(self) -> AsyncClient:
        if self.client is None:
            self.client = await acreate_client(self.supabase_url, self.supabase_key)
        return self.client

    async def watch(
        self, on_change: Callable[[], None]
    ) -> Callable[[], Awaitable[None]]:
        """Subscribe to postgres changes and return the unsubscribe coroutine."""
        client = await self._get_client()
        topic = f"{self.table}-feed-{next(self._channel_ids)}"

        def handle(payload: dict[str, object]) -> None:
            logger.debug("Change on %s: %s", self.table, payload.get("eventType"))
            on_change()

        channel = client.channel(topic).on_postgres_changes(
            "*", schema=self.schema, table=self.table, callback=handle
        )
        await channel.subscribe()
        logger.info("Subscribed to %s", topic)

        async def stop() -> None:
            await client.remove_channel(channel)
            logger.info("Unsubscribed from %s", topic)

        return stop

    async def close(self) -> None:
        """Drop every open channel."""
        if self.client is not None:
            await self.client.remove_all_channels()
