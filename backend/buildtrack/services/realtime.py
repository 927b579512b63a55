"""In-process realtime change feed.

Services publish row-level INSERT/UPDATE/DELETE messages after they commit;
the realtime router streams them to subscribed clients as Server-Sent Events.
Each subscription is bound to the event loop it was created on, so publishing
is safe from request threads as well as from the loop itself.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any

from buildtrack.core.config import settings
from buildtrack.core.constants import REALTIME_TABLES
from buildtrack.schemas.realtime import ChangeMessage, ChangeType

logger = logging.getLogger(__name__)


class Subscription:
    """A single subscriber's bounded message queue."""

    def __init__(
        self,
        table: str,
        filters: dict[str, str] | None = None,
        maxsize: int | None = None,
    ) -> None:
        self.table = table
        self.filters = dict(filters or {})
        self.loop = asyncio.get_running_loop()
        self.queue: asyncio.Queue[ChangeMessage] = asyncio.Queue(
            maxsize=maxsize or settings.REALTIME_QUEUE_SIZE
        )
        self.dropped = 0

    def matches(self, message: ChangeMessage) -> bool:
        if message.table != self.table:
            return False
        row = message.row()
        return all(str(row.get(key)) == value for key, value in self.filters.items())

    def deliver(self, message: ChangeMessage) -> None:
        self.loop.call_soon_threadsafe(self._put, message)

    def _put(self, message: ChangeMessage) -> None:
        if self.queue.full():
            # Slow consumer: drop the oldest message rather than block publishers
            self.queue.get_nowait()
            self.dropped += 1
            logger.warning(
                "Realtime subscriber on %s is lagging, dropped %d message(s)",
                self.table,
                self.dropped,
            )
        self.queue.put_nowait(message)

    async def get(self) -> ChangeMessage:
        return await self.queue.get()


class ChangeFeed:
    """Fan-out of committed row changes to live subscriptions."""

    def __init__(self) -> None:
        self._subscriptions: set[Subscription] = set()
        self._lock = threading.Lock()

    def subscribe(self, table: str, filters: dict[str, str] | None = None) -> Subscription:
        if table not in REALTIME_TABLES:
            raise ValueError(f"Table '{table}' is not available for realtime")
        subscription = Subscription(table, filters)
        with self._lock:
            self._subscriptions.add(subscription)
        logger.debug("Realtime subscription opened on %s %s", table, subscription.filters)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscriptions.discard(subscription)
        logger.debug("Realtime subscription closed on %s", subscription.table)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(
        self,
        table: str,
        change_type: ChangeType,
        new: dict[str, Any] | None = None,
        old: dict[str, Any] | None = None,
    ) -> int:
        """Deliver a change to every matching subscription.

        Returns the number of subscriptions the message was handed to.
        """
        message = ChangeMessage(type=change_type, table=table, new=new, old=old)
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(message)]
        delivered = 0
        for subscription in targets:
            try:
                subscription.deliver(message)
            except RuntimeError:
                # The subscriber's event loop is gone
                logger.warning("Dropping realtime subscription on closed loop (%s)", table)
                self.unsubscribe(subscription)
                continue
            delivered += 1
        return delivered


change_feed = ChangeFeed()
