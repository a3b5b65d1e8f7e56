"""In-process realtime channel delivering row-change events to subscribers.

The storage layer publishes committed INSERT/UPDATE/DELETE events here (see
``safeyak.db.changes``). Delivery is fire-and-forget: publishers never block,
a full subscriber queue drops the event, and a failing callback is logged and
skipped. Nothing is replayed for subscribers that connect later.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Any

from safeyak.core.settings import settings

logger = logging.getLogger(__name__)

EVENT_INSERT = "INSERT"
EVENT_UPDATE = "UPDATE"
EVENT_DELETE = "DELETE"
EVENT_ANY = "*"


@dataclass(frozen=True)
class ChangeEvent:
    """A committed change to one row of one table."""

    table: str
    type: str
    new: dict[str, Any] | None
    old: dict[str, Any] | None = None

    @property
    def row(self) -> dict[str, Any]:
        """Return the most recent image of the row."""
        return self.new if self.new is not None else (self.old or {})

    def to_payload(self) -> dict[str, Any]:
        """Return the wire representation sent to realtime clients."""
        return {"table": self.table, "eventType": self.type, "new": self.new, "old": self.old}


Predicate = Callable[[ChangeEvent], bool]
Callback = Callable[[ChangeEvent], None]


def column_equals(column: str, value: Any) -> Predicate:
    """Build a predicate matching events whose row has ``column == value``.

    Values are compared as strings so filters parsed from query strings match
    integer columns too.
    """
    expected = str(value)

    def _predicate(event: ChangeEvent) -> bool:
        return column in event.row and str(event.row[column]) == expected

    return _predicate


class Subscription:
    """A single subscriber registered on a :class:`RealtimeChannel`.

    Events are handed to ``callback`` when one is given, otherwise they are
    buffered in a bounded asyncio queue consumed with :meth:`get` or async
    iteration. Leaving the ``with`` block unsubscribes.
    """

    def __init__(
        self,
        channel: RealtimeChannel,
        table: str,
        event_type: str = EVENT_ANY,
        predicate: Predicate | None = None,
        *,
        callback: Callback | None = None,
        maxsize: int | None = None,
    ) -> None:
        self.channel = channel
        self.table = table
        self.event_type = event_type.upper()
        self.predicate = predicate
        self.callback = callback
        self.queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(
            maxsize=maxsize if maxsize is not None else settings.realtime_queue_size
        )
        try:
            self._loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None
        self.closed = False

    def matches(self, event: ChangeEvent) -> bool:
        """Return True if the event passes the table, type and row filters."""
        if event.table != self.table:
            return False
        if self.event_type != EVENT_ANY and event.type != self.event_type:
            return False
        return self.predicate is None or self.predicate(event)

    def deliver(self, event: ChangeEvent) -> None:
        """Hand an event to the subscriber without blocking the publisher."""
        if self.callback is not None:
            self.callback(event)
            return
        if self._loop is None:
            self._enqueue(event)
            return
        try:
            self._loop.call_soon_threadsafe(self._enqueue, event)
        except RuntimeError:
            # Owning loop is closed.
            logger.debug("Dropping subscription on %s: event loop closed", self.table)
            self.close()

    def _enqueue(self, event: ChangeEvent) -> None:
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("Realtime queue full for %s subscriber; dropping event", self.table)

    async def get(self) -> ChangeEvent:
        """Wait for the next queued event."""
        return await self.queue.get()

    def close(self) -> None:
        """Unsubscribe from the channel."""
        if not self.closed:
            self.closed = True
            self.channel.unsubscribe(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()


class RealtimeChannel:
    """Publish/subscribe hub for row-change events."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._lock = Lock()

    def subscribe(
        self,
        table: str,
        event_type: str = EVENT_ANY,
        predicate: Predicate | None = None,
        *,
        callback: Callback | None = None,
        maxsize: int | None = None,
    ) -> Subscription:
        """Register a subscriber for changes on ``table``.

        Args:
            table: Table name to observe (for example ``"reputation"``).
            event_type: ``INSERT``, ``UPDATE``, ``DELETE`` or ``*``.
            predicate: Optional row filter, see :func:`column_equals`.
            callback: Optional synchronous handler; defaults to queue delivery.
            maxsize: Queue bound; defaults to ``REALTIME_QUEUE_SIZE``.

        Returns:
            The subscription handle; close it to unsubscribe.
        """
        subscription = Subscription(
            self,
            table,
            event_type,
            predicate,
            callback=callback,
            maxsize=maxsize,
        )
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscriber; unknown subscriptions are ignored."""
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
        subscription.closed = True

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, event: ChangeEvent) -> int:
        """Fan an event out to every matching subscriber.

        Returns:
            Number of subscribers the event was handed to.
        """
        with self._lock:
            targets = [sub for sub in self._subscriptions if sub.matches(event)]

        delivered = 0
        for subscription in targets:
            try:
                subscription.deliver(event)
            except Exception:  # noqa: BLE001
                logger.exception("Realtime subscriber on %s failed", event.table)
                continue
            delivered += 1
        return delivered


_channel = RealtimeChannel()


def get_realtime_channel() -> RealtimeChannel:
    """Return the process-wide realtime channel."""
    return _channel
