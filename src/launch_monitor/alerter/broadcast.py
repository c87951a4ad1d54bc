"""Bounded fan-out of admitted alerts to broadcast subscribers.

The monitor publishes synchronously from the trade path; each subscriber
(typically a WebSocket forwarder) drains its own bounded queue. A slow
subscriber loses its oldest pending alerts, never blocking trade processing.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Final, cast

from launch_monitor.detector.models import Alert

logger = logging.getLogger(__name__)

ALERTS_CHANNEL: Final = "alerts"

_CLOSED: Final = object()


class AlertSubscription:
    """One subscriber's view of the alert stream.

    Example:
        ```python
        subscription = broadcaster.subscribe()
        async for alert in subscription:
            await websocket.send_json(format_broadcast(alert))
        ```
    """

    def __init__(self, broadcaster: AlertBroadcaster, *, maxsize: int) -> None:
        self._broadcaster = broadcaster
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=maxsize)
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def _push(self, item: object) -> bool:
        dropped = False
        if self._queue.full():
            self._queue.get_nowait()
            dropped = True
        self._queue.put_nowait(item)
        return dropped

    def offer(self, alert: Alert) -> None:
        """Enqueue without blocking, discarding the oldest pending alert if full."""
        if self._closed:
            return
        if self._push(alert):
            self.dropped += 1
            logger.warning(
                "Broadcast subscriber queue full; dropped oldest alert (total dropped=%d)",
                self.dropped,
            )

    async def get(self) -> Alert | None:
        """Wait for the next alert; returns None once the subscription is closed and drained."""
        if self._closed and self._queue.empty():
            return None
        item = await self._queue.get()
        if item is _CLOSED:
            return None
        return cast(Alert, item)

    def get_nowait(self) -> Alert | None:
        """Return the next pending alert, or None if nothing is pending."""
        try:
            item = self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None
        if item is _CLOSED:
            return None
        return cast(Alert, item)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._broadcaster.unsubscribe(self)
        # Wake a consumer blocked in get(). A full queue has no blocked
        # consumer, and get() ends once a closed queue is drained.
        if not self._queue.full():
            self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> AlertSubscription:
        return self

    async def __anext__(self) -> Alert:
        alert = await self.get()
        if alert is None:
            raise StopAsyncIteration
        return alert


class AlertBroadcaster:
    """Fan-out channel the monitor writes admitted alerts to."""

    def __init__(self, *, channel: str = ALERTS_CHANNEL, queue_size: int = 1_000) -> None:
        self.channel = channel
        self._queue_size = queue_size
        self._subscribers: list[AlertSubscription] = []
        self.published = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, *, queue_size: int | None = None) -> AlertSubscription:
        subscription = AlertSubscription(self, maxsize=queue_size or self._queue_size)
        self._subscribers.append(subscription)
        logger.debug("Broadcast subscriber added on %s (%d total)", self.channel, len(self._subscribers))
        return subscription

    def unsubscribe(self, subscription: AlertSubscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)

    def publish(self, alert: Alert) -> None:
        """Deliver an alert to every subscriber without blocking."""
        self.published += 1
        for subscription in list(self._subscribers):
            subscription.offer(alert)

    def close(self) -> None:
        """Close every subscription; consumers finish after draining."""
        for subscription in list(self._subscribers):
            subscription.close()
