"""Tests for the alert broadcaster."""

from __future__ import annotations

import asyncio

import pytest

from launch_monitor.alerter.broadcast import ALERTS_CHANNEL, AlertBroadcaster
from launch_monitor.detector.models import Alert, AlertType, Severity


def make_alert(alert_id: str) -> Alert:
    return Alert(
        id=alert_id,
        type=AlertType.LARGE_TRADE,
        severity=Severity.WARNING,
        message=alert_id,
        timestamp=1_700_000_000_000,
        launch_id="launch_1",
    )


class TestAlertBroadcaster:
    """Tests for fan-out delivery."""

    def test_default_channel(self) -> None:
        assert AlertBroadcaster().channel == ALERTS_CHANNEL == "alerts"

    def test_publish_without_subscribers(self) -> None:
        broadcaster = AlertBroadcaster()
        broadcaster.publish(make_alert("a"))
        assert broadcaster.published == 1

    @pytest.mark.asyncio
    async def test_every_subscriber_receives(self) -> None:
        broadcaster = AlertBroadcaster()
        first = broadcaster.subscribe()
        second = broadcaster.subscribe()

        broadcaster.publish(make_alert("a"))

        assert (await first.get()).id == "a"
        assert (await second.get()).id == "a"

    @pytest.mark.asyncio
    async def test_drops_oldest_when_full(self) -> None:
        """A slow subscriber loses its oldest alerts, never blocking publish."""
        broadcaster = AlertBroadcaster(queue_size=2)
        subscription = broadcaster.subscribe()

        for alert_id in ("a", "b", "c"):
            broadcaster.publish(make_alert(alert_id))

        assert subscription.dropped == 1
        assert subscription.pending == 2
        assert subscription.get_nowait().id == "b"
        assert subscription.get_nowait().id == "c"
        assert subscription.get_nowait() is None

    @pytest.mark.asyncio
    async def test_close_ends_iteration(self) -> None:
        broadcaster = AlertBroadcaster()
        subscription = broadcaster.subscribe()
        broadcaster.publish(make_alert("a"))
        broadcaster.close()

        received = [alert.id async for alert in subscription]

        assert received == ["a"]
        assert subscription.closed
        assert broadcaster.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_close_keeps_pending_alerts_when_full(self) -> None:
        """Closing a full subscription does not discard undelivered alerts."""
        broadcaster = AlertBroadcaster(queue_size=2)
        subscription = broadcaster.subscribe()
        broadcaster.publish(make_alert("a"))
        broadcaster.publish(make_alert("b"))

        subscription.close()
        received = [alert.id async for alert in subscription]

        assert received == ["a", "b"]
        assert subscription.dropped == 0
        assert await subscription.get() is None

    @pytest.mark.asyncio
    async def test_close_wakes_waiting_consumer(self) -> None:
        broadcaster = AlertBroadcaster()
        subscription = broadcaster.subscribe()

        waiter = asyncio.create_task(subscription.get())
        await asyncio.sleep(0)
        subscription.close()

        assert await asyncio.wait_for(waiter, timeout=1) is None

    def test_closed_subscription_ignores_alerts(self) -> None:
        broadcaster = AlertBroadcaster()
        subscription = broadcaster.subscribe()
        subscription.close()

        broadcaster.publish(make_alert("a"))

        assert broadcaster.subscriber_count == 0
        assert subscription.get_nowait() is None
