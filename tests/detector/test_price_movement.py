"""Tests for rapid price change detection."""

from __future__ import annotations

from decimal import Decimal

import pytest

from launch_monitor.detector.models import AlertType, Severity
from launch_monitor.detector.price_movement import PriceMovementDetector
from launch_monitor.ingestor.state import EntityStateStore


class TestPriceMovementDetector:
    def _run(self, make_trade, clock, prices: list[str]):
        store = EntityStateStore()
        ctx = None
        for price in prices:
            ctx = store.record(make_trade(price=price), now=clock.now)
            clock.advance(1_000)
        return PriceMovementDetector().analyze(ctx)

    def test_single_sample_no_alert(self, make_trade, clock) -> None:
        assert self._run(make_trade, clock, ["1"]) == []

    def test_change_at_threshold_no_alert(self, make_trade, clock) -> None:
        """A change of exactly 20% does not exceed the threshold."""
        assert self._run(make_trade, clock, ["1", "1.2"]) == []

    def test_rapid_increase(self, make_trade, clock) -> None:
        alerts = self._run(make_trade, clock, ["1", "1.1", "1.25"])

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.type == AlertType.RAPID_PRICE_CHANGE
        assert alert.severity == Severity.CRITICAL
        assert alert.trader is None
        assert alert.data["direction"] == "increase"
        assert alert.data["changePercent"] == pytest.approx(25.0)

    def test_rapid_decrease(self, make_trade, clock) -> None:
        alerts = self._run(make_trade, clock, ["1", "0.7"])

        assert alerts[0].data["direction"] == "decrease"
        assert alerts[0].data["changePercent"] == pytest.approx(30.0)

    def test_zero_start_price_skipped(self, make_trade, clock) -> None:
        assert self._run(make_trade, clock, ["0", "5"]) == []

    def test_samples_outside_window_ignored(self, make_trade, clock) -> None:
        store = EntityStateStore()
        store.record(make_trade(price="1"), now=clock.now)
        clock.advance(60_000)
        store.record(make_trade(price="2"), now=clock.now)
        ctx = store.record(make_trade(price="2.1"), now=clock.now)

        assert PriceMovementDetector().analyze(ctx) == []


class TestOutOfOrderArrival:
    """Late trades carrying older timestamps than samples already recorded."""

    def test_late_trade_compared_to_earliest_sample(self, make_trade, clock) -> None:
        store = EntityStateStore()
        store.record(make_trade(price="1", timestamp=clock.now + 500), now=clock.now + 500)
        store.record(make_trade(price="1.1", timestamp=clock.now + 1_000), now=clock.now + 1_000)

        late = make_trade(price="1.3", timestamp=clock.now + 200)
        ctx = store.record(late, now=clock.now + 1_000)
        alerts = PriceMovementDetector().analyze(ctx)

        assert len(alerts) == 1
        assert alerts[0].data["startPrice"] == Decimal("1")
        assert alerts[0].data["currentPrice"] == Decimal("1.3")
        assert alerts[0].data["changePercent"] == pytest.approx(30.0)

    def test_uses_triggering_price_not_newest_sample(self, make_trade, clock) -> None:
        """A late trade near the start price does not inherit the newest sample's move."""
        store = EntityStateStore()
        store.record(make_trade(price="1", timestamp=clock.now), now=clock.now)
        store.record(make_trade(price="1.5", timestamp=clock.now + 1_000), now=clock.now + 1_000)

        late = make_trade(price="1.05", timestamp=clock.now + 500)
        ctx = store.record(late, now=clock.now + 1_000)

        assert PriceMovementDetector().analyze(ctx) == []
