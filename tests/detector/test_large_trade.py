"""Tests for large and whale trade detection."""

from __future__ import annotations

from decimal import Decimal

import pytest

from launch_monitor.detector.large_trade import LargeTradeConfig, LargeTradeDetector
from launch_monitor.detector.models import AlertType, Severity
from launch_monitor.ingestor.state import EntityStateStore


class TestLargeTradeDetector:
    """Tests for LargeTradeDetector."""

    @pytest.mark.parametrize("sol", ["0", "1", "9.99"])
    def test_no_alert_below_large_threshold(self, make_trade, clock, sol: str) -> None:
        ctx = EntityStateStore().record(make_trade(sol=sol), now=clock.now)
        assert LargeTradeDetector().analyze(ctx) == []

    @pytest.mark.parametrize("sol", ["10", "25", "49.99"])
    def test_large_trade(self, make_trade, clock, sol: str) -> None:
        """Trades from 10 up to (but excluding) 50 SOL are large."""
        ctx = EntityStateStore().record(make_trade(sol=sol, signature="sig_x"), now=clock.now)

        alerts = LargeTradeDetector().analyze(ctx)

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.type == AlertType.LARGE_TRADE
        assert alert.severity == Severity.WARNING
        assert alert.id == "large_sig_x"
        assert alert.launch_id == "launch_1"
        assert alert.trader == "trader_1"

    def test_whale_trade_replaces_large(self, make_trade, clock) -> None:
        """A whale trade raises exactly one alert, the whale one."""
        ctx = EntityStateStore().record(make_trade(sol="60", signature="sig_w"), now=clock.now)

        alerts = LargeTradeDetector().analyze(ctx)

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.type == AlertType.WHALE_TRADE
        assert alert.severity == Severity.CRITICAL
        assert alert.id == "whale_sig_w"
        assert alert.message == "Whale buy detected: 60.00 SOL"
        assert alert.timestamp == clock.now

    def test_whale_threshold_inclusive(self, make_trade, clock) -> None:
        ctx = EntityStateStore().record(make_trade(sol="50"), now=clock.now)
        assert LargeTradeDetector().analyze(ctx)[0].type == AlertType.WHALE_TRADE

    def test_payload(self, make_trade, clock) -> None:
        ctx = EntityStateStore().record(
            make_trade(side="sell", sol="12", tokens="5000", price="0.0024"),
            now=clock.now,
        )

        alert = LargeTradeDetector().analyze(ctx)[0]

        assert alert.message == "Large sell detected: 12.00 SOL"
        assert alert.data == {
            "solAmount": Decimal("12"),
            "tokenAmount": Decimal("5000"),
            "price": Decimal("0.0024"),
            "tradeType": "sell",
        }

    def test_custom_thresholds(self, make_trade, clock) -> None:
        detector = LargeTradeDetector(
            config=LargeTradeConfig(large_threshold_sol=Decimal("1"), whale_threshold_sol=Decimal("2"))
        )
        ctx = EntityStateStore().record(make_trade(sol="1.5"), now=clock.now)

        assert detector.analyze(ctx)[0].type == AlertType.LARGE_TRADE
