"""Rapid price change detection."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from launch_monitor.detector.models import Alert, AlertType, Severity
from launch_monitor.ingestor.state import TradeContext, within_window


@dataclass(frozen=True)
class PriceMovementConfig:
    window_ms: int = 60_000
    threshold_percent: Decimal = Decimal("20")


class PriceMovementDetector:
    """Flags launches whose price moved sharply inside the window.

    The earliest in-window price sample is compared to the triggering
    trade's price rather than to the newest sample, because with
    out-of-order arrival the triggering trade is not necessarily the last
    history entry.
    """

    name = "price_movement"

    def __init__(self, *, config: PriceMovementConfig | None = None) -> None:
        self._cfg = config or PriceMovementConfig()

    def analyze(self, ctx: TradeContext) -> list[Alert]:
        window_prices = within_window(ctx.metrics.price_history, now=ctx.now, window_ms=self._cfg.window_ms)
        if len(window_prices) < 2:
            return []

        start_price = window_prices[0].price
        if start_price <= 0:
            return []

        trade = ctx.trade
        current_price = trade.price
        change_pct = abs(current_price - start_price) / start_price * 100
        if change_pct <= self._cfg.threshold_percent:
            return []

        direction = "increase" if current_price > start_price else "decrease"
        return [
            Alert(
                id=f"price_{trade.launch_id}_{ctx.now}",
                type=AlertType.RAPID_PRICE_CHANGE,
                severity=Severity.CRITICAL,
                message=(
                    f"Rapid price {direction}: {change_pct:.1f}% in {self._cfg.window_ms / 1000:g}s"
                ),
                data={
                    "startPrice": start_price,
                    "currentPrice": current_price,
                    "changePercent": float(change_pct),
                    "direction": direction,
                    "windowMs": self._cfg.window_ms,
                },
                timestamp=ctx.now,
                launch_id=trade.launch_id,
            )
        ]
