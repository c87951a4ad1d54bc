"""Trade velocity detection at launch and trader level."""

from __future__ import annotations

from dataclasses import dataclass

from launch_monitor.detector.models import Alert, AlertType, Severity
from launch_monitor.ingestor.state import TradeContext, within_window


@dataclass(frozen=True)
class VelocityConfig:
    window_ms: int = 60_000
    max_trades_per_launch: int = 20
    max_trades_per_address: int = 10


class VelocityDetector:
    """Flags bursts of trading inside a short window.

    Two independent checks run on every trade: the launch's trade count and
    the trader's trade count on that launch. Each raises a velocity_spike
    when its count strictly exceeds the configured maximum, so up to two
    alerts can come out of one trade.
    """

    name = "velocity"

    def __init__(self, *, config: VelocityConfig | None = None) -> None:
        self._cfg = config or VelocityConfig()

    def analyze(self, ctx: TradeContext) -> list[Alert]:
        trade = ctx.trade
        alerts: list[Alert] = []
        window_seconds = self._cfg.window_ms / 1000

        launch_count = len(within_window(ctx.metrics.recent_trades, now=ctx.now, window_ms=self._cfg.window_ms))
        if launch_count > self._cfg.max_trades_per_launch:
            alerts.append(
                Alert(
                    id=f"velocity_launch_{trade.launch_id}_{ctx.now}",
                    type=AlertType.VELOCITY_SPIKE,
                    severity=Severity.WARNING,
                    message=f"High trading velocity: {launch_count} trades in {window_seconds:g}s",
                    data={
                        "tradesInWindow": launch_count,
                        "threshold": self._cfg.max_trades_per_launch,
                        "windowMs": self._cfg.window_ms,
                    },
                    timestamp=ctx.now,
                    launch_id=trade.launch_id,
                )
            )

        address_count = len(within_window(ctx.activity.trades, now=ctx.now, window_ms=self._cfg.window_ms))
        if address_count > self._cfg.max_trades_per_address:
            alerts.append(
                Alert(
                    id=f"velocity_address_{trade.trader}_{ctx.now}",
                    type=AlertType.VELOCITY_SPIKE,
                    severity=Severity.WARNING,
                    message=f"High trading velocity for address: {address_count} trades in {window_seconds:g}s",
                    data={
                        "tradesInWindow": address_count,
                        "threshold": self._cfg.max_trades_per_address,
                        "windowMs": self._cfg.window_ms,
                        "trader": trade.trader,
                    },
                    timestamp=ctx.now,
                    launch_id=trade.launch_id,
                    trader=trade.trader,
                )
            )

        return alerts
