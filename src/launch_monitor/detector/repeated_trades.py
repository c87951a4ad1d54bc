"""Repeated similar-size trade detection."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from launch_monitor.detector.models import Alert, AlertType, Severity
from launch_monitor.ingestor.state import TradeContext, within_window


@dataclass(frozen=True)
class RepeatedTradesConfig:
    window_ms: int = 60_000
    min_similar_trades: int = 5
    tolerance: Decimal = Decimal("0.05")


class RepeatedTradesDetector:
    """Flags a trader repeating near-identical trade sizes (bot-like churn).

    Counts the trader's in-window trades whose SOL amount lies within the
    relative tolerance of the triggering trade's amount, the triggering
    trade included.
    """

    name = "repeated_trades"

    def __init__(self, *, config: RepeatedTradesConfig | None = None) -> None:
        self._cfg = config or RepeatedTradesConfig()

    def analyze(self, ctx: TradeContext) -> list[Alert]:
        trade = ctx.trade
        if trade.sol_amount <= 0:
            return []

        recent = within_window(ctx.activity.trades, now=ctx.now, window_ms=self._cfg.window_ms)
        if len(recent) < self._cfg.min_similar_trades:
            return []

        low = 1 - self._cfg.tolerance
        high = 1 + self._cfg.tolerance
        similar = [t for t in recent if low <= t.sol_amount / trade.sol_amount <= high]
        if len(similar) < self._cfg.min_similar_trades:
            return []

        return [
            Alert(
                id=f"repeated_{trade.trader}_{ctx.now}",
                type=AlertType.REPEATED_TRADES,
                severity=Severity.WARNING,
                message=(
                    f"Repeated similar trades detected: {len(similar)} trades of "
                    f"~{trade.sol_amount:.2f} SOL"
                ),
                data={
                    "tradeCount": len(similar),
                    "averageAmount": trade.sol_amount,
                    "windowMs": self._cfg.window_ms,
                },
                timestamp=ctx.now,
                launch_id=trade.launch_id,
                trader=trade.trader,
            )
        ]
