"""Wash trading heuristic based on buy/sell round trips.

A trader whose recent trades keep flipping direction (buy, sell, buy or
sell, buy, sell) is likely churning volume against themselves. This is a
heuristic, not proof: the detector only sees one trader's side sequence.

Round trips are counted over consecutive overlapping triples, so a strictly
alternating run of n trades scores n - 2 round trips (ratio 1.0), and a
single flip can contribute to up to three triples.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from launch_monitor.detector.models import Alert, AlertType, Severity
from launch_monitor.ingestor.models import TradeEvent
from launch_monitor.ingestor.state import TradeContext, within_window

logger = logging.getLogger(__name__)

_ROUND_TRIP_PATTERNS = frozenset({("buy", "sell", "buy"), ("sell", "buy", "sell")})


@dataclass(frozen=True)
class WashTradingConfig:
    window_ms: int = 300_000
    min_trades: int = 5
    ratio_threshold: float = 0.8


def count_round_trips(trades: Sequence[TradeEvent]) -> int:
    """Count overlapping side triples that form a round trip."""
    return sum(
        1
        for i in range(2, len(trades))
        if (trades[i - 2].side, trades[i - 1].side, trades[i].side) in _ROUND_TRIP_PATTERNS
    )


def round_trip_ratio(trades: Sequence[TradeEvent]) -> float | None:
    """Round trips per evaluable triple, or None with fewer than three trades."""
    if len(trades) < 3:
        return None
    return count_round_trips(trades) / (len(trades) - 2)


class WashTradingDetector:
    name = "wash_trading"

    def __init__(self, *, config: WashTradingConfig | None = None) -> None:
        self._cfg = config or WashTradingConfig()

    def analyze(self, ctx: TradeContext) -> list[Alert]:
        recent = within_window(ctx.activity.trades, now=ctx.now, window_ms=self._cfg.window_ms)
        if len(recent) < self._cfg.min_trades:
            return []

        ratio = round_trip_ratio(recent)
        if ratio is None or ratio < self._cfg.ratio_threshold:
            return []

        round_trips = count_round_trips(recent)
        trade = ctx.trade
        logger.debug(
            "Round-trip pattern for %s on %s: %d/%d",
            trade.trader,
            trade.launch_id,
            round_trips,
            len(recent) - 2,
        )
        return [
            Alert(
                id=f"wash_{trade.trader}_{ctx.now}",
                type=AlertType.WASH_TRADING,
                severity=Severity.CRITICAL,
                message=(
                    f"Potential wash trading detected: {ratio * 100:.0f}% round-trip pattern "
                    f"(heuristic, not confirmed)"
                ),
                data={
                    "roundTrips": round_trips,
                    "totalTrades": len(recent),
                    "roundTripRatio": ratio,
                    "windowMs": self._cfg.window_ms,
                },
                timestamp=ctx.now,
                launch_id=trade.launch_id,
                trader=trade.trader,
            )
        ]
