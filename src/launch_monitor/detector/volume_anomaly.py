"""Launch volume spike detection against a smoothed baseline."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from launch_monitor.detector.models import Alert, AlertType, Severity
from launch_monitor.ingestor.state import TradeContext, within_window


@dataclass(frozen=True)
class VolumeAnomalyConfig:
    window_ms: int = 300_000
    high_volume_multiplier: Decimal = Decimal("5")


class VolumeAnomalyDetector:
    """Flags a window volume that dwarfs the launch's smoothed average.

    The ratio uses the baseline as it stood before the triggering trade was
    folded into the average, so a single huge trade cannot hide itself by
    inflating its own baseline. The first observation of a launch only seeds
    the average and never alerts.
    """

    name = "volume_anomaly"

    def __init__(self, *, config: VolumeAnomalyConfig | None = None) -> None:
        self._cfg = config or VolumeAnomalyConfig()

    def analyze(self, ctx: TradeContext) -> list[Alert]:
        baseline = ctx.volume_baseline
        if baseline is None or baseline <= 0:
            return []

        ratio = ctx.window_volume / baseline
        if ratio < self._cfg.high_volume_multiplier:
            return []

        trade = ctx.trade
        trade_count = len(within_window(ctx.metrics.recent_trades, now=ctx.now, window_ms=self._cfg.window_ms))
        return [
            Alert(
                id=f"volume_high_{trade.launch_id}_{ctx.now}",
                type=AlertType.HIGH_VOLUME,
                severity=Severity.WARNING,
                message=f"Unusual volume spike: {ratio:.1f}x average",
                data={
                    "currentVolume": ctx.window_volume,
                    "averageVolume": baseline,
                    "volumeRatio": float(ratio),
                    "tradeCount": trade_count,
                },
                timestamp=ctx.now,
                launch_id=trade.launch_id,
            )
        ]
