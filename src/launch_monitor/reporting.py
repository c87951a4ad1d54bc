"""Read-only snapshots of monitor state for the query layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from launch_monitor.alerter.log import AlertLog
from launch_monitor.detector.models import Alert
from launch_monitor.ingestor.state import LaunchMetrics, total_sol, within_window


@dataclass(frozen=True)
class LaunchSummary:
    """Activity of one launch over the volume window."""

    launch_id: str
    trade_count: int
    volume: Decimal
    unique_traders: int
    price_change_pct: float
    recent_alerts: tuple[Alert, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "launchId": self.launch_id,
            "tradeCount": self.trade_count,
            "volume": str(self.volume),
            "uniqueTraders": self.unique_traders,
            "priceChange": self.price_change_pct,
            "alerts": [a.to_dict() for a in self.recent_alerts],
        }


@dataclass(frozen=True)
class GlobalStats:
    active_launches: int
    total_alerts: int
    alerts_by_severity: dict[str, int] = field(default_factory=dict)
    alerts_by_type: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "activeLaunches": self.active_launches,
            "totalAlerts": self.total_alerts,
            "alertsBySeverity": dict(self.alerts_by_severity),
            "alertsByType": dict(self.alerts_by_type),
        }


def price_change_pct(metrics: LaunchMetrics) -> float:
    """Percent change from the first to the last retained price sample.

    Zero when there are fewer than two samples or the first price is zero.
    """
    history = metrics.price_history
    if len(history) < 2:
        return 0.0
    first = history[0].price
    if first <= 0:
        return 0.0
    return float((history[-1].price - first) / first * 100)


def summarize_launch(
    launch_id: str,
    metrics: LaunchMetrics,
    *,
    now: int,
    window_ms: int,
    recent_alerts: list[Alert],
) -> LaunchSummary:
    recent = within_window(metrics.recent_trades, now=now, window_ms=window_ms)
    return LaunchSummary(
        launch_id=launch_id,
        trade_count=len(recent),
        volume=total_sol(recent),
        unique_traders=len({t.trader for t in recent}),
        price_change_pct=price_change_pct(metrics),
        recent_alerts=tuple(recent_alerts),
    )


def build_global_stats(*, active_launches: int, alert_log: AlertLog) -> GlobalStats:
    return GlobalStats(
        active_launches=active_launches,
        total_alerts=len(alert_log),
        alerts_by_severity=alert_log.count_by_severity(),
        alerts_by_type=alert_log.count_by_type(),
    )
