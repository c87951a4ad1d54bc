"""Monitoring service that owns all detection state.

This module provides the MonitoringService class that wires together the
state store, detectors, throttle, alert log and broadcaster, and runs the
periodic eviction sweep.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from launch_monitor.alerter.broadcast import AlertBroadcaster
from launch_monitor.alerter.log import AlertFilter, AlertLog
from launch_monitor.alerter.throttle import AlertThrottle
from launch_monitor.config import DetectorSettings, Settings
from launch_monitor.detector.large_trade import LargeTradeConfig, LargeTradeDetector
from launch_monitor.detector.models import Alert, Detector
from launch_monitor.detector.price_movement import PriceMovementConfig, PriceMovementDetector
from launch_monitor.detector.repeated_trades import RepeatedTradesConfig, RepeatedTradesDetector
from launch_monitor.detector.velocity import VelocityConfig, VelocityDetector
from launch_monitor.detector.volume_anomaly import VolumeAnomalyConfig, VolumeAnomalyDetector
from launch_monitor.detector.wash_trading import WashTradingConfig, WashTradingDetector
from launch_monitor.ingestor.models import TradeEvent, TradeParseError, now_ms, parse_trade
from launch_monitor.ingestor.state import EntityStateStore, StateStoreConfig, TradeContext
from launch_monitor.reporting import GlobalStats, LaunchSummary, build_global_stats, summarize_launch

logger = logging.getLogger(__name__)


class ServiceState(str, Enum):
    """Service lifecycle states."""

    STOPPED = "stopped"
    RUNNING = "running"


@dataclass
class MonitorStats:
    """Counters for the monitoring service."""

    started_at: int | None = None
    trades_processed: int = 0
    trades_rejected: int = 0
    alerts_generated: int = 0
    alerts_emitted: int = 0
    alerts_suppressed: int = 0
    detector_errors: int = 0
    sweeps: int = 0
    last_sweep_at: int | None = None
    last_error: str | None = None


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of submitting one trade.

    Attributes:
        alerts: Alerts admitted by the throttle, in admission order.
        errors: Validation problems; non-empty means the trade was rejected
            and no state was touched.
        candidates: Alerts produced by detectors before throttling.
    """

    alerts: tuple[Alert, ...] = ()
    errors: tuple[str, ...] = ()
    candidates: int = 0

    @property
    def accepted(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class SweepStats:
    trades_removed: int = 0
    traders_removed: int = 0
    launches_removed: int = 0
    alerts_removed: int = 0
    cooldowns_removed: int = 0


def build_detectors(cfg: DetectorSettings) -> list[Detector]:
    """Instantiate the built-in detectors in pipeline order."""
    return [
        LargeTradeDetector(
            config=LargeTradeConfig(
                large_threshold_sol=cfg.large_trade_threshold_sol,
                whale_threshold_sol=cfg.whale_trade_threshold_sol,
            )
        ),
        VelocityDetector(
            config=VelocityConfig(
                window_ms=cfg.velocity_window_ms,
                max_trades_per_launch=cfg.max_trades_per_minute,
                max_trades_per_address=cfg.max_trades_per_address,
            )
        ),
        PriceMovementDetector(
            config=PriceMovementConfig(
                window_ms=cfg.price_change_window_ms,
                threshold_percent=cfg.rapid_price_change_percent,
            )
        ),
        WashTradingDetector(
            config=WashTradingConfig(
                window_ms=cfg.wash_trading_window_ms,
                min_trades=cfg.min_wash_trade_count,
                ratio_threshold=cfg.wash_trade_ratio_threshold,
            )
        ),
        VolumeAnomalyDetector(
            config=VolumeAnomalyConfig(
                window_ms=cfg.volume_window_ms,
                high_volume_multiplier=cfg.high_volume_multiplier,
            )
        ),
        RepeatedTradesDetector(
            config=RepeatedTradesConfig(
                window_ms=cfg.repeated_trade_window_ms,
                min_similar_trades=cfg.repeated_trade_min_count,
                tolerance=cfg.repeated_trade_tolerance,
            )
        ),
    ]


class MonitoringService:
    """Real-time trading anomaly monitor.

    All mutable state lives on this instance and is driven from one event
    loop: ``process_trade`` is synchronous and never awaits, so it cannot
    interleave with the sweep task.

    Flow:
        Trade Source → validation → state store → detectors → throttle →
        alert log + broadcaster

    Example:
        ```python
        broadcaster = AlertBroadcaster()
        monitor = MonitoringService(Settings(), broadcaster=broadcaster)

        await monitor.start()
        result = monitor.process_trade(trade)
        await monitor.stop()
        ```
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        clock: Callable[[], int] | None = None,
        broadcaster: AlertBroadcaster | None = None,
        detectors: Sequence[Detector] | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            settings: Thresholds and timings. Defaults to Settings() built
                from the environment.
            clock: Millisecond clock; defaults to wall-clock time.
            broadcaster: Where admitted alerts are published.
            detectors: Override the built-in detector pipeline.
        """
        self._settings = settings or Settings()
        self._clock = clock or now_ms
        self._broadcaster = broadcaster or AlertBroadcaster(
            queue_size=self._settings.monitor.broadcast_queue_size,
        )

        detector_cfg = self._settings.detector
        monitor_cfg = self._settings.monitor
        self._detectors: list[Detector] = list(detectors) if detectors is not None else build_detectors(detector_cfg)
        self._store = EntityStateStore(
            config=StateStoreConfig(
                volume_window_ms=detector_cfg.volume_window_ms,
                smoothing_alpha=detector_cfg.volume_smoothing_alpha,
                volume_sample_interval_ms=monitor_cfg.volume_sample_interval_ms,
                volume_history_retention_ms=monitor_cfg.volume_history_retention_ms,
            )
        )
        self._throttle = AlertThrottle(cooldown_ms=monitor_cfg.alert_cooldown_ms)
        self._alert_log = AlertLog()

        self._state = ServiceState.STOPPED
        self._stats = MonitorStats()
        self._stop_event: asyncio.Event | None = None
        self._sweep_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def stats(self) -> MonitorStats:
        return self._stats

    @property
    def is_running(self) -> bool:
        return self._state == ServiceState.RUNNING

    @property
    def broadcaster(self) -> AlertBroadcaster:
        return self._broadcaster

    @property
    def store(self) -> EntityStateStore:
        return self._store

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start the periodic eviction sweep on the running event loop."""
        if self._state == ServiceState.RUNNING:
            logger.warning("Monitoring service already running")
            return

        self._stop_event = asyncio.Event()
        self._sweep_task = asyncio.create_task(self._run_sweep_loop())
        self._stats.started_at = self._clock()
        self._state = ServiceState.RUNNING
        logger.info(
            "Trading monitoring service started (sweep every %dms, %d detectors)",
            self._settings.monitor.sweep_interval_ms,
            len(self._detectors),
        )

    async def stop(self) -> None:
        """Halt the sweep and release all state. Always succeeds."""
        if self._stop_event:
            self._stop_event.set()
        task, self._sweep_task = self._sweep_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        self._store.clear()
        self._alert_log.clear()
        self._throttle.clear()
        self._broadcaster.close()

        was_running = self._state == ServiceState.RUNNING
        self._state = ServiceState.STOPPED
        if was_running:
            logger.info("Trading monitoring service stopped")

    async def _run_sweep_loop(self) -> None:
        if not self._stop_event:
            return
        interval = self._settings.monitor.sweep_interval_ms / 1000
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
                break
            except TimeoutError:
                pass
            try:
                self.sweep()
            except Exception as e:
                self._stats.last_error = str(e)
                logger.warning("Eviction sweep failed: %s", e)

    async def __aenter__(self) -> MonitoringService:
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Trade processing
    # ------------------------------------------------------------------

    def process_trade(self, trade: TradeEvent) -> ProcessResult:
        """Run one trade through detection.

        Invalid trades are rejected before any state is touched. Accepted
        trades update the state store, then every detector runs; a failing
        detector is logged and skipped without affecting the others.

        Args:
            trade: The trade event from the Trade Source.

        Returns:
            ProcessResult with the admitted alerts or the validation errors.
        """
        problems = trade.validate()
        if problems:
            self._stats.trades_rejected += 1
            logger.warning("Rejected trade %s: %s", trade.signature or "<unsigned>", "; ".join(problems))
            return ProcessResult(errors=problems)

        now = self._clock()
        self._stats.trades_processed += 1
        ctx = self._store.record(trade, now=now)

        candidates = self._run_detectors(ctx)
        self._stats.alerts_generated += len(candidates)

        admitted: list[Alert] = []
        for alert in candidates:
            if not self._throttle.admit(alert, now=now):
                self._stats.alerts_suppressed += 1
                continue
            self._alert_log.append(alert)
            if alert.trader == trade.trader:
                ctx.activity.last_alert[alert.type] = now
            self._broadcaster.publish(alert)
            admitted.append(alert)
            logger.warning("Trading alert: %s - %s", alert.type.value, alert.message)

        self._stats.alerts_emitted += len(admitted)
        return ProcessResult(alerts=tuple(admitted), candidates=len(candidates))

    def process_payload(self, data: dict[str, Any], *, indexer: bool = False) -> ProcessResult:
        """Parse a raw trade payload and process it.

        Args:
            data: camelCase trade dict, or a raw indexer event when
                ``indexer`` is True.
            indexer: Whether amounts are in base units with an isBuy flag.
        """
        try:
            trade = parse_trade(data, indexer=indexer)
        except TradeParseError as e:
            self._stats.trades_rejected += 1
            logger.warning("Rejected unparseable trade payload: %s", e)
            return ProcessResult(errors=(str(e),))
        return self.process_trade(trade)

    def _run_detectors(self, ctx: TradeContext) -> list[Alert]:
        alerts: list[Alert] = []
        for detector in self._detectors:
            try:
                alerts.extend(detector.analyze(ctx))
            except Exception as e:
                self._stats.detector_errors += 1
                self._stats.last_error = f"{detector.name}:{e.__class__.__name__}"
                logger.exception(
                    "Detector %s failed on trade %s; skipping",
                    detector.name,
                    ctx.trade.signature,
                )
        return alerts

    # ------------------------------------------------------------------
    # Eviction
    # ------------------------------------------------------------------

    def sweep(self, now: int | None = None) -> SweepStats:
        """Evict stale trades, launches, alerts and cooldowns. Idempotent."""
        if now is None:
            now = self._clock()

        pruned = self._store.prune(cutoff=now - self._settings.eviction_age_ms)
        alerts_removed = self._alert_log.prune(cutoff=now - self._settings.monitor.alert_retention_ms)
        cooldowns_removed = self._throttle.prune(now=now)

        self._stats.sweeps += 1
        self._stats.last_sweep_at = now
        result = SweepStats(
            trades_removed=pruned.trades_removed,
            traders_removed=pruned.traders_removed,
            launches_removed=pruned.launches_removed,
            alerts_removed=alerts_removed,
            cooldowns_removed=cooldowns_removed,
        )
        logger.debug(
            "Sweep: trades=%d traders=%d launches=%d alerts=%d cooldowns=%d (active launches=%d)",
            result.trades_removed,
            result.traders_removed,
            result.launches_removed,
            result.alerts_removed,
            result.cooldowns_removed,
            len(self._store),
        )
        return result

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_alerts(self, alert_filter: AlertFilter | None = None) -> list[Alert]:
        """Return retained alerts matching the filter, newest first."""
        return self._alert_log.query(alert_filter)

    def launch_summary(self, launch_id: str) -> LaunchSummary | None:
        """Summarize a launch over the volume window, or None if it is not tracked."""
        metrics = self._store.get(launch_id)
        if metrics is None:
            return None
        return summarize_launch(
            launch_id,
            metrics,
            now=self._clock(),
            window_ms=self._settings.detector.volume_window_ms,
            recent_alerts=self._alert_log.query(
                AlertFilter(launch_id=launch_id, limit=self._settings.monitor.recent_alerts_limit)
            ),
        )

    def global_stats(self) -> GlobalStats:
        return build_global_stats(active_launches=len(self._store), alert_log=self._alert_log)

    def config_snapshot(self) -> dict[str, Any]:
        """Effective thresholds and timings."""
        return self._settings.summary()
