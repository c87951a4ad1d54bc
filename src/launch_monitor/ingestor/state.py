"""In-memory per-launch and per-trader windowed state.

The store is the single owner of LaunchMetrics and AddressActivity. It is not
thread-safe: callers drive it from one event loop (trade processing and the
eviction sweep share that loop).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Protocol, TypeVar

from launch_monitor.ingestor.models import TradeEvent

if TYPE_CHECKING:
    from launch_monitor.detector.models import AlertType

logger = logging.getLogger(__name__)


class _Timestamped(Protocol):
    @property
    def timestamp(self) -> int: ...


T = TypeVar("T", bound=_Timestamped)


def within_window(items: Iterable[T], *, now: int, window_ms: int) -> list[T]:
    """Return the items strictly newer than ``now - window_ms``, preserving order."""
    cutoff = now - window_ms
    return [item for item in items if item.timestamp > cutoff]


def total_sol(trades: Iterable[TradeEvent]) -> Decimal:
    return sum((t.sol_amount for t in trades), Decimal(0))


@dataclass(frozen=True)
class PricePoint:
    price: Decimal
    timestamp: int


@dataclass(frozen=True)
class VolumePoint:
    volume: Decimal
    timestamp: int


@dataclass
class AddressActivity:
    """A trader's activity on a single launch."""

    trades: list[TradeEvent] = field(default_factory=list)
    last_alert: dict[AlertType, int] = field(default_factory=dict)


@dataclass
class LaunchMetrics:
    """Windowed history for one launch."""

    recent_trades: list[TradeEvent] = field(default_factory=list)
    price_history: list[PricePoint] = field(default_factory=list)
    volume_history: list[VolumePoint] = field(default_factory=list)
    average_volume: Decimal = Decimal(0)
    volume_observations: int = 0
    trader_activity: dict[str, AddressActivity] = field(default_factory=dict)


@dataclass(frozen=True)
class TradeContext:
    """Everything a detector may read about the trade being processed.

    Attributes:
        trade: The triggering trade.
        metrics: Launch state, already including the trade.
        activity: The trader's state on this launch, already including the trade.
        now: Processing time (ms) that all windows are anchored to.
        window_volume: Launch SOL volume inside the volume window.
        volume_baseline: Smoothed average volume before this trade updated it,
            or None when this trade was the launch's first observation.
    """

    trade: TradeEvent
    metrics: LaunchMetrics
    activity: AddressActivity
    now: int
    window_volume: Decimal
    volume_baseline: Decimal | None


@dataclass(frozen=True)
class PruneStats:
    trades_removed: int = 0
    traders_removed: int = 0
    launches_removed: int = 0


@dataclass(frozen=True)
class StateStoreConfig:
    volume_window_ms: int = 300_000
    smoothing_alpha: Decimal = Decimal("0.1")
    volume_sample_interval_ms: int = 60_000
    volume_history_retention_ms: int = 3_600_000


class EntityStateStore:
    """Per-launch and per-trader bounded histories.

    Example:
        ```python
        store = EntityStateStore()
        ctx = store.record(trade, now=now_ms())
        print(ctx.window_volume, ctx.metrics.average_volume)
        ```
    """

    def __init__(self, *, config: StateStoreConfig | None = None) -> None:
        self._cfg = config or StateStoreConfig()
        self._launches: dict[str, LaunchMetrics] = {}

    def __len__(self) -> int:
        return len(self._launches)

    def __contains__(self, launch_id: object) -> bool:
        return launch_id in self._launches

    def get(self, launch_id: str) -> LaunchMetrics | None:
        return self._launches.get(launch_id)

    def launch_ids(self) -> Iterator[str]:
        return iter(list(self._launches))

    def record(self, trade: TradeEvent, *, now: int) -> TradeContext:
        """Append a trade to all relevant histories and update the volume EMA.

        Args:
            trade: A validated trade.
            now: Processing time in milliseconds.

        Returns:
            TradeContext for the detector pipeline, carrying the pre-update
            volume baseline.
        """
        metrics = self._launches.get(trade.launch_id)
        if metrics is None:
            metrics = LaunchMetrics()
            self._launches[trade.launch_id] = metrics
            logger.debug("Tracking new launch %s", trade.launch_id)

        metrics.recent_trades.append(trade)
        metrics.price_history.append(PricePoint(price=trade.price, timestamp=trade.timestamp))

        activity = metrics.trader_activity.get(trade.trader)
        if activity is None:
            activity = AddressActivity()
            metrics.trader_activity[trade.trader] = activity
        activity.trades.append(trade)

        window_volume = total_sol(
            within_window(metrics.recent_trades, now=now, window_ms=self._cfg.volume_window_ms)
        )

        baseline: Decimal | None
        if metrics.volume_observations == 0:
            # Seed directly so the first window does not start from a zero bias.
            baseline = None
            metrics.average_volume = window_volume
        else:
            baseline = metrics.average_volume
            alpha = self._cfg.smoothing_alpha
            metrics.average_volume = alpha * window_volume + (1 - alpha) * metrics.average_volume
        metrics.volume_observations += 1

        self._sample_volume(metrics, window_volume=window_volume, now=now)

        return TradeContext(
            trade=trade,
            metrics=metrics,
            activity=activity,
            now=now,
            window_volume=window_volume,
            volume_baseline=baseline,
        )

    def _sample_volume(self, metrics: LaunchMetrics, *, window_volume: Decimal, now: int) -> None:
        history = metrics.volume_history
        if history and now - history[-1].timestamp < self._cfg.volume_sample_interval_ms:
            return
        history.append(VolumePoint(volume=window_volume, timestamp=now))
        metrics.volume_history = within_window(
            history,
            now=now,
            window_ms=self._cfg.volume_history_retention_ms,
        )

    def prune(self, *, cutoff: int) -> PruneStats:
        """Drop trades and price samples at or before ``cutoff``.

        Traders left without trades and launches left without recent trades
        are removed entirely. Safe to call repeatedly.
        """
        trades_removed = 0
        traders_removed = 0
        launches_removed = 0

        for launch_id in list(self._launches):
            metrics = self._launches[launch_id]

            before = len(metrics.recent_trades)
            metrics.recent_trades = [t for t in metrics.recent_trades if t.timestamp > cutoff]
            trades_removed += before - len(metrics.recent_trades)
            metrics.price_history = [p for p in metrics.price_history if p.timestamp > cutoff]

            for trader in list(metrics.trader_activity):
                activity = metrics.trader_activity[trader]
                activity.trades = [t for t in activity.trades if t.timestamp > cutoff]
                if not activity.trades:
                    del metrics.trader_activity[trader]
                    traders_removed += 1

            if not metrics.recent_trades:
                del self._launches[launch_id]
                launches_removed += 1

        return PruneStats(
            trades_removed=trades_removed,
            traders_removed=traders_removed,
            launches_removed=launches_removed,
        )

    def clear(self) -> None:
        self._launches.clear()
