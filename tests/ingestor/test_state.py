"""Tests for the entity state store."""

from __future__ import annotations

from decimal import Decimal

from launch_monitor.ingestor.state import (
    EntityStateStore,
    PricePoint,
    StateStoreConfig,
    total_sol,
    within_window,
)


class TestWithinWindow:
    def test_excludes_boundary(self) -> None:
        """An item exactly window_ms old is outside the window."""
        points = [PricePoint(price=Decimal(1), timestamp=ts) for ts in (1000, 1001, 2000)]

        result = within_window(points, now=2000, window_ms=1000)

        assert [p.timestamp for p in result] == [1001, 2000]


class TestRecord:
    """Tests for EntityStateStore.record."""

    def test_creates_launch_and_trader(self, make_trade, clock) -> None:
        store = EntityStateStore()
        trade = make_trade()

        ctx = store.record(trade, now=clock.now)

        assert "launch_1" in store
        assert len(store) == 1
        assert ctx.metrics.recent_trades == [trade]
        assert ctx.activity.trades == [trade]
        assert ctx.metrics.price_history == [PricePoint(price=trade.price, timestamp=trade.timestamp)]
        assert ctx.now == clock.now

    def test_first_observation_seeds_average(self, make_trade, clock) -> None:
        """The first trade sets the average directly and carries no baseline."""
        store = EntityStateStore()

        ctx = store.record(make_trade(sol="4"), now=clock.now)

        assert ctx.volume_baseline is None
        assert ctx.window_volume == Decimal("4")
        assert ctx.metrics.average_volume == Decimal("4")
        assert ctx.metrics.volume_observations == 1

    def test_average_is_exponentially_smoothed(self, make_trade, clock) -> None:
        """Later trades blend the window volume into the average."""
        store = EntityStateStore(config=StateStoreConfig(smoothing_alpha=Decimal("0.5")))
        store.record(make_trade(sol="4"), now=clock.now)
        clock.advance(1_000)

        ctx = store.record(make_trade(sol="4"), now=clock.now)

        assert ctx.window_volume == Decimal("8")
        assert ctx.volume_baseline == Decimal("4")
        assert ctx.metrics.average_volume == Decimal("6")

    def test_window_volume_ignores_old_trades(self, make_trade, clock) -> None:
        store = EntityStateStore(config=StateStoreConfig(volume_window_ms=10_000))
        store.record(make_trade(sol="100"), now=clock.now)
        clock.advance(10_000)

        ctx = store.record(make_trade(sol="1"), now=clock.now)

        assert ctx.window_volume == Decimal("1")

    def test_traders_tracked_separately(self, make_trade, clock) -> None:
        store = EntityStateStore()
        store.record(make_trade(trader="alice"), now=clock.now)
        ctx = store.record(make_trade(trader="bob"), now=clock.now)

        assert len(ctx.activity.trades) == 1
        assert set(ctx.metrics.trader_activity) == {"alice", "bob"}
        assert len(ctx.metrics.recent_trades) == 2

    def test_volume_history_sampled_by_interval(self, make_trade, clock) -> None:
        store = EntityStateStore(config=StateStoreConfig(volume_sample_interval_ms=60_000))
        store.record(make_trade(), now=clock.now)
        clock.advance(30_000)
        store.record(make_trade(), now=clock.now)
        clock.advance(30_000)
        ctx = store.record(make_trade(), now=clock.now)

        assert len(ctx.metrics.volume_history) == 2


class TestPrune:
    """Tests for EntityStateStore.prune."""

    def test_removes_stale_launches(self, make_trade, clock) -> None:
        store = EntityStateStore()
        store.record(make_trade(launch_id="old"), now=clock.now)
        clock.advance(700_000)
        store.record(make_trade(launch_id="new"), now=clock.now)

        stats = store.prune(cutoff=clock.now - 600_000)

        assert "old" not in store
        assert "new" in store
        assert stats.launches_removed == 1
        assert stats.trades_removed == 1
        assert stats.traders_removed == 1

    def test_keeps_launch_with_recent_trades(self, make_trade, clock) -> None:
        store = EntityStateStore()
        store.record(make_trade(trader="alice"), now=clock.now)
        clock.advance(700_000)
        store.record(make_trade(trader="bob"), now=clock.now)

        store.prune(cutoff=clock.now - 600_000)

        metrics = store.get("launch_1")
        assert metrics is not None
        assert set(metrics.trader_activity) == {"bob"}
        assert len(metrics.price_history) == 1

    def test_idempotent(self, make_trade, clock) -> None:
        store = EntityStateStore()
        store.record(make_trade(), now=clock.now)
        clock.advance(700_000)

        first = store.prune(cutoff=clock.now - 600_000)
        second = store.prune(cutoff=clock.now - 600_000)

        assert first.launches_removed == 1
        assert second.launches_removed == 0
        assert len(store) == 0

    def test_clear(self, make_trade, clock) -> None:
        store = EntityStateStore()
        store.record(make_trade(), now=clock.now)
        store.clear()
        assert len(store) == 0
        assert list(store.launch_ids()) == []


def test_total_sol(make_trade) -> None:
    assert total_sol([make_trade(sol="1.5"), make_trade(sol="2")]) == Decimal("3.5")
    assert total_sol([]) == Decimal(0)
