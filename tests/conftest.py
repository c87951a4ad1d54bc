"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal

import pytest

from launch_monitor.ingestor.models import TradeEvent

T0 = 1_700_000_000_000


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: int = T0) -> None:
        self.now = start

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at a fixed epoch-millisecond instant."""
    return FakeClock()


@pytest.fixture
def make_trade(clock: FakeClock) -> Callable[..., TradeEvent]:
    """Factory for trades stamped at the fake clock's current time.

    Every call gets a unique signature unless one is passed explicitly.
    """
    counter = {"n": 0}

    def _make(
        *,
        launch_id: str = "launch_1",
        trader: str = "trader_1",
        side: str = "buy",
        sol: str | Decimal = "1",
        tokens: str | Decimal = "1000",
        price: str | Decimal = "0.001",
        timestamp: int | None = None,
        signature: str | None = None,
    ) -> TradeEvent:
        counter["n"] += 1
        return TradeEvent(
            launch_id=launch_id,
            trader=trader,
            side=side,  # type: ignore[arg-type]
            sol_amount=Decimal(sol),
            token_amount=Decimal(tokens),
            price=Decimal(price),
            timestamp=clock.now if timestamp is None else timestamp,
            signature=signature if signature is not None else f"sig_{counter['n']}",
        )

    return _make
