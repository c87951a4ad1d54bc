"""Data models for the ingestor module."""

from __future__ import annotations

import time
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Literal

# Indexer amounts are reported in base units (lamports for SOL).
BASE_UNITS_PER_TOKEN = Decimal("1000000000")


class TradeParseError(ValueError):
    """Raised when a trade payload cannot be turned into a TradeEvent."""


def now_ms() -> int:
    """Return the current Unix time in milliseconds."""
    return time.time_ns() // 1_000_000


def _decimal(data: dict[str, Any], *keys: str) -> Decimal:
    for key in keys:
        raw = data.get(key)
        if raw is None:
            continue
        try:
            return Decimal(str(raw))
        except InvalidOperation as e:
            raise TradeParseError(f"Invalid numeric value for {key}: {raw!r}") from e
    raise TradeParseError(f"Missing field: {keys[0]}")


def _timestamp(data: dict[str, Any]) -> int:
    raw = data.get("timestamp", data.get("time"))
    if raw is None:
        raise TradeParseError("Missing field: timestamp")
    try:
        ts = float(raw)
    except (TypeError, ValueError) as e:
        raise TradeParseError(f"Invalid timestamp: {raw!r}") from e
    # Seconds-resolution timestamps are promoted to milliseconds.
    if 0 < ts < 1e12:
        ts *= 1000.0
    return int(ts)


@dataclass(frozen=True)
class TradeEvent:
    """A single executed trade on a launch's bonding curve.

    Addresses and signatures are opaque strings; amounts are in whole
    units (SOL for ``sol_amount``).
    """

    launch_id: str
    trader: str
    side: Literal["buy", "sell"]
    sol_amount: Decimal
    token_amount: Decimal
    price: Decimal
    timestamp: int  # Unix epoch milliseconds
    signature: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TradeEvent:
        """Create a TradeEvent from a camelCase trade payload.

        Args:
            data: Payload with launchId (or launchPk), trader, side (or type),
                solAmount, tokenAmount, price, timestamp and signature.

        Returns:
            TradeEvent instance.

        Raises:
            TradeParseError: If a field is missing or not numeric.
        """
        side_raw = str(data.get("side") or data.get("type") or "").lower()
        if side_raw not in ("buy", "sell"):
            raise TradeParseError(f"Invalid trade side: {side_raw!r}")
        side: Literal["buy", "sell"] = "buy" if side_raw == "buy" else "sell"

        return cls(
            launch_id=str(data.get("launchId") or data.get("launch_id") or data.get("launchPk") or ""),
            trader=str(data.get("trader") or ""),
            side=side,
            sol_amount=_decimal(data, "solAmount", "sol_amount"),
            token_amount=_decimal(data, "tokenAmount", "token_amount"),
            price=_decimal(data, "price"),
            timestamp=_timestamp(data),
            signature=str(data.get("signature") or ""),
        )

    @classmethod
    def from_indexer_event(cls, data: dict[str, Any]) -> TradeEvent:
        """Create a TradeEvent from a raw indexer trade event.

        The indexer reports ``isBuy`` instead of a side and both amounts in
        base units, which are converted to whole units here.
        """
        if "isBuy" not in data:
            raise TradeParseError("Missing field: isBuy")
        side: Literal["buy", "sell"] = "buy" if bool(data["isBuy"]) else "sell"

        return cls(
            launch_id=str(data.get("launchPk") or data.get("launchId") or ""),
            trader=str(data.get("trader") or ""),
            side=side,
            sol_amount=_decimal(data, "solAmount") / BASE_UNITS_PER_TOKEN,
            token_amount=_decimal(data, "tokenAmount") / BASE_UNITS_PER_TOKEN,
            price=_decimal(data, "price"),
            timestamp=_timestamp(data),
            signature=str(data.get("signature") or ""),
        )

    @property
    def is_buy(self) -> bool:
        """Return True if this is a buy trade."""
        return self.side == "buy"

    @property
    def is_sell(self) -> bool:
        """Return True if this is a sell trade."""
        return self.side == "sell"

    def validate(self) -> tuple[str, ...]:
        """Return the problems that make this trade unusable (empty if valid)."""
        problems: list[str] = []
        if not self.launch_id:
            problems.append("launch_id is empty")
        if not self.trader:
            problems.append("trader is empty")
        if not self.signature:
            problems.append("signature is empty")
        if self.side not in ("buy", "sell"):
            problems.append(f"side must be buy or sell, got {self.side!r}")
        for name in ("sol_amount", "token_amount", "price"):
            value = getattr(self, name)
            if not isinstance(value, Decimal) or not value.is_finite():
                problems.append(f"{name} must be a finite number")
            elif value < 0:
                problems.append(f"{name} must be non-negative")
        if self.timestamp <= 0:
            problems.append("timestamp must be positive")
        return tuple(problems)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-ready dictionary."""
        return {
            "launchId": self.launch_id,
            "trader": self.trader,
            "side": self.side,
            "solAmount": str(self.sol_amount),
            "tokenAmount": str(self.token_amount),
            "price": str(self.price),
            "timestamp": self.timestamp,
            "signature": self.signature,
        }


def parse_trade(data: dict[str, Any], *, indexer: bool = False) -> TradeEvent:
    """Parse a camelCase trade payload, or a raw indexer event when ``indexer`` is set."""
    return TradeEvent.from_indexer_event(data) if indexer else TradeEvent.from_dict(data)
