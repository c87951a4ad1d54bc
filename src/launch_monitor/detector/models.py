"""Data models for the detector module."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol

from launch_monitor.ingestor.state import TradeContext


class AlertType(str, Enum):
    """Kinds of alerts the monitor can raise."""

    LARGE_TRADE = "large_trade"
    WHALE_TRADE = "whale_trade"
    HIGH_VOLUME = "high_volume"
    RAPID_PRICE_CHANGE = "rapid_price_change"
    VELOCITY_SPIKE = "velocity_spike"
    WASH_TRADING = "wash_trading"
    # Reserved: accepted by queries and stats, not emitted by a built-in detector.
    SUSPICIOUS_PATTERN = "suspicious_pattern"
    NEW_WHALE = "new_whale"
    REPEATED_TRADES = "repeated_trades"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


def _json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_value(v) for v in value]
    return value


@dataclass(frozen=True)
class Alert:
    """An anomaly raised by a detector.

    Attributes:
        id: Stable identifier derived from the alert's cause.
        type: Alert kind.
        severity: info, warning or critical.
        message: Human-readable description.
        data: Detector-specific payload.
        timestamp: Creation time (ms).
        launch_id: Launch the alert concerns, if any.
        trader: Trader the alert concerns, if any.
    """

    id: str
    type: AlertType
    severity: Severity
    message: str
    timestamp: int
    data: dict[str, Any] = field(default_factory=dict)
    launch_id: str | None = None
    trader: str | None = None

    @property
    def cooldown_key(self) -> tuple[str, str, str]:
        """Key used by the global throttle."""
        return (self.type.value, self.launch_id or "global", self.trader or "all")

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-ready dictionary."""
        out: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "data": _json_value(self.data),
            "timestamp": self.timestamp,
        }
        if self.launch_id is not None:
            out["launchId"] = self.launch_id
        if self.trader is not None:
            out["trader"] = self.trader
        return out


class Detector(Protocol):
    """A stateless check run against every accepted trade."""

    name: str

    def analyze(self, ctx: TradeContext) -> list[Alert]: ...
