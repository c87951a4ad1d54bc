"""Large and whale trade detection."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from launch_monitor.detector.models import Alert, AlertType, Severity
from launch_monitor.ingestor.state import TradeContext

DEFAULT_LARGE_TRADE_THRESHOLD = Decimal("10")
DEFAULT_WHALE_TRADE_THRESHOLD = Decimal("50")


@dataclass(frozen=True)
class LargeTradeConfig:
    large_threshold_sol: Decimal = DEFAULT_LARGE_TRADE_THRESHOLD
    whale_threshold_sol: Decimal = DEFAULT_WHALE_TRADE_THRESHOLD


class LargeTradeDetector:
    """Flags single trades by SOL size.

    A trade at or above the whale threshold raises a critical whale_trade;
    otherwise a trade at or above the large threshold raises a warning
    large_trade. At most one alert per trade.
    """

    name = "large_trade"

    def __init__(self, *, config: LargeTradeConfig | None = None) -> None:
        self._cfg = config or LargeTradeConfig()

    def analyze(self, ctx: TradeContext) -> list[Alert]:
        trade = ctx.trade
        if trade.sol_amount >= self._cfg.whale_threshold_sol:
            alert_type, severity, prefix, label = AlertType.WHALE_TRADE, Severity.CRITICAL, "whale", "Whale"
        elif trade.sol_amount >= self._cfg.large_threshold_sol:
            alert_type, severity, prefix, label = AlertType.LARGE_TRADE, Severity.WARNING, "large", "Large"
        else:
            return []

        return [
            Alert(
                id=f"{prefix}_{trade.signature}",
                type=alert_type,
                severity=severity,
                message=f"{label} {trade.side} detected: {trade.sol_amount:.2f} SOL",
                data={
                    "solAmount": trade.sol_amount,
                    "tokenAmount": trade.token_amount,
                    "price": trade.price,
                    "tradeType": trade.side,
                },
                timestamp=ctx.now,
                launch_id=trade.launch_id,
                trader=trade.trader,
            )
        ]
