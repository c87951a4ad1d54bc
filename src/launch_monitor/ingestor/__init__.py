"""Data ingestion layer - Trade events and windowed launch state."""

from launch_monitor.ingestor.models import TradeEvent, TradeParseError, now_ms, parse_trade
from launch_monitor.ingestor.state import (
    AddressActivity,
    EntityStateStore,
    LaunchMetrics,
    PricePoint,
    PruneStats,
    StateStoreConfig,
    TradeContext,
    VolumePoint,
)

__all__ = [
    "AddressActivity",
    "EntityStateStore",
    "LaunchMetrics",
    "PricePoint",
    "PruneStats",
    "StateStoreConfig",
    "TradeContext",
    "TradeEvent",
    "TradeParseError",
    "VolumePoint",
    "now_ms",
    "parse_trade",
]
