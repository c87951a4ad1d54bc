"""Anomaly detection layer - Per-trade detectors over windowed launch state."""

from launch_monitor.detector.large_trade import LargeTradeConfig, LargeTradeDetector
from launch_monitor.detector.models import Alert, AlertType, Detector, Severity
from launch_monitor.detector.price_movement import PriceMovementConfig, PriceMovementDetector
from launch_monitor.detector.repeated_trades import RepeatedTradesConfig, RepeatedTradesDetector
from launch_monitor.detector.velocity import VelocityConfig, VelocityDetector
from launch_monitor.detector.volume_anomaly import VolumeAnomalyConfig, VolumeAnomalyDetector
from launch_monitor.detector.wash_trading import WashTradingConfig, WashTradingDetector

__all__ = [
    "Alert",
    "AlertType",
    "Detector",
    "LargeTradeConfig",
    "LargeTradeDetector",
    "PriceMovementConfig",
    "PriceMovementDetector",
    "RepeatedTradesConfig",
    "RepeatedTradesDetector",
    "Severity",
    "VelocityConfig",
    "VelocityDetector",
    "VolumeAnomalyConfig",
    "VolumeAnomalyDetector",
    "WashTradingConfig",
    "WashTradingDetector",
]
