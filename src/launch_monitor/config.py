"""Configuration management service with Pydantic Settings.

This module provides centralized configuration management for the
launch anomaly monitor, loading and validating environment variables
at startup. The resulting Settings object is a plain value: the
monitoring service receives it at construction time and never reads
process-wide configuration afterwards.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_FILE = ".env"
_ENV_FILE_ENCODING = "utf-8"


class DetectorSettings(BaseSettings):
    """Detector thresholds and windows."""

    model_config = SettingsConfigDict(env_prefix="DETECTOR_", extra="ignore", populate_by_name=True)

    large_trade_threshold_sol: Decimal = Field(
        default=Decimal("10"),
        alias="DETECTOR_LARGE_TRADE_THRESHOLD_SOL",
        ge=0,
        description="Trades at or above this SOL amount raise a large_trade alert",
    )
    whale_trade_threshold_sol: Decimal = Field(
        default=Decimal("50"),
        alias="DETECTOR_WHALE_TRADE_THRESHOLD_SOL",
        ge=0,
        description="Trades at or above this SOL amount raise a whale_trade alert",
    )
    max_trades_per_minute: int = Field(
        default=20,
        alias="DETECTOR_MAX_TRADES_PER_MINUTE",
        ge=1,
        le=100_000,
        description="Launch-level trade count tolerated inside the velocity window",
    )
    max_trades_per_address: int = Field(
        default=10,
        alias="DETECTOR_MAX_TRADES_PER_ADDRESS",
        ge=1,
        le=100_000,
        description="Per-trader trade count tolerated inside the velocity window",
    )
    velocity_window_ms: int = Field(
        default=60_000,
        alias="DETECTOR_VELOCITY_WINDOW_MS",
        ge=1_000,
        le=24 * 3_600_000,
        description="Velocity window",
    )
    rapid_price_change_percent: Decimal = Field(
        default=Decimal("20"),
        alias="DETECTOR_RAPID_PRICE_CHANGE_PERCENT",
        gt=0,
        description="Absolute price change (percent) inside the window that raises an alert",
    )
    price_change_window_ms: int = Field(
        default=60_000,
        alias="DETECTOR_PRICE_CHANGE_WINDOW_MS",
        ge=1_000,
        le=24 * 3_600_000,
        description="Price movement window",
    )
    wash_trading_window_ms: int = Field(
        default=300_000,
        alias="DETECTOR_WASH_TRADING_WINDOW_MS",
        ge=1_000,
        le=24 * 3_600_000,
        description="Wash trading window",
    )
    min_wash_trade_count: int = Field(
        default=5,
        alias="DETECTOR_MIN_WASH_TRADE_COUNT",
        ge=3,
        le=10_000,
        description="Minimum trader trades in the window before the round-trip ratio is evaluated",
    )
    wash_trade_ratio_threshold: float = Field(
        default=0.8,
        alias="DETECTOR_WASH_TRADE_RATIO_THRESHOLD",
        gt=0.0,
        le=1.0,
        description="Round-trip ratio at or above which wash trading is flagged",
    )
    volume_window_ms: int = Field(
        default=300_000,
        alias="DETECTOR_VOLUME_WINDOW_MS",
        ge=1_000,
        le=24 * 3_600_000,
        description="Window used for launch volume and summaries",
    )
    high_volume_multiplier: Decimal = Field(
        default=Decimal("5"),
        alias="DETECTOR_HIGH_VOLUME_MULTIPLIER",
        gt=0,
        description="Window volume / smoothed average ratio that raises high_volume",
    )
    volume_smoothing_alpha: Decimal = Field(
        default=Decimal("0.1"),
        alias="DETECTOR_VOLUME_SMOOTHING_ALPHA",
        gt=0,
        le=1,
        description="EMA smoothing factor for the average window volume",
    )
    repeated_trade_window_ms: int = Field(
        default=60_000,
        alias="DETECTOR_REPEATED_TRADE_WINDOW_MS",
        ge=1_000,
        le=24 * 3_600_000,
        description="Repeated similar-size trade window",
    )
    repeated_trade_min_count: int = Field(
        default=5,
        alias="DETECTOR_REPEATED_TRADE_MIN_COUNT",
        ge=2,
        le=10_000,
        description="Similar-size trades needed to raise repeated_trades",
    )
    repeated_trade_tolerance: Decimal = Field(
        default=Decimal("0.05"),
        alias="DETECTOR_REPEATED_TRADE_TOLERANCE",
        ge=0,
        lt=1,
        description="Relative size tolerance for two trades to count as similar",
    )

    @model_validator(mode="after")
    def validate_trade_thresholds(self) -> DetectorSettings:
        """Whale threshold must not sit below the large-trade threshold."""
        if self.whale_trade_threshold_sol < self.large_trade_threshold_sol:
            raise ValueError("DETECTOR_WHALE_TRADE_THRESHOLD_SOL must be >= DETECTOR_LARGE_TRADE_THRESHOLD_SOL")
        return self

    @property
    def max_window_ms(self) -> int:
        """Largest window any detector looks back over."""
        return max(
            self.velocity_window_ms,
            self.price_change_window_ms,
            self.wash_trading_window_ms,
            self.volume_window_ms,
            self.repeated_trade_window_ms,
        )


class MonitorSettings(BaseSettings):
    """Throttling, retention and scheduling settings."""

    model_config = SettingsConfigDict(env_prefix="MONITOR_", extra="ignore", populate_by_name=True)

    alert_cooldown_ms: int = Field(
        default=60_000,
        alias="MONITOR_ALERT_COOLDOWN_MS",
        ge=0,
        le=24 * 3_600_000,
        description="Minimum time between admitted alerts sharing a (type, launch, trader) key",
    )
    sweep_interval_ms: int = Field(
        default=60_000,
        alias="MONITOR_SWEEP_INTERVAL_MS",
        ge=100,
        le=3_600_000,
        description="How often stale state is evicted",
    )
    alert_retention_ms: int = Field(
        default=3_600_000,
        alias="MONITOR_ALERT_RETENTION_MS",
        ge=1_000,
        le=7 * 24 * 3_600_000,
        description="How long alerts stay queryable",
    )
    volume_sample_interval_ms: int = Field(
        default=60_000,
        alias="MONITOR_VOLUME_SAMPLE_INTERVAL_MS",
        ge=1_000,
        le=3_600_000,
        description="Minimum spacing between volume history samples",
    )
    volume_history_retention_ms: int = Field(
        default=3_600_000,
        alias="MONITOR_VOLUME_HISTORY_RETENTION_MS",
        ge=60_000,
        le=7 * 24 * 3_600_000,
        description="How much volume history is kept per launch",
    )
    broadcast_queue_size: int = Field(
        default=1_000,
        alias="MONITOR_BROADCAST_QUEUE_SIZE",
        ge=1,
        le=1_000_000,
        description="Pending alerts buffered per broadcast subscriber before the oldest is dropped",
    )
    recent_alerts_limit: int = Field(
        default=10,
        alias="MONITOR_RECENT_ALERTS_LIMIT",
        ge=0,
        le=1_000,
        description="Alerts included in a launch summary",
    )


class Settings(BaseSettings):
    """Main application settings.

    Loads configuration from environment variables with support for
    .env files via python-dotenv.

    Example:
        ```python
        from launch_monitor.config import get_settings

        settings = get_settings()
        print(settings.detector.whale_trade_threshold_sol)
        print(settings.log_level)
        ```
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding=_ENV_FILE_ENCODING,
        extra="ignore",
        populate_by_name=True,
    )

    # NOTE: Each nested BaseSettings must be given the same env_file, otherwise it
    # will only read from the process environment (and ignore `.env`).
    detector: DetectorSettings = Field(
        default_factory=lambda: DetectorSettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )
    monitor: MonitorSettings = Field(
        default_factory=lambda: MonitorSettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )

    def get_logging_level(self) -> int:
        """Get the numeric logging level."""
        level: int = getattr(logging, self.log_level)
        return level

    @property
    def eviction_age_ms(self) -> int:
        """Age after which trades and price samples are swept."""
        return 2 * self.detector.max_window_ms

    def summary(self) -> dict[str, str | dict[str, str]]:
        """Get a flat, string-valued summary of the effective settings."""
        return {
            "detector": {name: str(value) for name, value in self.detector.model_dump().items()},
            "monitor": {name: str(value) for name, value in self.monitor.model_dump().items()},
            "log_level": self.log_level,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Only entry points (the CLI) should call this; library code takes a
    Settings instance explicitly.

    Returns:
        The Settings instance.

    Raises:
        ValidationError: If environment variables have invalid values.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when you need to reload settings with
    different environment variables.
    """
    get_settings.cache_clear()
