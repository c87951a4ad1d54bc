"""Alerting layer - Throttling, retention and broadcast of alerts."""

from launch_monitor.alerter.broadcast import ALERTS_CHANNEL, AlertBroadcaster, AlertSubscription
from launch_monitor.alerter.formatter import AlertFormatter, FormattedAlert, format_broadcast
from launch_monitor.alerter.log import AlertFilter, AlertLog
from launch_monitor.alerter.throttle import AlertThrottle

__all__ = [
    "ALERTS_CHANNEL",
    "AlertBroadcaster",
    "AlertFilter",
    "AlertFormatter",
    "AlertLog",
    "AlertSubscription",
    "AlertThrottle",
    "FormattedAlert",
    "format_broadcast",
]
