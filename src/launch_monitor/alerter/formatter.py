"""Alert formatting for broadcast and console delivery.

This module turns Alert objects into the broadcast envelope consumed by the
WebSocket layer and into human-readable text for logs and the replay CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal

from launch_monitor.alerter.broadcast import ALERTS_CHANNEL
from launch_monitor.detector.models import Alert, Severity

SEVERITY_MARKERS = {
    Severity.INFO: "[INFO]",
    Severity.WARNING: "[WARN]",
    Severity.CRITICAL: "[CRIT]",
}


def truncate_address(address: str, chars: int = 4) -> str:
    """Truncate an address or signature to ABCD...WXYZ format."""
    if len(address) <= chars * 2 + 3:
        return address
    return f"{address[:chars]}...{address[-chars:]}"


def format_timestamp(ts_ms: int) -> str:
    """Render a millisecond timestamp as ISO-8601 UTC."""
    return datetime.fromtimestamp(ts_ms / 1000, tz=UTC).isoformat(timespec="seconds")


def format_broadcast(alert: Alert, *, channel: str = ALERTS_CHANNEL) -> dict[str, Any]:
    """Build the message pushed to broadcast subscribers."""
    return {"channel": channel, "data": alert.to_dict()}


@dataclass(frozen=True)
class FormattedAlert:
    """An alert rendered for delivery.

    Attributes:
        title: One-line headline.
        body: Multi-line details (or a single line in compact mode).
        plain_text: Title and body combined.
        payload: Broadcast envelope.
    """

    title: str
    body: str
    plain_text: str
    payload: dict[str, Any]


class AlertFormatter:
    """Formats alerts for console and broadcast delivery.

    Supports two verbosity levels:
    - compact: headline and entity only
    - detailed: headline plus every payload field
    """

    def __init__(self, verbosity: Literal["compact", "detailed"] = "detailed") -> None:
        self.verbosity = verbosity

    def format(self, alert: Alert) -> FormattedAlert:
        marker = SEVERITY_MARKERS[alert.severity]
        title = f"{marker} {alert.type.value}: {alert.message}"
        body = self._build_body(alert)
        return FormattedAlert(
            title=title,
            body=body,
            plain_text=f"{title}\n{body}" if body else title,
            payload=format_broadcast(alert),
        )

    def _build_body(self, alert: Alert) -> str:
        entity = []
        if alert.launch_id:
            entity.append(f"launch={truncate_address(alert.launch_id)}")
        if alert.trader:
            entity.append(f"trader={truncate_address(alert.trader)}")

        if self.verbosity == "compact":
            return " ".join(entity)

        lines = [f"Time: {format_timestamp(alert.timestamp)}"]
        if entity:
            lines.append("Entity: " + " ".join(entity))
        for key, value in alert.to_dict()["data"].items():
            lines.append(f"  {key}: {value}")
        return "\n".join(lines)
