"""Append-only, age-pruned log of admitted alerts."""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass

from launch_monitor.detector.models import Alert, AlertType, Severity


@dataclass(frozen=True)
class AlertFilter:
    """Filter for alert queries. Unset fields match everything."""

    launch_id: str | None = None
    trader: str | None = None
    type: AlertType | None = None
    severity: Severity | None = None
    limit: int | None = None

    @classmethod
    def from_query(cls, params: Mapping[str, str]) -> AlertFilter:
        """Build a filter from HTTP query parameters.

        Unknown alert types or severities and non-numeric or non-positive
        limits are ignored rather than rejected, so a bad parameter widens
        the query instead of failing it.
        """
        alert_type: AlertType | None = None
        raw_type = params.get("type")
        if raw_type in {t.value for t in AlertType}:
            alert_type = AlertType(raw_type)

        severity: Severity | None = None
        raw_severity = params.get("severity")
        if raw_severity in {s.value for s in Severity}:
            severity = Severity(raw_severity)

        limit: int | None = None
        raw_limit = params.get("limit")
        if raw_limit:
            try:
                limit = int(raw_limit)
            except ValueError:
                limit = None
            if limit is not None and limit <= 0:
                limit = None

        return cls(
            launch_id=params.get("launchId") or params.get("launchPk") or None,
            trader=params.get("trader") or None,
            type=alert_type,
            severity=severity,
            limit=limit,
        )

    def matches(self, alert: Alert) -> bool:
        if self.launch_id is not None and alert.launch_id != self.launch_id:
            return False
        if self.trader is not None and alert.trader != self.trader:
            return False
        if self.type is not None and alert.type != self.type:
            return False
        if self.severity is not None and alert.severity != self.severity:
            return False
        return True


class AlertLog:
    """Admitted alerts in admission order."""

    def __init__(self) -> None:
        self._alerts: list[Alert] = []

    def __len__(self) -> int:
        return len(self._alerts)

    def append(self, alert: Alert) -> None:
        self._alerts.append(alert)

    def query(self, alert_filter: AlertFilter | None = None) -> list[Alert]:
        """Return matching alerts, newest first."""
        f = alert_filter or AlertFilter()
        matched = [a for a in self._alerts if f.matches(a)]
        # Stable sort: equal timestamps keep reverse admission order.
        matched.reverse()
        matched.sort(key=lambda a: a.timestamp, reverse=True)
        if f.limit is not None:
            matched = matched[: f.limit]
        return matched

    def prune(self, *, cutoff: int) -> int:
        """Drop alerts created at or before ``cutoff``; returns removed count."""
        before = len(self._alerts)
        self._alerts = [a for a in self._alerts if a.timestamp > cutoff]
        return before - len(self._alerts)

    def count_by_severity(self) -> dict[str, int]:
        counts = {s.value: 0 for s in Severity}
        for alert in self._alerts:
            counts[alert.severity.value] += 1
        return counts

    def count_by_type(self) -> dict[str, int]:
        return dict(Counter(a.type.value for a in self._alerts))

    def clear(self) -> None:
        self._alerts.clear()
