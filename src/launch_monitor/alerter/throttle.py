"""Cooldown-based alert throttle."""

from __future__ import annotations

import logging

from launch_monitor.detector.models import Alert

logger = logging.getLogger(__name__)


class AlertThrottle:
    """Suppresses repeats of the same alert kind for the same entity.

    Alerts share a cooldown when they have the same
    ``(type, launch_id or "global", trader or "all")`` key. The first alert
    for a key is admitted and starts the cooldown; later alerts for the key
    are rejected until the cooldown has fully elapsed.
    """

    def __init__(self, *, cooldown_ms: int = 60_000) -> None:
        self._cooldown_ms = cooldown_ms
        self._last_admitted: dict[tuple[str, str, str], int] = {}

    @property
    def cooldown_ms(self) -> int:
        return self._cooldown_ms

    def __len__(self) -> int:
        return len(self._last_admitted)

    def admit(self, alert: Alert, *, now: int) -> bool:
        key = alert.cooldown_key
        last = self._last_admitted.get(key)
        if last is not None and now - last < self._cooldown_ms:
            logger.debug("Throttled %s for %s (last admitted %dms ago)", alert.type.value, key, now - last)
            return False
        self._last_admitted[key] = now
        return True

    def prune(self, *, now: int) -> int:
        """Forget keys idle for more than twice the cooldown; returns removed count."""
        max_age = 2 * self._cooldown_ms
        stale = [key for key, ts in self._last_admitted.items() if now - ts > max_age]
        for key in stale:
            del self._last_admitted[key]
        return len(stale)

    def clear(self) -> None:
        self._last_admitted.clear()
