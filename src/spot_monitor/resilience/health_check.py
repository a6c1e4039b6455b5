"""Feed health monitoring."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class FeedHealth:
    """Health state of a single feed."""

    name: str
    healthy: bool = True
    last_success: float | None = None
    last_failure: float | None = None
    consecutive_failures: int = 0
    total_failures: int = 0
    last_error: str = ""


class HealthChecker:
    """Tracks consecutive failures of the price, rate and weather feeds."""

    def __init__(self, max_consecutive_failures: int = 3) -> None:
        self._max_failures = max_consecutive_failures
        self._feeds: dict[str, FeedHealth] = {}

    def register(self, name: str) -> None:
        self._feeds.setdefault(name, FeedHealth(name=name))

    def record_success(self, name: str) -> None:
        self.register(name)
        feed = self._feeds[name]
        if not feed.healthy:
            logger.info("Feed '%s' recovered after %d failures", name, feed.consecutive_failures)
        feed.healthy = True
        feed.last_success = time.monotonic()
        feed.consecutive_failures = 0

    def record_failure(self, name: str, error: str = "") -> None:
        self.register(name)
        feed = self._feeds[name]
        feed.last_failure = time.monotonic()
        feed.consecutive_failures += 1
        feed.total_failures += 1
        feed.last_error = error

        if feed.healthy and feed.consecutive_failures >= self._max_failures:
            feed.healthy = False
            logger.warning(
                "Feed '%s' marked unhealthy (%d consecutive failures): %s",
                name, feed.consecutive_failures, error,
            )

    def is_healthy(self, name: str) -> bool:
        feed = self._feeds.get(name)
        return feed.healthy if feed else True  # Unknown feeds assumed healthy

    def has_succeeded(self, name: str) -> bool:
        feed = self._feeds.get(name)
        return feed is not None and feed.last_success is not None

    def get_unhealthy(self) -> list[str]:
        return [name for name, feed in self._feeds.items() if not feed.healthy]

    def get_health(self, name: str) -> FeedHealth | None:
        return self._feeds.get(name)
