"""Typed publish/subscribe bus for pushing state to presentation layers."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, TypeVar

from spot_monitor.forecast.base import SunSnapshot
from spot_monitor.notify.messages import Notification
from spot_monitor.recommendation.models import RecommendationState
from spot_monitor.tariff.base import CurrentPrice, HourlyPrices

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceUpdated:
    price: CurrentPrice | None


@dataclass(frozen=True)
class HourlyUpdated:
    prices: HourlyPrices


@dataclass(frozen=True)
class WeatherUpdated:
    sun: SunSnapshot


@dataclass(frozen=True)
class RecommendationsUpdated:
    state: RecommendationState


@dataclass(frozen=True)
class NotificationRaised:
    notification: Notification


Event = PriceUpdated | HourlyUpdated | WeatherUpdated | RecommendationsUpdated | NotificationRaised
E = TypeVar("E")


class EventBus:
    """Fan-out of events to handlers registered per event type.

    Handlers run synchronously in registration order. A failing handler is
    logged and does not stop delivery to the others.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[object], None]]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> Callable[[], None]:
        """Register ``handler`` for ``event_type``. Returns an unsubscribe callable."""
        self._handlers[event_type].append(handler)  # type: ignore[arg-type]

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)  # type: ignore[arg-type]

        return unsubscribe

    def publish(self, event: Event) -> int:
        """Deliver ``event``; returns the number of handlers that ran cleanly."""
        delivered = 0
        for handler in list(self._handlers.get(type(event), [])):
            try:
                handler(event)
                delivered += 1
            except Exception:
                logger.exception("Event handler error for %s", type(event).__name__)
        return delivered

    def handler_count(self, event_type: type) -> int:
        return len(self._handlers.get(event_type, []))
