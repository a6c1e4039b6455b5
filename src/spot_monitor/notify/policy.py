"""Edge-triggered notification policy.

A notification fires only when a state is entered, never while it is held
and never when it is left:

1. overall status changes to ``go`` -> recommendation notification; the
   price check is skipped for that cycle.
2. otherwise, price tier changes to ``low`` or ``high`` -> price
   notification, if the matching per-direction toggle is on.

Both markers start as ``UNSET`` so the first observation only primes them.
"""

from __future__ import annotations

import logging
from enum import Enum

from spot_monitor.config.schema import NotificationsConfig
from spot_monitor.forecast.base import SunSnapshot
from spot_monitor.notify.messages import (
    Notification,
    high_price_notification,
    low_price_notification,
    recommendation_notification,
)
from spot_monitor.recommendation.models import OverallStatus, RecommendationState
from spot_monitor.tariff.base import CurrentPrice, PriceTier

logger = logging.getLogger(__name__)


class Unset(Enum):
    """Marker for "nothing observed yet"; never equal to a tier or status."""

    UNSET = "unset"


UNSET = Unset.UNSET


class NotificationPolicy:
    """Tracks the last observed tier/status and decides what to announce."""

    def __init__(self, config: NotificationsConfig | None = None) -> None:
        self._config = config or NotificationsConfig()
        self.last_price_tier: PriceTier | Unset = UNSET
        self.last_status: OverallStatus | Unset = UNSET
        self.sent_count: int = 0

    def update_config(self, config: NotificationsConfig) -> None:
        self._config = config

    def reset(self) -> None:
        self.last_price_tier = UNSET
        self.last_status = UNSET

    def evaluate(
        self,
        price: CurrentPrice | None,
        state: RecommendationState,
        sun: SunSnapshot | None = None,
        current_hour: int = 0,
    ) -> Notification | None:
        """Observe one recomputation and return the notification to show, if any.

        Without a current price nothing is observed: the markers keep their
        previous values so a data gap cannot fake a transition.
        """
        if price is None:
            return None

        previous_status, self.last_status = self.last_status, state.overall_status
        previous_tier, self.last_price_tier = self.last_price_tier, price.tier

        if (
            previous_status is not UNSET
            and previous_status != OverallStatus.GO
            and state.overall_status == OverallStatus.GO
            and self._config.recommendations
        ):
            notification = recommendation_notification(state, sun, current_hour)
            if notification is not None:
                return self._emit(notification)

        if previous_tier is UNSET or previous_tier == price.tier:
            return None
        if price.tier == PriceTier.LOW and self._config.low_price:
            return self._emit(low_price_notification(price))
        if price.tier == PriceTier.HIGH and self._config.high_price:
            return self._emit(high_price_notification(price))
        return None

    def _emit(self, notification: Notification) -> Notification:
        self.sent_count += 1
        logger.info("Notification (%s): %s", notification.kind.value, notification.body)
        return notification
