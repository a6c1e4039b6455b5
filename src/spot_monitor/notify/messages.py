"""Notification texts."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from spot_monitor.config.regions import format_price
from spot_monitor.forecast.base import SunSnapshot
from spot_monitor.recommendation.models import Activity, Quality, RecommendationState
from spot_monitor.tariff.base import CurrentPrice


class NotificationKind(str, Enum):
    RECOMMENDATION = "recommendation"
    LOW_PRICE = "low_price"
    HIGH_PRICE = "high_price"


@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    title: str
    body: str


def hours_until_sunset(sun: SunSnapshot, current_hour: int) -> int:
    try:
        sunset_hour, sunset_minute = (int(part) for part in sun.sunset.split(":"))
    except ValueError:
        return 0
    minutes = sunset_hour * 60 + sunset_minute - current_hour * 60
    return max(0, round(minutes / 60))


def recommendation_notification(
    state: RecommendationState,
    sun: SunSnapshot | None,
    current_hour: int,
) -> Notification | None:
    """Pick the most useful message for the active recommendations."""
    ev = state.for_activity(Activity.EV_CHARGING)
    laundry = state.for_activity(Activity.LAUNDRY)

    if ev is not None and ev.quality == Quality.EXCELLENT:
        sun_info = ""
        if sun is not None and sun.is_daytime:
            sun_info = f" + sunny for {hours_until_sunset(sun, current_hour)}h"
        body = f"Perfect time to charge! Low price{sun_info}"
    elif ev is not None and ev.quality == Quality.GOOD:
        body = f"Good time to charge EV - {ev.reason}"
    elif laundry is not None and laundry.quality == Quality.EXCELLENT:
        body = f"Great laundry window! {laundry.reason}"
    else:
        return None
    return Notification(NotificationKind.RECOMMENDATION, "⚡ Good time to use power", body)


def low_price_notification(price: CurrentPrice) -> Notification:
    shown = format_price(price.price_local, price.currency, per_unit="MWh")
    return Notification(
        NotificationKind.LOW_PRICE,
        "⚡ Low Electricity Price!",
        f"Current price: {shown} - Great time to use power!",
    )


def high_price_notification(price: CurrentPrice) -> Notification:
    shown = format_price(price.price_local, price.currency, per_unit="MWh")
    return Notification(
        NotificationKind.HIGH_PRICE,
        "⚡ High Electricity Price",
        f"Current price: {shown} - Consider reducing usage",
    )
