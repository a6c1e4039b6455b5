"""Rule-based recommendation engine.

Fuses the current price, today's price distribution, short-term price
stability and solar conditions into per-activity recommendations.

Each activity scorer walks its rules in precedence order and the first
match wins, so an activity never carries two qualities at once:

EV charging
    1. excellent: within 5% of today's low and irradiance > 500 W/m2
    2. good: within 15% of today's low
    3. good: irradiance > 500 W/m2 and price below today's average

Laundry (every rule also requires a stable price over the next 2 hours)
    1. excellent: within 5% of today's low and daytime irradiance > 300 W/m2
    2. good: within 15% of today's low
    3. good: daytime irradiance > 300 W/m2 and price below today's average

All prices are compared in the display currency. Missing sun data simply
disables the solar clauses. Everything here is pure given its inputs; the
current hour is always passed in.
"""

from __future__ import annotations

import logging

from spot_monitor.forecast.base import SunSnapshot
from spot_monitor.recommendation.models import (
    STATUS_ACCEPTABLE,
    STATUS_EXCELLENT,
    STATUS_GOOD,
    STATUS_LOADING,
    STATUS_WAIT,
    Activity,
    NextWindow,
    OverallStatus,
    Quality,
    Recommendation,
    RecommendationState,
)
from spot_monitor.tariff.base import CurrentPrice, DailyPriceSeries, HourlyPrices

logger = logging.getLogger(__name__)

VERY_NEAR_LOWEST = 0.05
NEAR_LOWEST = 0.15
LOWEST_OF_DAY_PCT = 2.0
STABILITY_HOURS = 2
MAX_STABLE_SPREAD = 0.30
EV_SOLAR_W_M2 = 500.0
LAUNDRY_SOLAR_W_M2 = 300.0
SOLAR_DROP_W_M2 = 200.0
SOLAR_PEAK_W_M2 = 500.0


def daily_average(series: DailyPriceSeries) -> float:
    prices = series.local_prices()
    return sum(prices) / len(prices) if prices else 0.0


def daily_min(series: DailyPriceSeries) -> float | None:
    prices = series.local_prices()
    return min(prices) if prices else None


def is_near_lowest(price: float, minimum: float, tolerance: float) -> bool:
    """``price <= minimum * (1 + tolerance)``, inclusive.

    For a negative daily low the band is mirrored (``minimum * (1 - tolerance)``)
    so it still admits prices at or just above the low.
    """
    if minimum < 0:
        return price <= minimum * (1 - tolerance)
    return price <= minimum * (1 + tolerance)


def percent_above(price: float, minimum: float) -> float:
    if minimum == 0:
        return 0.0 if price <= 0 else float("inf")
    return (price - minimum) / abs(minimum) * 100.0


def is_price_stable(
    hourly: HourlyPrices,
    start_hour: int,
    hours: int = STABILITY_HOURS,
) -> bool:
    """Whether prices stay within a 30% band over the next ``hours`` hours.

    Windows crossing midnight continue into tomorrow's series. Fewer than
    two available records count as stable. Uses raw display prices, never
    tiers (tiers of different days are not comparable).
    """
    end = start_hour + hours
    prices = [r.price_local for r in hourly.today if start_hour <= r.hour < end]
    if end > 24:
        prices += [r.price_local for r in hourly.tomorrow if r.hour < end - 24]

    if len(prices) < 2:
        return True

    low, high = min(prices), max(prices)
    if low == 0:
        return high == low
    return (high - low) / abs(low) < MAX_STABLE_SPREAD


def estimate_window_end(sun: SunSnapshot | None, current_hour: int) -> str | None:
    """First future hour where projected irradiance drops below 200 W/m2, else sunset."""
    if sun is None:
        return None
    for hour, irradiance in sun.future_irradiance(current_hour):
        if irradiance < SOLAR_DROP_W_M2:
            return f"{hour:02d}:00"
    return sun.sunset or None


def ev_charging_recommendation(
    price: CurrentPrice,
    average: float,
    minimum: float,
    sun: SunSnapshot | None,
    current_hour: int,
) -> Recommendation | None:
    value = price.price_local
    high_solar = sun is not None and sun.irradiance_w_m2 > EV_SOLAR_W_M2

    if is_near_lowest(value, minimum, VERY_NEAR_LOWEST) and high_solar:
        return Recommendation(
            activity=Activity.EV_CHARGING,
            quality=Quality.EXCELLENT,
            reason="Lowest price + sunny",
            window_end=estimate_window_end(sun, current_hour),
        )

    if is_near_lowest(value, minimum, NEAR_LOWEST):
        pct = percent_above(value, minimum)
        if pct <= LOWEST_OF_DAY_PCT:
            reason = "Lowest price of the day"
        else:
            reason = f"{round(pct)}% above daily low"
        return Recommendation(activity=Activity.EV_CHARGING, quality=Quality.GOOD, reason=reason)

    if high_solar and value < average:
        return Recommendation(
            activity=Activity.EV_CHARGING,
            quality=Quality.GOOD,
            reason="High solar generation",
            window_end=estimate_window_end(sun, current_hour),
        )

    return None


def laundry_recommendation(
    price: CurrentPrice,
    average: float,
    minimum: float,
    sun: SunSnapshot | None,
    stable: bool,
) -> Recommendation | None:
    if not stable:
        return None

    value = price.price_local
    sunny = sun is not None and sun.is_daytime and sun.irradiance_w_m2 > LAUNDRY_SOLAR_W_M2

    if is_near_lowest(value, minimum, VERY_NEAR_LOWEST) and sunny:
        return Recommendation(Activity.LAUNDRY, Quality.EXCELLENT, "Lowest price + sunny")
    if is_near_lowest(value, minimum, NEAR_LOWEST):
        return Recommendation(Activity.LAUNDRY, Quality.GOOD, "Stable low price")
    if sunny and value < average:
        return Recommendation(Activity.LAUNDRY, Quality.GOOD, "Good solar")
    return None


def aggregate_status(recommendations: tuple[Recommendation, ...]) -> tuple[OverallStatus, str]:
    if not recommendations:
        return OverallStatus.WAIT, STATUS_WAIT
    qualities = {r.quality for r in recommendations}
    if Quality.EXCELLENT in qualities:
        return OverallStatus.GO, STATUS_EXCELLENT
    if Quality.GOOD in qualities:
        return OverallStatus.OKAY, STATUS_GOOD
    return OverallStatus.OKAY, STATUS_ACCEPTABLE


def find_next_good_window(
    hourly: HourlyPrices,
    sun: SunSnapshot | None,
    current_hour: int,
) -> NextWindow | None:
    """Project when conditions next look good.

    Searched in order: a later hour today within 15% of today's low, the
    cheapest hour tomorrow within 5% of tomorrow's own low, then the first
    future hour with projected irradiance above 500 W/m2.
    """
    today_min = daily_min(hourly.today)
    if today_min is not None:
        for record in hourly.today:
            if record.hour > current_hour and is_near_lowest(record.price_local, today_min, NEAR_LOWEST):
                return NextWindow(time=record.label, reason="Price drops")

    tomorrow_min = daily_min(hourly.tomorrow)
    if tomorrow_min is not None:
        near = [
            record for record in hourly.tomorrow
            if is_near_lowest(record.price_local, tomorrow_min, VERY_NEAR_LOWEST)
        ]
        if near:
            # Cheapest candidate; earliest hour on ties
            best = min(near, key=lambda r: (r.price_local, r.hour))
            return NextWindow(time=f"{best.label} tomorrow", reason="Lowest price")

    if sun is not None:
        for hour, irradiance in sun.future_irradiance(current_hour):
            if irradiance > SOLAR_PEAK_W_M2:
                return NextWindow(time=f"{hour:02d}:00", reason="Solar peaks")

    return None


def compute_recommendations(
    price: CurrentPrice | None,
    hourly: HourlyPrices | None,
    sun: SunSnapshot | None,
    current_hour: int,
) -> RecommendationState:
    """Build a fresh RecommendationState from the current inputs."""
    if hourly is None or hourly.today.is_empty:
        return RecommendationState(status_message=STATUS_LOADING)

    average = daily_average(hourly.today)
    minimum = daily_min(hourly.today)

    recommendations: list[Recommendation] = []
    if price is not None and minimum is not None:
        ev = ev_charging_recommendation(price, average, minimum, sun, current_hour)
        if ev is not None:
            recommendations.append(ev)
        stable = is_price_stable(hourly, current_hour)
        laundry = laundry_recommendation(price, average, minimum, sun, stable)
        if laundry is not None:
            recommendations.append(laundry)

    active = tuple(recommendations)
    status, message = aggregate_status(active)
    next_window = None if active else find_next_good_window(hourly, sun, current_hour)
    return RecommendationState(
        recommendations=active,
        overall_status=status,
        status_message=message,
        next_window=next_window,
    )


class RecommendationEngine:
    """Holds the latest RecommendationState; recomputed on every input change."""

    def __init__(self) -> None:
        self._state: RecommendationState | None = None

    @property
    def state(self) -> RecommendationState | None:
        return self._state

    def evaluate(
        self,
        price: CurrentPrice | None,
        hourly: HourlyPrices | None,
        sun: SunSnapshot | None,
        current_hour: int,
    ) -> RecommendationState:
        state = compute_recommendations(price, hourly, sun, current_hour)
        if state != self._state:
            logger.info(
                "Recommendations: status=%s active=%s next=%s",
                state.overall_status.value,
                [f"{r.activity.value}:{r.quality.value}" for r in state.recommendations],
                state.next_window.time if state.next_window else None,
            )
        self._state = state
        return state
