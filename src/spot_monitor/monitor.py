"""Spot monitor loop: fetch cadences, recomputation and event publishing.

Two cadences drive everything:
1. Short cycle (providers.price.update_interval_seconds, default 300s):
   re-derive the current price from the cached series.
2. Long cycle (providers.price.hourly_interval_seconds / providers.weather.
   update_interval_seconds, default 1800s): refetch the two-day price
   series and the solar forecast.

Every completed fetch triggers one synchronous recomputation of
recommendations and notifications, published on the event bus.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from spot_monitor.config.regions import get_region, resolve_location
from spot_monitor.config.schema import AppConfig
from spot_monitor.events import (
    EventBus,
    HourlyUpdated,
    NotificationRaised,
    PriceUpdated,
    RecommendationsUpdated,
    WeatherUpdated,
)
from spot_monitor.forecast.base import SunSnapshot
from spot_monitor.forecast.solar import SolarForecastAdapter, estimate_generation_kwh, get_best_solar_hours
from spot_monitor.logging.context import bound_context
from spot_monitor.notify.messages import Notification
from spot_monitor.notify.policy import NotificationPolicy
from spot_monitor.recommendation.engine import RecommendationEngine
from spot_monitor.recommendation.models import OptimalWindow, RecommendationState
from spot_monitor.recommendation.windows import find_optimal_windows
from spot_monitor.resilience.health_check import HealthChecker
from spot_monitor.tariff.aggregator import HourlyPriceAggregator, prices_for_day
from spot_monitor.tariff.base import CurrentPrice, HourlyPriceRecord, HourlyPrices
from spot_monitor.tariff.schedule import DailyStats, get_cheapest_hours, get_daily_stats
from spot_monitor.timezone_utils import market_days, market_now, resolve_timezone

logger = logging.getLogger(__name__)

PRICE_FEED = "price"
WEATHER_FEED = "weather"


@dataclass
class MonitorState:
    """Latest published snapshot of everything the presentation layer shows."""

    current_price: CurrentPrice | None = None
    hourly: HourlyPrices | None = None
    sun: SunSnapshot | None = None
    recommendations: RecommendationState | None = None
    last_notification: Notification | None = None
    daily_stats: DailyStats | None = None
    cheapest_upcoming: list[HourlyPriceRecord] = field(default_factory=list)
    optimal_windows: list[OptimalWindow] = field(default_factory=list)
    solar_estimate_kwh: float = 0.0
    best_solar_hours: list[tuple[int, float]] = field(default_factory=list)
    recompute_count: int = 0
    last_recompute_at: datetime | None = None
    is_running: bool = False


class SpotMonitor:
    """Owns the mutable monitor state; runs on a single event loop."""

    def __init__(
        self,
        config: AppConfig,
        aggregator: HourlyPriceAggregator,
        solar: SolarForecastAdapter,
        bus: EventBus | None = None,
        health: HealthChecker | None = None,
        engine: RecommendationEngine | None = None,
        policy: NotificationPolicy | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        self._aggregator = aggregator
        self._solar = solar
        self._bus = bus or EventBus()
        self._health = health or HealthChecker(config.resilience.max_consecutive_failures)
        self._engine = engine or RecommendationEngine()
        self._policy = policy or NotificationPolicy(config.notifications)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._tz = resolve_timezone(get_region(config.region).timezone)
        self._state = MonitorState()
        self._stop_event = asyncio.Event()
        # Single-flight guard per feed: a refresh finding its feed busy is skipped
        self._locks = {PRICE_FEED: asyncio.Lock(), WEATHER_FEED: asyncio.Lock()}
        self._health.register(PRICE_FEED)
        self._health.register(WEATHER_FEED)

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def health(self) -> HealthChecker:
        return self._health

    @property
    def is_stale(self) -> bool:
        """True while there is no usable price data or the price feed is failing."""
        if self._state.current_price is None:
            return True
        if not self._health.is_healthy(PRICE_FEED):
            return True
        fetched = self._aggregator.last_refresh_at
        if fetched is None:
            return True
        age = (self._clock() - fetched).total_seconds()
        return age > self._config.resilience.stale_max_age_seconds

    def _local_now(self) -> datetime:
        return market_now(self._tz, self._clock())

    # ── Fetch cycles ─────────────────────────────────────────

    async def refresh_hourly(self) -> HourlyPrices | None:
        """Refetch today's and tomorrow's series, then recompute."""
        lock = self._locks[PRICE_FEED]
        if lock.locked():
            logger.debug("Price refresh already in flight, skipping")
            return self._state.hourly

        async with lock:
            with bound_context(cycle="hourly"):
                today, tomorrow = market_days(self._tz, self._clock())
                prices = await self._aggregator.refresh(today, tomorrow)
                if self._aggregator.last_refresh_ok:
                    self._health.record_success(PRICE_FEED)
                else:
                    self._health.record_failure(PRICE_FEED, self._aggregator.last_error)

                if prices is not None and self._aggregator.last_refresh_ok:
                    self._state.hourly = prices
                    self._bus.publish(HourlyUpdated(prices))
                self._update_current_price()
                self.recompute()
        return self._state.hourly

    async def refresh_current_price(self) -> CurrentPrice | None:
        """Re-derive the current price; refetch the series when missing or a day old."""
        today, _ = market_days(self._tz, self._clock())
        hourly = self._state.hourly
        if hourly is None or hourly.today.day != today:
            await self.refresh_hourly()
            return self._state.current_price

        with bound_context(cycle="price"):
            self._update_current_price()
            self.recompute()
        return self._state.current_price

    async def refresh_weather(self) -> SunSnapshot | None:
        """Refetch the solar forecast, then recompute."""
        lock = self._locks[WEATHER_FEED]
        if lock.locked():
            logger.debug("Weather refresh already in flight, skipping")
            return self._state.sun

        async with lock:
            with bound_context(cycle="weather"):
                latitude, longitude = resolve_location(self._config)
                snapshot = await self._solar.update(latitude, longitude, self._local_now().hour)
                if snapshot is not None:
                    self._health.record_success(WEATHER_FEED)
                    self._bus.publish(WeatherUpdated(snapshot))
                else:
                    self._health.record_failure(WEATHER_FEED, "fetch failed")
                self.recompute()
        return self._state.sun

    async def refresh(self) -> MonitorState:
        """On-demand refresh of every feed."""
        await self.refresh_hourly()
        await self.refresh_weather()
        return self._state

    def _update_current_price(self) -> None:
        local = self._local_now()
        price = self._aggregator.current_price(local.hour, local.date())
        self._state.current_price = price
        if price is None:
            logger.warning("No price available for %s %02d:00", local.date(), local.hour)
        self._bus.publish(PriceUpdated(price))

    # ── Recomputation ────────────────────────────────────────

    def recompute(self) -> RecommendationState:
        """Recompute recommendations and notifications from the current state.

        Synchronous read-modify-publish: subscribers only ever see a
        complete state.
        """
        local = self._local_now()
        hour = local.hour
        # A series cached before midnight is read as of today
        hourly = prices_for_day(self._state.hourly, local.date())
        sun = self._solar.current(self._config.resilience.stale_max_age_seconds)
        self._state.sun = sun

        state = self._engine.evaluate(
            self._state.current_price, hourly, sun, hour,
        )
        notification = self._policy.evaluate(self._state.current_price, state, sun, hour)
        self._update_outlook(hourly, hour, sun)

        self._state.recommendations = state
        self._state.recompute_count += 1
        self._state.last_recompute_at = self._clock()
        self._bus.publish(RecommendationsUpdated(state))

        if notification is not None:
            self._state.last_notification = notification
            self._bus.publish(NotificationRaised(notification))
        return state

    def _update_outlook(self, hourly: HourlyPrices | None, hour: int, sun: SunSnapshot | None) -> None:
        if hourly is None:
            self._state.daily_stats = None
            self._state.cheapest_upcoming = []
        else:
            self._state.daily_stats = get_daily_stats(hourly.today)
            self._state.cheapest_upcoming = get_cheapest_hours(hourly.today, after_hour=hour)
        self._state.optimal_windows = find_optimal_windows(hourly, sun)
        self._state.solar_estimate_kwh = estimate_generation_kwh(sun, 0, self._config.solar_capacity_kwp)
        self._state.best_solar_hours = get_best_solar_hours(sun)

    async def apply_config(self, config: AppConfig) -> None:
        """Adopt new settings; takes effect from the next recomputation."""
        old = self._config
        self._config = config
        self._policy.update_config(config.notifications)
        if config.region != old.region:
            self._tz = resolve_timezone(get_region(config.region).timezone)
        if config.currency != old.currency:
            prices = await self._aggregator.set_currency(config.currency)
            if prices is not None:
                self._state.hourly = prices
                self._bus.publish(HourlyUpdated(prices))
            self._update_current_price()
        if config.region != old.region or config.location != old.location:
            await self.refresh()
        else:
            self.recompute()
        logger.info("Settings applied (region=%s, currency=%s)", config.region, config.currency)

    # ── Main loop ────────────────────────────────────────────

    async def run(self) -> None:
        """Run both cadences until stop() is called."""
        self._state.is_running = True
        self._stop_event.clear()
        price_interval = self._config.providers.price.update_interval_seconds
        hourly_interval = self._config.providers.price.hourly_interval_seconds
        weather_interval = self._config.providers.weather.update_interval_seconds

        logger.info(
            "Spot monitor starting (price %ds, hourly %ds, weather %ds)",
            price_interval, hourly_interval, weather_interval,
        )

        last_price = last_hourly = last_weather = float("-inf")
        try:
            while not self._stop_event.is_set():
                now = time.monotonic()
                try:
                    if now - last_hourly >= hourly_interval:
                        await self.refresh_hourly()
                        last_hourly = last_price = now
                    elif now - last_price >= price_interval:
                        await self.refresh_current_price()
                        last_price = now

                    if now - last_weather >= weather_interval:
                        await self.refresh_weather()
                        last_weather = now
                except Exception:
                    logger.exception("Error in monitor loop iteration")

                try:
                    await asyncio.wait_for(
                        self._stop_event.wait(),
                        timeout=min(price_interval, hourly_interval, weather_interval),
                    )
                    break
                except asyncio.TimeoutError:
                    pass
        finally:
            self._state.is_running = False
            logger.info("Spot monitor stopped after %d recomputations", self._state.recompute_count)

    def stop(self) -> None:
        self._stop_event.set()

    async def close(self) -> None:
        await self._aggregator.close()
        await self._solar.close()
