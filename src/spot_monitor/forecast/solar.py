"""Solar forecast adapter: raw weather forecast -> SunSnapshot.

Thresholds (W/m2 direct radiation, % cloud cover):

- generation potential: high above 600 W/m2 with under 30% cloud; medium
  above 200 W/m2 or under 60% cloud; otherwise low.
- weather condition (cloud cover only): clear < 20, partly cloudy < 50,
  cloudy < 80, overcast from 80.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from spot_monitor.errors import FeedMalformed, FeedUnavailable
from spot_monitor.forecast.base import (
    GenerationPotential,
    RawSolarForecast,
    SunSnapshot,
    WeatherCondition,
    WeatherProvider,
)

logger = logging.getLogger(__name__)

PROJECTION_HOURS = 24
SYSTEM_EFFICIENCY = 0.80  # inverter, cabling and temperature losses
DEFAULT_CAPACITY_KWP = 5.0


def calculate_generation_potential(irradiance: float, cloud_cover: float) -> GenerationPotential:
    if irradiance > 600 and cloud_cover < 30:
        return GenerationPotential.HIGH
    if irradiance > 200 or cloud_cover < 60:
        return GenerationPotential.MEDIUM
    return GenerationPotential.LOW


def get_weather_condition(cloud_cover: float) -> WeatherCondition:
    if cloud_cover < 20:
        return WeatherCondition.CLEAR
    if cloud_cover < 50:
        return WeatherCondition.PARTLY_CLOUDY
    if cloud_cover < 80:
        return WeatherCondition.CLOUDY
    return WeatherCondition.OVERCAST


def _clock_time(timestamp: str) -> str:
    """Reduce an ISO local timestamp to HH:MM; bare HH:MM values pass through."""
    if "T" in timestamp:
        timestamp = timestamp.split("T", 1)[1]
    return timestamp[:5]


def build_sun_snapshot(raw: RawSolarForecast, current_hour: int) -> SunSnapshot:
    """Reduce a raw forecast to a snapshot aligned on ``current_hour``."""
    irradiance = max(0.0, raw.irradiance_w_m2)
    cloud = min(100.0, max(0.0, raw.cloud_cover_pct))
    end = current_hour + PROJECTION_HOURS
    return SunSnapshot(
        irradiance_w_m2=irradiance,
        cloud_cover_pct=cloud,
        is_daytime=raw.is_daytime,
        generation_potential=calculate_generation_potential(irradiance, cloud),
        weather_condition=get_weather_condition(cloud),
        hourly_irradiance=tuple(raw.hourly_irradiance[current_hour:end]),
        hourly_cloud_cover=tuple(raw.hourly_cloud_cover[current_hour:end]),
        current_hour=current_hour,
        sunrise=_clock_time(raw.sunrise),
        sunset=_clock_time(raw.sunset),
    )


def estimate_generation_kwh(
    snapshot: SunSnapshot | None,
    offset: int,
    capacity_kwp: float = DEFAULT_CAPACITY_KWP,
) -> float:
    """Estimated PV energy for the projected hour at ``offset`` (0 = current hour).

    Irradiance / 1000 gives kWh per kWp for one hour at STC; scaled by
    system efficiency.
    """
    if snapshot is None or not 0 <= offset < len(snapshot.hourly_irradiance):
        return 0.0
    irradiance = snapshot.hourly_irradiance[offset]
    return (irradiance / 1000.0) * capacity_kwp * SYSTEM_EFFICIENCY


def get_best_solar_hours(
    snapshot: SunSnapshot | None,
    count: int = 5,
    min_irradiance: float = 200.0,
) -> list[tuple[int, float]]:
    """Projected hours with meaningful sun, strongest first, as (hour, irradiance)."""
    if snapshot is None:
        return []
    hours = [
        ((snapshot.current_hour + i) % 24, irradiance)
        for i, irradiance in enumerate(snapshot.hourly_irradiance)
        if irradiance > min_irradiance
    ]
    return sorted(hours, key=lambda h: h[1], reverse=True)[:count]


class SolarForecastAdapter:
    """Fetches forecasts from a provider and keeps the last good snapshot."""

    def __init__(self, provider: WeatherProvider) -> None:
        self._provider = provider
        self._snapshot: SunSnapshot | None = None
        self._fetched_at: datetime | None = None

    @property
    def snapshot(self) -> SunSnapshot | None:
        return self._snapshot

    @property
    def fetched_at(self) -> datetime | None:
        return self._fetched_at

    async def update(
        self, latitude: float, longitude: float, current_hour: int,
    ) -> SunSnapshot | None:
        """Fetch and reduce a new forecast. Returns None on any feed failure."""
        try:
            raw = await self._provider.fetch_forecast(latitude, longitude)
        except (FeedUnavailable, FeedMalformed) as e:
            logger.error("Weather forecast update failed: %s", e)
            return None

        self._snapshot = build_sun_snapshot(raw, current_hour)
        self._fetched_at = datetime.now(timezone.utc)
        logger.info(
            "Sun snapshot: %.0f W/m2, %.0f%% cloud, potential=%s",
            self._snapshot.irradiance_w_m2,
            self._snapshot.cloud_cover_pct,
            self._snapshot.generation_potential.value,
        )
        return self._snapshot

    def current(self, max_age_seconds: int) -> SunSnapshot | None:
        """Last good snapshot, or None once it is older than ``max_age_seconds``."""
        if self._snapshot is None or self._fetched_at is None:
            return None
        age = (datetime.now(timezone.utc) - self._fetched_at).total_seconds()
        if age > max_age_seconds:
            logger.warning("Sun snapshot is stale (%.0fs old), ignoring it", age)
            return None
        return self._snapshot

    async def close(self) -> None:
        await self._provider.close()
