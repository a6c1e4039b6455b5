"""Open-Meteo irradiance/cloud-cover provider.

Free, no authentication required.
API docs: https://open-meteo.com/en/docs
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx

from spot_monitor.config.schema import WeatherProviderConfig
from spot_monitor.errors import FeedMalformed, FeedUnavailable
from spot_monitor.forecast.base import RawSolarForecast, WeatherProvider

logger = logging.getLogger(__name__)

FORECAST_URL = "https://api.open-meteo.com/v1/forecast"


class OpenMeteoProvider(WeatherProvider):
    """Open-Meteo REST API provider for direct radiation and cloud cover."""

    name = "openmeteo"

    def __init__(self, config: WeatherProviderConfig) -> None:
        self._config = config
        self._client = httpx.AsyncClient(timeout=config.timeout_seconds)

    async def fetch_forecast(self, latitude: float, longitude: float) -> RawSolarForecast:
        """Fetch current conditions plus two days of hourly data in local time."""
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "current": "direct_radiation,cloud_cover,is_day",
            "hourly": "direct_radiation,cloud_cover",
            "daily": "sunrise,sunset",
            "timezone": "auto",
            "forecast_days": 2,
        }
        try:
            resp = await self._client.get(FORECAST_URL, params=params)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise FeedUnavailable(f"Open-Meteo request failed: {e}") from e
        except ValueError as e:
            raise FeedMalformed(f"Open-Meteo returned invalid JSON: {e}") from e

        forecast = self._parse(data)
        logger.info(
            "Open-Meteo forecast fetched: %d hourly values, irradiance=%.0f W/m2",
            len(forecast.hourly_irradiance), forecast.irradiance_w_m2,
        )
        return forecast

    async def close(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _parse(data: dict) -> RawSolarForecast:
        """Parse an Open-Meteo response into a RawSolarForecast."""
        try:
            current = data["current"]
            hourly = data.get("hourly", {})
            daily = data.get("daily", {})
            sunrise = daily.get("sunrise") or [""]
            sunset = daily.get("sunset") or [""]
            return RawSolarForecast(
                irradiance_w_m2=max(0.0, float(current.get("direct_radiation") or 0.0)),
                cloud_cover_pct=float(current.get("cloud_cover") or 0.0),
                is_daytime=current.get("is_day") == 1,
                # Open-Meteo emits null for missing hours
                hourly_irradiance=[max(0.0, float(v or 0.0)) for v in hourly.get("direct_radiation", [])],
                hourly_cloud_cover=[float(v or 0.0) for v in hourly.get("cloud_cover", [])],
                sunrise=sunrise[0] or "",
                sunset=sunset[0] or "",
                fetched_at=datetime.now(timezone.utc),
                provider="openmeteo",
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise FeedMalformed(f"Unexpected Open-Meteo payload: {e}") from e
