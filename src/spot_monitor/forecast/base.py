"""Solar/weather forecast models and the abstract weather provider."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class GenerationPotential(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class WeatherCondition(str, Enum):
    CLEAR = "clear"
    PARTLY_CLOUDY = "partly_cloudy"
    CLOUDY = "cloudy"
    OVERCAST = "overcast"


@dataclass
class RawSolarForecast:
    """Provider response before reduction.

    Hourly lists start at local midnight of the current day.
    """

    irradiance_w_m2: float
    cloud_cover_pct: float
    is_daytime: bool
    hourly_irradiance: list[float] = field(default_factory=list)
    hourly_cloud_cover: list[float] = field(default_factory=list)
    sunrise: str = ""  # ISO local timestamp, e.g. "2024-01-15T07:45"
    sunset: str = ""
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    provider: str = ""


@dataclass(frozen=True)
class SunSnapshot:
    """Current solar conditions plus a 24-hour projection.

    ``hourly_irradiance[0]`` is the hour ``current_hour`` at fetch time.
    """

    irradiance_w_m2: float
    cloud_cover_pct: float
    is_daytime: bool
    generation_potential: GenerationPotential
    weather_condition: WeatherCondition
    hourly_irradiance: tuple[float, ...]
    hourly_cloud_cover: tuple[float, ...]
    current_hour: int
    sunrise: str  # "HH:MM"
    sunset: str  # "HH:MM"

    def future_irradiance(self, now_hour: int) -> Iterator[tuple[int, float]]:
        """Yield (hour_of_day, irradiance) for projected hours after ``now_hour``.

        Accounts for a snapshot fetched in an earlier hour than ``now_hour``.
        """
        shift = (now_hour - self.current_hour) % 24
        for offset in range(shift + 1, len(self.hourly_irradiance)):
            yield (self.current_hour + offset) % 24, self.hourly_irradiance[offset]


class WeatherProvider(ABC):
    """Abstract base for solar/weather forecast providers."""

    name: str = "weather"

    @abstractmethod
    async def fetch_forecast(self, latitude: float, longitude: float) -> RawSolarForecast:
        """Fetch current conditions and hourly projections.

        Raises FeedUnavailable or FeedMalformed on failure.
        """
        ...

    async def close(self) -> None:
        return None
