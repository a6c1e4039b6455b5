"""Price data models and abstract feed sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum


class PriceTier(str, Enum):
    """Relative cheapness of an hour within its own day."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class PriceSample:
    """One hour of day-ahead price in the market's native unit."""

    day: date
    hour: int  # 0-23
    price_eur: float  # EUR/MWh


@dataclass(frozen=True)
class HourlyPriceRecord:
    """A price sample enriched with display currency, tier and rank."""

    day: date
    hour: int
    price_eur: float
    price_local: float  # display currency per MWh, rounded to currency decimals
    currency: str
    tier: PriceTier
    rank: int  # 1-24, 1 = cheapest

    @property
    def label(self) -> str:
        return f"{self.hour:02d}:00"


@dataclass
class DailyPriceSeries:
    """Ordered-by-hour records for a single calendar day. May contain gaps."""

    day: date
    hours: list[HourlyPriceRecord] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.hours)

    def __iter__(self):
        return iter(self.hours)

    @property
    def is_empty(self) -> bool:
        return not self.hours

    @property
    def is_complete(self) -> bool:
        return len(self.hours) == 24

    def get_hour(self, hour: int) -> HourlyPriceRecord | None:
        for record in self.hours:
            if record.hour == hour:
                return record
        return None

    def local_prices(self) -> list[float]:
        return [record.price_local for record in self.hours]


@dataclass
class HourlyPrices:
    """Today's and tomorrow's series. Tomorrow is empty until published."""

    today: DailyPriceSeries
    tomorrow: DailyPriceSeries
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    provider: str = ""

    @property
    def has_tomorrow(self) -> bool:
        return not self.tomorrow.is_empty


@dataclass(frozen=True)
class CurrentPrice:
    """The record of today's series matching the current wall-clock hour."""

    record: HourlyPriceRecord

    @property
    def hour(self) -> int:
        return self.record.hour

    @property
    def price_eur(self) -> float:
        return self.record.price_eur

    @property
    def price_local(self) -> float:
        return self.record.price_local

    @property
    def currency(self) -> str:
        return self.record.currency

    @property
    def tier(self) -> PriceTier:
        return self.record.tier

    @property
    def rank(self) -> int:
        return self.record.rank


class PriceFeed(ABC):
    """Abstract source of day-ahead hourly prices."""

    name: str = "price"

    @abstractmethod
    async def fetch_daily_prices(self, day: date) -> list[PriceSample]:
        """Fetch one day's hourly samples.

        Returns an empty list when the day is not yet published. Raises
        FeedUnavailable or FeedMalformed on failure.
        """
        ...

    async def close(self) -> None:
        return None


class ExchangeRateSource(ABC):
    """Abstract source of EUR -> currency exchange rates."""

    @abstractmethod
    async def fetch_rate(self, currency: str) -> float:
        """Units of ``currency`` per 1 EUR. Raises FeedUnavailable/FeedMalformed."""
        ...

    async def close(self) -> None:
        return None
