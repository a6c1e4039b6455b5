"""Hourly price aggregator: raw feed samples -> classified two-day series."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone

from spot_monitor.errors import FeedMalformed, FeedUnavailable
from spot_monitor.tariff.base import (
    CurrentPrice,
    DailyPriceSeries,
    HourlyPriceRecord,
    HourlyPrices,
    PriceFeed,
    PriceSample,
)
from spot_monitor.tariff.classifier import classify_day
from spot_monitor.tariff.currency import ExchangeRateCache, convert_currency, round_to_currency

logger = logging.getLogger(__name__)


def clean_samples(day: date, samples: Iterable[PriceSample]) -> list[PriceSample]:
    """Keep one valid sample per hour of ``day``, sorted ascending by hour.

    Missing hours stay missing; nothing is interpolated.
    """
    by_hour: dict[int, PriceSample] = {}
    for sample in samples:
        if sample.day != day:
            continue
        if not 0 <= sample.hour <= 23:
            logger.warning("Dropping sample with invalid hour %r for %s", sample.hour, day)
            continue
        if not math.isfinite(sample.price_eur):
            logger.warning("Dropping non-finite price for %s %02d:00", day, sample.hour)
            continue
        if sample.hour in by_hour:
            logger.warning("Duplicate sample for %s %02d:00, keeping the first", day, sample.hour)
            continue
        by_hour[sample.hour] = sample
    return [by_hour[hour] for hour in sorted(by_hour)]


def build_daily_series(
    day: date,
    samples: Iterable[PriceSample],
    currency: str,
    rate: float,
) -> DailyPriceSeries:
    """Sort, classify and convert one day's samples.

    Tiers are computed against this day's prices only.
    """
    cleaned = clean_samples(day, samples)
    classifications = classify_day([s.price_eur for s in cleaned])
    rates = {currency.upper(): rate}
    records = []
    for sample, classification in zip(cleaned, classifications):
        records.append(
            HourlyPriceRecord(
                day=day,
                hour=sample.hour,
                price_eur=sample.price_eur,
                price_local=round_to_currency(convert_currency(sample.price_eur, currency, rates), currency),
                currency=currency,
                tier=classification.tier,
                rank=classification.rank,
            )
        )
    return DailyPriceSeries(day=day, hours=records)


def build_hourly_prices(
    today: date,
    tomorrow: date,
    today_samples: Iterable[PriceSample],
    tomorrow_samples: Iterable[PriceSample],
    currency: str,
    rate: float,
    provider: str = "",
) -> HourlyPrices:
    return HourlyPrices(
        today=build_daily_series(today, today_samples, currency, rate),
        tomorrow=build_daily_series(tomorrow, tomorrow_samples, currency, rate),
        fetched_at=datetime.now(timezone.utc),
        provider=provider,
    )


def prices_for_day(prices: HourlyPrices | None, today: date) -> HourlyPrices | None:
    """View of a cached series as seen from ``today``.

    After midnight the cached tomorrow becomes today (with nothing known
    for the day after). A series that covers neither day is unusable.
    """
    if prices is None or prices.today.day == today:
        return prices
    if prices.tomorrow.day == today and not prices.tomorrow.is_empty:
        return HourlyPrices(
            today=prices.tomorrow,
            tomorrow=DailyPriceSeries(day=today + timedelta(days=1)),
            fetched_at=prices.fetched_at,
            provider=prices.provider,
        )
    return None


class HourlyPriceAggregator:
    """Fetches today/tomorrow from a price feed and keeps the last good series.

    Failures are soft: the cached series is left untouched, the error is
    logged and exposed through ``last_refresh_ok`` / ``last_error``.
    """

    def __init__(
        self,
        feed: PriceFeed,
        rates: ExchangeRateCache,
        currency: str = "EUR",
    ) -> None:
        self._feed = feed
        self._rates = rates
        self._currency = currency.upper()
        self._prices: HourlyPrices | None = None
        self._raw: dict[date, list[PriceSample]] = {}
        self.last_refresh_ok: bool = False
        self.last_error: str = ""
        self.last_refresh_at: datetime | None = None

    @property
    def prices(self) -> HourlyPrices | None:
        return self._prices

    @property
    def currency(self) -> str:
        return self._currency

    async def refresh(self, today: date, tomorrow: date) -> HourlyPrices | None:
        """Fetch both days and rebuild the series.

        Returns the new series, or the previous cached one (possibly None on
        first run) when today's fetch fails. A failed tomorrow fetch only
        leaves tomorrow empty.
        """
        try:
            today_samples = await self._feed.fetch_daily_prices(today)
        except (FeedUnavailable, FeedMalformed) as e:
            self.last_refresh_ok = False
            self.last_error = f"{type(e).__name__}: {e}"
            logger.error("Price feed %s refresh failed, keeping cached series: %s", self._feed.name, e)
            return self._prices

        try:
            tomorrow_samples = await self._feed.fetch_daily_prices(tomorrow)
        except (FeedUnavailable, FeedMalformed) as e:
            logger.warning("Price feed %s has no series for %s yet: %s", self._feed.name, tomorrow, e)
            tomorrow_samples = []

        rate = await self._rates.get_rate(self._currency)
        self._raw = {today: list(today_samples), tomorrow: list(tomorrow_samples)}
        self._prices = build_hourly_prices(
            today, tomorrow, today_samples, tomorrow_samples,
            self._currency, rate, provider=self._feed.name,
        )
        self.last_refresh_ok = True
        self.last_error = ""
        self.last_refresh_at = datetime.now(timezone.utc)
        logger.info(
            "%s: fetched %d hours for today, %d hours for tomorrow",
            self._feed.name, len(self._prices.today), len(self._prices.tomorrow),
        )
        return self._prices

    async def set_currency(self, currency: str) -> HourlyPrices | None:
        """Switch display currency, re-converting the cached samples."""
        self._currency = currency.upper()
        if self._prices is None:
            return None
        rate = await self._rates.get_rate(self._currency)
        today, tomorrow = self._prices.today.day, self._prices.tomorrow.day
        self._prices = build_hourly_prices(
            today, tomorrow,
            self._raw.get(today, []), self._raw.get(tomorrow, []),
            self._currency, rate, provider=self._prices.provider,
        )
        return self._prices

    def current_price(self, hour: int, today: date | None = None) -> CurrentPrice | None:
        """Derive the current price from today's series.

        Absent when no series covers ``today`` (see prices_for_day) or the
        hour is missing from the series.
        """
        prices = self._prices if today is None else prices_for_day(self._prices, today)
        if prices is None:
            return None
        record = prices.today.get_hour(hour)
        return CurrentPrice(record) if record else None

    async def close(self) -> None:
        await self._feed.close()
        await self._rates.close()
