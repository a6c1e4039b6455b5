"""Tests for the hourly price aggregator and daily schedule helpers."""

from __future__ import annotations

from datetime import date

from spot_monitor.errors import FeedMalformed, FeedUnavailable
from spot_monitor.tariff.aggregator import (
    HourlyPriceAggregator,
    build_daily_series,
    build_hourly_prices,
    clean_samples,
    prices_for_day,
)
from spot_monitor.tariff.base import PriceFeed, PriceSample, PriceTier
from spot_monitor.tariff.currency import ExchangeRateCache
from spot_monitor.tariff.schedule import get_cheapest_hours, get_daily_stats

TODAY = date(2024, 1, 15)
TOMORROW = date(2024, 1, 16)


def _day(day: date, prices: list[float]) -> list[PriceSample]:
    return [PriceSample(day=day, hour=h, price_eur=p) for h, p in enumerate(prices)]


class _FakeFeed(PriceFeed):
    name = "fake"

    def __init__(self, by_day: dict[date, list[PriceSample]]) -> None:
        self.by_day = by_day
        self.error: Exception | None = None
        self.failing_days: set[date] = set()
        self.closed = False

    async def fetch_daily_prices(self, day: date) -> list[PriceSample]:
        if self.error is not None:
            raise self.error
        if day in self.failing_days:
            raise FeedUnavailable(f"no data for {day}")
        return list(self.by_day.get(day, []))

    async def close(self) -> None:
        self.closed = True


class TestCleanSamples:
    def test_sorted_by_hour(self) -> None:
        samples = [PriceSample(TODAY, h, float(h)) for h in (5, 1, 3)]
        assert [s.hour for s in clean_samples(TODAY, samples)] == [1, 3, 5]

    def test_drops_invalid_and_foreign_samples(self) -> None:
        samples = [
            PriceSample(TODAY, 0, 10.0),
            PriceSample(TODAY, 24, 10.0),
            PriceSample(TODAY, 2, float("nan")),
            PriceSample(TOMORROW, 3, 10.0),
            PriceSample(TODAY, 0, 99.0),
        ]
        cleaned = clean_samples(TODAY, samples)
        assert cleaned == [PriceSample(TODAY, 0, 10.0)]

    def test_gaps_are_preserved(self) -> None:
        samples = [PriceSample(TODAY, h, 50.0) for h in range(24) if h not in (3, 4)]
        series = build_daily_series(TODAY, samples, "EUR", 1.0)
        assert len(series) == 22
        assert series.get_hour(3) is None
        assert not series.is_complete


class TestHourlyPriceAggregator:
    async def test_refresh_builds_both_days(self) -> None:
        feed = _FakeFeed({
            TODAY: _day(TODAY, [10.0 * (i + 1) for i in range(24)]),
            TOMORROW: _day(TOMORROW, [500.0 + i for i in range(24)]),
        })
        agg = HourlyPriceAggregator(feed, ExchangeRateCache(), "EUR")
        prices = await agg.refresh(TODAY, TOMORROW)

        assert prices is not None
        assert agg.last_refresh_ok
        assert prices.provider == "fake"
        assert len(prices.today) == 24
        assert prices.has_tomorrow
        assert prices.today.hours[0].tier == PriceTier.LOW
        # Tomorrow is ranked against itself, not against today
        assert prices.tomorrow.hours[0].rank == 1
        assert prices.tomorrow.hours[0].tier == PriceTier.LOW

    async def test_unpublished_tomorrow_is_empty(self) -> None:
        feed = _FakeFeed({TODAY: _day(TODAY, [40.0, 50.0])})
        agg = HourlyPriceAggregator(feed, ExchangeRateCache(), "EUR")
        prices = await agg.refresh(TODAY, TOMORROW)
        assert prices is not None
        assert not prices.has_tomorrow
        assert prices.tomorrow.day == TOMORROW

    async def test_tomorrow_failure_keeps_today(self) -> None:
        feed = _FakeFeed({TODAY: _day(TODAY, [40.0, 50.0, 60.0])})
        feed.failing_days = {TOMORROW}
        agg = HourlyPriceAggregator(feed, ExchangeRateCache(), "EUR")
        prices = await agg.refresh(TODAY, TOMORROW)

        assert prices is not None
        assert agg.last_refresh_ok
        assert len(prices.today) == 3
        assert not prices.has_tomorrow
        current = agg.current_price(1, TODAY)
        assert current is not None and current.price_eur == 50.0

    async def test_today_failure_is_a_failed_refresh(self) -> None:
        feed = _FakeFeed({TOMORROW: _day(TOMORROW, [40.0])})
        feed.failing_days = {TODAY}
        agg = HourlyPriceAggregator(feed, ExchangeRateCache(), "EUR")
        assert await agg.refresh(TODAY, TOMORROW) is None
        assert not agg.last_refresh_ok

    async def test_converts_and_rounds_display_price(self) -> None:
        feed = _FakeFeed({TODAY: _day(TODAY, [100.0, 100.02])})
        agg = HourlyPriceAggregator(feed, ExchangeRateCache(), "CZK")
        prices = await agg.refresh(TODAY, TOMORROW)
        assert prices is not None
        record = prices.today.hours[0]
        assert record.price_eur == 100.0
        assert record.price_local == 2530
        assert record.currency == "CZK"

    async def test_first_failure_returns_none(self) -> None:
        feed = _FakeFeed({})
        feed.error = FeedUnavailable("down")
        agg = HourlyPriceAggregator(feed, ExchangeRateCache())
        assert await agg.refresh(TODAY, TOMORROW) is None
        assert not agg.last_refresh_ok
        assert "FeedUnavailable" in agg.last_error

    async def test_failure_keeps_cached_series(self) -> None:
        feed = _FakeFeed({TODAY: _day(TODAY, [30.0, 20.0, 10.0])})
        agg = HourlyPriceAggregator(feed, ExchangeRateCache(), "EUR")
        first = await agg.refresh(TODAY, TOMORROW)

        feed.error = FeedMalformed("garbage")
        second = await agg.refresh(TODAY, TOMORROW)
        assert second is first
        assert agg.prices is first
        assert not agg.last_refresh_ok

    async def test_set_currency_reconverts(self) -> None:
        feed = _FakeFeed({TODAY: _day(TODAY, [100.0, 200.0])})
        agg = HourlyPriceAggregator(feed, ExchangeRateCache(), "EUR")
        await agg.refresh(TODAY, TOMORROW)

        prices = await agg.set_currency("czk")
        assert prices is not None
        assert agg.currency == "CZK"
        assert prices.today.hours[1].price_local == 5060
        assert prices.today.hours[1].tier == PriceTier.HIGH

    async def test_current_price(self) -> None:
        feed = _FakeFeed({TODAY: _day(TODAY, [10.0, 20.0, 30.0])})
        agg = HourlyPriceAggregator(feed, ExchangeRateCache(), "EUR")
        assert agg.current_price(1, TODAY) is None

        await agg.refresh(TODAY, TOMORROW)
        current = agg.current_price(1, TODAY)
        assert current is not None
        assert current.hour == 1
        assert current.price_eur == 20.0
        assert agg.current_price(5, TODAY) is None
        assert agg.current_price(1, TOMORROW) is None

    async def test_current_price_after_midnight_uses_cached_tomorrow(self) -> None:
        feed = _FakeFeed({
            TODAY: _day(TODAY, [10.0, 20.0]),
            TOMORROW: _day(TOMORROW, [70.0, 80.0]),
        })
        agg = HourlyPriceAggregator(feed, ExchangeRateCache(), "EUR")
        await agg.refresh(TODAY, TOMORROW)
        current = agg.current_price(1, TOMORROW)
        assert current is not None
        assert current.price_eur == 80.0
        assert agg.current_price(1, date(2024, 1, 17)) is None

    async def test_close_closes_feed(self) -> None:
        feed = _FakeFeed({})
        agg = HourlyPriceAggregator(feed, ExchangeRateCache())
        await agg.close()
        assert feed.closed


class TestPricesForDay:
    def test_same_day_is_unchanged(self) -> None:
        prices = build_hourly_prices(TODAY, TOMORROW, _day(TODAY, [1.0]), [], "EUR", 1.0)
        assert prices_for_day(prices, TODAY) is prices

    def test_tomorrow_promoted_after_midnight(self) -> None:
        prices = build_hourly_prices(
            TODAY, TOMORROW, _day(TODAY, [1.0]), _day(TOMORROW, [5.0, 6.0]), "EUR", 1.0, provider="ote",
        )
        rolled = prices_for_day(prices, TOMORROW)
        assert rolled is not None
        assert rolled.today is prices.tomorrow
        assert rolled.tomorrow.day == date(2024, 1, 17)
        assert not rolled.has_tomorrow
        assert rolled.provider == "ote"

    def test_unpublished_tomorrow_is_unusable(self) -> None:
        prices = build_hourly_prices(TODAY, TOMORROW, _day(TODAY, [1.0]), [], "EUR", 1.0)
        assert prices_for_day(prices, TOMORROW) is None
        assert prices_for_day(None, TODAY) is None


class TestSchedule:
    def test_daily_stats(self) -> None:
        series = build_daily_series(TODAY, _day(TODAY, [40.0, 10.0, 70.0, 20.0, 60.0, 30.0]), "EUR", 1.0)
        stats = get_daily_stats(series, cheap_count=2)
        assert stats is not None
        assert stats.min_price == 10.0
        assert stats.min_hour == 1
        assert stats.max_price == 70.0
        assert stats.max_hour == 2
        assert stats.avg_price == 230.0 / 6
        assert [r.hour for r in stats.cheap_hours] == [1, 3]

    def test_daily_stats_empty(self) -> None:
        assert get_daily_stats(build_daily_series(TODAY, [], "EUR", 1.0)) is None

    def test_cheapest_hours_after(self) -> None:
        series = build_daily_series(TODAY, _day(TODAY, [5.0, 50.0, 40.0, 30.0, 45.0]), "EUR", 1.0)
        cheapest = get_cheapest_hours(series, after_hour=1, count=2)
        assert [r.hour for r in cheapest] == [3, 2]
