"""Tests for currency conversion and the exchange-rate cache."""

from __future__ import annotations

from spot_monitor.errors import FeedUnavailable
from spot_monitor.tariff.base import ExchangeRateSource
from spot_monitor.tariff.currency import (
    STATIC_EXCHANGE_RATES,
    ExchangeRateCache,
    convert_currency,
    round_to_currency,
)


class _FakeSource(ExchangeRateSource):
    def __init__(self, rate: float = 25.0) -> None:
        self.rate = rate
        self.fail = False
        self.calls: list[str] = []

    async def fetch_rate(self, currency: str) -> float:
        self.calls.append(currency)
        if self.fail:
            raise FeedUnavailable("offline")
        return self.rate


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestConversion:
    def test_convert_with_static_rates(self) -> None:
        assert convert_currency(100.0, "CZK") == 100.0 * 25.3
        assert convert_currency(100.0, "eur") == 100.0

    def test_unknown_currency_converts_one_to_one(self) -> None:
        assert convert_currency(42.0, "XYZ") == 42.0

    def test_round_to_currency_precision(self) -> None:
        assert round_to_currency(2530.6, "CZK") == 2531
        assert round_to_currency(1.23456, "EUR") == 1.23


class TestExchangeRateCache:
    async def test_eur_never_fetches(self) -> None:
        source = _FakeSource()
        cache = ExchangeRateCache(source)
        assert await cache.get_rate("EUR") == 1.0
        assert source.calls == []

    async def test_without_source_uses_static_table(self) -> None:
        cache = ExchangeRateCache()
        assert await cache.get_rate("czk") == STATIC_EXCHANGE_RATES["CZK"]

    async def test_rate_cached_for_window(self) -> None:
        source = _FakeSource(24.8)
        clock = _Clock()
        cache = ExchangeRateCache(source, cache_seconds=3600, clock=clock)

        assert await cache.get_rate("CZK") == 24.8
        clock.now += 3599
        source.rate = 30.0
        assert await cache.get_rate("CZK") == 24.8
        assert len(source.calls) == 1

        clock.now += 2
        assert await cache.get_rate("CZK") == 30.0
        assert len(source.calls) == 2

    async def test_window_is_at_least_an_hour(self) -> None:
        source = _FakeSource()
        clock = _Clock()
        cache = ExchangeRateCache(source, cache_seconds=10, clock=clock)
        await cache.get_rate("CZK")
        clock.now += 600
        await cache.get_rate("CZK")
        assert len(source.calls) == 1

    async def test_failure_falls_back_to_static_rate(self) -> None:
        source = _FakeSource()
        source.fail = True
        cache = ExchangeRateCache(source, clock=_Clock())
        assert await cache.get_rate("CZK") == STATIC_EXCHANGE_RATES["CZK"]

    async def test_failure_keeps_last_fetched_rate(self) -> None:
        source = _FakeSource(24.5)
        clock = _Clock()
        cache = ExchangeRateCache(source, clock=clock)
        await cache.get_rate("CZK")

        source.fail = True
        clock.now += 4000
        assert await cache.get_rate("CZK") == 24.5

    async def test_failure_backs_off_for_a_window(self) -> None:
        source = _FakeSource()
        source.fail = True
        clock = _Clock()
        cache = ExchangeRateCache(source, clock=clock)
        await cache.get_rate("CZK")
        clock.now += 60
        await cache.get_rate("CZK")
        assert len(source.calls) == 1

    async def test_non_positive_rate_ignored(self) -> None:
        source = _FakeSource(0.0)
        cache = ExchangeRateCache(source, clock=_Clock())
        assert await cache.get_rate("CZK") == STATIC_EXCHANGE_RATES["CZK"]
        assert cache.cached_rate("CZK") == STATIC_EXCHANGE_RATES["CZK"]
