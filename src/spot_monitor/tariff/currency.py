"""EUR to display-currency conversion with a cached exchange-rate table."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping

from spot_monitor.config.regions import get_currency
from spot_monitor.errors import SpotMonitorError
from spot_monitor.tariff.base import ExchangeRateSource

logger = logging.getLogger(__name__)

# Approximate units per 1 EUR. Used until (or instead of) a fetched rate.
STATIC_EXCHANGE_RATES: dict[str, float] = {
    "EUR": 1.0,
    "CZK": 25.3,
    "PLN": 4.32,
    "HUF": 395.0,
    "RON": 4.97,
    "SEK": 11.5,
    "NOK": 11.8,
    "DKK": 7.46,
    "CHF": 0.94,
    "GBP": 0.86,
}

DEFAULT_CACHE_SECONDS = 3600


def convert_currency(
    price_eur: float,
    currency: str,
    rates: Mapping[str, float] = STATIC_EXCHANGE_RATES,
) -> float:
    """Convert a EUR price to ``currency``. Unknown currencies convert 1:1."""
    return price_eur * rates.get(currency.upper(), 1.0)


def round_to_currency(value: float, currency: str) -> float:
    """Round to the currency's display precision (e.g. CZK 0, EUR 2)."""
    return round(value, get_currency(currency).decimals)


class ExchangeRateCache:
    """Serves exchange rates, refreshing each currency at most once per window.

    A failed refresh never blocks or raises: the last known rate (or the
    static table entry) keeps being served and the next refresh is retried
    after the cache window.
    """

    def __init__(
        self,
        source: ExchangeRateSource | None = None,
        cache_seconds: int = DEFAULT_CACHE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._cache_seconds = max(cache_seconds, DEFAULT_CACHE_SECONDS)
        self._clock = clock
        self._rates: dict[str, float] = dict(STATIC_EXCHANGE_RATES)
        self._fetched_at: dict[str, float] = {}

    @property
    def rates(self) -> dict[str, float]:
        return dict(self._rates)

    def cached_rate(self, currency: str) -> float:
        return self._rates.get(currency.upper(), 1.0)

    def is_fresh(self, currency: str) -> bool:
        fetched = self._fetched_at.get(currency.upper())
        return fetched is not None and self._clock() - fetched < self._cache_seconds

    async def get_rate(self, currency: str) -> float:
        """Return units of ``currency`` per EUR, fetching if the cache expired."""
        code = currency.upper()
        if code == "EUR" or self._source is None or self.is_fresh(code):
            return self.cached_rate(code)

        try:
            rate = await self._source.fetch_rate(code)
        except SpotMonitorError as e:
            logger.warning(
                "Exchange rate fetch for %s failed, using cached %.4f: %s",
                code, self.cached_rate(code), e,
            )
            # Back off for a full window instead of retrying every cycle
            self._fetched_at[code] = self._clock()
            return self.cached_rate(code)

        if rate <= 0:
            logger.warning("Ignoring non-positive %s rate %.4f", code, rate)
            return self.cached_rate(code)

        self._rates[code] = rate
        self._fetched_at[code] = self._clock()
        logger.info("Exchange rate updated: 1 EUR = %.4f %s", rate, code)
        return rate

    async def close(self) -> None:
        if self._source is not None:
            await self._source.close()
