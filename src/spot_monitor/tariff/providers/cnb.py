"""Czech National Bank daily exchange rates.

Plain-text format, one header line with the date, one column header line,
then rows of ``country|currency|amount|code|rate`` with a decimal comma.
The rate is CZK per ``amount`` units of the foreign currency.
"""

from __future__ import annotations

import logging
from datetime import date

import httpx

from spot_monitor.config.schema import ExchangeRateProviderConfig
from spot_monitor.errors import FeedMalformed, FeedUnavailable
from spot_monitor.tariff.base import ExchangeRateSource
from spot_monitor.tariff.currency import STATIC_EXCHANGE_RATES

logger = logging.getLogger(__name__)


def parse_cnb_rates(text: str) -> dict[str, float]:
    """Parse the CNB text table into {code: CZK per 1 unit}."""
    rates: dict[str, float] = {}
    for line in text.splitlines():
        parts = line.split("|")
        if len(parts) < 5:
            continue
        code = parts[3].strip().upper()
        try:
            amount = float(parts[2].replace(",", "."))
            rate = float(parts[4].replace(",", "."))
        except ValueError:
            continue  # column header row
        if amount > 0:
            rates[code] = rate / amount
    return rates


class CNBExchangeRateSource(ExchangeRateSource):
    """EUR->CZK from the CNB fixing. Other currencies use the static table."""

    def __init__(self, config: ExchangeRateProviderConfig) -> None:
        self._config = config
        self._client = httpx.AsyncClient(timeout=config.timeout_seconds)

    async def fetch_rate(self, currency: str) -> float:
        code = currency.upper()
        if code != "CZK":
            return STATIC_EXCHANGE_RATES.get(code, 1.0)

        params = {"date": date.today().strftime("%d.%m.%Y")}
        try:
            resp = await self._client.get(self._config.url, params=params)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise FeedUnavailable(f"CNB request failed: {e}") from e

        rates = parse_cnb_rates(resp.text)
        if "EUR" not in rates:
            raise FeedMalformed("CNB response has no EUR row")
        return rates["EUR"]

    async def close(self) -> None:
        await self._client.aclose()
