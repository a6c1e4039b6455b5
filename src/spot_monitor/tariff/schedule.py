"""Daily price statistics and cheapest-hour helpers."""

from __future__ import annotations

from dataclasses import dataclass, field

from spot_monitor.tariff.base import DailyPriceSeries, HourlyPriceRecord, PriceTier


@dataclass(frozen=True)
class DailyStats:
    """Summary of one day's display-currency prices (per MWh)."""

    min_price: float
    max_price: float
    avg_price: float
    min_hour: int
    max_hour: int
    cheap_hours: list[HourlyPriceRecord] = field(default_factory=list)


def get_daily_stats(series: DailyPriceSeries, cheap_count: int = 3) -> DailyStats | None:
    """Min/max/average of a day plus its cheapest low-tier hours.

    Returns None for an empty series.
    """
    if series.is_empty:
        return None
    prices = series.local_prices()
    min_record = min(series.hours, key=lambda r: r.price_local)
    max_record = max(series.hours, key=lambda r: r.price_local)
    cheap = sorted(
        (r for r in series.hours if r.tier == PriceTier.LOW),
        key=lambda r: r.price_local,
    )[:cheap_count]
    return DailyStats(
        min_price=min_record.price_local,
        max_price=max_record.price_local,
        avg_price=sum(prices) / len(prices),
        min_hour=min_record.hour,
        max_hour=max_record.hour,
        cheap_hours=cheap,
    )


def get_cheapest_hours(
    series: DailyPriceSeries,
    after_hour: int | None = None,
    count: int = 6,
) -> list[HourlyPriceRecord]:
    """Return the cheapest hours sorted by price, optionally only after ``after_hour``."""
    hours = series.hours
    if after_hour is not None:
        hours = [r for r in hours if r.hour > after_hour]
    return sorted(hours, key=lambda r: r.price_local)[:count]
