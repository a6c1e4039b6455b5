"""Supported market regions, display currencies and price formatting."""

from __future__ import annotations

from dataclasses import dataclass

from spot_monitor.config.schema import AppConfig


@dataclass(frozen=True)
class Region:
    code: str
    name: str
    country: str
    currency: str
    timezone: str
    entsoe_code: str
    provider: str  # "ote" or "entsoe"
    latitude: float  # default city used when no location override is set
    longitude: float


@dataclass(frozen=True)
class Currency:
    code: str
    symbol: str
    name: str
    decimals: int
    symbol_before: bool


REGIONS: dict[str, Region] = {
    r.code: r
    for r in (
        Region("CZ", "Czech Republic", "Czechia", "CZK", "Europe/Prague", "10YCZ-CEPS-----N", "ote", 50.0755, 14.4378),
        Region("SK", "Slovakia", "Slovakia", "EUR", "Europe/Bratislava", "10YSK-SEPS-----K", "entsoe", 48.1486, 17.1077),
        Region("DE", "Germany", "Germany", "EUR", "Europe/Berlin", "10Y1001A1001A83F", "entsoe", 52.52, 13.405),
        Region("AT", "Austria", "Austria", "EUR", "Europe/Vienna", "10YAT-APG------L", "entsoe", 48.2082, 16.3738),
        Region("PL", "Poland", "Poland", "PLN", "Europe/Warsaw", "10YPL-AREA-----S", "entsoe", 52.2297, 21.0122),
        Region("FR", "France", "France", "EUR", "Europe/Paris", "10YFR-RTE------C", "entsoe", 48.8566, 2.3522),
        Region("NL", "Netherlands", "Netherlands", "EUR", "Europe/Amsterdam", "10YNL----------L", "entsoe", 52.3676, 4.9041),
        Region("BE", "Belgium", "Belgium", "EUR", "Europe/Brussels", "10YBE----------2", "entsoe", 50.8503, 4.3517),
        Region("ES", "Spain", "Spain", "EUR", "Europe/Madrid", "10YES-REE------0", "entsoe", 40.4168, -3.7038),
        Region("IT", "Italy (North)", "Italy", "EUR", "Europe/Rome", "10Y1001A1001A73I", "entsoe", 45.4642, 9.19),
        Region("HU", "Hungary", "Hungary", "HUF", "Europe/Budapest", "10YHU-MAVIR----U", "entsoe", 47.4979, 19.0402),
        Region("RO", "Romania", "Romania", "RON", "Europe/Bucharest", "10YRO-TEL------P", "entsoe", 44.4268, 26.1025),
        Region("SE", "Sweden (SE3)", "Sweden", "SEK", "Europe/Stockholm", "10Y1001A1001A46L", "entsoe", 59.3293, 18.0686),
        Region("NO", "Norway (NO1)", "Norway", "NOK", "Europe/Oslo", "10YNO-1--------2", "entsoe", 59.9139, 10.7522),
        Region("DK", "Denmark (DK1)", "Denmark", "DKK", "Europe/Copenhagen", "10YDK-1--------W", "entsoe", 55.6761, 12.5683),
        Region("FI", "Finland", "Finland", "EUR", "Europe/Helsinki", "10YFI-1--------U", "entsoe", 60.1699, 24.9384),
        Region("CH", "Switzerland", "Switzerland", "CHF", "Europe/Zurich", "10YCH-SWISSGRIDZ", "entsoe", 46.9481, 7.4474),
        Region("GB", "United Kingdom", "United Kingdom", "GBP", "Europe/London", "10Y1001A1001A92E", "entsoe", 51.5074, -0.1278),
        Region("PT", "Portugal", "Portugal", "EUR", "Europe/Lisbon", "10YPT-REN------W", "entsoe", 38.7223, -9.1393),
        Region("GR", "Greece", "Greece", "EUR", "Europe/Athens", "10YGR-HTSO-----Y", "entsoe", 37.9838, 23.7275),
    )
}

CURRENCIES: dict[str, Currency] = {
    c.code: c
    for c in (
        Currency("EUR", "€", "Euro", 2, True),
        Currency("CZK", "Kč", "Czech Koruna", 0, False),
        Currency("PLN", "zł", "Polish Złoty", 2, False),
        Currency("HUF", "Ft", "Hungarian Forint", 0, False),
        Currency("RON", "lei", "Romanian Leu", 2, False),
        Currency("SEK", "kr", "Swedish Krona", 2, False),
        Currency("NOK", "kr", "Norwegian Krone", 2, False),
        Currency("DKK", "kr", "Danish Krone", 2, False),
        Currency("CHF", "Fr.", "Swiss Franc", 2, True),
        Currency("GBP", "£", "British Pound", 2, True),
    )
}

DEFAULT_REGION = "CZ"
DEFAULT_CURRENCY = "EUR"


def get_region(code: str) -> Region:
    """Look up a region, falling back to the Czech market for unknown codes."""
    return REGIONS.get(code.upper(), REGIONS[DEFAULT_REGION])


def get_currency(code: str) -> Currency:
    """Look up a currency, falling back to EUR for unknown codes."""
    return CURRENCIES.get(code.upper(), CURRENCIES[DEFAULT_CURRENCY])


def resolve_location(config: AppConfig) -> tuple[float, float]:
    """Return (latitude, longitude): the configured override or the region default."""
    if config.location.is_set:
        return config.location.latitude, config.location.longitude  # type: ignore[return-value]
    region = get_region(config.region)
    return region.latitude, region.longitude


def format_price(price: float, currency_code: str, per_unit: str = "kWh") -> str:
    """Format a price with the currency's symbol, precision and symbol position."""
    currency = get_currency(currency_code)
    number = f"{price:.{currency.decimals}f}"
    if currency.symbol_before:
        return f"{currency.symbol}{number}/{per_unit}"
    return f"{number} {currency.symbol}/{per_unit}"


def get_region_list() -> list[dict[str, str]]:
    """Regions for a selection list, sorted by display name."""
    items = [{"code": r.code, "name": f"{r.name} ({r.country})"} for r in REGIONS.values()]
    return sorted(items, key=lambda item: item["name"])


def get_currency_list() -> list[dict[str, str]]:
    return sorted(
        ({"code": c.code, "name": f"{c.code} - {c.name}"} for c in CURRENCIES.values()),
        key=lambda item: item["code"],
    )
