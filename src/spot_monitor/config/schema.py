"""Pydantic configuration models for all system settings."""

from __future__ import annotations

from pydantic import BaseModel, Field


class NotificationsConfig(BaseModel):
    low_price: bool = True
    high_price: bool = True
    recommendations: bool = True


class LocationConfig(BaseModel):
    """Optional coordinate override. Unset = use the region's default city."""

    latitude: float | None = Field(None, ge=-90.0, le=90.0)
    longitude: float | None = Field(None, ge=-180.0, le=180.0)

    @property
    def is_set(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class PriceProviderConfig(BaseModel):
    type: str = "ote"
    url: str = "https://www.ote-cr.cz/services/PublicDataService"
    update_interval_seconds: int = 300  # current price cycle
    hourly_interval_seconds: int = 1800  # full series cycle
    timeout_seconds: float = 30.0


class ExchangeRateProviderConfig(BaseModel):
    type: str = "cnb"
    url: str = (
        "https://www.cnb.cz/cs/financni-trhy/devizovy-trh/"
        "kurzy-devizoveho-trhu/kurzy-devizoveho-trhu/denni_kurz.txt"
    )
    cache_seconds: int = Field(3600, ge=3600)
    timeout_seconds: float = 15.0


class WeatherProviderConfig(BaseModel):
    type: str = "openmeteo"
    update_interval_seconds: int = 1800
    timeout_seconds: float = 30.0


class ProvidersConfig(BaseModel):
    price: PriceProviderConfig = PriceProviderConfig()
    exchange_rate: ExchangeRateProviderConfig = ExchangeRateProviderConfig()
    weather: WeatherProviderConfig = WeatherProviderConfig()


class ResilienceConfig(BaseModel):
    max_consecutive_failures: int = 3
    stale_max_age_seconds: int = 7200


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "json"
    file: str = ""


class AppConfig(BaseModel):
    """Root configuration model containing all system settings."""

    region: str = "CZ"
    currency: str = "CZK"
    notifications: NotificationsConfig = NotificationsConfig()
    location: LocationConfig = LocationConfig()
    solar_capacity_kwp: float = Field(5.0, gt=0.0)
    providers: ProvidersConfig = ProvidersConfig()
    resilience: ResilienceConfig = ResilienceConfig()
    logging: LoggingConfig = LoggingConfig()
