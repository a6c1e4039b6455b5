"""Spot Monitor application entry point and lifecycle orchestrator.

Startup sequence:
  config → logging → providers → aggregator/adapter → monitor → run loop
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import signal
import sys
from pathlib import Path
from typing import Any

from spot_monitor import __version__
from spot_monitor.config.manager import ConfigManager
from spot_monitor.config.schema import AppConfig
from spot_monitor.events import NotificationRaised, RecommendationsUpdated
from spot_monitor.forecast.providers.openmeteo import OpenMeteoProvider
from spot_monitor.forecast.solar import SolarForecastAdapter
from spot_monitor.logging.context import bind_context, clear_context
from spot_monitor.logging.structured import setup_logging
from spot_monitor.monitor import SpotMonitor
from spot_monitor.tariff.aggregator import HourlyPriceAggregator
from spot_monitor.tariff.currency import ExchangeRateCache
from spot_monitor.tariff.providers.cnb import CNBExchangeRateSource
from spot_monitor.tariff.providers.ote import OTEPriceFeed

logger = logging.getLogger(__name__)


def build_monitor(config: AppConfig) -> SpotMonitor:
    """Wire providers, caches and the monitor from configuration."""
    providers_cfg = config.providers
    rates = ExchangeRateCache(
        CNBExchangeRateSource(providers_cfg.exchange_rate),
        cache_seconds=providers_cfg.exchange_rate.cache_seconds,
    )
    aggregator = HourlyPriceAggregator(OTEPriceFeed(providers_cfg.price), rates, config.currency)
    solar = SolarForecastAdapter(OpenMeteoProvider(providers_cfg.weather))
    return SpotMonitor(config, aggregator, solar)


class Application:
    """Owns the monitor and the console presentation of its events."""

    def __init__(self, config: AppConfig, config_manager: ConfigManager) -> None:
        self.config = config
        self.config_manager = config_manager
        self.monitor = build_monitor(config)
        self._running = False
        self.monitor.bus.subscribe(NotificationRaised, self._on_notification)
        self.monitor.bus.subscribe(RecommendationsUpdated, self._on_recommendations)

    @staticmethod
    def _on_notification(event: NotificationRaised) -> None:
        print(f"{event.notification.title}: {event.notification.body}", flush=True)

    @staticmethod
    def _on_recommendations(event: RecommendationsUpdated) -> None:
        state = event.state
        logger.debug(
            "Status %s: %s (%d recommendations)",
            state.overall_status.value, state.status_message, len(state.recommendations),
        )

    async def start(self) -> None:
        logger.info(
            "Starting Spot Monitor v%s (region=%s, currency=%s)",
            __version__, self.config.region, self.config.currency,
        )
        self._running = True
        bind_context(region=self.config.region)
        await self.monitor.run()

    async def update_settings(self, updates: dict[str, Any]) -> AppConfig:
        """Persist user overrides and hand the reloaded config to the monitor."""
        config = self.config_manager.save_user_config(updates)
        await self.monitor.apply_config(config)
        self.config = config
        if self._running:
            bind_context(region=config.region)
        return config

    async def stop(self) -> None:
        if not self._running:
            return
        logger.info("Shutting down Spot Monitor")
        self._running = False
        self.monitor.stop()
        await self.monitor.close()
        clear_context()


def main() -> None:
    """Entry point for the application."""
    defaults_path = Path("config.defaults.yaml")
    user_path = Path("config.yaml")

    config_manager = ConfigManager(defaults_path, user_path)
    config = config_manager.load()

    setup_logging(
        level=config.logging.level,
        fmt=config.logging.format,
        log_file=config.logging.file,
    )

    stop_requested = False
    signal_count = 0

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    app = Application(config, config_manager)

    async def _run() -> None:
        try:
            await app.start()
        finally:
            if app._running:
                with contextlib.suppress(Exception):
                    await app.stop()

    def _request_stop() -> None:
        nonlocal stop_requested, signal_count
        signal_count += 1
        if signal_count >= 2:
            os._exit(130)
        if stop_requested or loop.is_closed():
            return
        stop_requested = True
        loop.call_soon_threadsafe(lambda: asyncio.create_task(app.stop()))

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _request_stop)
    else:
        signal.signal(signal.SIGINT, lambda *_: _request_stop())
        if hasattr(signal, "SIGTERM"):
            signal.signal(signal.SIGTERM, lambda *_: _request_stop())

    try:
        loop.run_until_complete(_run())
    except KeyboardInterrupt:
        _request_stop()
        with contextlib.suppress(Exception):
            loop.run_until_complete(app.stop())
    finally:
        pending = [task for task in asyncio.all_tasks(loop) if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            with contextlib.suppress(Exception):
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        loop.close()


if __name__ == "__main__":
    main()
