"""Tests for notification texts and the edge-triggered policy."""

from __future__ import annotations

from datetime import date

import pytest

from spot_monitor.config.schema import NotificationsConfig
from spot_monitor.forecast.base import GenerationPotential, SunSnapshot, WeatherCondition
from spot_monitor.notify.messages import (
    NotificationKind,
    high_price_notification,
    hours_until_sunset,
    low_price_notification,
    recommendation_notification,
)
from spot_monitor.notify.policy import UNSET, NotificationPolicy
from spot_monitor.recommendation.models import (
    Activity,
    OverallStatus,
    Quality,
    Recommendation,
    RecommendationState,
)
from spot_monitor.tariff.base import CurrentPrice, HourlyPriceRecord, PriceTier


def _price(tier: PriceTier, value: float = 45.5, currency: str = "EUR") -> CurrentPrice:
    return CurrentPrice(
        HourlyPriceRecord(
            day=date(2024, 6, 15),
            hour=12,
            price_eur=value,
            price_local=value,
            currency=currency,
            tier=tier,
            rank={PriceTier.LOW: 1, PriceTier.MEDIUM: 12, PriceTier.HIGH: 24}[tier],
        )
    )


def _state(status: OverallStatus) -> RecommendationState:
    if status == OverallStatus.GO:
        recs = (Recommendation(Activity.EV_CHARGING, Quality.EXCELLENT, "Lowest price + sunny"),)
    elif status == OverallStatus.OKAY:
        recs = (Recommendation(Activity.EV_CHARGING, Quality.GOOD, "Lowest price of the day"),)
    else:
        recs = ()
    return RecommendationState(recommendations=recs, overall_status=status)


def _sun(sunset: str = "20:00") -> SunSnapshot:
    return SunSnapshot(
        irradiance_w_m2=650.0,
        cloud_cover_pct=5.0,
        is_daytime=True,
        generation_potential=GenerationPotential.HIGH,
        weather_condition=WeatherCondition.CLEAR,
        hourly_irradiance=(650.0,) * 24,
        hourly_cloud_cover=(5.0,) * 24,
        current_hour=14,
        sunrise="05:00",
        sunset=sunset,
    )


# ── Messages ─────────────────────────────────────────────


class TestMessages:
    def test_low_price_text(self) -> None:
        n = low_price_notification(_price(PriceTier.LOW, 45.5))
        assert n.kind == NotificationKind.LOW_PRICE
        assert n.title == "⚡ Low Electricity Price!"
        assert n.body == "Current price: €45.50/MWh - Great time to use power!"

    def test_high_price_text_in_local_currency(self) -> None:
        n = high_price_notification(_price(PriceTier.HIGH, 4150.0, currency="CZK"))
        assert n.title == "⚡ High Electricity Price"
        assert n.body == "Current price: 4150 Kč/MWh - Consider reducing usage"

    def test_perfect_charge_with_sun_hours(self) -> None:
        n = recommendation_notification(_state(OverallStatus.GO), _sun("20:00"), 14)
        assert n is not None
        assert n.kind == NotificationKind.RECOMMENDATION
        assert n.body == "Perfect time to charge! Low price + sunny for 6h"

    def test_good_ev_text(self) -> None:
        n = recommendation_notification(_state(OverallStatus.OKAY), None, 14)
        assert n is not None
        assert n.body == "Good time to charge EV - Lowest price of the day"

    def test_laundry_text(self) -> None:
        state = RecommendationState(
            recommendations=(Recommendation(Activity.LAUNDRY, Quality.EXCELLENT, "Lowest price + sunny"),),
            overall_status=OverallStatus.GO,
        )
        n = recommendation_notification(state, None, 14)
        assert n is not None
        assert n.body == "Great laundry window! Lowest price + sunny"

    def test_hours_until_sunset(self) -> None:
        assert hours_until_sunset(_sun("20:00"), 14) == 6
        assert hours_until_sunset(_sun("20:00"), 22) == 0
        assert hours_until_sunset(_sun(""), 14) == 0


# ── Policy ───────────────────────────────────────────────


class TestNotificationPolicy:
    def test_markers_start_unset(self) -> None:
        policy = NotificationPolicy()
        assert policy.last_price_tier is UNSET
        assert policy.last_status is UNSET
        assert UNSET != PriceTier.LOW
        assert UNSET != OverallStatus.WAIT

    def test_first_observation_is_silent(self) -> None:
        policy = NotificationPolicy()
        assert policy.evaluate(_price(PriceTier.LOW), _state(OverallStatus.GO)) is None
        assert policy.last_price_tier == PriceTier.LOW
        assert policy.last_status == OverallStatus.GO

    def test_status_sequence_fires_once(self) -> None:
        policy = NotificationPolicy()
        statuses = [
            OverallStatus.WAIT, OverallStatus.WAIT, OverallStatus.GO,
            OverallStatus.GO, OverallStatus.OKAY,
        ]
        results = [policy.evaluate(_price(PriceTier.MEDIUM), _state(s)) for s in statuses]
        fired = [i for i, n in enumerate(results) if n is not None]
        assert fired == [2]
        assert results[2] is not None
        assert results[2].kind == NotificationKind.RECOMMENDATION
        assert policy.sent_count == 1

    def test_go_skips_price_check_for_that_cycle(self) -> None:
        policy = NotificationPolicy()
        policy.evaluate(_price(PriceTier.MEDIUM), _state(OverallStatus.WAIT))
        n = policy.evaluate(_price(PriceTier.LOW), _state(OverallStatus.GO))
        assert n is not None and n.kind == NotificationKind.RECOMMENDATION
        # Tier marker already moved to low, so no late price alert
        assert policy.evaluate(_price(PriceTier.LOW), _state(OverallStatus.GO)) is None

    @pytest.mark.parametrize(
        ("tier", "kind"),
        [(PriceTier.LOW, NotificationKind.LOW_PRICE), (PriceTier.HIGH, NotificationKind.HIGH_PRICE)],
    )
    def test_entering_price_tier(self, tier: PriceTier, kind: NotificationKind) -> None:
        policy = NotificationPolicy()
        wait = _state(OverallStatus.WAIT)
        assert policy.evaluate(_price(PriceTier.MEDIUM), wait) is None
        n = policy.evaluate(_price(tier), wait)
        assert n is not None and n.kind == kind
        assert policy.evaluate(_price(tier), wait) is None

    def test_leaving_a_tier_never_notifies(self) -> None:
        policy = NotificationPolicy()
        wait = _state(OverallStatus.WAIT)
        policy.evaluate(_price(PriceTier.HIGH), wait)
        assert policy.evaluate(_price(PriceTier.MEDIUM), wait) is None

    def test_low_to_high_notifies(self) -> None:
        policy = NotificationPolicy()
        wait = _state(OverallStatus.WAIT)
        policy.evaluate(_price(PriceTier.LOW), wait)
        n = policy.evaluate(_price(PriceTier.HIGH), wait)
        assert n is not None and n.kind == NotificationKind.HIGH_PRICE

    def test_direction_toggles(self) -> None:
        policy = NotificationPolicy(NotificationsConfig(low_price=False))
        wait = _state(OverallStatus.WAIT)
        policy.evaluate(_price(PriceTier.MEDIUM), wait)
        assert policy.evaluate(_price(PriceTier.LOW), wait) is None
        n = policy.evaluate(_price(PriceTier.HIGH), wait)
        assert n is not None and n.kind == NotificationKind.HIGH_PRICE

    def test_recommendations_toggle_falls_through_to_price(self) -> None:
        policy = NotificationPolicy(NotificationsConfig(recommendations=False))
        policy.evaluate(_price(PriceTier.MEDIUM), _state(OverallStatus.WAIT))
        n = policy.evaluate(_price(PriceTier.LOW), _state(OverallStatus.GO))
        assert n is not None and n.kind == NotificationKind.LOW_PRICE

    def test_update_config_applies_next_cycle(self) -> None:
        policy = NotificationPolicy()
        wait = _state(OverallStatus.WAIT)
        policy.evaluate(_price(PriceTier.MEDIUM), wait)
        policy.update_config(NotificationsConfig(high_price=False))
        assert policy.evaluate(_price(PriceTier.HIGH), wait) is None

    def test_missing_price_keeps_markers(self) -> None:
        policy = NotificationPolicy()
        wait = _state(OverallStatus.WAIT)
        policy.evaluate(_price(PriceTier.MEDIUM), wait)
        assert policy.evaluate(None, _state(OverallStatus.GO)) is None
        assert policy.last_status == OverallStatus.WAIT
        assert policy.last_price_tier == PriceTier.MEDIUM

    def test_reset(self) -> None:
        policy = NotificationPolicy()
        policy.evaluate(_price(PriceTier.MEDIUM), _state(OverallStatus.WAIT))
        policy.reset()
        assert policy.evaluate(_price(PriceTier.LOW), _state(OverallStatus.GO)) is None
