"""Best hours of the day per activity, for planning ahead."""

from __future__ import annotations

from spot_monitor.forecast.base import SunSnapshot
from spot_monitor.recommendation.engine import daily_average, is_price_stable
from spot_monitor.recommendation.models import Activity, OptimalWindow, Quality
from spot_monitor.tariff.base import HourlyPriceRecord, HourlyPrices, PriceTier

MIN_WINDOW_SCORE = 30
MAX_WINDOWS = 3


def _projected_irradiance(sun: SunSnapshot | None, hour: int) -> float | None:
    """Projected irradiance for an hour of today, if the snapshot covers it."""
    if sun is None:
        return None
    offset = hour - sun.current_hour
    if 0 <= offset < len(sun.hourly_irradiance):
        return sun.hourly_irradiance[offset]
    return None


def score_hour(
    record: HourlyPriceRecord,
    average: float,
    sun: SunSnapshot | None,
) -> tuple[int, list[str]]:
    """Price score (-30..50) plus solar score (0..40) with the reasons that earned it."""
    score = 0
    reasons: list[str] = []

    if record.tier == PriceTier.LOW:
        score += 50
        reasons.append("Low price")
    elif record.price_local < average:
        score += 30
        reasons.append("Below avg")
    elif record.tier == PriceTier.HIGH:
        score -= 30

    irradiance = _projected_irradiance(sun, record.hour)
    if irradiance is not None:
        if irradiance > 600:
            score += 40
            reasons.append("High solar")
        elif irradiance > 300:
            score += 25
            reasons.append("Solar")

    return score, reasons


def _quality_for_score(score: int) -> Quality:
    if score > 70:
        return Quality.EXCELLENT
    if score > 50:
        return Quality.GOOD
    return Quality.OKAY


def find_best_windows(
    hourly: HourlyPrices,
    sun: SunSnapshot | None,
    activity: Activity,
) -> list[OptimalWindow]:
    """Top one-hour windows of today for ``activity``, best first.

    Laundry windows additionally need the price to hold for the cycle.
    """
    average = daily_average(hourly.today)
    candidates: list[OptimalWindow] = []
    for record in hourly.today:
        if activity == Activity.LAUNDRY and not is_price_stable(hourly, record.hour):
            continue
        score, reasons = score_hour(record, average, sun)
        if score <= MIN_WINDOW_SCORE:
            continue
        candidates.append(
            OptimalWindow(
                activity=activity,
                start_hour=record.hour,
                end_hour=(record.hour + 1) % 24,
                reason=" + ".join(reasons),
                quality=_quality_for_score(score),
                score=score,
            )
        )
    # sorted() is stable, so equal scores keep chronological order
    return sorted(candidates, key=lambda w: w.score, reverse=True)[:MAX_WINDOWS]


def find_optimal_windows(
    hourly: HourlyPrices | None,
    sun: SunSnapshot | None,
) -> list[OptimalWindow]:
    if hourly is None:
        return []
    windows: list[OptimalWindow] = []
    for activity in Activity:
        windows.extend(find_best_windows(hourly, sun, activity))
    return windows
