"""Relative price classification within a single day.

Each hour gets a rank on a 1-24 scale (1 = cheapest) and a tier derived
from it: ranks 1-8 are low, 9-16 medium, 17-24 high. Days with fewer or
more than 24 samples are scaled onto the same 24-point scale so tier
boundaries stay at thirds of the distribution.

Tied prices all receive the rank of the first (lowest) tied position.
"""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Sequence
from dataclasses import dataclass

from spot_monitor.tariff.base import PriceTier

RANK_SCALE = 24
LOW_MAX_RANK = 8
MEDIUM_MAX_RANK = 16


@dataclass(frozen=True)
class PriceClassification:
    tier: PriceTier
    rank: int


# Returned for an empty day; avoids a zero division and sits mid-scale.
NEUTRAL_CLASSIFICATION = PriceClassification(tier=PriceTier.MEDIUM, rank=12)


def tier_for_rank(rank: int) -> PriceTier:
    if rank <= LOW_MAX_RANK:
        return PriceTier.LOW
    if rank <= MEDIUM_MAX_RANK:
        return PriceTier.MEDIUM
    return PriceTier.HIGH


def classify_price(price: float, day_prices: Sequence[float]) -> PriceClassification:
    """Classify ``price`` against the full set of one day's prices."""
    n = len(day_prices)
    if n == 0:
        return NEUTRAL_CLASSIFICATION
    if n == 1:
        return PriceClassification(tier=PriceTier.LOW, rank=1)

    ordered = sorted(day_prices)
    position = bisect_left(ordered, price)
    if position >= n:
        rank = RANK_SCALE
    else:
        # ceil((position + 1) / n * 24) in integer arithmetic
        rank = max(1, -(-(position + 1) * RANK_SCALE // n))
    return PriceClassification(tier=tier_for_rank(rank), rank=rank)


def classify_day(day_prices: Sequence[float]) -> list[PriceClassification]:
    """Classify every price of a day, preserving input order."""
    return [classify_price(price, day_prices) for price in day_prices]
