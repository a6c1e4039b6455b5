"""Recommendation data models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Activity(str, Enum):
    EV_CHARGING = "ev_charging"
    LAUNDRY = "laundry"


class Quality(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    OKAY = "okay"
    WAIT = "wait"  # no recommendation produced


class OverallStatus(str, Enum):
    GO = "go"
    OKAY = "okay"
    WAIT = "wait"


STATUS_EXCELLENT = "Excellent conditions now!"
STATUS_GOOD = "Good time for high-power activities"
STATUS_ACCEPTABLE = "Acceptable conditions"
STATUS_WAIT = "Wait for better conditions"
STATUS_LOADING = "Loading price data..."


@dataclass(frozen=True)
class Recommendation:
    activity: Activity
    quality: Quality
    reason: str
    window_end: str | None = None  # "HH:MM"


@dataclass(frozen=True)
class NextWindow:
    time: str  # "HH:00" or "HH:00 tomorrow"
    reason: str


@dataclass(frozen=True)
class RecommendationState:
    """Result of one recomputation. At most one recommendation per activity."""

    recommendations: tuple[Recommendation, ...] = ()
    overall_status: OverallStatus = OverallStatus.WAIT
    status_message: str = STATUS_LOADING
    next_window: NextWindow | None = None

    def for_activity(self, activity: Activity) -> Recommendation | None:
        for rec in self.recommendations:
            if rec.activity == activity:
                return rec
        return None

    def to_dict(self) -> dict:
        return {
            "recommendations": [
                {
                    "activity": r.activity.value,
                    "quality": r.quality.value,
                    "reason": r.reason,
                    "window_end": r.window_end,
                }
                for r in self.recommendations
            ],
            "overall_status": self.overall_status.value,
            "status_message": self.status_message,
            "next_window": (
                {"time": self.next_window.time, "reason": self.next_window.reason}
                if self.next_window else None
            ),
        }


@dataclass(frozen=True)
class OptimalWindow:
    activity: Activity
    start_hour: int
    end_hour: int
    reason: str
    quality: Quality
    score: int = 0
