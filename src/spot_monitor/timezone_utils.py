"""Timezone resolution and market-day helpers."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# Standard-time offsets used when IANA tzdata is unavailable (Windows hosts).
_FIXED_FALLBACKS: dict[str, tzinfo] = {
    "Europe/Prague": timezone(timedelta(hours=1)),
    "Europe/London": timezone.utc,
    "Europe/Lisbon": timezone.utc,
    "Europe/Helsinki": timezone(timedelta(hours=2)),
    "Europe/Bucharest": timezone(timedelta(hours=2)),
    "Europe/Athens": timezone(timedelta(hours=2)),
}


def resolve_timezone(tz_name: str) -> tzinfo:
    """Resolve an IANA timezone name with safe fallbacks.

    Order:
    1. IANA database via ZoneInfo.
    2. Known fixed-offset fallback map.
    3. CET (UTC+1), the reference zone of the day-ahead market.
    """
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        pass
    return _FIXED_FALLBACKS.get(tz_name, timezone(timedelta(hours=1)))


def market_now(tz: tzinfo, now: datetime | None = None) -> datetime:
    """Current wall-clock time in the market's timezone."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz)


def market_days(tz: tzinfo, now: datetime | None = None) -> tuple[date, date]:
    """Return (today, tomorrow) as calendar dates in the market's timezone."""
    local = market_now(tz, now)
    today = local.date()
    return today, today + timedelta(days=1)
