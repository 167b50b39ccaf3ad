from datetime import datetime, date, time, timedelta, timezone as dt_timezone
from typing import Optional
from zoneinfo import ZoneInfo

from pillreminder.core.config import settings


def get_zoneinfo() -> Optional[ZoneInfo]:
    tz_name = getattr(settings, "DEFAULT_TIMEZONE", None)
    if not tz_name:
        return None
    try:
        return ZoneInfo(tz_name)
    except Exception:
        return None


def now_local() -> datetime:
    tz = get_zoneinfo()
    return datetime.now(tz) if tz else datetime.now(dt_timezone.utc)


def today_local() -> date:
    return now_local().date()


def get_date_after(day: date, days: int) -> date:
    """Return the date `days` days after `day` (negative values go back)."""
    return day + timedelta(days=days)


def today_at(time_of_day: time) -> datetime:
    """
    Today's date in the configured timezone at the given hour and minute.
    A wall time skipped by a DST change resolves to the instant after the gap.
    """
    now = now_local()
    wall = now.replace(
        hour=time_of_day.hour,
        minute=time_of_day.minute,
        second=0,
        microsecond=0,
    )
    # Same-zone astimezone is a no-op, so normalise through UTC
    return wall.astimezone(dt_timezone.utc).astimezone(now.tzinfo)


def start_of_day(day: date) -> datetime:
    """Midnight of `day` in the configured timezone (tz-aware)."""
    tz = get_zoneinfo() or dt_timezone.utc
    return datetime.combine(day, time.min, tzinfo=tz)


def to_utc_naive(dt: datetime | None) -> datetime | None:
    """
    Normalize any datetime to UTC-naive (tzinfo=None) for consistent storage/comparison.
    - Aware datetimes are converted to UTC and tzinfo is stripped
    - Naive datetimes are returned as-is (assumed UTC)
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(dt_timezone.utc).replace(tzinfo=None)


def to_utc_aware(dt: datetime | None) -> datetime | None:
    """
    Normalize any datetime to UTC-aware (tzinfo=UTC).
    - Aware datetimes are converted to UTC
    - Naive datetimes are assumed UTC and tz attached
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=dt_timezone.utc)
    return dt.astimezone(dt_timezone.utc)


def to_local(dt: datetime | None) -> datetime | None:
    """Convert a (UTC-naive or aware) datetime into the configured timezone."""
    if dt is None:
        return None
    tz = get_zoneinfo() or dt_timezone.utc
    return to_utc_aware(dt).astimezone(tz)
