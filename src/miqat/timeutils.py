from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
import logging
import re
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from hijridate import Gregorian  # type: ignore[import]

logger = logging.getLogger(__name__)

_CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?:\s*(AM|PM))?$", re.IGNORECASE)


def parse_time_string(value: str | None) -> tuple[int, int]:
    """Lenient ``HH:MM`` parser; anything unreadable becomes midnight."""
    if not isinstance(value, str):
        return 0, 0
    match = _CLOCK_PATTERN.match(value.strip())
    if not match:
        return 0, 0
    hour = int(match.group(1))
    minute = int(match.group(2))
    meridiem = (match.group(3) or "").lower()
    if meridiem == "pm" and hour < 12:
        hour += 12
    if meridiem == "am" and hour == 12:
        hour = 0
    return min(23, max(0, hour)), min(59, max(0, minute))


def parse_hhmm(value: str) -> time:
    value = value.strip()
    parts: list[str]
    if ":" in value:
        parts = value.split(":", 1)
    elif "." in value:
        parts = value.split(".", 1)
    else:
        raise ValueError(f"Unsupported time format: {value}")
    hour = int(parts[0])
    minute = int(parts[1])
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid time value: {value}")
    return time(hour=hour, minute=minute)


def format_hhmm(value: time | datetime) -> str:
    return value.strftime("%H:%M")


def resolve_timezone(tz_name: str | None) -> tzinfo:
    if tz_name:
        try:
            return ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone %r, falling back to the host zone", tz_name)
    return datetime.now().astimezone().tzinfo or timezone.utc


def _as_tzinfo(tz: tzinfo | str | None) -> tzinfo:
    if isinstance(tz, tzinfo):
        return tz
    return resolve_timezone(tz)


def date_in_timezone(instant: date | datetime, tz: tzinfo | str | None) -> date:
    """Calendar date of ``instant`` as observed in ``tz``.

    Plain dates are already calendar dates and pass through. Naive datetimes
    are read as host local time.
    """
    if not isinstance(instant, datetime):
        return instant
    try:
        return instant.astimezone(_as_tzinfo(tz)).date()
    except (OverflowError, ValueError, OSError):
        logger.warning("Could not resolve %s in timezone %r", instant, tz, exc_info=True)
        return instant.date()


def format_time_in_timezone(instant: datetime, tz: tzinfo | str | None) -> str:
    try:
        return instant.astimezone(_as_tzinfo(tz)).strftime("%H:%M")
    except (OverflowError, ValueError, OSError):
        logger.warning("Could not format %s in timezone %r", instant, tz, exc_info=True)
        return instant.astimezone(timezone.utc).strftime("%H:%M")


def format_hijri_date(day: date, language: str = "en") -> str | None:
    try:
        hijri = Gregorian(day.year, day.month, day.day).to_hijri()
        month = hijri.month_name(language)
    except (OverflowError, ValueError, LookupError):
        logger.debug("No Hijri date for %s (%s)", day, language)
        return None
    return f"{month} {hijri.day}, {hijri.year} AH"


def add_days(instant: datetime, days: int) -> datetime:
    """Move by calendar days, keeping the wall-clock time across DST changes."""
    return instant + timedelta(days=days)


def combine_local(day: date, hour: int, minute: int, tz: tzinfo | None = None) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=tz)
