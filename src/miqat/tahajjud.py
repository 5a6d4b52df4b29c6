"""Tahajjud (night prayer) reminder times derived from the Isha-to-Fajr night."""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo
import logging
import math

from .models import Location, NightWindow, PrayerInstant, PrayerName, ReminderMethod, TahajjudTime
from .services.prayer import AstronomicalProvider, calculate_prayer_times
from .timeutils import (
    add_days,
    combine_local,
    date_in_timezone,
    format_time_in_timezone,
    parse_time_string,
    resolve_timezone,
)

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_TIME = "02:30"
DEFAULT_NIGHT_METHOD = "Karachi"
MAX_LEAD_MINUTES = 180


def clamp_lead_minutes(value: float | str | None, maximum: int = MAX_LEAD_MINUTES) -> int:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return min(maximum, max(0, math.floor(number + 0.5)))


def compute_night_window(
    location: Location,
    reference: datetime | None = None,
    calculation_method: str | None = None,
    *,
    provider: AstronomicalProvider | None = None,
) -> NightWindow | None:
    """Tonight's Isha and the following Fajr at ``location``.

    Returns ``None`` when either day's prayer times could not be calculated.
    """
    reference = reference or datetime.now().astimezone()
    method = calculation_method or DEFAULT_NIGHT_METHOD
    tz = resolve_timezone(location.timezone)
    today = date_in_timezone(reference, tz)
    tomorrow = today + timedelta(days=1)

    tonight = calculate_prayer_times(today, location, method, provider=provider)
    next_morning = calculate_prayer_times(tomorrow, location, method, provider=provider)
    if tonight.is_fallback or next_morning.is_fallback:
        logger.warning("No night window for %s on %s", location.city or location.as_tuple(), today)
        return None

    isha = tonight.get(PrayerName.ISHA)
    fajr = next_morning.get(PrayerName.FAJR)
    if isha is None or fajr is None:
        return None

    isha_at = _night_instant(isha, today, tz)
    fajr_at = _night_instant(fajr, tomorrow, tz)
    if fajr_at <= isha_at:
        fajr_at = add_days(fajr_at, 1)
    return NightWindow(isha=isha_at, fajr=fajr_at)


def _night_instant(prayer: PrayerInstant, day: date, tz: tzinfo) -> datetime:
    # A pinned entry may already sit on the following calendar day.
    if prayer.is_pinned:
        return datetime.fromtimestamp(prayer.timestamp, tz=tz)
    return combine_local(day, *parse_time_string(prayer.time), tz)


def _reminder_method(method: ReminderMethod | str) -> ReminderMethod:
    try:
        return ReminderMethod(method)
    except ValueError:
        logger.debug("Unknown tahajjud method %r, using the middle of the night", method)
        return ReminderMethod.MIDDLE


def compute_tahajjud_reminder_time(
    method: ReminderMethod | str,
    location: Location | None = None,
    *,
    custom_time: str | None = None,
    fallback_time: str | None = None,
    reference: datetime | None = None,
    calculation_method: str | None = None,
    provider: AstronomicalProvider | None = None,
) -> TahajjudTime:
    method = _reminder_method(method)
    if method is ReminderMethod.CUSTOM or location is None:
        return TahajjudTime(custom_time or fallback_time or DEFAULT_FALLBACK_TIME)

    window = compute_night_window(location, reference, calculation_method, provider=provider)
    if window is None or window.duration <= timedelta(0):
        return TahajjudTime(fallback_time or custom_time or DEFAULT_FALLBACK_TIME)

    duration = window.duration
    if method is ReminderMethod.LAST_THIRD:
        target = window.fajr.astimezone(timezone.utc) - duration / 3
    else:
        target = window.isha.astimezone(timezone.utc) + duration / 2
    return TahajjudTime(format_time_in_timezone(target, window.isha.tzinfo), derived_from_method=True)


def reminder_fire_time(time_string: str, lead_minutes: float | None = 0, now: datetime | None = None) -> datetime:
    """Next instant to fire a reminder for ``time_string``, ``lead_minutes`` early.

    The result is always strictly after ``now``.
    """
    now = now or datetime.now().astimezone()
    hour, minute = parse_time_string(time_string)
    lead = timedelta(minutes=clamp_lead_minutes(lead_minutes))
    target = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    fire_at = target - lead
    while fire_at <= now:
        target = add_days(target, 1)
        fire_at = target - lead
    return fire_at
