from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
import logging
from typing import Mapping, Protocol

from pyIslam.praytimes import Prayer as PyIslamPrayer, PrayerConf  # type: ignore[import]

from ..methods import CalculationPreset, resolve_calculation_method
from ..models import PRAYER_ORDER, DailySchedule, Location, PrayerInstant, PrayerName
from ..timeutils import (
    add_days,
    date_in_timezone,
    format_hijri_date,
    format_time_in_timezone,
    parse_hhmm,
    resolve_timezone,
)

logger = logging.getLogger(__name__)

DEFAULT_METHOD = "MuslimWorldLeague"

# Illustrative times only; every entry carries timestamp 0.
FALLBACK_TIMES: dict[PrayerName, str] = {
    PrayerName.FAJR: "05:30",
    PrayerName.SUNRISE: "07:00",
    PrayerName.DHUHR: "12:30",
    PrayerName.ASR: "15:45",
    PrayerName.SUNSET: "18:00",
    PrayerName.MAGHRIB: "18:15",
    PrayerName.ISHA: "20:00",
}


class AstronomicalProvider(Protocol):
    name: str

    def compute(
        self, day: date, location: Location, preset: CalculationPreset, tz: tzinfo
    ) -> Mapping[PrayerName, datetime]:
        ...


class PyIslamProvider:
    name = "pyislam"

    def compute(
        self, day: date, location: Location, preset: CalculationPreset, tz: tzinfo
    ) -> dict[PrayerName, datetime]:
        conf = PrayerConf(
            longitude=location.longitude,
            latitude=location.latitude,
            timezone=_offset_minutes(tz, day) / 60,
            angle_ref=preset.angle_ref,
            asr_madhab=preset.asr_madhab,
            enable_summer_time=False,
        )
        calculator = PyIslamPrayer(conf, datetime(day.year, day.month, day.day))
        # pyIslam has no separate sunset; its Maghrib is the sunset instant.
        maghrib = calculator.maghreb_time()
        raw = {
            PrayerName.FAJR: calculator.fajr_time(),
            PrayerName.SUNRISE: calculator.sherook_time(),
            PrayerName.DHUHR: calculator.dohr_time(),
            PrayerName.ASR: calculator.asr_time(),
            PrayerName.SUNSET: maghrib,
            PrayerName.MAGHRIB: maghrib,
            PrayerName.ISHA: calculator.ishaa_time(),
        }
        instants: dict[PrayerName, datetime] = {}
        previous: datetime | None = None
        for name in PRAYER_ORDER:
            moment = _local_datetime(raw[name], day, tz)
            # Isha can spill past local midnight at high latitudes.
            if previous is not None and moment < previous:
                moment = add_days(moment, 1)
            instants[name] = moment
            previous = moment
        return instants


_DEFAULT_PROVIDER = PyIslamProvider()


def calculate_prayer_times(
    day: date | datetime,
    location: Location,
    method: str | None = DEFAULT_METHOD,
    *,
    provider: AstronomicalProvider | None = None,
    language: str = "en",
) -> DailySchedule:
    """Build the seven-entry schedule for the calendar day of ``day`` at ``location``.

    The calendar day is taken in the location's timezone, not the caller's.
    Never raises: on any failure the static fallback schedule is returned,
    recognisable by ``DailySchedule.is_fallback``.
    """
    provider = provider or _DEFAULT_PROVIDER
    try:
        preset = resolve_calculation_method(method)
        tz = resolve_timezone(location.timezone)
        local_day = date_in_timezone(day, tz)
        raw = provider.compute(local_day, location, preset, tz)
        prayers = tuple(_prayer_entry(name, raw[name], tz) for name in PRAYER_ORDER)
        return DailySchedule(
            date=local_day.isoformat(),
            prayers=prayers,
            hijri_date=format_hijri_date(local_day, language),
        )
    except Exception:
        logger.exception(
            "Failed to calculate prayer times for %s, falling back to the static schedule",
            location.city or location.as_tuple(),
        )
        return fallback_schedule(day, location)


def fallback_schedule(day: date | datetime, location: Location | None = None) -> DailySchedule:
    tz_name = location.timezone if location else "UTC"
    local_day = date_in_timezone(day, tz_name)
    return DailySchedule(
        date=local_day.isoformat(),
        prayers=tuple(PrayerInstant(name, FALLBACK_TIMES[name], 0) for name in PRAYER_ORDER),
    )


def _prayer_entry(name: PrayerName, moment: datetime, tz: tzinfo) -> PrayerInstant:
    return PrayerInstant(
        name=name,
        time=format_time_in_timezone(moment, tz),
        timestamp=int(moment.timestamp()),
    )


def _offset_minutes(tz: tzinfo, day: date) -> int:
    # Noon avoids the ambiguous hours around a DST switch.
    dt = datetime(day.year, day.month, day.day, 12, tzinfo=tz)
    offset = dt.utcoffset() or timedelta()
    return int(offset.total_seconds() // 60)


def _local_datetime(value: time | datetime | str, day: date, tz: tzinfo) -> datetime:
    if isinstance(value, datetime):
        value = value.time()
    if isinstance(value, str):
        value = parse_hhmm(value)
    moment = datetime.combine(day, value.replace(tzinfo=None), tzinfo=tz)
    # Whole minutes, rounded to nearest, so ``time`` and ``timestamp`` agree.
    if moment.second >= 30:
        moment += timedelta(minutes=1)
    return moment.replace(second=0, microsecond=0)
