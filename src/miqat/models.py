from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


class PrayerName(str, Enum):
    FAJR = "Fajr"
    SUNRISE = "Sunrise"
    DHUHR = "Dhuhr"
    ASR = "Asr"
    SUNSET = "Sunset"
    MAGHRIB = "Maghrib"
    ISHA = "Isha"

    def __str__(self) -> str:
        return self.value


# Solar order within a day.
PRAYER_ORDER: tuple[PrayerName, ...] = tuple(PrayerName)


class ReminderMethod(str, Enum):
    CUSTOM = "custom"
    LAST_THIRD = "lastThird"
    MIDDLE = "middle"


@dataclass(slots=True, frozen=True)
class Location:
    latitude: float
    longitude: float
    city: str = ""
    country: str = ""
    timezone: str = "UTC"

    def as_tuple(self) -> tuple[float, float]:
        return self.latitude, self.longitude


@dataclass(slots=True, frozen=True)
class PrayerInstant:
    """One named prayer of a day.

    ``timestamp`` is Unix seconds; 0 means the entry was never resolved to an
    absolute instant and only ``time`` (``HH:MM``) is meaningful.
    """

    name: PrayerName
    time: str
    timestamp: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", PrayerName(self.name))

    @property
    def is_pinned(self) -> bool:
        return self.timestamp > 0


@dataclass(slots=True, frozen=True)
class DailySchedule:
    date: str
    prayers: tuple[PrayerInstant, ...]
    hijri_date: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "prayers", tuple(self.prayers))

    @property
    def is_fallback(self) -> bool:
        return all(prayer.timestamp <= 0 for prayer in self.prayers)

    def get(self, name: PrayerName | str) -> PrayerInstant | None:
        wanted = PrayerName(name)
        for prayer in self.prayers:
            if prayer.name == wanted:
                return prayer
        return None


@dataclass(slots=True, frozen=True)
class NightWindow:
    isha: datetime
    fajr: datetime

    @property
    def duration(self) -> timedelta:
        # Elapsed seconds, not the wall-clock difference.
        return timedelta(seconds=self.fajr.timestamp() - self.isha.timestamp())


@dataclass(slots=True)
class PrayerWindow:
    """The stretch between the most recent prayer and the next one."""

    previous: PrayerInstant | None
    previous_occurrence: datetime | None
    next: PrayerInstant
    next_occurrence: datetime
    progress: float = 0.0


@dataclass(slots=True, frozen=True)
class TahajjudTime:
    time: str
    derived_from_method: bool = False


@dataclass(slots=True)
class Reminder:
    key: str
    title: str
    body: str
    fire_at: datetime
    prayer: PrayerInstant | None = None
