"""Reminder planning and the registry that owns platform bookings.

Nothing here talks to an OS notification API. Callers supply ``book`` and
``cancel`` callables; the registry keeps the handles they return so a new
schedule always revokes every pending booking first.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
import logging
from threading import Lock
from typing import Callable, Iterable, Sequence

from .models import Location, PrayerInstant, PrayerName, Reminder, ReminderMethod
from .occurrence import get_upcoming_occurrence
from .services.prayer import AstronomicalProvider
from .tahajjud import clamp_lead_minutes, compute_tahajjud_reminder_time, reminder_fire_time
from .timeutils import resolve_timezone

logger = logging.getLogger(__name__)

NOTIFIABLE_PRAYERS: tuple[PrayerName, ...] = (
    PrayerName.FAJR,
    PrayerName.DHUHR,
    PrayerName.ASR,
    PrayerName.MAGHRIB,
    PrayerName.ISHA,
)
REMINDER_KEY_PREFIX = "prayer-reminder-"
TAHAJJUD_REMINDER_KEY = "tahajjud-reminder"
DEFAULT_LEAD_MINUTES = 10


def reminder_key(name: PrayerName | str) -> str:
    return f"{REMINDER_KEY_PREFIX}{PrayerName(name).value.lower()}"


@dataclass(slots=True)
class NotificationPreferences:
    lead_minutes: int = DEFAULT_LEAD_MINUTES
    # None enables every notifiable prayer; an empty set enables none.
    enabled_prayers: frozenset[PrayerName] | None = None

    def allows(self, name: PrayerName | str) -> bool:
        if self.enabled_prayers is None:
            return True
        return PrayerName(name) in self.enabled_prayers


def notification_schedule(
    prayer: PrayerInstant, lead_minutes: float, reference: datetime | None = None
) -> tuple[datetime, datetime]:
    """``(notify_at, occurrence)`` for the next occurrence whose lead time is still ahead."""
    reference = reference or datetime.now().astimezone()
    lead = timedelta(minutes=clamp_lead_minutes(lead_minutes))
    occurrence = get_upcoming_occurrence(prayer, reference)
    notify_at = occurrence - lead
    if notify_at <= reference:
        occurrence = get_upcoming_occurrence(prayer, occurrence + timedelta(minutes=1))
        notify_at = occurrence - lead
    return notify_at, occurrence


def _reminder_body(prayer: PrayerInstant, lead: int) -> str:
    if lead > 0:
        unit = "minute" if lead == 1 else "minutes"
        return f"{prayer.name.value} in {lead} {unit} at {prayer.time}"
    return f"{prayer.name.value} at {prayer.time}"


def plan_prayer_reminders(
    prayers: Sequence[PrayerInstant],
    preferences: NotificationPreferences | None = None,
    reference: datetime | None = None,
) -> list[Reminder]:
    preferences = preferences or NotificationPreferences()
    reference = reference or datetime.now().astimezone()
    lead = clamp_lead_minutes(preferences.lead_minutes)
    reminders: list[Reminder] = []
    for prayer in prayers:
        if prayer.name not in NOTIFIABLE_PRAYERS or not preferences.allows(prayer.name):
            continue
        notify_at, _ = notification_schedule(prayer, lead, reference)
        reminders.append(
            Reminder(
                key=reminder_key(prayer.name),
                title="Prayer Reminder",
                body=_reminder_body(prayer, lead),
                fire_at=notify_at,
                prayer=prayer,
            )
        )
    reminders.sort(key=lambda reminder: reminder.fire_at)
    return reminders


class ReminderRegistry:
    def __init__(self, book: Callable[[Reminder], object], cancel: Callable[[object], None]) -> None:
        self._book = book
        self._cancel = cancel
        self._lock = Lock()
        self._handles: dict[str, object] = {}

    def pending(self) -> list[str]:
        with self._lock:
            return sorted(self._handles)

    def reschedule(self, reminders: Iterable[Reminder]) -> int:
        with self._lock:
            self._cancel_locked()
            for reminder in reminders:
                if reminder.key in self._handles:
                    self._cancel(self._handles.pop(reminder.key))
                self._handles[reminder.key] = self._book(reminder)
                logger.debug("Booked %s for %s", reminder.key, reminder.fire_at)
            return len(self._handles)

    def cancel_all(self) -> None:
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        while self._handles:
            key, handle = self._handles.popitem()
            self._cancel(handle)
            logger.debug("Cancelled %s", key)


class ReminderState(str, Enum):
    DISABLED = "disabled"
    SCHEDULING = "scheduling"
    SCHEDULED = "scheduled"
    FIRED = "fired"
    CANCELLED = "cancelled"


class TahajjudReminderScheduler:
    """Drives the tahajjud reminder through its enable/fire/disable cycle."""

    def __init__(
        self,
        registry: ReminderRegistry,
        *,
        method: ReminderMethod | str = ReminderMethod.LAST_THIRD,
        location: Location | None = None,
        custom_time: str | None = None,
        lead_minutes: int = 0,
        calculation_method: str | None = None,
        provider: AstronomicalProvider | None = None,
    ) -> None:
        self.registry = registry
        self.method = method
        self.location = location
        self.custom_time = custom_time
        self.lead_minutes = lead_minutes
        self.calculation_method = calculation_method
        self.provider = provider
        self.state = ReminderState.DISABLED
        self.fire_at: datetime | None = None

    def enable(self, now: datetime | None = None) -> datetime | None:
        self.state = ReminderState.SCHEDULING
        return self._schedule(now)

    def mark_fired(self, now: datetime | None = None) -> datetime | None:
        if self.state is not ReminderState.SCHEDULED:
            return None
        self.state = ReminderState.FIRED
        self.fire_at = None
        self.state = ReminderState.SCHEDULING
        return self._schedule(now)

    def disable(self) -> None:
        self.registry.cancel_all()
        self.fire_at = None
        self.state = ReminderState.CANCELLED

    def _schedule(self, now: datetime | None) -> datetime | None:
        now = now or datetime.now().astimezone()
        if self.location is not None:
            now = now.astimezone(resolve_timezone(self.location.timezone))
        reminder_time = compute_tahajjud_reminder_time(
            self.method,
            self.location,
            custom_time=self.custom_time,
            reference=now,
            calculation_method=self.calculation_method,
            provider=self.provider,
        )
        fire_at = reminder_fire_time(reminder_time.time, self.lead_minutes, now)
        reminder = Reminder(
            key=TAHAJJUD_REMINDER_KEY,
            title="Tahajjud",
            body=f"Tahajjud at {reminder_time.time}",
            fire_at=fire_at,
        )
        try:
            self.registry.reschedule([reminder])
        except Exception:
            logger.exception("Could not book the tahajjud reminder for %s", fire_at)
            return None
        self.fire_at = fire_at
        self.state = ReminderState.SCHEDULED
        return fire_at
