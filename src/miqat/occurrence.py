"""Resolve named prayers to concrete instants relative to a reference time.

A prayer carrying a positive ``timestamp`` is pinned to that instant. Without
one, its ``HH:MM`` label is placed on the reference's calendar day, in the
reference's own timezone (or host local time for naive references).
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Sequence

from .models import PrayerInstant, PrayerWindow
from .timeutils import add_days, parse_time_string


def _now() -> datetime:
    return datetime.now().astimezone()


def _occurrence(prayer: PrayerInstant, reference: datetime) -> datetime:
    if prayer.is_pinned:
        return datetime.fromtimestamp(prayer.timestamp, tz=reference.tzinfo)
    hour, minute = parse_time_string(prayer.time)
    return reference.replace(hour=hour, minute=minute, second=0, microsecond=0)


def _roll_forward(occurrence: datetime, reference: datetime) -> datetime:
    if occurrence > reference:
        return occurrence
    occurrence = add_days(occurrence, max(1, (reference - occurrence).days))
    while occurrence <= reference:
        occurrence = add_days(occurrence, 1)
    return occurrence


def occurrence_for_date(prayer: PrayerInstant, reference: datetime | None = None) -> datetime:
    reference = reference or _now()
    return _occurrence(prayer, reference)


def get_upcoming_occurrence(prayer: PrayerInstant, reference: datetime | None = None) -> datetime:
    """First occurrence strictly after ``reference``.

    An occurrence equal to the reference counts as passed and moves to the
    next calendar day.
    """
    reference = reference or _now()
    return _roll_forward(_occurrence(prayer, reference), reference)


def get_time_until_prayer(prayer: PrayerInstant, reference: datetime | None = None) -> timedelta:
    reference = reference or _now()
    return get_upcoming_occurrence(prayer, reference) - reference


def get_time_until_next_prayer(prayer_time: str, reference: datetime | None = None) -> timedelta:
    reference = reference or _now()
    hour, minute = parse_time_string(prayer_time)
    occurrence = reference.replace(hour=hour, minute=minute, second=0, microsecond=0)
    return _roll_forward(occurrence, reference) - reference


def get_next_prayer_time(
    prayers: Sequence[PrayerInstant], reference: datetime | None = None
) -> PrayerInstant | None:
    """Next prayer of the day after ``reference``.

    Past the day's last prayer this wraps to the earliest entry, whose label
    still reads as today's; use ``get_next_prayer_occurrence`` for the real
    future instant.
    """
    if not prayers:
        return None
    reference = reference or _now()
    ordered = sorted(prayers, key=lambda prayer: _occurrence(prayer, reference))
    for prayer in ordered:
        if _occurrence(prayer, reference) > reference:
            return prayer
    return ordered[0]


def get_next_prayer_occurrence(
    prayers: Sequence[PrayerInstant], reference: datetime | None = None
) -> tuple[PrayerInstant, datetime] | None:
    reference = reference or _now()
    upcoming = get_next_prayer_time(prayers, reference)
    if upcoming is None:
        return None
    return upcoming, get_upcoming_occurrence(upcoming, reference)


def get_prayer_window(
    prayers: Sequence[PrayerInstant], reference: datetime | None = None
) -> PrayerWindow | None:
    """Previous prayer, next prayer and elapsed percentage between them."""
    reference = reference or _now()
    resolved = get_next_prayer_occurrence(prayers, reference)
    if resolved is None:
        return None
    upcoming, next_occurrence = resolved

    ordered = sorted(
        ((prayer, _occurrence(prayer, reference)) for prayer in prayers),
        key=lambda item: item[1],
    )
    previous: PrayerInstant | None = None
    previous_occurrence: datetime | None = None
    for prayer, occurrence in ordered:
        if occurrence <= reference:
            previous, previous_occurrence = prayer, occurrence
    if previous is None:
        # Before the day's first prayer: yesterday's last one is the previous.
        previous, previous_occurrence = ordered[-1]
    while previous_occurrence >= next_occurrence:
        previous_occurrence = add_days(previous_occurrence, -1)

    progress = 0.0
    total = next_occurrence - previous_occurrence
    if total > timedelta(0):
        elapsed = reference - previous_occurrence
        progress = min(100.0, max(0.0, elapsed / total * 100))
    return PrayerWindow(
        previous=previous,
        previous_occurrence=previous_occurrence,
        next=upcoming,
        next_occurrence=next_occurrence,
        progress=progress,
    )
