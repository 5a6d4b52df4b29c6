from __future__ import annotations

from datetime import timedelta
import math


def _milliseconds(value: timedelta | float) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds() * 1000
    return float(value)


def format_time_remaining(duration: timedelta | float) -> str:
    """Coarse label such as ``"1h 30m"``; ``"Now"`` once the duration is spent.

    Numbers are milliseconds. Anything positive shows at least one minute.
    """
    milliseconds = _milliseconds(duration)
    if milliseconds <= 0:
        return "Now"
    total_minutes = max(1, math.floor(milliseconds / 60000 + 0.5))
    hours, minutes = divmod(total_minutes, 60)
    if hours and minutes:
        return f"{hours}h {minutes}m"
    if hours:
        return f"{hours}h"
    return f"{minutes}m"


def format_countdown(duration: timedelta | float) -> str:
    """Signed ``HH:MM:SS`` with the seconds floored."""
    milliseconds = _milliseconds(duration)
    sign = "-" if milliseconds < 0 else ""
    total_seconds = math.floor(abs(milliseconds) / 1000)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_relative_label(
    diff: timedelta | float,
    *,
    is_next: bool,
    is_past: bool,
    remaining_label: str | None = None,
) -> str:
    if is_next:
        if not remaining_label:
            return "Soon"
        return "Starting now" if remaining_label == "Now" else f"in {remaining_label}"

    if is_past:
        ago = format_time_remaining(abs(_milliseconds(diff)))
        return "Moments ago" if ago == "Now" else f"{ago} ago"

    ahead = format_time_remaining(diff)
    return "Moments away" if ahead == "Now" else f"in {ahead}"
