from __future__ import annotations

import math

from .models import Location

KAABA = Location(latitude=21.4225, longitude=39.8262, city="Makkah", country="Saudi Arabia", timezone="Asia/Riyadh")


def calculate_qibla_direction(location: Location) -> float:
    """Initial great-circle bearing from ``location`` to the Kaaba, in degrees from true north."""
    lat1 = math.radians(location.latitude)
    lat2 = math.radians(KAABA.latitude)
    delta_lon = math.radians(KAABA.longitude - location.longitude)
    y = math.sin(delta_lon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(delta_lon)
    bearing = math.degrees(math.atan2(y, x)) % 360
    # Float modulo of a tiny negative angle rounds up to exactly 360.0.
    return 0.0 if bearing >= 360 else bearing
