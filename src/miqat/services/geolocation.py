from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping

import httpx

from ..models import Location

if TYPE_CHECKING:
    from ..config import MiqatConfig

logger = logging.getLogger(__name__)


def _first_present(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _location_from_payload(data: Mapping[str, Any]) -> Location | None:
    lat = _first_present(data, "latitude", "lat")
    lon = _first_present(data, "longitude", "lon")
    timezone = data.get("timezone") or data.get("time_zone")
    if lat is None or lon is None or not timezone:
        return None
    try:
        latitude = float(lat)
        longitude = float(lon)
    except (TypeError, ValueError):
        return None
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        return None
    return Location(
        latitude=latitude,
        longitude=longitude,
        city=str(data.get("city") or data.get("region") or ""),
        country=str(data.get("country_name") or data.get("country") or ""),
        timezone=str(timezone),
    )


class GeoLocator:
    """Resolve the user's approximate location via an IP geolocation service."""

    def __init__(self, endpoint: str = "https://ipapi.co/json/", timeout: float = 5.0) -> None:
        self.endpoint = endpoint
        self.timeout = timeout

    def detect(self) -> Location | None:
        try:
            response = httpx.get(self.endpoint, timeout=self.timeout)
            response.raise_for_status()
            data: dict[str, Any] = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Geolocation lookup against %s failed: %s", self.endpoint, exc)
            return None
        location = _location_from_payload(data)
        if location is None:
            logger.warning("Geolocation response from %s is missing usable coordinates", self.endpoint)
        return location


def resolve_location(config: MiqatConfig, locator: GeoLocator | None = None) -> Location | None:
    """Location to compute schedules for.

    Detection runs when the config asks for it or holds no usable coordinates;
    a detected location is written back into ``config``. Falls back to the
    configured coordinates, or ``None`` when there are none.
    """
    configured = config.resolved_location()
    if config.location.use_geolocation or configured is None:
        detected = (locator or GeoLocator()).detect()
        if detected is not None:
            config.remember_location(detected)
            return detected
    return configured
