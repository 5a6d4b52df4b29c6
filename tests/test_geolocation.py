from __future__ import annotations

import unittest
from unittest import mock

import httpx

from miqat.config import MiqatConfig
from miqat.models import Location
from miqat.services.geolocation import GeoLocator, resolve_location


def _response(payload: dict) -> mock.Mock:
    response = mock.Mock()
    response.raise_for_status.return_value = None
    response.json.return_value = payload
    return response


class GeoLocatorTests(unittest.TestCase):
    def test_detect_builds_location(self) -> None:
        payload = {
            "latitude": 41.0082,
            "longitude": "28.9784",
            "timezone": "Europe/Istanbul",
            "city": "Istanbul",
            "country_name": "Turkey",
        }
        with mock.patch("miqat.services.geolocation.httpx.get", return_value=_response(payload)) as get:
            location = GeoLocator(timeout=2.0).detect()

        get.assert_called_once_with("https://ipapi.co/json/", timeout=2.0)
        self.assertEqual(location, Location(41.0082, 28.9784, "Istanbul", "Turkey", "Europe/Istanbul"))

    def test_zero_coordinates_are_kept(self) -> None:
        payload = {"latitude": 0.0, "longitude": 0, "timezone": "Etc/UTC", "city": "Null Island"}
        with mock.patch("miqat.services.geolocation.httpx.get", return_value=_response(payload)):
            location = GeoLocator().detect()

        self.assertEqual(location, Location(0.0, 0.0, "Null Island", "", "Etc/UTC"))

    def test_network_error_returns_none(self) -> None:
        with mock.patch(
            "miqat.services.geolocation.httpx.get", side_effect=httpx.ConnectError("boom")
        ):
            self.assertIsNone(GeoLocator().detect())

    def test_missing_fields_return_none(self) -> None:
        with mock.patch(
            "miqat.services.geolocation.httpx.get",
            return_value=_response({"latitude": 41.0, "longitude": 29.0}),
        ):
            self.assertIsNone(GeoLocator().detect())

    def test_out_of_range_coordinates_return_none(self) -> None:
        payload = {"lat": 123.0, "lon": 29.0, "timezone": "UTC"}
        with mock.patch("miqat.services.geolocation.httpx.get", return_value=_response(payload)):
            self.assertIsNone(GeoLocator().detect())


class StubLocator:
    def __init__(self, location: Location | None) -> None:
        self.location = location
        self.calls = 0

    def detect(self) -> Location | None:
        self.calls += 1
        return self.location


class ResolveLocationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.config = MiqatConfig.default()
        self.config.remember_location(Location(51.5074, -0.1278, "London", "UK", "Europe/London"))

    def test_detected_location_is_remembered(self) -> None:
        detected = Location(41.0082, 28.9784, "Istanbul", "Turkey", "Europe/Istanbul")
        location = resolve_location(self.config, StubLocator(detected))

        self.assertEqual(location, detected)
        self.assertEqual(self.config.resolved_location(), detected)

    def test_failed_detection_uses_configured_coordinates(self) -> None:
        location = resolve_location(self.config, StubLocator(None))
        self.assertEqual(location, Location(51.5074, -0.1278, "London", "UK", "Europe/London"))

    def test_detection_skipped_when_disabled(self) -> None:
        self.config.location.use_geolocation = False
        locator = StubLocator(Location(0.0, 0.0, timezone="UTC"))

        location = resolve_location(self.config, locator)

        self.assertEqual(locator.calls, 0)
        self.assertEqual(location.city, "London")

    def test_nothing_known_returns_none(self) -> None:
        self.assertIsNone(resolve_location(MiqatConfig.default(), StubLocator(None)))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
