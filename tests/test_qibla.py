from __future__ import annotations

import math
import unittest

from miqat.models import Location
from miqat.qibla import KAABA, calculate_qibla_direction


class QiblaTests(unittest.TestCase):
    def test_known_bearings(self) -> None:
        cases = [
            (Location(40.7128, -74.006, timezone="America/New_York"), 58.5),
            (Location(51.5074, -0.1278, timezone="Europe/London"), 119.0),
            (Location(-6.2088, 106.8456, timezone="Asia/Jakarta"), 295.1),
        ]
        for location, expected in cases:
            with self.subTest(city=location.timezone):
                self.assertAlmostEqual(calculate_qibla_direction(location), expected, delta=0.5)

    def test_bearing_is_always_in_range(self) -> None:
        for latitude in range(-90, 91, 15):
            for longitude in range(-180, 181, 20):
                with self.subTest(latitude=latitude, longitude=longitude):
                    bearing = calculate_qibla_direction(Location(float(latitude), float(longitude)))
                    self.assertGreaterEqual(bearing, 0)
                    self.assertLess(bearing, 360)

    def test_due_south_and_north(self) -> None:
        north = Location(KAABA.latitude - 10, KAABA.longitude)
        south = Location(KAABA.latitude + 10, KAABA.longitude)
        self.assertAlmostEqual(calculate_qibla_direction(north), 0.0, places=6)
        self.assertAlmostEqual(calculate_qibla_direction(south), 180.0, places=6)

    def test_at_the_kaaba_is_finite(self) -> None:
        for location in (KAABA, Location(KAABA.latitude + 1e-9, KAABA.longitude - 1e-9)):
            bearing = calculate_qibla_direction(location)
            self.assertTrue(math.isfinite(bearing))
            self.assertGreaterEqual(bearing, 0)
            self.assertLess(bearing, 360)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
