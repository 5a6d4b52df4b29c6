from __future__ import annotations

from pathlib import Path
from tempfile import TemporaryDirectory
import unittest

from miqat.config import ConfigManager, MiqatConfig
from miqat.models import Location, PrayerName, ReminderMethod
from miqat.reminders import NOTIFIABLE_PRAYERS


class ConfigManagerTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = TemporaryDirectory()
        self.config_path = Path(self._tmp.name) / "miqat" / "config.toml"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_missing_file_writes_defaults(self) -> None:
        manager = ConfigManager(self.config_path)
        config = manager.load()

        self.assertTrue(self.config_path.exists())
        self.assertEqual(manager.errors(), [])
        self.assertIsNone(config.resolved_location())
        self.assertEqual(config.prayer_settings.calculation_method, "MuslimWorldLeague")
        self.assertEqual(config.notifications.enabled_prayers, list(NOTIFIABLE_PRAYERS))
        self.assertIs(config.tahajjud.method, ReminderMethod.LAST_THIRD)
        self.assertEqual(config.tahajjud.calculation_method, "Karachi")

        reloaded = manager.load()
        self.assertEqual(reloaded.to_dict(), config.to_dict())

    def test_save_and_load_round_trip(self) -> None:
        manager = ConfigManager(self.config_path)
        config = MiqatConfig.default()
        config.remember_location(Location(41.0082, 28.9784, "Istanbul", "Turkey", "Europe/Istanbul"))
        config.prayer_settings.calculation_method = "Turkey"
        config.notifications.enabled = True
        config.notifications.lead_minutes = 15
        config.notifications.enabled_prayers = [PrayerName.FAJR, PrayerName.ISHA]
        config.tahajjud.enabled = True
        config.tahajjud.method = ReminderMethod.MIDDLE
        config.tahajjud.custom_time = "03:15"
        manager.save(config)

        loaded = manager.load()

        self.assertEqual(manager.errors(), [])
        self.assertEqual(
            loaded.resolved_location(),
            Location(41.0082, 28.9784, "Istanbul", "Turkey", "Europe/Istanbul"),
        )
        self.assertEqual(loaded.prayer_settings.calculation_method, "Turkey")
        self.assertTrue(loaded.notifications.enabled)
        self.assertEqual(loaded.notifications.lead_minutes, 15)
        self.assertEqual(loaded.notifications.enabled_prayers, [PrayerName.FAJR, PrayerName.ISHA])
        self.assertIs(loaded.tahajjud.method, ReminderMethod.MIDDLE)
        self.assertEqual(loaded.tahajjud.custom_time, "03:15")

    def test_invalid_values_fall_back_with_errors(self) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(
            "\n".join(
                [
                    "[location]",
                    'latitude = "north"',
                    "longitude = 29.0",
                    'timezone = "Europe/Istanbul"',
                    "",
                    "[notifications]",
                    "lead_minutes = 500",
                    'enabled_prayers = ["fajr", "Sunrise", "Zuhr"]',
                    "",
                    "[tahajjud]",
                    'method = "dawn"',
                    'custom_time = "25:00"',
                    "lead_minutes = -5",
                ]
            ),
            encoding="utf-8",
        )
        manager = ConfigManager(self.config_path)
        config = manager.load()

        errors = manager.errors()
        self.assertEqual(len(errors), 4)
        self.assertIsNone(config.location.latitude)
        self.assertIsNone(config.resolved_location())
        self.assertEqual(config.notifications.lead_minutes, 180)
        self.assertEqual(config.notifications.enabled_prayers, [PrayerName.FAJR])
        self.assertIs(config.tahajjud.method, ReminderMethod.LAST_THIRD)
        self.assertEqual(config.tahajjud.custom_time, "02:30")
        self.assertEqual(config.tahajjud.lead_minutes, 0)

    def test_unparsable_file_reports_error(self) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text("[location\nlatitude = ", encoding="utf-8")
        manager = ConfigManager(self.config_path)
        config = manager.load()

        self.assertEqual(len(manager.errors()), 1)
        self.assertEqual(config.to_dict(), MiqatConfig.default().to_dict())

    def test_preferences_follow_notification_settings(self) -> None:
        config = MiqatConfig.default()
        config.notifications.enabled_prayers = [PrayerName.ASR]
        preferences = config.notifications.preferences()

        self.assertTrue(preferences.allows(PrayerName.ASR))
        self.assertFalse(preferences.allows(PrayerName.FAJR))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
