from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import tomllib

from .models import Location, PrayerName, ReminderMethod
from .reminders import DEFAULT_LEAD_MINUTES, NOTIFIABLE_PRAYERS, NotificationPreferences
from .services.prayer import DEFAULT_METHOD
from .tahajjud import DEFAULT_FALLBACK_TIME, DEFAULT_NIGHT_METHOD, clamp_lead_minutes
from .timeutils import format_hhmm, parse_hhmm


def _default_config_root() -> Path:
    return Path.home() / ".config" / "miqat"


@dataclass(slots=True)
class LocationSettings:
    city: str = ""
    country: str = ""
    latitude: float | None = None
    longitude: float | None = None
    timezone: str | None = None
    use_geolocation: bool = True


@dataclass(slots=True)
class PrayerSettings:
    calculation_method: str = DEFAULT_METHOD


@dataclass(slots=True)
class NotificationSettings:
    enabled: bool = False
    lead_minutes: int = DEFAULT_LEAD_MINUTES
    enabled_prayers: list[PrayerName] = field(default_factory=lambda: list(NOTIFIABLE_PRAYERS))

    def preferences(self) -> NotificationPreferences:
        return NotificationPreferences(
            lead_minutes=self.lead_minutes,
            enabled_prayers=frozenset(self.enabled_prayers),
        )


@dataclass(slots=True)
class TahajjudSettings:
    enabled: bool = False
    method: ReminderMethod = ReminderMethod.LAST_THIRD
    custom_time: str = DEFAULT_FALLBACK_TIME
    lead_minutes: int = 0
    calculation_method: str = DEFAULT_NIGHT_METHOD


@dataclass(slots=True)
class MiqatConfig:
    location: LocationSettings
    prayer_settings: PrayerSettings
    notifications: NotificationSettings
    tahajjud: TahajjudSettings

    @classmethod
    def default(cls) -> "MiqatConfig":
        return cls(
            location=LocationSettings(),
            prayer_settings=PrayerSettings(),
            notifications=NotificationSettings(),
            tahajjud=TahajjudSettings(),
        )

    def resolved_location(self) -> Location | None:
        loc = self.location
        if loc.latitude is None or loc.longitude is None or not loc.timezone:
            return None
        return Location(
            latitude=loc.latitude,
            longitude=loc.longitude,
            city=loc.city,
            country=loc.country,
            timezone=loc.timezone,
        )

    def remember_location(self, location: Location) -> None:
        loc = self.location
        loc.latitude = location.latitude
        loc.longitude = location.longitude
        loc.timezone = location.timezone
        if location.city:
            loc.city = location.city
        if location.country:
            loc.country = location.country

    def to_dict(self) -> dict:
        return {
            "location": {
                "city": self.location.city,
                "country": self.location.country,
                "latitude": self.location.latitude,
                "longitude": self.location.longitude,
                "timezone": self.location.timezone,
                "use_geolocation": self.location.use_geolocation,
            },
            "prayer_settings": {
                "calculation_method": self.prayer_settings.calculation_method,
            },
            "notifications": {
                "enabled": self.notifications.enabled,
                "lead_minutes": self.notifications.lead_minutes,
                "enabled_prayers": [name.value for name in self.notifications.enabled_prayers],
            },
            "tahajjud": {
                "enabled": self.tahajjud.enabled,
                "method": self.tahajjud.method.value,
                "custom_time": self.tahajjud.custom_time,
                "lead_minutes": self.tahajjud.lead_minutes,
                "calculation_method": self.tahajjud.calculation_method,
            },
        }


class ConfigManager:
    """Simple TOML configuration loader."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path = config_path or (_default_config_root() / "config.toml")
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self._errors: list[str] = []

    def errors(self) -> list[str]:
        return list(self._errors)

    def load(self) -> MiqatConfig:
        self._errors.clear()
        if not self.config_path.exists():
            config = MiqatConfig.default()
            self._write(config)
            return config

        try:
            with self.config_path.open("rb") as handle:
                raw = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            self._errors.append(f"Invalid config file: {exc}")
            return MiqatConfig.default()

        location_cfg = raw.get("location", {})
        prayer_cfg = raw.get("prayer_settings", {})
        notification_cfg = raw.get("notifications", {})
        tahajjud_cfg = raw.get("tahajjud", {})

        def _float_or_none(value: float | str | None) -> float | None:
            if value in (None, "", "nan"):
                return None
            try:
                return float(value)
            except (TypeError, ValueError):
                self._errors.append(f"Invalid coordinate in config: {value!r}")
                return None

        def _string_or_none(value: object | None) -> str | None:
            if value in (None, "", "null"):
                return None
            return str(value)

        def _prayer_names(values: list[str]) -> list[PrayerName]:
            names: list[PrayerName] = []
            for value in values:
                try:
                    name = PrayerName(str(value).strip().capitalize())
                except ValueError:
                    self._errors.append(f"Unknown prayer in notifications.enabled_prayers: {value!r}")
                    continue
                if name in NOTIFIABLE_PRAYERS and name not in names:
                    names.append(name)
            return names

        try:
            method = ReminderMethod(tahajjud_cfg.get("method", ReminderMethod.LAST_THIRD.value))
        except ValueError as exc:
            self._errors.append(f"Invalid tahajjud.method: {exc}")
            method = ReminderMethod.LAST_THIRD

        try:
            custom_time = format_hhmm(parse_hhmm(tahajjud_cfg.get("custom_time", DEFAULT_FALLBACK_TIME)))
        except (ValueError, AttributeError) as exc:
            self._errors.append(f"Invalid tahajjud.custom_time: {exc}")
            custom_time = DEFAULT_FALLBACK_TIME

        return MiqatConfig(
            location=LocationSettings(
                city=location_cfg.get("city", ""),
                country=location_cfg.get("country", ""),
                latitude=_float_or_none(location_cfg.get("latitude")),
                longitude=_float_or_none(location_cfg.get("longitude")),
                timezone=_string_or_none(location_cfg.get("timezone")),
                use_geolocation=location_cfg.get("use_geolocation", True),
            ),
            prayer_settings=PrayerSettings(
                calculation_method=prayer_cfg.get("calculation_method", DEFAULT_METHOD),
            ),
            notifications=NotificationSettings(
                enabled=notification_cfg.get("enabled", False),
                lead_minutes=clamp_lead_minutes(notification_cfg.get("lead_minutes", DEFAULT_LEAD_MINUTES)),
                enabled_prayers=_prayer_names(
                    notification_cfg.get("enabled_prayers", [name.value for name in NOTIFIABLE_PRAYERS])
                ),
            ),
            tahajjud=TahajjudSettings(
                enabled=tahajjud_cfg.get("enabled", False),
                method=method,
                custom_time=custom_time,
                lead_minutes=clamp_lead_minutes(tahajjud_cfg.get("lead_minutes", 0)),
                calculation_method=tahajjud_cfg.get("calculation_method", DEFAULT_NIGHT_METHOD),
            ),
        )

    def _write(self, config: MiqatConfig) -> None:
        data = config.to_dict()
        lines = ["[location]"]
        lines.append(f"city = \"{data['location']['city']}\"")
        lines.append(f"country = \"{data['location']['country']}\"")
        if data["location"]["latitude"] is not None:
            lines.append(f"latitude = {data['location']['latitude']}")
        if data["location"]["longitude"] is not None:
            lines.append(f"longitude = {data['location']['longitude']}")
        lines.append(f"timezone = \"{data['location']['timezone'] or ''}\"")
        lines.append(f"use_geolocation = {str(data['location']['use_geolocation']).lower()}")
        enabled_prayers = ", ".join(f"\"{name}\"" for name in data["notifications"]["enabled_prayers"])
        lines.extend([
            "",
            "[prayer_settings]",
            f"calculation_method = \"{data['prayer_settings']['calculation_method']}\"",
            "",
            "[notifications]",
            f"enabled = {str(data['notifications']['enabled']).lower()}",
            f"lead_minutes = {data['notifications']['lead_minutes']}",
            f"enabled_prayers = [{enabled_prayers}]",
            "",
            "[tahajjud]",
            f"enabled = {str(data['tahajjud']['enabled']).lower()}",
            f"method = \"{data['tahajjud']['method']}\"",
            f"custom_time = \"{data['tahajjud']['custom_time']}\"",
            f"lead_minutes = {data['tahajjud']['lead_minutes']}",
            f"calculation_method = \"{data['tahajjud']['calculation_method']}\"",
        ])
        self.config_path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    def save(self, config: MiqatConfig) -> None:
        self._write(config)
