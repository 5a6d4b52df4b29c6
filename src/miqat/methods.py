from __future__ import annotations

from dataclasses import dataclass, replace
import logging

logger = logging.getLogger(__name__)

SHAFI = 1
HANAFI = 2


@dataclass(slots=True, frozen=True)
class CalculationPreset:
    """Juristic convention handed to the astronomical provider.

    ``angle_ref`` indexes pyIslam's ``LIST_FAJR_ISHA_METHODS``.
    """

    key: str
    label: str
    angle_ref: int
    asr_madhab: int = SHAFI

    @property
    def madhab(self) -> str:
        return "Hanafi" if self.asr_madhab == HANAFI else "Shafi"


_KARACHI = CalculationPreset("karachi", "University of Islamic Sciences, Karachi", 1)
_MWL = CalculationPreset("muslimworldleague", "Muslim World League", 2)
_EGYPTIAN = CalculationPreset("egyptian", "Egyptian General Authority of Survey", 3)
_UMM_AL_QURA = CalculationPreset("ummalqura", "Umm al-Qura University, Makkah", 4)
_ISNA = CalculationPreset("northamerica", "Islamic Society of North America", 5)
_UOIF = CalculationPreset("uoif", "Union des Organisations Islamiques de France", 6)
_SINGAPORE = CalculationPreset("singapore", "Majlis Ugama Islam Singapura", 7)
_RUSSIA = CalculationPreset("russia", "Spiritual Administration of Muslims of Russia", 8)
_FIXED_INTERVAL = CalculationPreset("qatar", "Qatar (fixed Isha interval)", 9)
_KUWAIT = CalculationPreset("kuwait", "Kuwait", 2)
_MOONSIGHTING = CalculationPreset("moonsightingcommittee", "Moonsighting Committee", 1)
_TURKEY = CalculationPreset("turkey", "Presidency of Religious Affairs, Turkey", 2)

DEFAULT_METHOD_KEY = "muslimworldleague"

PRESETS: dict[str, CalculationPreset] = {
    "muslimworldleague": _MWL,
    "mwl": _MWL,
    "egyptian": _EGYPTIAN,
    "egyptiangeneralauthority": _EGYPTIAN,
    "northamerica": _ISNA,
    "isna": _ISNA,
    "islamicsocietyofnorthamerica": _ISNA,
    "karachi": _KARACHI,
    "universityofislamicscienceskarachi": _KARACHI,
    "ummalqura": _UMM_AL_QURA,
    "makkah": _UMM_AL_QURA,
    "qatar": _FIXED_INTERVAL,
    "kuwait": _KUWAIT,
    "singapore": _SINGAPORE,
    "muis": _SINGAPORE,
    "moonsightingcommittee": _MOONSIGHTING,
    "turkey": _TURKEY,
    "diyanet": _TURKEY,
    "france": _UOIF,
    "uoif": _UOIF,
    "russia": _RUSSIA,
    "other": _MWL,
}


def normalize_method_key(method_name: str | None) -> str:
    if not method_name or not isinstance(method_name, str):
        return DEFAULT_METHOD_KEY
    return "".join(ch for ch in method_name.lower() if "a" <= ch <= "z")


def resolve_calculation_method(method_name: str | None) -> CalculationPreset:
    """Map a free-form method name to a preset, defaulting to Muslim World League.

    The madhab is always Shafi regardless of the preset.
    """
    key = normalize_method_key(method_name)
    preset = PRESETS.get(key)
    if preset is None:
        logger.debug("Unknown calculation method %r, using %s", method_name, DEFAULT_METHOD_KEY)
        preset = PRESETS[DEFAULT_METHOD_KEY]
    return replace(preset, asr_madhab=SHAFI)
