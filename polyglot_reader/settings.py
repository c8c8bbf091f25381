"""Reader preferences: active languages, voice per language, speech speed."""

import json
import logging
import os
from dataclasses import dataclass, field

from polyglot_reader.constants import (
    DEFAULT_ACTIVE_LANGUAGES,
    DEFAULT_SPEED,
    SPEED_MIN,
    SPEED_MAX,
    SPEED_STEP,
)
from polyglot_reader.languages import is_supported

logger = logging.getLogger(__name__)


def limit_speed(value) -> float:
    """Clamp a speed multiplier to [SPEED_MIN, SPEED_MAX], keeping its precision.

    Raises ValueError for values that are not numbers.
    """
    try:
        speed = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid speed: {value!r}")
    if speed != speed:  # NaN
        raise ValueError(f"Invalid speed: {value!r}")
    return min(SPEED_MAX, max(SPEED_MIN, speed))


def clamp_speed(value) -> float:
    """Like limit_speed(), then snapped to the SPEED_STEP slider grid."""
    speed = limit_speed(value)
    return round(round(speed / SPEED_STEP) * SPEED_STEP, 1)


@dataclass
class ReaderSettings:
    active_languages: list[str] = field(default_factory=lambda: list(DEFAULT_ACTIVE_LANGUAGES))
    voices: dict[str, str] = field(default_factory=dict)   # language code → voice id
    speed: float = DEFAULT_SPEED

    def to_dict(self) -> dict:
        return {
            "active_languages": list(self.active_languages),
            "voices": dict(self.voices),
            "speed": self.speed,
        }


def _parse_languages(value) -> list[str]:
    if not isinstance(value, list):
        logger.warning("Settings: active_languages must be a list — using defaults")
        return list(DEFAULT_ACTIVE_LANGUAGES)
    languages = []
    for code in value:
        if not isinstance(code, str) or not is_supported(code):
            logger.warning("Settings: ignoring unsupported language %r", code)
            continue
        if code not in languages:
            languages.append(code)
    if not languages:
        logger.warning("Settings: no usable active languages — using defaults")
        return list(DEFAULT_ACTIVE_LANGUAGES)
    return languages


def _parse_voices(value) -> dict[str, str]:
    if not isinstance(value, dict):
        logger.warning("Settings: voices must be an object — ignoring")
        return {}
    return {
        code: voice_id
        for code, voice_id in value.items()
        if isinstance(voice_id, str) and is_supported(code)
    }


def settings_from_dict(data: dict) -> ReaderSettings:
    """Build settings from parsed JSON, falling back per field on bad values."""
    settings = ReaderSettings()
    if "active_languages" in data:
        settings.active_languages = _parse_languages(data["active_languages"])
    if "voices" in data:
        settings.voices = _parse_voices(data["voices"])
    if "speed" in data:
        try:
            settings.speed = clamp_speed(data["speed"])
        except ValueError:
            logger.warning("Settings: invalid speed %r — using %s", data["speed"], DEFAULT_SPEED)
    return settings


def load_settings(path: str) -> ReaderSettings:
    """Load settings from a JSON file.

    Returns defaults if the file doesn't exist or is malformed.
    """
    if not os.path.exists(path):
        return ReaderSettings()
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError:
        logger.warning("Malformed settings file: %s — using defaults", path)
        return ReaderSettings()
    if not isinstance(data, dict):
        logger.warning("Settings file is not an object: %s — using defaults", path)
        return ReaderSettings()
    return settings_from_dict(data)


def save_settings(path: str, settings: ReaderSettings) -> str:
    """Write settings as JSON. Returns the path written."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(settings.to_dict(), f, indent=2, ensure_ascii=False)
    return path
