from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
import logging
import os
import re

logger = logging.getLogger(__name__)


class ScanVariant(StrEnum):
    WINDOW = "window"
    LINES = "lines"


DEFAULT_WINDOW_BEFORE = 2500
DEFAULT_WINDOW_AFTER = 5000
DEFAULT_SECTION_LINES = 50
DEFAULT_CALENDAR_NAME = "Personal"
DEFAULT_CALENDAR_COLOR = "#1976d2"

ENV_PREFIX = "EDS_BRIDGE_"

ALLOWED_SETTING_KEYS: set[str] = {
    "variant",
    "window_before",
    "window_after",
    "section_lines",
    "calendar_name",
    "calendar_color",
}

_NON_NEGATIVE_INT_KEYS: set[str] = {"window_before", "window_after"}
_POSITIVE_INT_KEYS: set[str] = {"section_lines"}
_COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


@dataclass(frozen=True)
class BridgeSettings:
    variant: ScanVariant = ScanVariant.WINDOW
    window_before: int = DEFAULT_WINDOW_BEFORE
    window_after: int = DEFAULT_WINDOW_AFTER
    section_lines: int = DEFAULT_SECTION_LINES
    calendar_name: str = DEFAULT_CALENDAR_NAME
    calendar_color: str = DEFAULT_CALENDAR_COLOR

    @classmethod
    def from_env(cls) -> BridgeSettings:
        """Read EDS_BRIDGE_* variables; invalid values fall back to defaults."""
        defaults = cls()
        values: dict[str, object] = {}
        for key in sorted(ALLOWED_SETTING_KEYS):
            env_name = f"{ENV_PREFIX}{key.upper()}"
            raw = os.getenv(env_name, "").strip()
            if not raw:
                continue
            try:
                values[key] = validate_setting(key, raw)
            except ValueError as exc:
                logger.warning("setting_ignored env=%s reason=%s", env_name, exc)
                continue
        if not values:
            return defaults
        return cls(**values)


DEFAULT_SETTINGS = BridgeSettings()


def validate_setting(key: str, value: str) -> object:
    """Validate one setting and return its typed value. Raises ValueError."""
    if key not in ALLOWED_SETTING_KEYS:
        allowed = ", ".join(sorted(ALLOWED_SETTING_KEYS))
        raise ValueError(f"Unknown setting key: {key}. Allowed keys: {allowed}.")

    if key == "variant":
        normalized = value.strip().lower()
        try:
            return ScanVariant(normalized)
        except ValueError as exc:
            allowed = ", ".join(item.value for item in ScanVariant)
            raise ValueError(f"Invalid value for {key}: must be one of {allowed}.") from exc

    if key in _NON_NEGATIVE_INT_KEYS:
        parsed = _parse_int(value, key)
        if parsed < 0:
            raise ValueError(f"Invalid value for {key}: must be an integer >= 0.")
        return parsed

    if key in _POSITIVE_INT_KEYS:
        parsed = _parse_int(value, key)
        if parsed < 1:
            raise ValueError(f"Invalid value for {key}: must be an integer >= 1.")
        return parsed

    if key == "calendar_color":
        if not _COLOR_PATTERN.fullmatch(value.strip()):
            raise ValueError(f"Invalid value for {key}: expected #RGB, #RRGGBB or #AARRGGBB.")
        return value.strip()

    if not value.strip():
        raise ValueError(f"Invalid value for {key}: must not be empty.")
    return value.strip()


def _parse_int(value: str, key: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"Invalid value for {key}: must be an integer.") from exc
