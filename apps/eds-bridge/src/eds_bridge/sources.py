from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
import logging
import re

from eds_bridge.config import DEFAULT_SETTINGS, BridgeSettings, ScanVariant

logger = logging.getLogger(__name__)

SYSTEM_CALENDAR_UID = "system-calendar"
CALENDAR_SECTION_MARKER = "[Calendar]"
# Parent source of calendars provisioned through a Google online account.
GOOGLE_PARENT_MARKER = "google-stub"

_UID_PATTERN = re.compile(r"UID.*<'([a-f0-9-]{32,40}|system-calendar)'>")
_DATA_PATTERN = re.compile(
    r"""'Data':\s*<(?:'([^'\\]*(?:\\.[^'\\]*)*)'|"([^"\\]*(?:\\.[^"\\]*)*)")>"""
)
_DISPLAY_NAME_PATTERN = re.compile(r"^DisplayName=(.+)$", re.MULTILINE)
_CALENDAR_SECTION_PATTERN = re.compile(r"\[Calendar\]\n(.*?)(?:\n\[|\Z)", re.DOTALL)
_BACKEND_NAME_PATTERN = re.compile(r"^BackendName=(.+)$", re.MULTILINE)


class BackendKind(StrEnum):
    LOCAL = "local"
    CALDAV = "caldav"
    CONTACTS = "contacts"
    GOOGLE = "google"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class CalendarSource:
    uid: str
    name: str
    backend: BackendKind = BackendKind.UNKNOWN
    enabled: bool = True

    def to_dict(self) -> dict[str, object]:
        return {
            "uid": self.uid,
            "name": self.name,
            "backend": self.backend.value,
            "enabled": self.enabled,
        }


def _flatten(raw: str) -> str:
    return raw.replace(", ", "\n")


def extract_calendar_sources(raw: str, settings: BridgeSettings | None = None) -> list[str]:
    """Return UIDs of sources that carry a [Calendar] section.

    A UID counts as a calendar when the marker appears within a fixed character
    window around its first occurrence. ``system-calendar`` is always present.
    """
    config = settings or DEFAULT_SETTINGS
    text = _flatten(raw)
    uids: list[str] = []

    for match in _UID_PATTERN.finditer(text):
        uid = match.group(1)
        index = text.find(uid)
        if index < 0:
            continue
        chunk = text[max(0, index - config.window_before) : index + config.window_after]
        if CALENDAR_SECTION_MARKER in chunk:
            uids.append(uid)

    if SYSTEM_CALENDAR_UID not in uids:
        uids.append(SYSTEM_CALENDAR_UID)

    result = list(dict.fromkeys(uids))
    logger.debug("calendar_sources_discovered count=%s", len(result))
    return result


def extract_calendar_meta(
    raw: str,
    uids: Iterable[str],
    settings: BridgeSettings | None = None,
) -> list[CalendarSource]:
    config = settings or DEFAULT_SETTINGS
    if config.variant == ScanVariant.LINES:
        lines = _flatten(raw).split("\n")
        return [_source_from_data(uid, _data_in_lines(lines, uid, config), detect_google=False) for uid in uids]
    return [_source_from_data(uid, _data_in_window(raw, uid, config), detect_google=True) for uid in uids]


def discover_calendars(raw: str, settings: BridgeSettings | None = None) -> list[CalendarSource]:
    """Discovery and metadata extraction in one pass over the same dump."""
    return extract_calendar_meta(raw, extract_calendar_sources(raw, settings), settings)


def classify_backend(backend_name: str, data: str = "", *, detect_google: bool = True) -> BackendKind:
    name = backend_name.strip()
    if name == "local":
        return BackendKind.LOCAL
    if name == "contacts":
        return BackendKind.CONTACTS
    if name == "caldav":
        if detect_google and GOOGLE_PARENT_MARKER in data:
            return BackendKind.GOOGLE
        return BackendKind.CALDAV
    return BackendKind.UNKNOWN


def _data_in_window(raw: str, uid: str, config: BridgeSettings) -> str | None:
    anchor = raw.find(f"'{uid}'")
    if anchor < 0:
        anchor = raw.find(uid)
    if anchor < 0:
        return None

    lower = max(0, anchor - config.window_before)
    upper = anchor + config.window_after
    # The record's own Data entry is the one nearest its UID, on either side.
    following = _DATA_PATTERN.search(raw, anchor, upper)
    preceding = list(_DATA_PATTERN.finditer(raw, lower, anchor))[-1:]
    match = following
    if preceding and (following is None or anchor - preceding[0].end() < following.start() - anchor):
        match = preceding[0]
    return _unescape_data(match) if match else None


def _data_in_lines(lines: list[str], uid: str, config: BridgeSettings) -> str | None:
    marker = re.compile(rf"UID.*<'{re.escape(uid)}'>")
    for index, line in enumerate(lines):
        if marker.search(line):
            section = "\n".join(lines[index : index + config.section_lines])
            match = _DATA_PATTERN.search(section)
            return _unescape_data(match) if match else None
    return None


def _unescape_data(match: re.Match[str]) -> str:
    payload = match.group(1) if match.group(1) is not None else match.group(2)
    return payload.replace("\\n", "\n").replace("\\'", "'").replace('\\"', '"')


def _source_from_data(uid: str, data: str | None, *, detect_google: bool) -> CalendarSource:
    display = ""
    backend = BackendKind.UNKNOWN

    if data is not None:
        name_match = _DISPLAY_NAME_PATTERN.search(data)
        if name_match:
            display = name_match.group(1).strip()
        section_match = _CALENDAR_SECTION_PATTERN.search(data)
        if section_match:
            backend_match = _BACKEND_NAME_PATTERN.search(section_match.group(1))
            if backend_match:
                backend = classify_backend(backend_match.group(1), data, detect_google=detect_google)
    else:
        logger.debug("calendar_data_missing uid=%s", uid)

    if not display:
        display = f"Calendar {uid}"
    return CalendarSource(uid=uid, name=display, backend=backend)
