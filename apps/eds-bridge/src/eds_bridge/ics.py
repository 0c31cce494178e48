from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
import re

from eds_bridge.timeutil import (
    ONE_DAY,
    ONE_HOUR,
    DateLike,
    format_basic_date,
    format_basic_stamp,
    parse_basic,
    try_datetime,
)

logger = logging.getLogger(__name__)

DEFAULT_STATUS = "CONFIRMED"
# Four characters, not a real CRLF: the block travels inside a gdbus argument.
ESCAPED_CRLF = "\\r\\n"

_ESCAPED_BREAK_PATTERN = re.compile(r"\\r\\n|\\n|\\r")
_ESCAPED_PUNCT_PATTERN = re.compile(r"\\{1,2}([,;:])")
_REPEATED_COMMA_PATTERN = re.compile(r",\s*,+")
_SPACED_COMMA_PATTERN = re.compile(r",\s+,")
_WHITESPACE_PATTERN = re.compile(r"\s+")
_LEADING_COMMA_PATTERN = re.compile(r"^,\s*")
_TRAILING_COMMA_PATTERN = re.compile(r",\s*$")

_TEXT_FIELDS = {
    "UID:": "uid",
    "SUMMARY:": "summary",
    "DESCRIPTION:": "description",
    "STATUS:": "status",
}
_DATE_FIELDS = (
    ("DTSTART;VALUE=DATE:", "start"),
    ("DTEND;VALUE=DATE:", "end"),
    ("DTSTART:", "start"),
    ("DTEND:", "end"),
)


@dataclass(frozen=True)
class ParsedEvent:
    uid: str = ""
    summary: str = ""
    description: str = ""
    location: str = ""
    status: str = DEFAULT_STATUS
    start: str = ""
    end: str = ""
    all_day: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "uid": self.uid,
            "summary": self.summary,
            "description": self.description,
            "location": self.location,
            "status": self.status,
            "start": self.start,
            "end": self.end,
            "allDay": self.all_day,
        }


@dataclass(frozen=True)
class EventDraft:
    uid: str
    dtstamp: str
    start: DateLike
    end: DateLike | None = None
    all_day: bool = False
    summary: str = ""
    description: str | None = None
    location: str | None = None


def _property_value(line: str) -> str:
    _name, _sep, value = line.partition(":")
    return value.strip()


def clean_location(value: str) -> str:
    """Decode an ICS LOCATION value into a single display line."""
    cleaned = _ESCAPED_BREAK_PATTERN.sub(", ", value)
    cleaned = _ESCAPED_PUNCT_PATTERN.sub(r"\1", cleaned)
    cleaned = cleaned.replace("\\\\", "\\")
    cleaned = _REPEATED_COMMA_PATTERN.sub(", ", cleaned)
    cleaned = _SPACED_COMMA_PATTERN.sub(", ", cleaned)
    cleaned = _WHITESPACE_PATTERN.sub(" ", cleaned)
    cleaned = _LEADING_COMMA_PATTERN.sub("", cleaned)
    cleaned = _TRAILING_COMMA_PATTERN.sub("", cleaned)
    return cleaned.strip()


def parse_event(block: str) -> ParsedEvent:
    """Decode one VEVENT block. Unknown lines and VALARM bodies are ignored."""
    normalized = block.replace(ESCAPED_CRLF, "\n").replace("\r\n", "\n").replace("\r", "\n")
    fields: dict[str, object] = {}
    in_alarm = False

    for raw_line in normalized.split("\n"):
        line = raw_line.strip()
        if line == "BEGIN:VALARM":
            in_alarm = True
            continue
        if line == "END:VALARM":
            in_alarm = False
            continue
        if in_alarm:
            continue

        if line.startswith("LOCATION:"):
            fields["location"] = clean_location(_property_value(line))
            continue

        text_field = next((name for prefix, name in _TEXT_FIELDS.items() if line.startswith(prefix)), None)
        if text_field is not None:
            fields[text_field] = _property_value(line)
            continue

        for prefix, name in _DATE_FIELDS:
            if line.startswith(prefix):
                iso, all_day = parse_basic(_property_value(line))
                fields[name] = iso
                if name == "start":
                    fields["all_day"] = all_day
                break

    return ParsedEvent(**fields)


def _shifted(start: datetime | None, delta: timedelta) -> datetime | None:
    if start is None:
        return None
    try:
        return start + delta
    except OverflowError:
        return None


def build_event(draft: EventDraft) -> str:
    """Encode a draft as a VEVENT block joined with escaped CRLF."""
    lines = [
        "BEGIN:VEVENT",
        f"UID:{draft.uid}",
        f"DTSTAMP:{draft.dtstamp}",
    ]

    # Unparseable dates are written through as given.
    start = try_datetime(draft.start)
    if start is None:
        logger.warning("vevent_start_unparsed uid=%s start=%s", draft.uid, draft.start)
    if draft.all_day:
        end_date: DateLike = _shifted(start, ONE_DAY) or draft.start
        lines.append(f"DTSTART;VALUE=DATE:{format_basic_date(start or draft.start)}")
        lines.append(f"DTEND;VALUE=DATE:{format_basic_date(end_date)}")
    else:
        end: DateLike = draft.end or _shifted(start, ONE_HOUR) or draft.start
        lines.append(f"DTSTART:{format_basic_stamp(start or draft.start)}")
        lines.append(f"DTEND:{format_basic_stamp(end)}")

    lines.append(f"SUMMARY:{draft.summary or ''}")
    if draft.description:
        lines.append("DESCRIPTION:" + draft.description.replace("\n", "\\n"))
    if draft.location:
        lines.append(f"LOCATION:{draft.location}")
    lines.append("END:VEVENT")

    logger.debug("vevent_built uid=%s all_day=%s", draft.uid, draft.all_day)
    return ESCAPED_CRLF.join(lines)
