from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging

from eds_bridge.config import DEFAULT_SETTINGS, BridgeSettings
from eds_bridge.events import extract_vevents
from eds_bridge.ics import ParsedEvent, parse_event
from eds_bridge.timeutil import ONE_DAY, try_datetime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventRecord:
    id: str
    title: str
    description: str
    location: str
    start: str
    end: str
    all_day: bool
    calendar: str
    color: str

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "start": self.start,
            "end": self.end,
            "allDay": self.all_day,
            "calendar": self.calendar,
            "color": self.color,
        }


def _parse_range_day(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d")
    except ValueError:
        return None


def _parse_event_moment(value: str) -> datetime | None:
    if not value:
        return None
    moment = try_datetime(value)
    if moment is None:
        return None
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


def is_in_date_range(start: str, end: str, range_start: str | None, range_end: str | None) -> bool:
    """Check an event against an inclusive YYYY-MM-DD range.

    Anything that cannot be parsed is kept rather than dropped.
    """
    first_day = _parse_range_day(range_start)
    last_day = _parse_range_day(range_end)
    if first_day is None or last_day is None:
        return True

    event_start = _parse_event_moment(start)
    if event_start is None:
        return True

    if len(start) == len("YYYY-MM-DD"):
        return first_day <= event_start <= last_day + ONE_DAY

    event_end = _parse_event_moment(end) or event_start
    return event_start <= last_day and event_end >= first_day


def to_event_record(event: ParsedEvent, *, calendar: str, color: str) -> EventRecord:
    return EventRecord(
        id=event.uid,
        title=event.summary,
        description=event.description,
        location=event.location,
        start=event.start,
        end=event.end,
        all_day=event.all_day,
        calendar=calendar,
        color=color,
    )


def collect_event_records(
    raw: str,
    range_start: str | None = None,
    range_end: str | None = None,
    settings: BridgeSettings | None = None,
) -> list[EventRecord]:
    """Decode every VEVENT in a reply into front-end records within the range."""
    config = settings or DEFAULT_SETTINGS
    records: list[EventRecord] = []
    skipped = 0
    for block in extract_vevents(raw):
        event = parse_event(block)
        if not event.summary or not is_in_date_range(event.start, event.end, range_start, range_end):
            skipped += 1
            continue
        records.append(to_event_record(event, calendar=config.calendar_name, color=config.calendar_color))

    logger.debug("event_records_collected count=%s skipped=%s", len(records), skipped)
    return records
