from eds_bridge.bus import BusReference, BusReferenceError, parse_open_calendar, require_open_calendar
from eds_bridge.config import BridgeSettings, ScanVariant
from eds_bridge.events import extract_vevents
from eds_bridge.export import EventRecord, collect_event_records, is_in_date_range
from eds_bridge.ics import EventDraft, ParsedEvent, build_event, parse_event
from eds_bridge.sources import (
    BackendKind,
    CalendarSource,
    discover_calendars,
    extract_calendar_meta,
    extract_calendar_sources,
)
from eds_bridge.timeutil import now_utc_stamp, plus_hour, to_query_utc, window_end, window_start

__all__ = [
    "BackendKind",
    "BridgeSettings",
    "BusReference",
    "BusReferenceError",
    "CalendarSource",
    "EventDraft",
    "EventRecord",
    "ParsedEvent",
    "ScanVariant",
    "build_event",
    "collect_event_records",
    "discover_calendars",
    "extract_calendar_meta",
    "extract_calendar_sources",
    "extract_vevents",
    "is_in_date_range",
    "now_utc_stamp",
    "parse_event",
    "parse_open_calendar",
    "plus_hour",
    "require_open_calendar",
    "to_query_utc",
    "window_end",
    "window_start",
]
