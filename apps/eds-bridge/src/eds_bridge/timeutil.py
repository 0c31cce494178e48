from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
import re

from dateutil.parser import isoparse

_BASIC_DATE_PATTERN = re.compile(r"^\d{8}$")
_BASIC_STAMP_PATTERN = re.compile(r"^\d{8}T\d{6}Z?$")

ONE_HOUR = timedelta(hours=1)
ONE_DAY = timedelta(days=1)
SEARCH_MARGIN = timedelta(minutes=15)

DateLike = datetime | date | str


def to_datetime(value: DateLike) -> datetime:
    """Coerce a datetime, date or ISO-8601 string. Raises ValueError."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return isoparse(value.strip())


def try_datetime(value: DateLike) -> datetime | None:
    """Like to_datetime, but None for text that is not ISO-8601."""
    try:
        return to_datetime(value)
    except (ValueError, OverflowError):
        return None


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_utc(value: DateLike) -> datetime:
    """Return an aware UTC datetime; naive values are taken as UTC. Raises ValueError."""
    return _as_utc(to_datetime(value))


# The formatters below hand unparseable input back unchanged.


def format_basic_stamp(value: DateLike) -> str:
    """Format as compact UTC stamp YYYYMMDDTHHMMSSZ."""
    dt = try_datetime(value)
    if dt is None:
        return str(value)
    return _as_utc(dt).strftime("%Y%m%dT%H%M%SZ")


def format_basic_date(value: DateLike) -> str:
    """Format the calendar fields as YYYYMMDD.

    Naive values keep their own fields, aware values are read in local time.
    """
    dt = try_datetime(value)
    if dt is None:
        return str(value)
    if dt.tzinfo is not None:
        dt = dt.astimezone()
    return dt.strftime("%Y%m%d")


def format_iso_z(value: DateLike) -> str:
    """Format as extended UTC ISO-8601 with milliseconds: YYYY-MM-DDTHH:MM:SS.mmmZ."""
    dt = try_datetime(value)
    if dt is None:
        return str(value)
    dt = _as_utc(dt)
    return f"{dt.strftime('%Y-%m-%dT%H:%M:%S')}.{dt.microsecond // 1000:03d}Z"


def _shifted_iso_z(value: DateLike, delta: timedelta) -> str:
    dt = try_datetime(value)
    if dt is None:
        return str(value)
    try:
        return format_iso_z(_as_utc(dt) + delta)
    except OverflowError:
        return str(value)


def parse_basic(value: str) -> tuple[str, bool]:
    """Convert an ICS date or date-time into ISO form.

    Returns ``(iso, all_day)``. ``YYYYMMDD`` becomes ``YYYY-MM-DD`` (all-day),
    ``YYYYMMDDTHHMMSS[Z]`` becomes ``YYYY-MM-DDTHH:MM:SS[Z]``. Any other shape is
    returned unchanged.
    """
    if _BASIC_DATE_PATTERN.fullmatch(value):
        return f"{value[0:4]}-{value[4:6]}-{value[6:8]}", True
    if _BASIC_STAMP_PATTERN.fullmatch(value):
        suffix = "Z" if value.endswith("Z") else ""
        iso = f"{value[0:4]}-{value[4:6]}-{value[6:8]}T{value[9:11]}:{value[11:13]}:{value[13:15]}{suffix}"
        return iso, False
    return value, False


def to_query_utc(value: DateLike) -> str:
    return format_basic_stamp(value)


def now_utc_stamp(now: datetime | None = None) -> str:
    return format_basic_stamp(now or datetime.now(timezone.utc))


def plus_hour(value: DateLike) -> str:
    return _shifted_iso_z(value, ONE_HOUR)


def window_start(value: DateLike) -> str:
    """Lower bound of the lookup window around a timestamp."""
    return _shifted_iso_z(value, -SEARCH_MARGIN)


def window_end(value: DateLike) -> str:
    """Upper bound of the lookup window around a timestamp."""
    return _shifted_iso_z(value, SEARCH_MARGIN)
