from datetime import date, datetime, timedelta, timezone

from dateutil.parser import isoparse

from eds_bridge.timeutil import (
    format_basic_date,
    format_basic_stamp,
    now_utc_stamp,
    parse_basic,
    plus_hour,
    to_query_utc,
    try_datetime,
    window_end,
    window_start,
)


def test_basic_stamp_roundtrip_preserves_instant() -> None:
    original = datetime(2024, 5, 17, 9, 30, 12, tzinfo=timezone.utc)

    iso, all_day = parse_basic(format_basic_stamp(original))

    assert all_day is False
    assert iso == "2024-05-17T09:30:12Z"
    assert isoparse(iso) == original


def test_basic_date_roundtrip_preserves_day() -> None:
    original = date(2024, 2, 29)

    iso, all_day = parse_basic(format_basic_date(original))

    assert all_day is True
    assert iso == "2024-02-29"
    assert date.fromisoformat(iso) == original


def test_parse_basic_keeps_floating_time_without_suffix() -> None:
    assert parse_basic("20240105T090000") == ("2024-01-05T09:00:00", False)


def test_parse_basic_passes_unknown_shapes_through() -> None:
    assert parse_basic("20240105T0900") == ("20240105T0900", False)
    assert parse_basic("tomorrow") == ("tomorrow", False)
    assert parse_basic("") == ("", False)


def test_to_query_utc_converts_offsets_to_utc() -> None:
    assert to_query_utc("2024-06-01T12:00:00+02:00") == "20240601T100000Z"
    assert to_query_utc(datetime(2024, 6, 1, 12, 0)) == "20240601T120000Z"


def test_now_utc_stamp_uses_given_clock() -> None:
    now = datetime(2025, 12, 31, 23, 59, 58, tzinfo=timezone.utc)
    assert now_utc_stamp(now) == "20251231T235958Z"


def test_now_utc_stamp_defaults_to_current_time() -> None:
    stamp = now_utc_stamp()
    parsed = isoparse(parse_basic(stamp)[0])
    assert abs(datetime.now(timezone.utc) - parsed) < timedelta(minutes=2)


def test_plus_hour_returns_extended_iso() -> None:
    assert plus_hour("2024-01-01T23:30:00Z") == "2024-01-02T00:30:00.000Z"


def test_search_window_spans_fifteen_minutes_each_side() -> None:
    assert window_start("2024-01-01T10:00:00Z") == "2024-01-01T09:45:00.000Z"
    assert window_end("2024-01-01T10:00:00Z") == "2024-01-01T10:15:00.000Z"
    assert window_end("2024-01-01T10:00:00.250Z") == "2024-01-01T10:15:00.250Z"


def test_helpers_hand_back_unparseable_input() -> None:
    assert to_query_utc("garbage") == "garbage"
    assert plus_hour("garbage") == "garbage"
    assert window_start("garbage") == "garbage"
    assert window_end("garbage") == "garbage"
    assert format_basic_date("not-a-date") == "not-a-date"


def test_try_datetime_returns_none_for_garbage() -> None:
    assert try_datetime("next tuesday") is None
    assert try_datetime("2024-01-01") == datetime(2024, 1, 1)
