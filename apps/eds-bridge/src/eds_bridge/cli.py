from __future__ import annotations

from dataclasses import replace
import json
import logging
import os

import typer
from rich import print
from rich.console import Console
from rich.logging import RichHandler

from eds_bridge.bus import BusReferenceError, require_open_calendar
from eds_bridge.config import BridgeSettings, ScanVariant
from eds_bridge.export import collect_event_records
from eds_bridge.ics import EventDraft, build_event
from eds_bridge.sources import discover_calendars
from eds_bridge.timeutil import (
    now_utc_stamp,
    plus_hour,
    to_datetime,
    to_query_utc,
    window_end,
    window_start,
)

app = typer.Typer(
    name="eds-bridge",
    help="Translate gdbus replies from evolution-data-server into JSON and back.",
    no_args_is_help=True,
)


def _settings(variant: ScanVariant | None = None) -> BridgeSettings:
    settings = BridgeSettings.from_env()
    if variant is not None and variant != settings.variant:
        settings = replace(settings, variant=variant)
    return settings


def _echo_json(payload: object) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False))


def _check_iso(value: str, option_name: str) -> str:
    try:
        to_datetime(value)
    except (ValueError, OverflowError) as exc:
        raise typer.BadParameter(f"Invalid {option_name} value. Expected ISO-8601.") from exc
    return value


@app.callback()
def root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log extraction details to stderr."),
) -> None:
    """eds-bridge entrypoint."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


@app.command("open")
def open_calendar(
    input_file: typer.FileText = typer.Option("-", "--input", "-i", help="Reply text; - reads stdin."),
) -> None:
    """Print object path and bus name from an OpenCalendar reply."""
    try:
        reference = require_open_calendar(input_file.read())
    except BusReferenceError as exc:
        print(f"[red]Cannot read OpenCalendar reply:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    _echo_json(reference.to_dict())


@app.command("calendars")
def calendars(
    input_file: typer.FileText = typer.Option("-", "--input", "-i", help="Reply text; - reads stdin."),
    variant: ScanVariant | None = typer.Option(None, "--variant", help="Source scanning strategy."),
) -> None:
    """List calendar sources found in a GetManagedObjects property dump."""
    sources = discover_calendars(input_file.read(), _settings(variant))
    _echo_json([source.to_dict() for source in sources])


@app.command("events")
def events(
    start_date: str | None = typer.Argument(None, help="First day, YYYY-MM-DD. START_DATE takes precedence."),
    end_date: str | None = typer.Argument(None, help="Last day, YYYY-MM-DD. END_DATE takes precedence."),
    input_file: typer.FileText = typer.Option("-", "--input", "-i", help="Reply text; - reads stdin."),
) -> None:
    """Decode a GetObjectList reply into event records."""
    range_start = os.getenv("START_DATE", "").strip() or start_date
    range_end = os.getenv("END_DATE", "").strip() or end_date
    records = collect_event_records(input_file.read(), range_start, range_end, _settings())
    _echo_json([record.to_dict() for record in records])


@app.command("build")
def build(
    uid: str = typer.Option(..., "--uid", help="Event UID."),
    start: str = typer.Option(..., "--start", help="Start, ISO-8601."),
    end: str | None = typer.Option(None, "--end", help="End, ISO-8601. Defaults to start + 1h."),
    all_day: bool = typer.Option(False, "--all-day", help="Emit a date-only event."),
    summary: str = typer.Option("", "--summary", help="Event title."),
    description: str | None = typer.Option(None, "--description"),
    location: str | None = typer.Option(None, "--location"),
    dtstamp: str | None = typer.Option(None, "--dtstamp", help="YYYYMMDDTHHMMSSZ. Defaults to now."),
) -> None:
    """Print a VEVENT block ready to embed in a gdbus CreateObjects call."""
    draft = EventDraft(
        uid=uid,
        dtstamp=dtstamp or now_utc_stamp(),
        start=_check_iso(start, "--start"),
        end=_check_iso(end, "--end") if end else None,
        all_day=all_day,
        summary=summary,
        description=description,
        location=location,
    )
    typer.echo(build_event(draft))


@app.command("window")
def window(moment: str = typer.Argument(..., help="Timestamp, ISO-8601.")) -> None:
    """Print query stamps and the lookup window around a timestamp."""
    value = _check_iso(moment, "timestamp")
    _echo_json(
        {
            "query": to_query_utc(value),
            "plusHour": plus_hour(value),
            "windowStart": window_start(value),
            "windowEnd": window_end(value),
        }
    )


def main() -> None:
    app()
