"""Command-line entry point for the internship tracker."""

import json
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, NoReturn, Optional

import typer
from filelock import FileLock, Timeout

from .calendar_events import encode_all
from .clock import Clock, FixedClock, SystemClock
from .config import Config, get_config, load_config
from .engine import mark_all_read, mark_read, recent_first, regenerate, unread_count
from .ics_export import ExportError, deliver, render
from .models import Alert, parse_timestamp
from .stats import SORT_KEYS, compute_stats, filter_records, sort_records
from .store import (
    StoreError,
    export_records,
    import_records,
    load_alerts,
    load_records,
    save_alerts,
    save_records,
)

LOCK_NAME = "interntracker.lock"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

app = typer.Typer(help="Track internship applications, reminders and calendar exports")

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """Log to {log_dir}/app.log and stderr; stdout is left for command output."""
    config = get_config()
    config.log_dir.mkdir(parents=True, exist_ok=True)
    handlers = [
        logging.FileHandler(config.log_dir / "app.log"),
        logging.StreamHandler(sys.stderr),
    ]
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )


@contextmanager
def instance_lock(config: Config) -> Iterator[None]:
    """Hold the data directory lock, exiting quietly if another run has it."""
    config.data_dir.mkdir(parents=True, exist_ok=True)
    lock = FileLock(str(config.data_dir / LOCK_NAME), timeout=10)
    try:
        lock.acquire()
    except Timeout:
        logger.warning("Could not acquire lock - another instance is running")
        raise typer.Exit(0)
    try:
        yield
    finally:
        lock.release()


def _clock(now: Optional[str]) -> Clock:
    if now is None:
        return SystemClock()
    instant = parse_timestamp(now)
    if instant is None:
        raise typer.BadParameter(f"invalid timestamp: {now}", param_hint="--now")
    return FixedClock(instant)


def _fail(message: str) -> NoReturn:
    typer.echo(message, err=True)
    raise typer.Exit(1)


def run_check(config: Config, now: datetime) -> list[Alert]:
    """Regenerate alerts from the stored records and persist them.

    Returns only the alerts added by this run.
    """
    records = load_records(config.records_path)
    existing = load_alerts(config.alerts_path)
    merged = regenerate(records, existing, now)
    fresh = merged[len(existing):]
    if fresh:
        save_alerts(config.alerts_path, merged)
    logger.info(
        f"Checked {len(records)} records: {len(fresh)} new alerts, "
        f"{unread_count(merged)} unread"
    )
    return fresh


def run_watch(
    config: Config,
    clock: Clock,
    iterations: int = 0,
    sleep: Callable[[float], None] = time.sleep,
    notify: Optional[Callable[[list[Alert]], None]] = None,
) -> list[Alert]:
    """Call ``run_check`` once per evaluation interval.

    Stops after ``iterations`` checks, or never when it is 0. Returns every
    alert added along the way.
    """
    interval = config.evaluation_interval_minutes * 60
    added: list[Alert] = []
    tick = 0
    while True:
        with instance_lock(config):
            fresh = run_check(config, clock.now())
        added.extend(fresh)
        if notify is not None:
            notify(fresh)

        tick += 1
        if iterations and tick >= iterations:
            return added
        sleep(interval)


def _echo_messages(alerts: list[Alert]) -> None:
    for alert in alerts:
        typer.echo(alert.message)


@app.callback()
def main_callback(
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="Path to config.yaml"
    ),
) -> None:
    try:
        load_config(config_path)
        setup_logging()
    except FileNotFoundError as e:
        _fail(f"Configuration error: {e}")


@app.command("check")
def check_cmd(
    now: Optional[str] = typer.Option(None, "--now", help="Evaluate at this instant"),
) -> None:
    """Generate any alerts due now."""
    config = get_config()
    clock = _clock(now)
    with instance_lock(config):
        try:
            fresh = run_check(config, clock.now())
        except StoreError as e:
            _fail(str(e))
    _echo_messages(fresh)


@app.command("watch")
def watch_cmd(
    iterations: int = typer.Option(
        0, "--iterations", min=0, help="Stop after this many checks (0 runs forever)"
    ),
) -> None:
    """Re-evaluate alerts every evaluation_interval_minutes.

    Record dates and times without an offset are read as UTC.
    """
    config = get_config()
    logger.info(f"Watching for alerts every {config.evaluation_interval_minutes} minutes")
    try:
        run_watch(config, SystemClock(), iterations, notify=_echo_messages)
    except StoreError as e:
        _fail(str(e))


@app.command("alerts")
def alerts_cmd(
    unread: bool = typer.Option(False, "--unread", help="Only show unread alerts"),
) -> None:
    """List alerts, most recent first."""
    try:
        alerts = load_alerts(get_config().alerts_path)
    except StoreError as e:
        _fail(str(e))

    if not alerts:
        typer.echo("No notifications yet")
        return

    typer.echo(f"{unread_count(alerts)} unread")
    for alert in recent_first(alerts):
        if unread and alert.read:
            continue
        marker = " " if alert.read else "*"
        typer.echo(f"{marker} [{alert.kind.value}] {alert.id}: {alert.message}")


@app.command("read")
def read_cmd(alert_id: str = typer.Argument(..., help="Alert id")) -> None:
    """Mark one alert as read."""
    config = get_config()
    with instance_lock(config):
        try:
            alerts = load_alerts(config.alerts_path)
        except StoreError as e:
            _fail(str(e))
        if not any(alert.id == alert_id for alert in alerts):
            _fail(f"Alert not found: {alert_id}")
        alerts = mark_read(alerts, alert_id)
        save_alerts(config.alerts_path, alerts)
    typer.echo(f"{unread_count(alerts)} unread")


@app.command("read-all")
def read_all_cmd() -> None:
    """Mark every alert as read."""
    config = get_config()
    with instance_lock(config):
        try:
            alerts = load_alerts(config.alerts_path)
        except StoreError as e:
            _fail(str(e))
        alerts = mark_all_read(alerts)
        save_alerts(config.alerts_path, alerts)
    typer.echo(f"Marked {len(alerts)} alerts as read")


@app.command("export-calendar")
def export_calendar_cmd(
    output: Optional[Path] = typer.Option(None, "--output", help="Directory for the .ics file"),
    search: str = typer.Option("", "--search", help="Only export matching applications"),
) -> None:
    """Export deadlines and interviews as an iCalendar file.

    Record dates and times without an offset are written as UTC.
    """
    config = get_config()
    try:
        records = filter_records(load_records(config.records_path), search=search)
        text = render(encode_all(records))
    except (StoreError, ExportError) as e:
        _fail(str(e))

    path = deliver(text, output or config.export_dir, config.calendar_filename)
    typer.echo(str(path))


@app.command("stats")
def stats_cmd() -> None:
    """Show application counts and conversion rates."""
    try:
        records = load_records(get_config().records_path)
    except StoreError as e:
        _fail(str(e))
    typer.echo(json.dumps(compute_stats(records).model_dump(), indent=2))


@app.command("applications")
def applications_cmd(
    search: str = typer.Option("", "--search", help="Match company, position or location"),
    status: str = typer.Option("all", "--status", help="Only this status"),
    sort: str = typer.Option(
        "dateAdded", "--sort", help=f"One of {', '.join(SORT_KEYS)}"
    ),
) -> None:
    """List tracked applications."""
    if sort not in SORT_KEYS:
        raise typer.BadParameter(f"must be one of {', '.join(SORT_KEYS)}", param_hint="--sort")
    try:
        records = load_records(get_config().records_path)
    except StoreError as e:
        _fail(str(e))

    for record in sort_records(filter_records(records, search, status), sort):
        typer.echo(f"{record.id}: {record.company} - {record.position} [{record.status.value}]")


@app.command("import")
def import_cmd(
    file: Path = typer.Argument(..., exists=True, readable=True, dir_okay=False),
) -> None:
    """Add records from an exported JSON file, then refresh alerts."""
    config = get_config()
    with instance_lock(config):
        try:
            records = import_records(load_records(config.records_path), file)
            save_records(config.records_path, records)
            fresh = run_check(config, SystemClock().now())
        except StoreError as e:
            _fail(str(e))
    typer.echo(f"{len(records)} applications, {len(fresh)} new alerts")


@app.command("export")
def export_cmd(file: Path = typer.Argument(..., dir_okay=False)) -> None:
    """Write all records to a JSON file."""
    try:
        records = load_records(get_config().records_path)
    except StoreError as e:
        _fail(str(e))
    typer.echo(str(export_records(file, records)))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
