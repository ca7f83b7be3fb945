"""iCalendar (RFC 5545) rendering and delivery of calendar events."""

import itertools
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from .models import CalendarEvent

logger = logging.getLogger(__name__)

CRLF = "\r\n"
MAX_LINE_OCTETS = 75
MIME_TYPE = "text/calendar"
DEFAULT_FILENAME = "internship-events.ics"
PRODUCT_ID = "-//InternTracker//EN"
UID_DOMAIN = "interntracker"

_uid_sequence = itertools.count(1)


class ExportError(Exception):
    """Raised when a calendar document cannot be produced."""


class NothingToExportError(ExportError):
    def __init__(self) -> None:
        super().__init__(
            "No events to export. Add deadlines or interview dates to your applications."
        )


def format_timestamp(value: datetime) -> str:
    """Compact UTC form, e.g. 20240701T000000Z. Naive values are taken as UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y%m%dT%H%M%SZ")


def escape_text(value: str) -> str:
    """Escape a TEXT property value."""
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
        .replace("\r", "\\n")
    )


def fold_line(line: str) -> str:
    """Fold a content line to 75 octets, continuing with CRLF + space."""
    if len(line.encode("utf-8")) <= MAX_LINE_OCTETS:
        return line

    parts = []
    current = ""
    current_octets = 0
    limit = MAX_LINE_OCTETS
    for char in line:
        size = len(char.encode("utf-8"))
        if current_octets + size > limit:
            parts.append(current)
            # continuation lines spend one octet on the leading space
            current = " "
            current_octets = 1
        current += char
        current_octets += size
    parts.append(current)
    return CRLF.join(parts)


def next_uid(now: datetime) -> str:
    millis = int(now.replace(tzinfo=now.tzinfo or timezone.utc).timestamp() * 1000)
    return f"{millis}-{next(_uid_sequence)}@{UID_DOMAIN}"


def render_event(event: CalendarEvent, now: datetime) -> list[str]:
    """Content lines for one VEVENT, unfolded."""
    lines = [
        "BEGIN:VEVENT",
        f"UID:{next_uid(now)}",
        f"DTSTAMP:{format_timestamp(now)}",
        f"DTSTART:{format_timestamp(event.start)}",
        f"DTEND:{format_timestamp(event.end)}",
        f"SUMMARY:{escape_text(event.title)}",
        f"DESCRIPTION:{escape_text(event.description)}",
        f"LOCATION:{escape_text(event.location)}",
    ]

    if event.alarm_minutes_before:
        lines.extend(
            [
                "BEGIN:VALARM",
                f"TRIGGER:-PT{event.alarm_minutes_before}M",
                "ACTION:DISPLAY",
                f"DESCRIPTION:{escape_text(f'Reminder: {event.title}')}",
                "END:VALARM",
            ]
        )

    lines.append("END:VEVENT")
    return lines


def render(events: Iterable[CalendarEvent], now: Optional[datetime] = None) -> str:
    """Render events into a complete VCALENDAR document.

    Raises NothingToExportError when there are no events.
    """
    events = list(events)
    if not events:
        raise NothingToExportError()

    if now is None:
        now = datetime.now(timezone.utc)

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODUCT_ID}",
        "CALSCALE:GREGORIAN",
    ]
    for event in events:
        lines.extend(render_event(event, now))
    lines.append("END:VCALENDAR")

    logger.debug(f"Rendered calendar with {len(events)} events")
    return CRLF.join(fold_line(line) for line in lines) + CRLF


def deliver(text: str, directory: Path, filename: str = DEFAULT_FILENAME) -> Path:
    """Write a rendered calendar to ``directory/filename`` and return the path."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename

    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(text)

    logger.info(f"Wrote calendar ({MIME_TYPE}) to {path}")
    return path
