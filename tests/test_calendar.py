from datetime import datetime, timezone

import pytest

from interntracker.calendar_events import encode, encode_all
from interntracker.ics_export import (
    NothingToExportError,
    deliver,
    escape_text,
    fold_line,
    format_timestamp,
    render,
)

STAMP = datetime(2024, 5, 1, 8, 30)


def _events(text: str) -> list[str]:
    return text.split("BEGIN:VEVENT")[1:]


def test_deadline_only_record(make_record) -> None:
    events = list(encode(make_record(deadline="2024-06-01")))
    assert len(events) == 1
    assert events[0].start == events[0].end == datetime(2024, 6, 1)
    assert events[0].alarm_minutes_before is None
    assert events[0].location == ""

    text = render(events, STAMP)
    assert len(_events(text)) == 1
    assert "SUMMARY:Application Deadline: Acme - SWE Intern\r\n" in text
    assert "DTSTART:20240601T000000Z\r\n" in text
    assert "DTEND:20240601T000000Z\r\n" in text
    assert "VALARM" not in text


def test_interview_only_record(make_record) -> None:
    events = list(encode(make_record(interview_date="2024-06-01T10:00:00")))
    assert len(events) == 1
    assert events[0].location == "Check email for details"

    text = render(events, STAMP)
    assert "DTSTART:20240601T100000Z\r\n" in text
    assert "DTEND:20240601T110000Z\r\n" in text
    assert "BEGIN:VALARM\r\nTRIGGER:-PT60M\r\nACTION:DISPLAY\r\n" in text
    assert "DESCRIPTION:Reminder: Interview: Acme - SWE Intern\r\nEND:VALARM\r\nEND:VEVENT" in text


def test_record_location_used_for_both_events(make_record) -> None:
    record = make_record(
        deadline="2024-06-01", interview_date="2024-06-10T15:00:00", location="Remote"
    )
    assert [e.location for e in encode(record)] == ["Remote", "Remote"]


def test_acme_calendar_scenario(make_record) -> None:
    record = make_record(deadline="2024-07-01", status="applied")
    text = render(encode(record), STAMP)
    assert "SUMMARY:Application Deadline: Acme - SWE Intern" in text
    assert "DTSTART:20240701T000000Z" in text
    assert "DTEND:20240701T000000Z" in text
    assert "BEGIN:VALARM" not in text


def test_document_structure(make_record) -> None:
    record = make_record(deadline="2024-06-01", interview_date="2024-06-05T09:00:00")
    text = render(encode(record), STAMP)
    lines = text.split("\r\n")
    assert lines[:4] == [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//InternTracker//EN",
        "CALSCALE:GREGORIAN",
    ]
    assert lines[-2:] == ["END:VCALENDAR", ""]
    assert text.count("BEGIN:VEVENT") == 2
    assert "DTSTAMP:20240501T083000Z" in lines
    assert "\n" not in text.replace("\r\n", "")

    uids = [line for line in lines if line.startswith("UID:")]
    assert len(set(uids)) == 2
    assert all(uid.endswith("@interntracker") for uid in uids)


def test_encode_is_restartable(make_record) -> None:
    record = make_record(deadline="2024-06-01", interview_date="2024-06-05T09:00:00")
    assert list(encode(record)) == list(encode(record))


def test_encoding_is_identical_apart_from_uid(make_record) -> None:
    record = make_record(deadline="2024-06-01", interview_date="2024-06-05T09:00:00")

    def without_uid(text: str) -> list[str]:
        return [line for line in text.split("\r\n") if not line.startswith("UID:")]

    first = render(encode(record), STAMP)
    second = render(encode(record), STAMP)
    assert first != second
    assert without_uid(first) == without_uid(second)


def test_empty_export_signals_nothing_to_export(make_record) -> None:
    with pytest.raises(NothingToExportError, match="No events to export"):
        render([])
    with pytest.raises(NothingToExportError):
        render(encode_all([make_record(), make_record(id="r2", deadline="soon")]))


def test_format_timestamp() -> None:
    assert format_timestamp(datetime(2024, 7, 1, 9, 5, 7, 123456)) == "20240701T090507Z"
    aware = datetime(2024, 7, 1, 11, 0, tzinfo=timezone.utc)
    assert format_timestamp(aware) == "20240701T110000Z"


def test_text_values_are_escaped(make_record) -> None:
    assert escape_text("a,b;c\\d\ne") == r"a\,b\;c\\d\ne"

    record = make_record(company="Acme, Inc.", deadline="2024-06-01", location="NYC; Floor 3")
    text = render(encode(record), STAMP)
    assert "SUMMARY:Application Deadline: Acme\\, Inc. - SWE Intern" in text
    assert r"LOCATION:NYC\; Floor 3" in text


def test_long_lines_are_folded() -> None:
    line = "DESCRIPTION:" + "x" * 150
    folded = fold_line(line)
    parts = folded.split("\r\n")
    assert len(parts) == 3
    assert all(len(part.encode("utf-8")) <= 75 for part in parts)
    assert all(part.startswith(" ") for part in parts[1:])
    assert folded.replace("\r\n ", "") == line


def test_folding_keeps_multibyte_characters_whole() -> None:
    line = "SUMMARY:" + "é" * 60
    folded = fold_line(line)
    assert all(len(part.encode("utf-8")) <= 75 for part in folded.split("\r\n"))
    assert folded.replace("\r\n ", "") == line


def test_deliver_writes_crlf_file(tmp_path, make_record) -> None:
    text = render(encode(make_record(deadline="2024-06-01")), STAMP)
    path = deliver(text, tmp_path / "out")
    assert path.name == "internship-events.ics"
    assert path.read_bytes() == text.encode("utf-8")
    assert b"\r\n" in path.read_bytes()
