"""Calendar events derived from application deadlines and interviews."""

from datetime import timedelta
from typing import Iterable, Iterator

from .models import ApplicationRecord, CalendarEvent

INTERVIEW_LENGTH = timedelta(hours=1)
INTERVIEW_ALARM_MINUTES = 60
INTERVIEW_LOCATION_FALLBACK = "Check email for details"


def encode(record: ApplicationRecord) -> Iterator[CalendarEvent]:
    """Yield the deadline and interview events for one record."""
    deadline = record.deadline_at
    if deadline is not None:
        yield CalendarEvent(
            title=f"Application Deadline: {record.company} - {record.position}",
            start=deadline,
            end=deadline,
            description=f"Deadline for {record.position} position at {record.company}",
            location=record.location or "",
        )

    interview = record.interview_at
    if interview is not None:
        yield CalendarEvent(
            title=f"Interview: {record.company} - {record.position}",
            start=interview,
            end=interview + INTERVIEW_LENGTH,
            description=f"Interview for {record.position} position at {record.company}",
            location=record.location or INTERVIEW_LOCATION_FALLBACK,
            alarm_minutes_before=INTERVIEW_ALARM_MINUTES,
        )


def encode_all(records: Iterable[ApplicationRecord]) -> Iterator[CalendarEvent]:
    for record in records:
        yield from encode(record)
