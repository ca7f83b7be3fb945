"""Data models for internship application tracking."""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ApplicationStatus(str, Enum):
    APPLIED = "applied"
    INTERVIEW = "interview"
    OFFER = "offer"
    REJECTED = "rejected"
    ACCEPTED = "accepted"


class AlertKind(str, Enum):
    DEADLINE = "deadline"
    INTERVIEW = "interview"
    FOLLOWUP = "followup"
    STATUS = "status"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a record date string into a naive UTC datetime.

    Accepts ``YYYY-MM-DD`` (midnight) and ISO 8601 date+time. Offsets are
    converted to UTC and dropped. Returns None for empty or unparsable input.
    """
    if not value:
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = datetime.combine(date.fromisoformat(text), datetime.min.time())
        except ValueError:
            return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class ApplicationRecord(BaseModel):
    """A tracked internship application, as supplied by the CRUD layer."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    company: str
    position: str
    status: ApplicationStatus = ApplicationStatus.APPLIED
    location: Optional[str] = None
    application_date: Optional[str] = Field(default=None, alias="applicationDate")
    deadline: Optional[str] = None
    interview_date: Optional[str] = Field(default=None, alias="interviewDate")
    salary: Optional[str] = None
    notes: Optional[str] = None
    description: Optional[str] = None
    skills: list[str] = Field(default_factory=list)
    date_added: Optional[str] = Field(default=None, alias="dateAdded")

    @field_validator("company", "position")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @property
    def deadline_at(self) -> Optional[datetime]:
        return parse_timestamp(self.deadline)

    @property
    def interview_at(self) -> Optional[datetime]:
        return parse_timestamp(self.interview_date)


class Alert(BaseModel):
    """A derived notification about an application.

    Serialized by alias, the JSON shape is
    ``{id, type, message, date, internshipId, read}``.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    kind: AlertKind = Field(alias="type")
    message: str
    created_at: datetime = Field(alias="date")
    record_id: str = Field(alias="internshipId")
    read: bool = False


class CalendarEvent(BaseModel):
    """A deadline or interview ready to be written as a VEVENT."""

    title: str
    start: datetime
    end: datetime
    description: str = ""
    location: str = ""
    alarm_minutes_before: Optional[int] = Field(default=None, gt=0)
