"""Alert rules evaluated against a single application record."""

import logging
import math
from datetime import datetime, timedelta
from typing import Callable, Optional

from .models import (
    Alert,
    AlertKind,
    ApplicationRecord,
    ApplicationStatus,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

DAY = timedelta(days=1)
HOUR = timedelta(hours=1)

# Days before the deadline that trigger a reminder
DEADLINE_MESSAGES = {
    7: "Application deadline for {company} is in 1 week!",
    3: "Application deadline for {company} is in 3 days!",
    1: "Application deadline for {company} is tomorrow!",
}

# Hours before the interview that trigger a reminder
INTERVIEW_MESSAGES = {
    24: "Interview with {company} is tomorrow! Time to prepare!",
    2: "Interview with {company} is in 2 hours! Good luck!",
}

FOLLOWUP_DAYS = 1
FOLLOWUP_MESSAGE = "Send a thank you email to {company}!"

Rule = Callable[[ApplicationRecord, datetime], list[Alert]]


def alert_id(record_id: str, kind: AlertKind, bucket: Optional[int] = None) -> str:
    """Deterministic alert identity for a record and trigger bucket.

    Single-trigger kinds such as the follow-up carry no bucket, giving ids
    like ``r1-followup``.
    """
    if bucket is None:
        return f"{record_id}-{kind.value}"
    return f"{record_id}-{kind.value}-{bucket}"


def _make_alert(
    record: ApplicationRecord,
    kind: AlertKind,
    bucket: Optional[int],
    message: str,
    now: datetime,
) -> Alert:
    return Alert(
        id=alert_id(record.id, kind, bucket),
        kind=kind,
        message=message.format(company=record.company),
        created_at=now,
        record_id=record.id,
    )


def _units_until(target: datetime, now: datetime, unit: timedelta) -> int:
    return math.ceil((target - now) / unit)


def _units_since(target: datetime, now: datetime, unit: timedelta) -> int:
    return math.floor((now - target) / unit)


def _parsed(record: ApplicationRecord, field: str) -> Optional[datetime]:
    raw = getattr(record, field)
    value = parse_timestamp(raw)
    if raw and value is None:
        logger.debug(f"Skipping unparsable {field} {raw!r} on record {record.id}")
    return value


def deadline_rule(record: ApplicationRecord, now: datetime) -> list[Alert]:
    """Reminders 7, 3 and 1 days before the application deadline."""
    deadline = _parsed(record, "deadline")
    if deadline is None:
        return []

    days = _units_until(deadline, now, DAY)
    message = DEADLINE_MESSAGES.get(days)
    if message is None:
        return []
    return [_make_alert(record, AlertKind.DEADLINE, days, message, now)]


def interview_rule(record: ApplicationRecord, now: datetime) -> list[Alert]:
    """Reminders 24 and 2 hours before a scheduled interview."""
    if record.status != ApplicationStatus.INTERVIEW:
        return []
    interview = _parsed(record, "interview_date")
    if interview is None:
        return []

    hours = _units_until(interview, now, HOUR)
    message = INTERVIEW_MESSAGES.get(hours)
    if message is None:
        return []
    return [_make_alert(record, AlertKind.INTERVIEW, hours, message, now)]


def followup_rule(record: ApplicationRecord, now: datetime) -> list[Alert]:
    """Thank-you reminder the day after an interview."""
    if record.status != ApplicationStatus.INTERVIEW:
        return []
    interview = _parsed(record, "interview_date")
    if interview is None:
        return []

    if _units_since(interview, now, DAY) != FOLLOWUP_DAYS:
        return []
    return [_make_alert(record, AlertKind.FOLLOWUP, None, FOLLOWUP_MESSAGE, now)]


RULES: list[Rule] = [deadline_rule, interview_rule, followup_rule]


def evaluate(record: ApplicationRecord, now: datetime) -> list[Alert]:
    """Run every rule against one record."""
    alerts = []
    for rule in RULES:
        alerts.extend(rule(record, now))
    return alerts
