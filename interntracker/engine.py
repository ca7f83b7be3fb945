"""Alert generation and read-state management.

The alert collection is an owned value: every operation here takes the
current collection and returns a new one. Nothing is removed by
``regenerate``; an alert id that already exists is never emitted again.
"""

import logging
from datetime import datetime
from typing import Iterable

from .models import Alert, ApplicationRecord
from .rules import evaluate

logger = logging.getLogger(__name__)


def new_alerts(
    records: Iterable[ApplicationRecord],
    existing: Iterable[Alert],
    now: datetime,
) -> list[Alert]:
    """Return alerts triggered at ``now`` that are not already in ``existing``."""
    seen = {alert.id for alert in existing}
    fresh = []

    for record in records:
        for alert in evaluate(record, now):
            if alert.id in seen:
                continue
            seen.add(alert.id)
            fresh.append(alert)

    return fresh


def regenerate(
    records: Iterable[ApplicationRecord],
    existing: Iterable[Alert],
    now: datetime,
) -> list[Alert]:
    """Merge newly triggered alerts into the collection, preserving order."""
    existing = list(existing)
    fresh = new_alerts(records, existing, now)
    if fresh:
        logger.info(f"Generated {len(fresh)} new alerts")
    else:
        logger.debug("No new alerts")
    return existing + fresh


def unread_count(alerts: Iterable[Alert]) -> int:
    return sum(1 for alert in alerts if not alert.read)


def mark_read(alerts: Iterable[Alert], alert_id: str) -> list[Alert]:
    """Mark a single alert as read. Unknown ids leave the collection as is."""
    updated = []
    for alert in alerts:
        if alert.id == alert_id and not alert.read:
            alert = alert.model_copy(update={"read": True})
        updated.append(alert)
    return updated


def mark_all_read(alerts: Iterable[Alert]) -> list[Alert]:
    return [
        alert if alert.read else alert.model_copy(update={"read": True})
        for alert in alerts
    ]


def recent_first(alerts: Iterable[Alert]) -> list[Alert]:
    """Display order: most recently added first."""
    return list(reversed(list(alerts)))
