"""Application statistics and record filtering."""

import math
from datetime import datetime
from typing import Iterable

from pydantic import BaseModel

from .models import ApplicationRecord, ApplicationStatus, parse_timestamp


class ApplicationStats(BaseModel):
    total: int = 0
    applied: int = 0
    interview: int = 0
    offer: int = 0
    rejected: int = 0
    accepted: int = 0
    success_rate: int = 0
    interview_rate: int = 0
    offer_rate: int = 0
    acceptance_rate: int = 0


def percentage(part: int, whole: int) -> int:
    """Whole-number percentage, rounding halves up. Zero when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return math.floor(part * 100 / whole + 0.5)


def compute_stats(records: Iterable[ApplicationRecord]) -> ApplicationStats:
    counts = {status: 0 for status in ApplicationStatus}
    for record in records:
        counts[record.status] += 1

    total = sum(counts.values())
    applied = counts[ApplicationStatus.APPLIED]
    interview = counts[ApplicationStatus.INTERVIEW]
    offer = counts[ApplicationStatus.OFFER]
    rejected = counts[ApplicationStatus.REJECTED]
    accepted = counts[ApplicationStatus.ACCEPTED]

    return ApplicationStats(
        total=total,
        applied=applied,
        interview=interview,
        offer=offer,
        rejected=rejected,
        accepted=accepted,
        success_rate=percentage(offer + accepted, total),
        interview_rate=percentage(interview, total),
        offer_rate=percentage(offer, interview),
        acceptance_rate=percentage(accepted, offer),
    )


def filter_records(
    records: Iterable[ApplicationRecord], search: str = "", status: str = "all"
) -> list[ApplicationRecord]:
    """Case-insensitive search over company, position and location."""
    needle = search.lower()
    matches = []
    for record in records:
        if status != "all" and record.status.value != status:
            continue
        haystacks = [record.company, record.position, record.location or ""]
        if needle and not any(needle in h.lower() for h in haystacks):
            continue
        matches.append(record)
    return matches


SORT_KEYS = ("dateAdded", "company", "status")

_EPOCH = datetime(1970, 1, 1)


def _added_at(record: ApplicationRecord) -> datetime:
    return parse_timestamp(record.date_added) or _EPOCH


def sort_records(
    records: Iterable[ApplicationRecord], sort_by: str = "dateAdded"
) -> list[ApplicationRecord]:
    """Newest first by ``dateAdded``; alphabetical by ``company`` or ``status``.

    Records without a usable ``dateAdded`` sort as if added at the epoch.
    """
    if sort_by == "company":
        return sorted(records, key=lambda r: r.company.casefold())
    if sort_by == "status":
        return sorted(records, key=lambda r: r.status.value)
    if sort_by == "dateAdded":
        return sorted(records, key=_added_at, reverse=True)
    raise ValueError(f"sort_by must be one of {list(SORT_KEYS)}")
