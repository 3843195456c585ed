"""Timing classification of a completed submission against assignment dates."""
from __future__ import annotations

from datetime import datetime, time, timezone
from enum import Enum

_END_OF_DAY = time(23, 59, 59, 999000)


class CompletionStatus(str, Enum):
    BEFORE_ASSIGNMENT = 'BEFORE_ASSIGNMENT'
    ON_TIME = 'ON_TIME'
    LATE = 'LATE'


def _as_naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def due_deadline(due_date: datetime) -> datetime:
    """The last instant still on time: 23:59:59.999 UTC on the due day."""
    return datetime.combine(_as_naive_utc(due_date).date(), _END_OF_DAY)


def classify(
    submission_time: datetime,
    assign_date: datetime | None = None,
    due_date: datetime | None = None,
) -> CompletionStatus:
    """Classify a submission as before the assignment, on time, or late.

    A missing bound skips its check, so a submission is never before/late
    without a date to compare against.
    """
    submission_time = _as_naive_utc(submission_time)
    assign_date = _as_naive_utc(assign_date)

    if assign_date is not None and submission_time < assign_date:
        return CompletionStatus.BEFORE_ASSIGNMENT
    if due_date is not None and submission_time > due_deadline(due_date):
        return CompletionStatus.LATE
    return CompletionStatus.ON_TIME
