"""Human-readable rendering of tasks for the CLI.

Relative times use rough accuracy: a single unit, rounded down, with
thresholds chosen so that "a minute" covers 45-90 seconds, "an hour"
covers 45-90 minutes, and so on.
"""

from __future__ import annotations

from datetime import datetime, timezone

from .models import Task

_MINUTE = 60
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR
_WEEK = 7 * _DAY
_MONTH = 30 * _DAY
_YEAR = 365 * _DAY


def _rough_period(seconds: int) -> str:
    if seconds > 547 * _DAY:
        return f"{max(seconds // _YEAR, 2)} years"
    if seconds > 345 * _DAY:
        return "a year"
    if seconds > 45 * _DAY:
        return f"{max(seconds // _MONTH, 2)} months"
    if seconds > 29 * _DAY:
        return "a month"
    if seconds > 10 * _DAY + 12 * _HOUR:
        return f"{max(seconds // _WEEK, 2)} weeks"
    if seconds > 6 * _DAY + 12 * _HOUR:
        return "a week"
    if seconds > 36 * _HOUR:
        return f"{max(seconds // _DAY, 2)} days"
    if seconds > 22 * _HOUR:
        return "a day"
    if seconds > 90 * _MINUTE:
        return f"{max(seconds // _HOUR, 2)} hours"
    if seconds > 45 * _MINUTE:
        return "an hour"
    if seconds > 90:
        return f"{max(seconds // _MINUTE, 2)} minutes"
    if seconds > 45:
        return "a minute"
    return "a few seconds"


def humanize_time(when: datetime, now: datetime | None = None) -> str:
    """Describe when relative to now, e.g. "3 hours ago" or "in a day".

    Args:
        when: The instant to describe. Naive datetimes are taken as local time.
        now: Reference instant. Defaults to the current time.

    Returns:
        The relative description.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    delta = (now.astimezone() - when.astimezone()).total_seconds()
    period = _rough_period(int(abs(delta)))
    if delta < 0 and period != "a few seconds":
        return f"in {period}"
    return f"{period} ago"


def format_task_line(task: Task, now: datetime | None = None) -> str:
    """Render one task as "<id>) <title> (<relative time>)"."""
    return f"{task.id}) {task.title} ({humanize_time(task.created_at, now)})"
