"""Compute when a reminder should fire.

Task reminders are one-shot: the due date minus the lead time, dropped to
minute precision. Habit reminders are a time of day that repeats daily.
"""

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Optional, Union

import config

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class Fire:
    """The reminder should fire once at `at`."""
    at: datetime


class Suppressed:
    """No reminder: the lead window has already elapsed."""

    def __repr__(self) -> str:
        return "SUPPRESSED"


SUPPRESSED = Suppressed()

TaskTrigger = Union[Fire, Suppressed]


@dataclass(frozen=True)
class OneShot:
    """Fire spec for a single absolute instant."""
    at: datetime


@dataclass(frozen=True)
class Recurring:
    """Fire spec for every day at hour:minute."""
    hour: int
    minute: int


FireSpec = Union[OneShot, Recurring]


def _check_lead(lead_minutes: int) -> None:
    if lead_minutes < 0:
        raise ValueError(f"Lead time must be non-negative, got {lead_minutes}")


def _aware(value: datetime) -> datetime:
    """Naive datetimes are local to the configured timezone."""
    if value.tzinfo is None:
        return value.replace(tzinfo=config.TIMEZONE)
    return value


def compute_task_trigger(
    due_date: datetime,
    lead_minutes: int,
    now: Optional[datetime] = None
) -> TaskTrigger:
    """Work out the one-shot reminder for a task.

    Args:
        due_date: When the task is due
        lead_minutes: How long before the due date to remind
        now: Current instant (defaults to now in the configured timezone)

    Returns:
        Fire at the reminder minute, or SUPPRESSED if that minute is not
        strictly in the future
    """
    _check_lead(lead_minutes)
    now = _aware(now or datetime.now(config.TIMEZONE))

    candidate = _aware(due_date) - timedelta(minutes=lead_minutes)
    if candidate <= now:
        return SUPPRESSED

    # The dispatcher only carries minute precision
    fire_at = candidate.replace(second=0, microsecond=0)
    if fire_at <= now:
        return SUPPRESSED

    return Fire(at=fire_at)


def compute_habit_trigger(
    target_time: Optional[time] = None,
    lead_minutes: int = 0
) -> tuple[int, int]:
    """Work out the daily reminder time for a habit.

    A missing target time means 20:00. Subtracting past midnight wraps
    to the previous day's clock time (00:10 less 30 minutes is 23:40).

    Returns:
        (hour, minute)
    """
    _check_lead(lead_minutes)
    if target_time is None:
        hour, minute = config.DEFAULT_HABIT_HOUR, config.DEFAULT_HABIT_MINUTE
    else:
        hour, minute = target_time.hour, target_time.minute

    total = (hour * 60 + minute - lead_minutes) % MINUTES_PER_DAY
    return divmod(total, 60)


def format_lead_time(minutes: int) -> str:
    """Human label for a lead time, e.g. '30 minutes', '2 hours', '1 day'."""
    if minutes == MINUTES_PER_DAY:
        return "1 day"
    if minutes == 60:
        return "1 hour"
    if minutes > 60 and minutes % 60 == 0 and minutes < MINUTES_PER_DAY:
        return f"{minutes // 60} hours"
    return f"{minutes} minutes"
