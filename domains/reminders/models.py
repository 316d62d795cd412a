"""Reminder-bearing records: tasks and habits."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Optional, Protocol

import config


def new_record_id() -> str:
    """Stable identifier used as the notification registration key."""
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(config.TIMEZONE)


class ReminderRecord(Protocol):
    """Fields shared by every record that can carry a reminder."""
    id: str
    title: Optional[str]
    notification_enabled: bool
    reminder_minutes: int


@dataclass
class Task:
    """A to-do item with an optional due date."""
    title: Optional[str]
    due_date: Optional[datetime] = None
    completed: bool = False
    is_priority: bool = False
    notification_enabled: bool = False
    reminder_minutes: int = config.DEFAULT_TASK_REMINDER_MINUTES
    id: str = field(default_factory=new_record_id)
    creation_date: datetime = field(default_factory=_now)


@dataclass
class HabitCompletion:
    """One day a habit was done."""
    habit_id: str
    date: datetime
    id: str = field(default_factory=new_record_id)


@dataclass
class Habit:
    """A daily habit; only the hour/minute of target_time matter."""
    title: Optional[str]
    target_time: Optional[time] = None
    color: Optional[str] = None
    notification_enabled: bool = False
    reminder_minutes: int = config.DEFAULT_HABIT_REMINDER_MINUTES
    completions: list[HabitCompletion] = field(default_factory=list)
    id: str = field(default_factory=new_record_id)
    creation_date: datetime = field(default_factory=_now)

    def completed_on(self, day) -> bool:
        """Whether the habit has a completion on the given calendar day."""
        return any(c.date.date() == day for c in self.completions)
