"""Rebuild the pending reminder set from the record store.

Whatever the dispatcher held before a restart is stale. On startup every
eligible record is scheduled again from scratch; since each schedule call
cancels before it creates, running this more than once is harmless.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import config
from logger import logger
from .scheduler import ReminderScheduler
from .store import RecordStore, StoreError, habits_with_notifications, tasks_pending_reminder


@dataclass
class RestoreResult:
    """Records processed per kind, plus any store errors hit along the way."""
    tasks: int = 0
    habits: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


async def restore_scheduled_reminders(
    reminders: ReminderScheduler,
    store: RecordStore,
    now: Optional[datetime] = None
) -> RestoreResult:
    """Re-register reminders for every eligible task and habit.

    Args:
        reminders: Scheduler to replay decisions through
        store: Record store to read current state from
        now: Cut-off for task due dates (defaults to now)

    Returns:
        RestoreResult with counts of records processed
    """
    now = now or datetime.now(config.TIMEZONE)
    result = RestoreResult()

    try:
        tasks = store.fetch(tasks_pending_reminder(now))
    except StoreError as e:
        logger.error(f"Failed to restore task reminders: {e}")
        result.errors.append(f"tasks: {e}")
    else:
        for task in tasks:
            await reminders.schedule_for_task(task, task.reminder_minutes)
        result.tasks = len(tasks)
        logger.info(f"Restored {result.tasks} task reminders")

    try:
        habits = store.fetch(habits_with_notifications())
    except StoreError as e:
        logger.error(f"Failed to restore habit reminders: {e}")
        result.errors.append(f"habits: {e}")
    else:
        for habit in habits:
            await reminders.schedule_for_habit(habit, habit.reminder_minutes)
        result.habits = len(habits)
        logger.info(f"Restored {result.habits} habit reminders")

    return result
