"""Record mutation hooks.

Every create/update/complete/delete of a task or habit goes through here:
the record is saved first, then its reminder is brought in line. A reminder
that fails to register never undoes the save.
"""

from datetime import datetime, time
from typing import Optional

import config
from logger import logger
from .models import Habit, HabitCompletion, Task
from .reconcile import RestoreResult, restore_scheduled_reminders
from .scheduler import ReminderScheduler
from .store import RecordStore


async def sync_task_reminder(reminders: ReminderScheduler, task: Task) -> bool:
    """Make the task's pending reminder match its current fields."""
    if task.notification_enabled and not task.completed:
        return await reminders.schedule_for_task(task, task.reminder_minutes)
    await reminders.cancel(task.id)
    return False


async def sync_habit_reminder(reminders: ReminderScheduler, habit: Habit) -> bool:
    """Make the habit's pending reminder match its current fields."""
    if habit.notification_enabled:
        return await reminders.schedule_for_habit(habit, habit.reminder_minutes)
    await reminders.cancel(habit.id)
    return False


async def create_task(
    store: RecordStore,
    reminders: ReminderScheduler,
    title: str,
    due_date: Optional[datetime] = None,
    notification_enabled: bool = False,
    reminder_minutes: int = config.DEFAULT_TASK_REMINDER_MINUTES,
    is_priority: bool = False
) -> Task:
    """Create and save a task, scheduling its reminder if enabled."""
    task = Task(
        title=title,
        due_date=due_date,
        notification_enabled=notification_enabled,
        reminder_minutes=reminder_minutes,
        is_priority=is_priority,
    )
    store.save(task)
    logger.info(f"Created task {task.id}: {title}")

    await sync_task_reminder(reminders, task)
    return task


async def update_task(store: RecordStore, reminders: ReminderScheduler, task: Task) -> Task:
    """Save an edited task and replace its reminder."""
    store.save(task)
    await sync_task_reminder(reminders, task)
    return task


async def set_task_completed(
    store: RecordStore,
    reminders: ReminderScheduler,
    task: Task,
    completed: bool
) -> Task:
    """Mark a task done (cancels its reminder) or not done (restores it)."""
    task.completed = completed
    store.save(task)
    logger.info(f"Task {task.id} marked {'completed' if completed else 'open'}")

    await sync_task_reminder(reminders, task)
    return task


async def delete_task(store: RecordStore, reminders: ReminderScheduler, task: Task) -> None:
    store.delete(task)
    await reminders.cancel(task.id)
    logger.info(f"Deleted task {task.id}")


async def create_habit(
    store: RecordStore,
    reminders: ReminderScheduler,
    title: str,
    target_time: Optional[time] = None,
    color: Optional[str] = None,
    notification_enabled: bool = False,
    reminder_minutes: int = config.DEFAULT_HABIT_REMINDER_MINUTES
) -> Habit:
    """Create and save a habit, scheduling its daily reminder if enabled."""
    habit = Habit(
        title=title,
        target_time=target_time,
        color=color,
        notification_enabled=notification_enabled,
        reminder_minutes=reminder_minutes,
    )
    store.save(habit)
    logger.info(f"Created habit {habit.id}: {title}")

    await sync_habit_reminder(reminders, habit)
    return habit


async def update_habit(store: RecordStore, reminders: ReminderScheduler, habit: Habit) -> Habit:
    store.save(habit)
    await sync_habit_reminder(reminders, habit)
    return habit


async def delete_habit(store: RecordStore, reminders: ReminderScheduler, habit: Habit) -> None:
    store.delete(habit)
    await reminders.cancel(habit.id)
    logger.info(f"Deleted habit {habit.id}")


def toggle_habit_completion(store: RecordStore, habit: Habit, when: Optional[datetime] = None) -> bool:
    """Record or remove a completion for the day of `when`.

    Completions do not affect the daily reminder.

    Returns:
        True if the habit is now completed for that day
    """
    when = when or datetime.now(config.TIMEZONE)
    day = when.date()

    if habit.completed_on(day):
        habit.completions = [c for c in habit.completions if c.date.date() != day]
        done = False
    else:
        habit.completions.append(HabitCompletion(habit_id=habit.id, date=when))
        done = True

    store.save(habit)
    return done


async def reload_reminders_on_startup(reminders: ReminderScheduler, store: RecordStore) -> RestoreResult:
    """Request notification permission, then rebuild every reminder.

    Call this once the event loop and scheduler are running.
    """
    granted = await reminders.dispatcher.request_authorization()
    if not granted:
        logger.warning("Notifications not authorized, reminders will not be registered")

    return await restore_scheduled_reminders(reminders, store)
