"""Keep notification triggers in step with tasks and habits.

The scheduler holds no state of its own beyond per-record locks: every
decision is made from the record passed in, and every side effect goes to
the dispatcher. Each schedule call cancels the record's existing trigger
first, so at most one trigger per record ID is ever pending.
"""

import asyncio
from contextlib import asynccontextmanager

from logger import logger
from .dispatcher import AuthorizationStatus, NotificationContent, NotificationDispatcher
from .models import Habit, Task
from .store import RecordStore, StoreError, all_habits, open_tasks
from .triggers import SUPPRESSED, OneShot, Recurring, compute_habit_trigger, compute_task_trigger


def task_content(task: Task) -> NotificationContent:
    return NotificationContent(title="Task reminder", body=f"Don't forget: {task.title}", badge=1)


def habit_content(habit: Habit) -> NotificationContent:
    return NotificationContent(title="Habit reminder", body=f"Time to practise: {habit.title}")


class ReminderScheduler:
    """Orchestrates cancel-then-schedule calls against a dispatcher."""

    def __init__(self, dispatcher: NotificationDispatcher, store: RecordStore):
        self.dispatcher = dispatcher
        self.store = store
        # Serializes cancel + schedule per record ID: id -> [lock, users]
        self._locks: dict[str, list] = {}

    async def schedule_for_task(self, task: Task, lead_minutes: int) -> bool:
        """Replace the task's reminder with one `lead_minutes` before it is due.

        Args:
            task: The task to remind about
            lead_minutes: Minutes before the due date

        Returns:
            True if a trigger was registered
        """
        async with self._record_lock(task.id):
            await self._cancel(task.id)

            if task.completed:
                logger.debug(f"Task {task.id} is completed, no reminder")
                return False
            if not task.title or task.due_date is None:
                logger.debug(f"Task {task.id} has no title or due date, no reminder")
                return False

            trigger = compute_task_trigger(task.due_date, lead_minutes)
            if trigger is SUPPRESSED:
                logger.info(f"Reminder time already passed, not scheduled: {task.title}")
                return False

            return await self._register(task.id, OneShot(at=trigger.at), task_content(task))

    async def schedule_for_habit(self, habit: Habit, lead_minutes: int) -> bool:
        """Replace the habit's reminder with a daily one `lead_minutes` before its target time."""
        async with self._record_lock(habit.id):
            await self._cancel(habit.id)

            if not habit.title:
                logger.debug(f"Habit {habit.id} has no title, no reminder")
                return False

            hour, minute = compute_habit_trigger(habit.target_time, lead_minutes)
            return await self._register(habit.id, Recurring(hour=hour, minute=minute), habit_content(habit))

    async def cancel(self, identifier: str) -> None:
        """Remove any pending reminder for a record. Unknown IDs are ignored."""
        async with self._record_lock(identifier):
            await self._cancel(identifier)

    async def cancel_all(self) -> None:
        """Remove every pending reminder."""
        try:
            await self.dispatcher.cancel_all()
            logger.info("Cancelled all reminders")
        except Exception as e:
            logger.error(f"Failed to cancel all reminders: {e}")

    async def apply_lead_time_to_all_tasks(self, lead_minutes: int) -> int:
        """Reschedule every non-completed task with a new lead time.

        Returns:
            Count of tasks processed (0 if the store could not be read)
        """
        try:
            tasks = self.store.fetch(open_tasks())
        except StoreError as e:
            logger.error(f"Failed to fetch tasks: {e}")
            return 0

        for task in tasks:
            await self.schedule_for_task(task, lead_minutes)

        logger.info(f"Applied {lead_minutes}-minute reminders to {len(tasks)} tasks")
        return len(tasks)

    async def apply_lead_time_to_all_habits(self, lead_minutes: int) -> int:
        """Reschedule every habit with a new lead time.

        Returns:
            Count of habits processed (0 if the store could not be read)
        """
        try:
            habits = self.store.fetch(all_habits())
        except StoreError as e:
            logger.error(f"Failed to fetch habits: {e}")
            return 0

        for habit in habits:
            await self.schedule_for_habit(habit, lead_minutes)

        logger.info(f"Applied {lead_minutes}-minute reminders to {len(habits)} habits")
        return len(habits)

    async def authorization_status(self) -> AuthorizationStatus:
        return await self.dispatcher.get_authorization_status()

    @asynccontextmanager
    async def _record_lock(self, identifier: str):
        """Hold the lock for one record, dropping it once nobody else wants it."""
        entry = self._locks.setdefault(identifier, [asyncio.Lock(), 0])
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[identifier]

    async def _cancel(self, identifier: str) -> None:
        try:
            await self.dispatcher.cancel(identifier)
        except Exception as e:
            logger.warning(f"Failed to cancel reminder {identifier}: {e}")

    async def _register(self, identifier, fire_spec, content: NotificationContent) -> bool:
        try:
            await self.dispatcher.schedule(identifier, fire_spec, content)
        except Exception as e:
            logger.error(f"Failed to schedule reminder {identifier}: {e}")
            return False

        logger.info(f"Scheduled reminder {identifier}: '{content.body}' {fire_spec}")
        return True
