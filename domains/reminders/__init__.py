"""Reminder scheduling for tasks and habits.

Uses APScheduler jobs as the pending notification set, rebuilt from the
SQLite record store on every start.
"""

from .models import Task, Habit, HabitCompletion, ReminderRecord
from .triggers import (
    Fire,
    SUPPRESSED,
    OneShot,
    Recurring,
    compute_task_trigger,
    compute_habit_trigger,
    format_lead_time,
)
from .dispatcher import (
    AuthorizationStatus,
    APSchedulerDispatcher,
    DispatcherError,
    NotificationContent,
    NotificationDispatcher,
)
from .store import RecordStore, StoreError
from .scheduler import ReminderScheduler
from .reconcile import RestoreResult, restore_scheduled_reminders
from .handler import reload_reminders_on_startup

__all__ = [
    "Task",
    "Habit",
    "HabitCompletion",
    "ReminderRecord",
    "Fire",
    "SUPPRESSED",
    "OneShot",
    "Recurring",
    "compute_task_trigger",
    "compute_habit_trigger",
    "format_lead_time",
    "AuthorizationStatus",
    "APSchedulerDispatcher",
    "DispatcherError",
    "NotificationContent",
    "NotificationDispatcher",
    "RecordStore",
    "StoreError",
    "ReminderScheduler",
    "RestoreResult",
    "restore_scheduled_reminders",
    "reload_reminders_on_startup",
]
