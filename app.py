#!/usr/bin/env python3
"""
Reminder engine entry point.

`run` starts the scheduler, rebuilds every reminder from the record store
and keeps the process alive so reminders can fire. The other commands edit
records; a running engine picks changes up on its next start.
"""
import argparse
import asyncio
import sys
from datetime import datetime, time

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from dateutil.parser import parse as parse_datetime

import config
from logger import logger
from domains.reminders.dispatcher import APSchedulerDispatcher
from domains.reminders.handler import reload_reminders_on_startup
from domains.reminders.models import Habit, Task
from domains.reminders.scheduler import ReminderScheduler
from domains.reminders.seed import seed_example_data
from domains.reminders.store import RecordStore, all_habits, all_tasks
from domains.reminders.triggers import format_lead_time


async def run_engine(store: RecordStore, seed: bool):
    """Start the scheduler, restore reminders, then wait forever."""
    if seed and seed_example_data(store):
        print("Added example tasks and habits")

    scheduler = AsyncIOScheduler(timezone=config.TIMEZONE)
    scheduler.start()

    dispatcher = APSchedulerDispatcher(scheduler)
    reminders = ReminderScheduler(dispatcher, store)

    result = await reload_reminders_on_startup(reminders, store)
    logger.info(f"Startup restored {result.tasks} task and {result.habits} habit reminders")
    print(f"Restored {result.tasks} task and {result.habits} habit reminders")
    for error in result.errors:
        print(f"  error: {error}")

    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)


def parse_due(value: str) -> datetime:
    """Parse a due date, assuming the configured timezone when none is given."""
    due = parse_datetime(value)
    if due.tzinfo is None:
        due = due.replace(tzinfo=config.TIMEZONE)
    return due


def parse_time_of_day(value: str) -> time:
    hour, _, minute = value.partition(":")
    return time(int(hour), int(minute or 0))


def print_records(store: RecordStore):
    for task in store.fetch(all_tasks()):
        status = "x" if task.completed else " "
        due = task.due_date.strftime("%a %d %b %H:%M") if task.due_date else "no due date"
        remind = f" (remind {format_lead_time(task.reminder_minutes)} before)" if task.notification_enabled else ""
        print(f"[{status}] {task.id[:8]}  {task.title} - {due}{remind}")

    for habit in store.fetch(all_habits()):
        at = habit.target_time.strftime("%H:%M") if habit.target_time else "--:--"
        remind = f" (remind {format_lead_time(habit.reminder_minutes)} before)" if habit.notification_enabled else ""
        print(f"  ~ {habit.id[:8]}  {habit.title} at {at}{remind}")


def find_task(store: RecordStore, id_prefix: str) -> Task | None:
    for task in store.fetch(all_tasks()):
        if task.id.startswith(id_prefix):
            return task
    return None


def main():
    parser = argparse.ArgumentParser(description="Task and habit reminder engine")
    parser.add_argument("--db", type=str, default=config.REMINDER_STORE_DB, help="Record store path")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Restore reminders and keep running")
    run.add_argument("--no-seed", action="store_true", help="Don't add example data to an empty store")

    add_task = sub.add_parser("add-task", help="Add a task")
    add_task.add_argument("title")
    add_task.add_argument("--due", type=parse_due, help="Due date, e.g. '2026-10-20 09:00'")
    add_task.add_argument("--remind", type=int, help="Minutes before the due date to remind")

    add_habit = sub.add_parser("add-habit", help="Add a daily habit")
    add_habit.add_argument("title")
    add_habit.add_argument("--at", type=parse_time_of_day, help="Target time, HH:MM")
    add_habit.add_argument("--remind", type=int, help="Minutes before the target time to remind")

    complete = sub.add_parser("complete", help="Mark a task completed")
    complete.add_argument("task_id", help="Task ID or prefix")

    sub.add_parser("list", help="List tasks and habits")

    args = parser.parse_args()
    store = RecordStore(args.db)

    try:
        if args.command == "run":
            asyncio.run(run_engine(store, seed=config.SEED_EXAMPLE_DATA and not args.no_seed))
        elif args.command == "add-task":
            task = Task(
                title=args.title,
                due_date=args.due,
                notification_enabled=args.remind is not None,
                reminder_minutes=args.remind if args.remind is not None else config.DEFAULT_TASK_REMINDER_MINUTES,
            )
            store.save(task)
            print(f"Added task {task.id[:8]}")
        elif args.command == "add-habit":
            habit = Habit(
                title=args.title,
                target_time=args.at,
                notification_enabled=args.remind is not None,
                reminder_minutes=args.remind if args.remind is not None else config.DEFAULT_HABIT_REMINDER_MINUTES,
            )
            store.save(habit)
            print(f"Added habit {habit.id[:8]}")
        elif args.command == "complete":
            task = find_task(store, args.task_id)
            if task is None:
                print(f"No task matching {args.task_id}")
                sys.exit(1)
            task.completed = True
            store.save(task)
            print(f"Completed: {task.title}")
        elif args.command == "list":
            print_records(store)
    except KeyboardInterrupt:
        pass
    finally:
        store.close()


if __name__ == "__main__":
    main()
