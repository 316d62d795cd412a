"""Sample records for a first run."""

from datetime import datetime, timedelta

import config
from logger import logger
from .models import Habit, HabitCompletion, Task
from .store import RecordStore

EXAMPLE_TASKS = [
    "Do the shopping",
    "Call the doctor",
    "Prepare the presentation",
    "Answer emails",
    "Revise for the exam",
]

EXAMPLE_HABITS = [
    ("Meditation", "HabitBlue"),
    ("Reading", "HabitGreen"),
    ("Exercise", "HabitOrange"),
]


def seed_example_data(store: RecordStore, now: datetime = None) -> bool:
    """Fill an empty store with example tasks and habits.

    Returns:
        True if data was added, False if the store already had tasks
    """
    if store.count("task") > 0:
        return False

    now = now or datetime.now(config.TIMEZONE)

    for index, title in enumerate(EXAMPLE_TASKS):
        store.save(Task(
            title=title,
            completed=index > 3,
            is_priority=index < 2,
            creation_date=now,
        ))

    for index, (title, color) in enumerate(EXAMPLE_HABITS):
        habit = Habit(title=title, color=color, creation_date=now)
        # Vary which of the last three days each habit was done
        for day in range(1, 4):
            if day % (index + 1) == 0:
                habit.completions.append(
                    HabitCompletion(habit_id=habit.id, date=now - timedelta(days=day))
                )
        store.save(habit)

    logger.info(f"Seeded {len(EXAMPLE_TASKS)} example tasks and {len(EXAMPLE_HABITS)} habits")
    return True
