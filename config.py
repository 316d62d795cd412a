"""Global configuration for the productivity reminder engine."""

import os
from pathlib import Path
from zoneinfo import ZoneInfo
from dotenv import load_dotenv

load_dotenv()

# Storage
DATA_DIR = Path(os.getenv("LOCALAPPDATA", ".")) / "productivity-app"
REMINDER_STORE_DB = os.getenv("REMINDER_STORE_DB", str(DATA_DIR / "records.db"))

# Seed sample tasks/habits on first run (empty store)
SEED_EXAMPLE_DATA = os.getenv("SEED_EXAMPLE_DATA", "true").lower() == "true"

# Clock - all due dates and habit times are interpreted in this zone
TIMEZONE = ZoneInfo(os.getenv("REMINDER_TIMEZONE", "Europe/London"))

# Notifications - stands in for the OS permission prompt
NOTIFICATIONS_ALLOWED = os.getenv("NOTIFICATIONS_ALLOWED", "true").lower() == "true"

# Reminder lead times (minutes)
DEFAULT_TASK_REMINDER_MINUTES = int(os.getenv("DEFAULT_TASK_REMINDER_MINUTES", 30))
DEFAULT_HABIT_REMINDER_MINUTES = int(os.getenv("DEFAULT_HABIT_REMINDER_MINUTES", 15))
REMINDER_OPTIONS = [5, 10, 15, 30, 60, 120, 180, 1440]  # 1440 = 24h

# Habits without a target time are reminded relative to 20:00
DEFAULT_HABIT_HOUR = 20
DEFAULT_HABIT_MINUTE = 0

# Logging
LOG_DIR = DATA_DIR / "logs"
LOG_DIR.mkdir(parents=True, exist_ok=True)
