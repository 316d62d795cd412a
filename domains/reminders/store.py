"""SQLite record store for tasks and habits.

The reminder engine only reads from here; it never caches what it reads, so
every query reflects the current state of the records.
"""

import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, time
from pathlib import Path
from typing import Optional, Union

import config
from logger import logger
from .models import Habit, HabitCompletion, Task

Record = Union[Task, Habit]


class StoreError(Exception):
    """A fetch or save against the record store failed."""


@dataclass(frozen=True)
class Predicate:
    """A named query against one entity table."""
    entity: str  # "task" or "habit"
    where: str = "1 = 1"
    params: tuple = ()
    order_by: str = "creation_date ASC"


def tasks_pending_reminder(now: Optional[datetime] = None) -> Predicate:
    """Tasks with notifications on, not completed, due strictly after now."""
    now = now or datetime.now(config.TIMEZONE)
    return Predicate(
        "task",
        "notification_enabled = 1 AND completed = 0 AND due_date IS NOT NULL AND due_date > ?",
        (now.timestamp(),),
        "due_date ASC",
    )


def open_tasks() -> Predicate:
    """Every task that is not completed."""
    return Predicate("task", "completed = 0")


def all_tasks() -> Predicate:
    return Predicate("task")


def habits_with_notifications() -> Predicate:
    return Predicate("habit", "notification_enabled = 1")


def all_habits() -> Predicate:
    return Predicate("habit")


def _to_timestamp(value: Optional[datetime]) -> Optional[float]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=config.TIMEZONE)
    return value.timestamp()


def _from_timestamp(value: Optional[float]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(value, config.TIMEZONE)


def _time_to_text(value: Optional[time]) -> Optional[str]:
    return value.strftime("%H:%M") if value else None


def _text_to_time(value: Optional[str]) -> Optional[time]:
    if not value:
        return None
    hour, minute = value.split(":")
    return time(int(hour), int(minute))


class RecordStore:
    """Transactional store exposing fetch-by-predicate and save."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or config.REMINDER_STORE_DB
        self._connection: Optional[sqlite3.Connection] = None

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._connection is not None:
            return self._connection

        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            self._connection = sqlite3.connect(self.db_path, timeout=10.0)
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA foreign_keys = ON")
            self._init_schema(self._connection)
        except sqlite3.Error as e:
            self._connection = None
            raise StoreError(f"Failed to open record store {self.db_path}: {e}") from e

        logger.info(f"Record store initialized: {self.db_path}")
        return self._connection

    @staticmethod
    def _init_schema(conn: sqlite3.Connection) -> None:
        """Create tables if they don't exist."""
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS task (
                id TEXT PRIMARY KEY,
                title TEXT,
                due_date REAL,
                completed INTEGER NOT NULL DEFAULT 0,
                is_priority INTEGER NOT NULL DEFAULT 0,
                notification_enabled INTEGER NOT NULL DEFAULT 0,
                reminder_minutes INTEGER NOT NULL DEFAULT 0,
                creation_date REAL NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_task_due ON task(due_date);

            CREATE TABLE IF NOT EXISTS habit (
                id TEXT PRIMARY KEY,
                title TEXT,
                target_time TEXT,
                color TEXT,
                notification_enabled INTEGER NOT NULL DEFAULT 0,
                reminder_minutes INTEGER NOT NULL DEFAULT 0,
                creation_date REAL NOT NULL
            );

            CREATE TABLE IF NOT EXISTS habit_completion (
                id TEXT PRIMARY KEY,
                habit_id TEXT NOT NULL REFERENCES habit(id) ON DELETE CASCADE,
                date REAL NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_completion_habit ON habit_completion(habit_id);
        """)
        conn.commit()

    @contextmanager
    def _transaction(self):
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(str(e)) from e

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    # --- Queries ---

    def fetch(self, predicate: Predicate) -> list[Record]:
        """Fetch all records matching a predicate.

        Raises:
            StoreError: If the query fails
        """
        if predicate.entity not in ("task", "habit"):
            raise StoreError(f"Unknown entity: {predicate.entity}")

        conn = self._get_connection()
        try:
            rows = conn.execute(
                f"SELECT * FROM {predicate.entity} WHERE {predicate.where} ORDER BY {predicate.order_by}",
                predicate.params
            ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Fetch failed for {predicate.entity}: {e}") from e

        if predicate.entity == "task":
            return [self._row_to_task(row) for row in rows]
        return [self._row_to_habit(conn, row) for row in rows]

    def get_task(self, task_id: str) -> Optional[Task]:
        row = self._get_connection().execute("SELECT * FROM task WHERE id = ?", (task_id,)).fetchone()
        return self._row_to_task(row) if row else None

    def get_habit(self, habit_id: str) -> Optional[Habit]:
        conn = self._get_connection()
        row = conn.execute("SELECT * FROM habit WHERE id = ?", (habit_id,)).fetchone()
        return self._row_to_habit(conn, row) if row else None

    def count(self, entity: str) -> int:
        if entity not in ("task", "habit"):
            raise StoreError(f"Unknown entity: {entity}")
        return self._get_connection().execute(f"SELECT COUNT(*) FROM {entity}").fetchone()[0]

    # --- Writes ---

    def save(self, record: Record) -> None:
        """Insert or update a task or habit (habit completions included)."""
        with self._transaction() as conn:
            if isinstance(record, Task):
                conn.execute(
                    """
                    INSERT OR REPLACE INTO task
                    (id, title, due_date, completed, is_priority, notification_enabled,
                     reminder_minutes, creation_date)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.id, record.title, _to_timestamp(record.due_date),
                        int(record.completed), int(record.is_priority),
                        int(record.notification_enabled), record.reminder_minutes,
                        _to_timestamp(record.creation_date),
                    )
                )
            elif isinstance(record, Habit):
                # Upsert rather than REPLACE so completions are not cascaded away
                conn.execute(
                    """
                    INSERT INTO habit
                    (id, title, target_time, color, notification_enabled, reminder_minutes, creation_date)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        title = excluded.title,
                        target_time = excluded.target_time,
                        color = excluded.color,
                        notification_enabled = excluded.notification_enabled,
                        reminder_minutes = excluded.reminder_minutes
                    """,
                    (
                        record.id, record.title, _time_to_text(record.target_time), record.color,
                        int(record.notification_enabled), record.reminder_minutes,
                        _to_timestamp(record.creation_date),
                    )
                )
                conn.execute("DELETE FROM habit_completion WHERE habit_id = ?", (record.id,))
                conn.executemany(
                    "INSERT INTO habit_completion (id, habit_id, date) VALUES (?, ?, ?)",
                    [(c.id, record.id, _to_timestamp(c.date)) for c in record.completions]
                )
            else:
                raise StoreError(f"Cannot save {type(record).__name__}")

    def delete(self, record: Record) -> None:
        table = "task" if isinstance(record, Task) else "habit"
        with self._transaction() as conn:
            conn.execute(f"DELETE FROM {table} WHERE id = ?", (record.id,))

    # --- Row mapping ---

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            title=row["title"],
            due_date=_from_timestamp(row["due_date"]),
            completed=bool(row["completed"]),
            is_priority=bool(row["is_priority"]),
            notification_enabled=bool(row["notification_enabled"]),
            reminder_minutes=row["reminder_minutes"],
            creation_date=_from_timestamp(row["creation_date"]),
        )

    @staticmethod
    def _row_to_habit(conn: sqlite3.Connection, row: sqlite3.Row) -> Habit:
        completions = [
            HabitCompletion(id=c["id"], habit_id=c["habit_id"], date=_from_timestamp(c["date"]))
            for c in conn.execute(
                "SELECT * FROM habit_completion WHERE habit_id = ? ORDER BY date ASC",
                (row["id"],)
            ).fetchall()
        ]
        return Habit(
            id=row["id"],
            title=row["title"],
            target_time=_text_to_time(row["target_time"]),
            color=row["color"],
            notification_enabled=bool(row["notification_enabled"]),
            reminder_minutes=row["reminder_minutes"],
            completions=completions,
            creation_date=_from_timestamp(row["creation_date"]),
        )
