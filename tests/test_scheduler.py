"""Tests for the reminder scheduler.

Uses the in-memory FakeDispatcher from conftest; no real scheduler runs.
"""

import asyncio
from datetime import datetime, time, timedelta

import pytest

import config
from domains.reminders.models import Habit, Task
from domains.reminders.store import StoreError
from domains.reminders.triggers import OneShot, Recurring


def _future(**delta) -> datetime:
    return datetime.now(config.TIMEZONE) + timedelta(**delta)


def _task(**kwargs) -> Task:
    kwargs.setdefault("title", "Call the doctor")
    kwargs.setdefault("due_date", _future(days=2))
    kwargs.setdefault("notification_enabled", True)
    return Task(**kwargs)


class TestScheduleForTask:

    @pytest.mark.asyncio
    async def test_registers_one_shot_trigger(self, reminders, dispatcher):
        task = _task()
        assert await reminders.schedule_for_task(task, 30) is True

        fire_spec, content = dispatcher.pending[task.id]
        expected = (task.due_date - timedelta(minutes=30)).replace(second=0, microsecond=0)
        assert fire_spec == OneShot(at=expected)
        assert content.title == "Task reminder"
        assert content.body == "Don't forget: Call the doctor"
        assert content.badge == 1

    @pytest.mark.asyncio
    async def test_cancels_before_scheduling(self, reminders, dispatcher):
        task = _task()
        await reminders.schedule_for_task(task, 30)
        assert dispatcher.calls == [("cancel", task.id), ("schedule", task.id)]

    @pytest.mark.asyncio
    async def test_twice_leaves_one_trigger(self, reminders, dispatcher):
        task = _task()
        await reminders.schedule_for_task(task, 30)
        await reminders.schedule_for_task(task, 30)

        assert list(dispatcher.pending) == [task.id]
        assert dispatcher.overlaps == 0

    @pytest.mark.asyncio
    async def test_reschedule_reflects_latest_lead(self, reminders, dispatcher):
        task = _task()
        await reminders.schedule_for_task(task, 30)
        await reminders.schedule_for_task(task, 60)

        assert len(dispatcher.pending) == 1
        fire_spec, _ = dispatcher.pending[task.id]
        assert fire_spec.at == (task.due_date - timedelta(minutes=60)).replace(second=0, microsecond=0)

    @pytest.mark.asyncio
    async def test_concurrent_calls_for_same_task_never_overlap(self, reminders, dispatcher):
        task = _task()
        await asyncio.gather(
            reminders.schedule_for_task(task, 30),
            reminders.schedule_for_task(task, 60),
            reminders.schedule_for_task(task, 90),
        )

        assert len(dispatcher.pending) == 1
        assert dispatcher.overlaps == 0
        kinds = [call[0] for call in dispatcher.calls]
        assert kinds == ["cancel", "schedule"] * 3
        assert reminders._locks == {}

    @pytest.mark.asyncio
    async def test_no_due_date_leaves_no_trigger(self, reminders, dispatcher):
        task = _task(due_date=None)
        await reminders.schedule_for_task(task, 30)
        assert await reminders.schedule_for_task(task, 30) is False
        assert dispatcher.pending == {}
        assert dispatcher.count("schedule") == 0

    @pytest.mark.asyncio
    async def test_no_title_leaves_no_trigger(self, reminders, dispatcher):
        task = _task(title=None)
        assert await reminders.schedule_for_task(task, 30) is False
        assert dispatcher.pending == {}

    @pytest.mark.asyncio
    async def test_elapsed_lead_window_removes_existing_trigger(self, reminders, dispatcher):
        task = _task(due_date=_future(minutes=45))
        assert await reminders.schedule_for_task(task, 30) is True

        # Lead now reaches back past the present moment
        assert await reminders.schedule_for_task(task, 60) is False
        assert dispatcher.pending == {}

    @pytest.mark.asyncio
    async def test_completed_task_gets_no_trigger(self, reminders, dispatcher):
        task = _task()
        await reminders.schedule_for_task(task, 30)

        task.completed = True
        assert await reminders.schedule_for_task(task, 30) is False
        assert task.id not in dispatcher.pending

    @pytest.mark.asyncio
    async def test_dispatcher_failure_is_reported_not_raised(self, reminders, dispatcher):
        dispatcher.fail_schedule = True
        assert await reminders.schedule_for_task(_task(), 30) is False
        assert dispatcher.pending == {}


class TestScheduleForHabit:

    @pytest.mark.asyncio
    async def test_registers_daily_trigger(self, reminders, dispatcher):
        habit = Habit(title="Reading", target_time=time(7, 30), notification_enabled=True)
        assert await reminders.schedule_for_habit(habit, 15) is True

        fire_spec, content = dispatcher.pending[habit.id]
        assert fire_spec == Recurring(hour=7, minute=15)
        assert content.title == "Habit reminder"
        assert content.body == "Time to practise: Reading"

    @pytest.mark.asyncio
    async def test_default_target_time(self, reminders, dispatcher):
        habit = Habit(title="Meditation")
        await reminders.schedule_for_habit(habit, 5)
        assert dispatcher.pending[habit.id][0] == Recurring(hour=19, minute=55)

    @pytest.mark.asyncio
    async def test_wraps_before_midnight(self, reminders, dispatcher):
        habit = Habit(title="Stretch", target_time=time(0, 10))
        await reminders.schedule_for_habit(habit, 30)
        assert dispatcher.pending[habit.id][0] == Recurring(hour=23, minute=40)

    @pytest.mark.asyncio
    async def test_no_title_leaves_no_trigger(self, reminders, dispatcher):
        habit = Habit(title=None)
        assert await reminders.schedule_for_habit(habit, 5) is False
        assert dispatcher.pending == {}


class TestCancel:

    @pytest.mark.asyncio
    async def test_cancel_removes_trigger(self, reminders, dispatcher):
        task = _task()
        await reminders.schedule_for_task(task, 30)
        await reminders.cancel(task.id)
        assert dispatcher.pending == {}

    @pytest.mark.asyncio
    async def test_cancel_unknown_id_is_noop(self, reminders, dispatcher):
        await reminders.cancel("no-such-id")
        await reminders.cancel("no-such-id")
        assert dispatcher.pending == {}
        assert reminders._locks == {}

    @pytest.mark.asyncio
    async def test_cancel_all(self, reminders, dispatcher):
        await reminders.schedule_for_task(_task(), 30)
        await reminders.schedule_for_habit(Habit(title="Reading"), 10)
        assert len(dispatcher.pending) == 2

        await reminders.cancel_all()
        assert dispatcher.pending == {}


class TestApplyLeadTime:

    @pytest.mark.asyncio
    async def test_apply_to_all_habits(self, reminders, dispatcher, store):
        for title in ("Meditation", "Reading", "Exercise", "Journal"):
            store.save(Habit(title=title))

        assert await reminders.apply_lead_time_to_all_habits(15) == 4
        assert dispatcher.count("cancel") == 4
        assert dispatcher.count("schedule") == 4
        assert all(spec == Recurring(hour=19, minute=45) for spec, _ in dispatcher.pending.values())

    @pytest.mark.asyncio
    async def test_apply_to_all_tasks_skips_completed(self, reminders, dispatcher, store):
        open_task = _task(notification_enabled=False)
        no_due = _task(due_date=None)
        done = _task(completed=True)
        for task in (open_task, no_due, done):
            store.save(task)

        assert await reminders.apply_lead_time_to_all_tasks(60) == 2
        assert list(dispatcher.pending) == [open_task.id]

    @pytest.mark.asyncio
    async def test_store_failure_returns_zero(self, reminders, dispatcher, store, monkeypatch):
        def broken_fetch(predicate):
            raise StoreError("disk I/O error")

        monkeypatch.setattr(store, "fetch", broken_fetch)
        assert await reminders.apply_lead_time_to_all_tasks(30) == 0
        assert await reminders.apply_lead_time_to_all_habits(30) == 0
        assert dispatcher.calls == []


@pytest.mark.asyncio
async def test_locks_released_after_many_records(reminders, dispatcher):
    for i in range(50):
        task = _task(title=f"Task {i}")
        await reminders.schedule_for_task(task, 30)
        await reminders.cancel(task.id)

    assert reminders._locks == {}
    assert dispatcher.pending == {}
