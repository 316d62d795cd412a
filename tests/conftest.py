"""Pytest configuration and fixtures."""

import asyncio
import os
import sys
import tempfile

import pytest

# Keep logs and the default store out of the working tree; set before config is imported
os.environ["LOCALAPPDATA"] = tempfile.mkdtemp(prefix="reminders_test_")

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from domains.reminders.dispatcher import (  # noqa: E402
    AuthorizationStatus,
    DispatcherError,
    NotificationDispatcher,
)
from domains.reminders.scheduler import ReminderScheduler  # noqa: E402
from domains.reminders.store import RecordStore  # noqa: E402


class FakeDispatcher(NotificationDispatcher):
    """In-memory dispatcher that records every call."""

    def __init__(self, authorized: bool = True):
        self.authorized = authorized
        self.status = AuthorizationStatus.NOT_DETERMINED
        self.pending = {}  # id -> (fire_spec, content)
        self.calls = []
        self.fail_schedule = False
        self.overlaps = 0  # schedule calls that found a trigger already pending

    async def request_authorization(self) -> bool:
        self.calls.append(("authorize",))
        self.status = AuthorizationStatus.AUTHORIZED if self.authorized else AuthorizationStatus.DENIED
        return self.authorized

    async def get_authorization_status(self) -> AuthorizationStatus:
        return self.status

    async def schedule(self, identifier, fire_spec, content) -> None:
        await asyncio.sleep(0)
        self.calls.append(("schedule", identifier))
        if self.fail_schedule:
            raise DispatcherError("permission revoked")
        if identifier in self.pending:
            self.overlaps += 1
        self.pending[identifier] = (fire_spec, content)

    async def cancel(self, identifier) -> None:
        await asyncio.sleep(0)
        self.calls.append(("cancel", identifier))
        self.pending.pop(identifier, None)

    async def cancel_all(self) -> None:
        self.calls.append(("cancel_all",))
        self.pending.clear()

    def count(self, kind: str) -> int:
        return sum(1 for call in self.calls if call[0] == kind)


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture
def store():
    """Fresh in-memory record store per test."""
    record_store = RecordStore(":memory:")
    yield record_store
    record_store.close()


@pytest.fixture
def reminders(dispatcher, store):
    return ReminderScheduler(dispatcher, store)
