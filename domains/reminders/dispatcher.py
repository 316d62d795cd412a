"""Notification dispatchers.

`NotificationDispatcher` is the seam between the scheduling engine and
whatever actually delivers notifications. `APSchedulerDispatcher` keeps the
pending triggers as jobs in an APScheduler `AsyncIOScheduler`.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger

import config
from logger import logger
from .triggers import FireSpec, OneShot, Recurring


class AuthorizationStatus(Enum):
    AUTHORIZED = "authorized"
    DENIED = "denied"
    NOT_DETERMINED = "not_determined"


class DispatcherError(Exception):
    """A trigger could not be registered."""


@dataclass(frozen=True)
class NotificationContent:
    """What the user sees when a reminder fires."""
    title: str
    body: str
    sound: bool = True
    badge: Optional[int] = None


class NotificationDispatcher(ABC):
    """Registers, removes and reports on pending notification triggers."""

    @abstractmethod
    async def request_authorization(self) -> bool:
        """Ask for permission to post notifications."""

    @abstractmethod
    async def get_authorization_status(self) -> AuthorizationStatus:
        """Current permission state."""

    @abstractmethod
    async def schedule(self, identifier: str, fire_spec: FireSpec, content: NotificationContent) -> None:
        """Register a trigger under `identifier`.

        Raises:
            DispatcherError: If the trigger could not be registered
        """

    @abstractmethod
    async def cancel(self, identifier: str) -> None:
        """Remove the pending trigger for `identifier`, if any."""

    @abstractmethod
    async def cancel_all(self) -> None:
        """Remove every pending trigger."""


class APSchedulerDispatcher(NotificationDispatcher):
    """Dispatcher backed by APScheduler jobs, one job per record ID."""

    def __init__(self, scheduler: AsyncIOScheduler, callback=None):
        self.scheduler = scheduler
        self.callback = callback
        self._status = AuthorizationStatus.NOT_DETERMINED

    async def request_authorization(self) -> bool:
        granted = config.NOTIFICATIONS_ALLOWED
        self._status = AuthorizationStatus.AUTHORIZED if granted else AuthorizationStatus.DENIED
        logger.info(f"Notification authorization {'granted' if granted else 'denied'}")
        return granted

    async def get_authorization_status(self) -> AuthorizationStatus:
        return self._status

    async def schedule(self, identifier: str, fire_spec: FireSpec, content: NotificationContent) -> None:
        if self._status != AuthorizationStatus.AUTHORIZED:
            raise DispatcherError(f"Notifications not authorized ({self._status.value})")

        # Imported here to avoid a circular import
        from .executor import execute_reminder

        if isinstance(fire_spec, OneShot):
            trigger = DateTrigger(run_date=fire_spec.at, timezone=config.TIMEZONE)
        elif isinstance(fire_spec, Recurring):
            trigger = CronTrigger(hour=fire_spec.hour, minute=fire_spec.minute, timezone=config.TIMEZONE)
        else:
            raise DispatcherError(f"Unsupported fire spec: {fire_spec!r}")

        try:
            self.scheduler.add_job(
                execute_reminder,
                trigger=trigger,
                args=[identifier, content, self.callback],
                id=identifier,
                name=f"reminder:{content.body[:30]}",
                replace_existing=True
            )
        except Exception as e:
            raise DispatcherError(f"Failed to add job {identifier}: {e}") from e

    async def cancel(self, identifier: str) -> None:
        try:
            self.scheduler.remove_job(identifier)
        except JobLookupError:
            pass

    async def cancel_all(self) -> None:
        self.scheduler.remove_all_jobs()

    def pending_ids(self) -> list[str]:
        """IDs with a registered trigger."""
        return [job.id for job in self.scheduler.get_jobs()]
