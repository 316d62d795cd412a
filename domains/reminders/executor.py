"""Deliver reminders when their trigger fires."""

from typing import Awaitable, Callable, Optional

from logger import logger
from .dispatcher import NotificationContent

DeliveryCallback = Callable[[str, NotificationContent], Awaitable[None]]


async def execute_reminder(
    reminder_id: str,
    content: NotificationContent,
    callback: Optional[DeliveryCallback] = None
):
    """Fire a reminder.

    Called by APScheduler when the trigger time arrives. The engine does not
    track consumption of one-shot reminders; the job simply leaves the
    scheduler after running.

    Args:
        reminder_id: Record ID the reminder is registered under
        content: Title/body to show
        callback: Optional async hook that presents the notification
    """
    logger.info(f"Reminder {reminder_id} fired: {content.title} - {content.body}")

    if callback is None:
        return

    try:
        await callback(reminder_id, content)
    except Exception as e:
        logger.error(f"Failed to deliver reminder {reminder_id}: {e}")
