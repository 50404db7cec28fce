"""
Fire-and-forget notification dispatch.
Notifications run after the booking change has been committed; their failures
are logged here and never reach the request that triggered them.
"""

import logging
from collections.abc import Awaitable
from typing import Callable

from fastapi import BackgroundTasks

from .discord_service import BookingNotice, DiscordNotifier

logger = logging.getLogger(__name__)


async def dispatch_notification(
    send: Callable[[BookingNotice], Awaitable[bool]], notice: BookingNotice
) -> bool:
    """Await one notifier call, logging instead of raising on failure"""
    name = getattr(send, "__name__", "notification")
    try:
        delivered = await send(notice)
    except Exception as e:
        logger.error(f"❌ {name} failed for slot #{notice.slot_number}: {type(e).__name__}: {e}")
        return False
    if not delivered:
        logger.debug(f"ℹ️ {name} skipped for slot #{notice.slot_number}")
    return bool(delivered)


def schedule_booking_created(
    background_tasks: BackgroundTasks, notifier: DiscordNotifier, notice: BookingNotice
) -> None:
    background_tasks.add_task(dispatch_notification, notifier.send_booking_notification, notice)


def schedule_status_changed(
    background_tasks: BackgroundTasks, notifier: DiscordNotifier, notice: BookingNotice
) -> None:
    background_tasks.add_task(dispatch_notification, notifier.send_booking_status_update, notice)
    if notice.discord_username:
        background_tasks.add_task(dispatch_notification, notifier.send_status_direct_message, notice)
