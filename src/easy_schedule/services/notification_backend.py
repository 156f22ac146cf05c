"""Notification service interface and an APScheduler-backed implementation.

The reminder scheduler only talks to ``NotificationBackend``. On a device
that is the platform notification API; ``SchedulerNotificationBackend``
is the in-process equivalent used by the CLI and services: it keeps one
``DateTrigger`` job per notification and hands the content to a
delivery callback when the job fires.
"""

import inspect
import logging
import uuid
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, List, Optional, Protocol, Union

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from ..config import get_settings
from ..exceptions import NotificationSchedulingError
from ..models.notifications import NotificationContent, PendingNotification

logger = logging.getLogger(__name__)

DeliveryCallback = Callable[[str, NotificationContent], Union[None, Awaitable[None]]]


class NotificationBackend(Protocol):
    """Platform notification service."""

    async def request_permission(self) -> bool:
        """Ask for (or report) notification permission."""
        ...

    async def schedule(self, trigger_seconds: int, content: NotificationContent) -> str:
        """Schedule content to fire trigger_seconds from now; returns the handle."""
        ...

    async def cancel(self, notification_id: str) -> None:
        """Cancel a scheduled notification. Unknown ids are ignored."""
        ...

    async def list_scheduled(self) -> List[PendingNotification]:
        """Notifications still scheduled."""
        ...


def _log_delivery(notification_id: str, content: NotificationContent) -> None:
    logger.info(f"Notification {notification_id}: {content.title} - {content.body}")


class SchedulerNotificationBackend:
    """
    NotificationBackend on top of APScheduler's AsyncIOScheduler.

    Usage:
        backend = SchedulerNotificationBackend(deliver=send_push)
        backend.start()
        # ... app runs ...
        backend.stop()
    """

    def __init__(
        self,
        deliver: Optional[DeliveryCallback] = None,
        permitted: Optional[bool] = None,
    ):
        """
        Initialize the backend.

        Args:
            deliver: Called with (notification_id, content) when a notification fires.
            permitted: Permission answer; defaults to ``notifications_permitted``.
        """
        self._deliver = deliver or _log_delivery
        self._permitted = get_settings().notifications_permitted if permitted is None else permitted
        self._pending: Dict[str, PendingNotification] = {}
        self.scheduler: Optional[AsyncIOScheduler] = None

    @property
    def is_running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    def start(self) -> None:
        """Start the underlying scheduler. Must be called with an event loop available."""
        if self.is_running:
            logger.warning("Notification scheduler is already running")
            return
        self.scheduler = AsyncIOScheduler()
        self.scheduler.start()
        logger.info("Notification scheduler started")

    def stop(self) -> None:
        """Shut down the scheduler; pending notifications are dropped."""
        if self.scheduler is None:
            return
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self.scheduler = None
        self._pending.clear()
        logger.info("Notification scheduler stopped")

    async def request_permission(self) -> bool:
        return self._permitted

    async def schedule(self, trigger_seconds: int, content: NotificationContent) -> str:
        if trigger_seconds <= 0:
            raise NotificationSchedulingError(
                f"Trigger must be in the future, got {trigger_seconds}s",
                details={"trigger_seconds": trigger_seconds},
            )
        if not self.is_running:
            self.start()

        identifier = f"easy-{uuid.uuid4()}"
        fire_at = datetime.now() + timedelta(seconds=trigger_seconds)
        self.scheduler.add_job(
            self._fire,
            DateTrigger(run_date=fire_at),
            id=identifier,
            name=content.title,
            kwargs={"identifier": identifier},
            misfire_grace_time=None,
        )
        self._pending[identifier] = PendingNotification(
            identifier=identifier, fire_at=fire_at, content=content
        )
        logger.debug(f"Scheduled notification {identifier} at {fire_at.isoformat()}")
        return identifier

    async def cancel(self, notification_id: str) -> None:
        self._pending.pop(notification_id, None)
        if self.scheduler is None:
            return
        try:
            self.scheduler.remove_job(notification_id)
        except JobLookupError:
            logger.debug(f"Notification {notification_id} was not scheduled")

    async def list_scheduled(self) -> List[PendingNotification]:
        return list(self._pending.values())

    async def _fire(self, identifier: str) -> None:
        pending = self._pending.pop(identifier, None)
        if pending is None or pending.content is None:
            return
        try:
            result = self._deliver(identifier, pending.content)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Failed to deliver notification {identifier}: {e}")
