"""Startup restoration of reminder state.

The notification service is authoritative about what is scheduled; the
record store is a cache that is reconciled against it on every start:

- a record whose notification is gone is deleted (fired or orphaned)
- a record whose notification is still scheduled but already due is
  cancelled and deleted (stale)
- anything else stays as it is (active)

EASY reminders are then re-derived from the current schedule as a whole.
Nothing in this module raises to the caller.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from ..config import Settings, get_settings
from ..db.repositories.adjustment_repository import AdjustmentRepository
from ..db.repositories.app_state_repository import AppStateRepository
from ..db.repositories.notification_repository import NotificationRecordRepository
from ..models.formulas import ProfileProvider
from ..models.notifications import (
    NotificationType,
    RecordState,
    RescheduleResult,
    ScheduledNotificationRecord,
)
from .notification_backend import NotificationBackend
from .reminder_scheduler import ReminderScheduler

logger = logging.getLogger(__name__)


def classify_record(
    record: ScheduledNotificationRecord,
    scheduled_ids: Iterable[str],
    now: datetime,
) -> RecordState:
    """Reconciliation state of one record given the ids the service still holds."""
    still_scheduled = record.notification_id in set(scheduled_ids)
    past = record.is_past(now)

    if not still_scheduled:
        return RecordState.FIRED if past else RecordState.ORPHANED
    if past:
        return RecordState.STALE
    return RecordState.ACTIVE


@dataclass
class StartupReport:
    """What the startup hook did."""
    adjustments_deleted: int = 0
    feeding_record: Optional[ScheduledNotificationRecord] = None
    easy_result: Optional[RescheduleResult] = None
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "adjustments_deleted": self.adjustments_deleted,
            "feeding_record": self.feeding_record.to_dict() if self.feeding_record else None,
            "easy_result": self.easy_result.to_dict() if self.easy_result else None,
            "errors": self.errors,
        }


class NotificationRestorer:
    """Reconciles persisted reminder records with the notification service."""

    def __init__(
        self,
        backend: NotificationBackend,
        records: NotificationRecordRepository,
        reminder_scheduler: ReminderScheduler,
        profiles: ProfileProvider,
        app_state: AppStateRepository,
        adjustments: Optional[AdjustmentRepository] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.backend = backend
        self.records = records
        self.reminder_scheduler = reminder_scheduler
        self.profiles = profiles
        self.app_state = app_state
        self.adjustments = adjustments
        self.settings = settings or get_settings()
        self._clock = clock

    async def reconcile(
        self,
        baby_id: int,
        notification_type: NotificationType,
    ) -> List[ScheduledNotificationRecord]:
        """
        Reconcile one reminder family of a baby.

        Args:
            baby_id: Baby profile ID
            notification_type: Reminder family to reconcile

        Returns:
            The records that are still active
        """
        records = self.records.list_records(baby_id, notification_type)
        if not records:
            return []

        scheduled_ids = {pending.identifier for pending in await self.backend.list_scheduled()}
        now = self._clock()
        active = []

        for record in records:
            state = classify_record(record, scheduled_ids, now)
            if state == RecordState.ACTIVE:
                active.append(record)
            elif state == RecordState.STALE:
                logger.warning(f"Notification {record.notification_id} is past due but still scheduled")
                await self.reminder_scheduler.cancel(record.notification_id, baby_id)
            else:
                logger.debug(f"Dropping {state.value} record {record.notification_id}")
                self.records.delete_by_notification_id(record.notification_id, baby_id)

        dropped = len(records) - len(active)
        if dropped:
            logger.info(
                f"Reconciled {NotificationType(notification_type).value} reminders for baby {baby_id}: "
                f"{len(active)} active, {dropped} removed"
            )
        return active

    async def _restore_feeding(self) -> Optional[ScheduledNotificationRecord]:
        profile = self.profiles.get_active_baby_profile()
        if profile is None:
            return None
        active = await self.reconcile(profile.id, NotificationType.FEEDING)
        return active[0] if active else None

    async def restore_feeding_reminder(self) -> Optional[ScheduledNotificationRecord]:
        """
        Restore the feeding reminder slot of the active profile.

        Returns:
            The still-active feeding record, or None
        """
        try:
            return await self._restore_feeding()
        except Exception as e:
            logger.error(f"Failed to restore feeding reminder: {e}")
            return None

    async def _restore_easy(self) -> Optional[RescheduleResult]:
        preferences = self.app_state.get_reminder_preferences()
        if not preferences.enabled:
            logger.debug("EASY reminders disabled, nothing to restore")
            return None

        profile = self.profiles.get_active_baby_profile()
        if profile is None:
            logger.debug("No active baby profile, skipping EASY reminder restoration")
            return None

        await self.reconcile(profile.id, NotificationType.EASY_SCHEDULE)
        result = await self.reminder_scheduler.reschedule_all(
            profile, advance_minutes=preferences.advance_minutes
        )
        if result.permission_denied:
            logger.warning("Notification permission denied, EASY reminders not restored")
        return result

    async def restore_easy_reminders(self) -> Optional[RescheduleResult]:
        """
        Re-derive the EASY reminder set if reminders are enabled.

        Old records are reconciled first so notifications cleared outside
        the app do not linger in the store, then the whole set is
        rescheduled from the current schedule.
        """
        try:
            return await self._restore_easy()
        except Exception as e:
            logger.error(f"Failed to restore EASY reminders: {e}")
            return None

    async def run_startup_tasks(self) -> StartupReport:
        """
        Stale adjustment cleanup, feeding restoration and EASY restoration.

        Each step runs even when an earlier one fails; failures are
        logged and listed in the report's errors.
        """
        report = StartupReport()

        if self.adjustments is not None:
            try:
                report.adjustments_deleted = self.adjustments.cleanup_stale(
                    today=self._clock().date(),
                    retention_days=self.settings.adjustment_retention_days,
                )
            except Exception as e:
                logger.error(f"Failed to clean up stale adjustments: {e}")
                report.errors.append(f"cleanup_stale: {e}")

        try:
            report.feeding_record = await self._restore_feeding()
        except Exception as e:
            logger.error(f"Failed to restore feeding reminder: {e}")
            report.errors.append(f"restore_feeding: {e}")

        try:
            report.easy_result = await self._restore_easy()
        except Exception as e:
            logger.error(f"Failed to restore EASY reminders: {e}")
            report.errors.append(f"restore_easy: {e}")

        logger.info(f"Startup tasks finished ({report.adjustments_deleted} stale adjustments removed)")
        return report
