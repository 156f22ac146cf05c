"""Reminder scheduling for EASY phase ends and feedings.

The scheduler turns schedule items into notification service requests and
keeps one ``ScheduledNotificationRecord`` per outstanding notification.
``reschedule_all`` is the single re-derivation entry point: it drops every
EASY record of the baby and schedules the full set again, so repeated
calls never accumulate duplicates.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Sequence

from ..config import Settings, get_settings
from ..db.repositories.notification_repository import NotificationRecordRepository
from ..exceptions import (
    EasyScheduleError,
    NotificationSchedulingError,
    PermissionDeniedError,
    StoreError,
)
from ..models.formulas import BabyProfile
from ..models.notifications import (
    FEEDING_TYPE_LABELS,
    FeedingType,
    NotificationContent,
    NotificationType,
    ReminderLabels,
    RescheduleOutcome,
    RescheduleResult,
    ScheduledNotificationRecord,
)
from ..models.schedule import ActivityType, ScheduleItem
from ..schedule.grouping import absolute_timings
from ..utils.time_utils import format_minutes
from .notification_backend import NotificationBackend
from .schedule_service import ScheduleService

logger = logging.getLogger(__name__)


@dataclass
class ReminderTrigger:
    """A phase end and the moment its reminder should fire."""
    item: ScheduleItem
    ends_at: datetime
    fire_at: datetime


def derive_reminder_triggers(
    items: Sequence[ScheduleItem],
    day: date,
    first_wake_time: str,
    advance_minutes: int,
) -> List[ReminderTrigger]:
    """
    Phase-end reminder times for one day's schedule.

    Your-Time and zero-duration items have no phase end to announce and
    are skipped. Items past midnight land on the following calendar day.
    """
    day_start = datetime.combine(day, datetime.min.time())
    timings = absolute_timings(items, first_wake_time)
    triggers = []

    for item in items:
        if item.activity_type == ActivityType.YOUR_TIME or item.duration_minutes == 0:
            continue
        ends_at = day_start + timedelta(minutes=timings[item.order].end_minutes)
        triggers.append(
            ReminderTrigger(
                item=item,
                ends_at=ends_at,
                fire_at=ends_at - timedelta(minutes=advance_minutes),
            )
        )
    return triggers


class ReminderScheduler:
    """Schedules, cancels and re-derives reminder notifications."""

    def __init__(
        self,
        backend: NotificationBackend,
        records: NotificationRecordRepository,
        schedule_service: ScheduleService,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.backend = backend
        self.records = records
        self.schedule_service = schedule_service
        self.settings = settings or get_settings()
        self._clock = clock

    async def request_permission(self) -> bool:
        """Ask the notification service for permission."""
        try:
            return bool(await self.backend.request_permission())
        except Exception as e:
            logger.error(f"Notification permission request failed: {e}")
            raise NotificationSchedulingError(f"Permission request failed: {e}") from e

    async def _schedule_notification(
        self,
        baby_id: int,
        notification_type: NotificationType,
        target_time: datetime,
        content: NotificationContent,
        record_data: dict,
        replace_slot: bool = False,
    ) -> Optional[str]:
        """Schedule one notification and persist its record. Past-due targets return None."""
        now = self._clock()
        if target_time <= now:
            logger.debug(f"Skipping past-due {notification_type.value} reminder at {target_time.isoformat()}")
            return None

        trigger_seconds = max(1, int((target_time - now).total_seconds()))
        try:
            notification_id = await self.backend.schedule(trigger_seconds, content)
        except EasyScheduleError:
            raise
        except Exception as e:
            logger.error(f"Failed to schedule {notification_type.value} reminder: {e}")
            raise NotificationSchedulingError(
                f"Notification service rejected the reminder: {e}",
                details={"target_time": target_time.isoformat()},
            ) from e

        record = ScheduledNotificationRecord(
            notification_id=notification_id,
            notification_type=notification_type,
            scheduled_time=int(target_time.timestamp()),
            baby_id=baby_id,
            data=record_data,
        )
        try:
            if replace_slot:
                self.records.replace_slot(record)
            else:
                self.records.save(record)
        except StoreError as e:
            # The notification exists without a record; restoration reconciles it later
            logger.error(f"Scheduled notification {notification_id} but could not persist it: {e}")
            raise

        return notification_id

    async def schedule_reminder(
        self,
        baby_id: int,
        target_time: datetime,
        activity_type: ActivityType,
        label: str,
        title: str,
        body: str,
    ) -> Optional[str]:
        """
        Schedule a single EASY reminder.

        Args:
            baby_id: Owning baby profile
            target_time: When the notification should fire
            activity_type: Type of the phase the reminder is about
            label: Phase label stored with the record
            title: Notification title
            body: Notification body

        Returns:
            Notification ID, or None when target_time is not in the future

        Raises:
            PermissionDeniedError: If notification permission is not granted
            NotificationSchedulingError: If the notification service fails
            StoreError: If the record could not be persisted
        """
        if target_time <= self._clock():
            logger.debug(f"Skipping past-due reminder for {label} at {target_time.isoformat()}")
            return None

        if not await self.request_permission():
            raise PermissionDeniedError()

        return await self._schedule_easy(baby_id, target_time, activity_type, label, title, body)

    async def _schedule_easy(
        self,
        baby_id: int,
        target_time: datetime,
        activity_type: ActivityType,
        label: str,
        title: str,
        body: str,
        item_order: Optional[int] = None,
    ) -> Optional[str]:
        activity_type = ActivityType(activity_type)
        content = NotificationContent(
            title=title,
            body=body,
            data={
                "type": NotificationType.EASY_SCHEDULE.value,
                "activity_type": activity_type.value,
                "target_time": target_time.isoformat(),
            },
        )
        record_data = {"activity_type": activity_type.value, "label": label}
        if item_order is not None:
            record_data["item_order"] = item_order

        return await self._schedule_notification(
            baby_id, NotificationType.EASY_SCHEDULE, target_time, content, record_data
        )

    async def cancel(self, notification_id: str, baby_id: Optional[int] = None) -> bool:
        """
        Cancel a notification and delete its record.

        Both halves always run; a failure in either is logged.

        Returns:
            True if both halves succeeded
        """
        ok = True
        try:
            await self.backend.cancel(notification_id)
        except Exception as e:
            ok = False
            logger.error(f"Failed to cancel notification {notification_id}: {e}")

        try:
            self.records.delete_by_notification_id(notification_id, baby_id)
        except StoreError as e:
            ok = False
            logger.error(f"Failed to delete record of notification {notification_id}: {e}")

        return ok

    async def cancel_all(
        self,
        baby_id: int,
        notification_type: NotificationType = NotificationType.EASY_SCHEDULE,
    ) -> int:
        """
        Cancel every persisted notification of one reminder family.

        Returns:
            Number of notifications cancelled
        """
        records = self.records.list_records(baby_id, notification_type)
        for record in records:
            await self.cancel(record.notification_id, baby_id)

        if records:
            logger.info(f"Cancelled {len(records)} {NotificationType(notification_type).value} reminders")
        return len(records)

    async def reschedule_all(
        self,
        profile: BabyProfile,
        first_wake_time: Optional[str] = None,
        advance_minutes: Optional[int] = None,
        labels: Optional[ReminderLabels] = None,
        days_ahead: Optional[int] = None,
    ) -> RescheduleResult:
        """
        Re-derive the EASY reminder set from the profile's schedule.

        Schedules one reminder ``advance_minutes`` before the end of every
        phase of today (with today's adjustments) and of the following
        ``days_ahead - 1`` days, after removing all previously persisted
        EASY reminders of the baby.

        Args:
            profile: Baby profile
            first_wake_time: Overrides the profile's wake time
            advance_minutes: Minutes before each phase end
            labels: Activity labels and notification templates
            days_ahead: Number of calendar days to cover, starting today

        Returns:
            RescheduleResult; ``PERMISSION_DENIED`` leaves existing reminders untouched

        Raises:
            FormulaNotFoundError: If no formula can be resolved for the profile
            StoreError: If existing records cannot be read or removed
        """
        if not await self.request_permission():
            logger.warning(f"Notification permission denied, not scheduling reminders for baby {profile.id}")
            return RescheduleResult(outcome=RescheduleOutcome.PERMISSION_DENIED)

        labels = labels or ReminderLabels()
        advance = self.settings.reminder_advance_minutes if advance_minutes is None else advance_minutes
        days = days_ahead if days_ahead is not None else self.settings.reminder_days_ahead
        today = self._clock().date()

        triggers: List[ReminderTrigger] = []
        for offset in range(days):
            day = today + timedelta(days=offset)
            schedule = self.schedule_service.build_day(
                profile, on_date=day, labels=labels, first_wake_time=first_wake_time
            )
            triggers.extend(
                derive_reminder_triggers(schedule.items, day, schedule.first_wake_time, advance)
            )

        result = RescheduleResult(outcome=RescheduleOutcome.SCHEDULED)
        result.cancelled_count = await self.cancel_all(profile.id, NotificationType.EASY_SCHEDULE)

        now = self._clock()
        for trigger in triggers:
            if trigger.fire_at <= now:
                result.skipped_count += 1
                continue

            item = trigger.item
            end_label = format_minutes(trigger.ends_at.hour * 60 + trigger.ends_at.minute)
            try:
                notification_id = await self._schedule_easy(
                    profile.id,
                    trigger.fire_at,
                    item.activity_type,
                    item.label,
                    labels.reminder_title(item.activity_type, item.label),
                    labels.reminder_body(item.label, end_label, advance),
                    item_order=item.order,
                )
            except EasyScheduleError as e:
                result.failed_count += 1
                logger.error(f"Failed to schedule reminder for {item.label} ending {end_label}: {e.message}")
                continue

            if notification_id:
                result.scheduled_count += 1
            else:
                result.skipped_count += 1

        logger.info(
            f"Scheduled {result.scheduled_count} EASY reminders for baby {profile.id} "
            f"({result.skipped_count} past-due, {result.failed_count} failed)"
        )
        return result

    async def schedule_feeding_reminder(
        self,
        baby_id: int,
        scheduled_time: datetime,
        feeding_type: FeedingType,
        replace_notification_id: Optional[str] = None,
    ) -> Optional[str]:
        """
        Schedule the next-feeding reminder; a baby has a single feeding slot.

        Args:
            baby_id: Owning baby profile
            scheduled_time: When to remind
            feeding_type: Breast, bottle or solids
            replace_notification_id: Notification being updated, cancelled first

        Returns:
            Notification ID, or None when scheduled_time is not in the future

        Raises:
            PermissionDeniedError: If notification permission is not granted
        """
        if not await self.request_permission():
            raise PermissionDeniedError()

        feeding_type = FeedingType(feeding_type)
        if replace_notification_id:
            try:
                await self.backend.cancel(replace_notification_id)
            except Exception as e:
                logger.error(f"Failed to cancel replaced notification {replace_notification_id}: {e}")

        content = NotificationContent(
            title="Time to feed! 🍼",
            body=f"It's time for {FEEDING_TYPE_LABELS[feeding_type]}",
            data={
                "type": NotificationType.FEEDING.value,
                "feeding_type": feeding_type.value,
                "scheduled_time": scheduled_time.isoformat(),
            },
        )

        previous = self.records.list_records(baby_id, NotificationType.FEEDING)
        notification_id = await self._schedule_notification(
            baby_id,
            NotificationType.FEEDING,
            scheduled_time,
            content,
            {"feeding_type": feeding_type.value},
            replace_slot=True,
        )
        if notification_id is None:
            return None

        for record in previous:
            if record.notification_id in (notification_id, replace_notification_id):
                continue
            try:
                await self.backend.cancel(record.notification_id)
            except Exception as e:
                logger.error(f"Failed to cancel previous feeding notification {record.notification_id}: {e}")

        return notification_id

    async def cancel_feeding_reminder(self, baby_id: int) -> bool:
        """Cancel the stored feeding reminder, if any. Returns True if one existed."""
        return await self.cancel_all(baby_id, NotificationType.FEEDING) > 0
