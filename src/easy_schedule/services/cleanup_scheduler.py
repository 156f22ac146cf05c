"""Daily cleanup of expired schedule state using APScheduler.

Runs daily at a configurable hour (default 3 AM local time) and removes:
- schedule adjustments older than the retention window
- notification records whose time passed more than a day ago
- day-specific custom formulas older than the retention window
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from ..config import Settings, get_settings
from ..db.repositories.adjustment_repository import AdjustmentRepository
from ..db.repositories.formula_repository import FormulaRepository
from ..db.repositories.notification_repository import NotificationRecordRepository

logger = logging.getLogger(__name__)

CLEANUP_JOB_ID = "daily_easy_cleanup"


@dataclass
class CleanupResult:
    """Result of a cleanup operation."""

    category: str
    records_deleted: int
    cutoff: str
    success: bool
    error: Optional[str] = None


@dataclass
class CleanupReport:
    """Complete report of all cleanup operations."""

    timestamp: str
    results: List[CleanupResult]
    total_deleted: int
    duration_seconds: float

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp,
            "results": [
                {
                    "category": r.category,
                    "records_deleted": r.records_deleted,
                    "cutoff": r.cutoff,
                    "success": r.success,
                    "error": r.error,
                }
                for r in self.results
            ],
            "total_deleted": self.total_deleted,
            "duration_seconds": self.duration_seconds,
        }


class CleanupScheduler:
    """Manages the scheduled cleanup job.

    Usage:
        scheduler = CleanupScheduler(adjustments, records)
        scheduler.start()
        # ... app runs ...
        scheduler.stop()
    """

    def __init__(
        self,
        adjustments: AdjustmentRepository,
        records: NotificationRecordRepository,
        formulas: Optional[FormulaRepository] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the cleanup scheduler.

        Args:
            adjustments: Adjustment store to clean up.
            records: Notification record store to prune.
            formulas: Formula store whose old day-specific rules are removed.
            settings: Settings override, defaults to ``get_settings()``.
            clock: Source of the current local time.
        """
        self.adjustments = adjustments
        self.records = records
        self.formulas = formulas
        self.settings = settings or get_settings()
        self._clock = clock
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._is_running = False
        self._last_cleanup_report: Optional[CleanupReport] = None

    @property
    def is_running(self) -> bool:
        """Check if the scheduler is running."""
        return self._is_running and self.scheduler is not None

    @property
    def last_cleanup_report(self) -> Optional[CleanupReport]:
        return self._last_cleanup_report

    def start(self) -> None:
        """Start the scheduler with the daily cleanup job."""
        if self._is_running:
            logger.warning("Cleanup scheduler is already running")
            return

        if not self.settings.cleanup_enabled:
            logger.info("Schedule cleanup is disabled in configuration")
            return

        self.scheduler = AsyncIOScheduler()
        cleanup_hour = self.settings.cleanup_hour
        self.scheduler.add_job(
            self._run_cleanup,
            CronTrigger(hour=cleanup_hour, minute=0),
            id=CLEANUP_JOB_ID,
            name="Daily EASY Schedule Cleanup",
            replace_existing=True,
            max_instances=1,
        )

        self.scheduler.start()
        self._is_running = True
        logger.info(f"Cleanup scheduler started (daily cleanup at {cleanup_hour}:00)")

    def stop(self) -> None:
        """Shut down the scheduler."""
        if not self._is_running or self.scheduler is None:
            return

        logger.info("Shutting down cleanup scheduler...")
        self.scheduler.shutdown(wait=False)
        self._is_running = False
        self.scheduler = None
        logger.info("Cleanup scheduler stopped")

    def _cleanup_adjustments(self, now: datetime) -> CleanupResult:
        retention_days = self.settings.adjustment_retention_days
        cutoff = (now.date() - timedelta(days=retention_days)).isoformat()
        try:
            deleted = self.adjustments.cleanup_stale(today=now.date(), retention_days=retention_days)
            return CleanupResult("schedule_adjustments", deleted, cutoff, True)
        except Exception as e:
            logger.error(f"Failed to clean up schedule adjustments: {e}")
            return CleanupResult("schedule_adjustments", 0, cutoff, False, str(e))

    def _prune_notification_records(self, now: datetime) -> CleanupResult:
        cutoff = now - timedelta(days=1)
        try:
            deleted = self.records.prune_expired(cutoff)
            return CleanupResult("notification_records", deleted, cutoff.isoformat(), True)
        except Exception as e:
            logger.error(f"Failed to prune notification records: {e}")
            return CleanupResult("notification_records", 0, cutoff.isoformat(), False, str(e))

    def _cleanup_day_formulas(self, now: datetime) -> CleanupResult:
        cutoff = (now.date() - timedelta(days=self.settings.adjustment_retention_days)).isoformat()
        try:
            deleted = self.formulas.delete_day_specific_before(cutoff)
            return CleanupResult("day_formulas", deleted, cutoff, True)
        except Exception as e:
            logger.error(f"Failed to clean up day-specific formulas: {e}")
            return CleanupResult("day_formulas", 0, cutoff, False, str(e))

    def run_full_cleanup(self) -> CleanupReport:
        """Run every cleanup category; one failing category does not stop the others."""
        started = time.monotonic()
        now = self._clock()

        results = [
            self._cleanup_adjustments(now),
            self._prune_notification_records(now),
        ]
        if self.formulas is not None:
            results.append(self._cleanup_day_formulas(now))

        report = CleanupReport(
            timestamp=now.isoformat(),
            results=results,
            total_deleted=sum(r.records_deleted for r in results),
            duration_seconds=round(time.monotonic() - started, 3),
        )
        self._last_cleanup_report = report
        return report

    async def _run_cleanup(self) -> None:
        """Scheduled job body."""
        logger.info("Starting scheduled cleanup")

        try:
            report = self.run_full_cleanup()
        except Exception as e:
            logger.error(f"Unexpected error during scheduled cleanup: {e}")
            return

        failed = [r.category for r in report.results if not r.success]
        if failed:
            logger.warning(
                f"Cleanup completed with errors: {report.total_deleted} records deleted, "
                f"failed categories: {failed}"
            )
        else:
            logger.info(f"Cleanup completed successfully: {report.total_deleted} records deleted")

    async def trigger_cleanup(self) -> CleanupReport:
        """Manually trigger a cleanup.

        Returns:
            CleanupReport with cleanup details.
        """
        logger.info("Manual cleanup triggered")
        return self.run_full_cleanup()

    def get_next_cleanup_time(self) -> Optional[datetime]:
        """Next scheduled run time, or None if the scheduler is not running."""
        if not self.is_running:
            return None

        job = self.scheduler.get_job(CLEANUP_JOB_ID)
        if job and job.next_run_time:
            return job.next_run_time
        return None

    def get_scheduler_status(self) -> dict:
        """Get the current scheduler status."""
        status = {
            "is_running": self.is_running,
            "cleanup_enabled": self.settings.cleanup_enabled,
            "cleanup_hour": self.settings.cleanup_hour,
            "retention_days": self.settings.adjustment_retention_days,
            "next_cleanup_time": None,
            "last_cleanup": None,
        }

        next_time = self.get_next_cleanup_time()
        if next_time:
            status["next_cleanup_time"] = next_time.isoformat()

        if self._last_cleanup_report:
            status["last_cleanup"] = {
                "timestamp": self._last_cleanup_report.timestamp,
                "total_deleted": self._last_cleanup_report.total_deleted,
                "duration_seconds": self._last_cleanup_report.duration_seconds,
            }

        return status
