"""Shared fixtures for the EASY schedule tests."""

import os
import tempfile
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import pytest

from easy_schedule.config import Settings
from easy_schedule.db.repositories import (
    AdjustmentRepository,
    AppStateRepository,
    FormulaRepository,
    NotificationRecordRepository,
)
from easy_schedule.models import BabyProfile
from easy_schedule.models.notifications import NotificationContent, PendingNotification
from easy_schedule.services.reminder_scheduler import ReminderScheduler
from easy_schedule.services.schedule_service import ScheduleService

# Wednesday morning, well inside a 07:00 schedule
FIXED_NOW = datetime(2024, 5, 15, 8, 0)


class FakeNotificationBackend:
    """In-memory notification service recording every call."""

    def __init__(self, permitted: bool = True, now: datetime = FIXED_NOW):
        self.permitted = permitted
        self.now = now
        self.scheduled: Dict[str, PendingNotification] = {}
        self.schedule_calls: List[NotificationContent] = []
        self.cancel_calls: List[str] = []
        self.permission_requests = 0
        self._counter = 0

    async def request_permission(self) -> bool:
        self.permission_requests += 1
        return self.permitted

    async def schedule(self, trigger_seconds: int, content: NotificationContent) -> str:
        self._counter += 1
        identifier = f"fake-{self._counter}"
        self.schedule_calls.append(content)
        self.scheduled[identifier] = PendingNotification(
            identifier=identifier,
            fire_at=self.now + timedelta(seconds=trigger_seconds),
            content=content,
        )
        return identifier

    async def cancel(self, notification_id: str) -> None:
        self.cancel_calls.append(notification_id)
        self.scheduled.pop(notification_id, None)

    async def list_scheduled(self) -> List[PendingNotification]:
        return list(self.scheduled.values())

    @property
    def call_count(self) -> int:
        return len(self.schedule_calls) + len(self.cancel_calls)


class StaticProfileProvider:
    """Profile store returning a fixed profile."""

    def __init__(self, profile: Optional[BabyProfile]):
        self.profile = profile

    def get_active_baby_profile(self) -> Optional[BabyProfile]:
        return self.profile


@pytest.fixture
def temp_db_path():
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name
    yield db_path
    try:
        os.unlink(db_path)
    except OSError:
        pass


@pytest.fixture
def settings(temp_db_path):
    """Settings pointing at the temporary database."""
    return Settings(database_path=temp_db_path)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def clock():
    """Clock callable frozen at FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def formula_repo(temp_db_path):
    """FormulaRepository with the predefined formulas seeded."""
    repo = FormulaRepository(db_path=temp_db_path)
    repo.seed_predefined()
    return repo


@pytest.fixture
def adjustment_repo(temp_db_path):
    return AdjustmentRepository(db_path=temp_db_path)


@pytest.fixture
def record_repo(temp_db_path):
    return NotificationRecordRepository(db_path=temp_db_path)


@pytest.fixture
def app_state_repo(temp_db_path):
    return AppStateRepository(db_path=temp_db_path)


@pytest.fixture
def profile():
    """Baby on the 4-hour formula waking at 07:00."""
    return BabyProfile(id=1, first_wake_time="07:00", selected_formula_id="easy4")


@pytest.fixture
def schedule_service(formula_repo, adjustment_repo, settings, clock):
    return ScheduleService(formula_repo, adjustment_repo, settings=settings, clock=clock)


@pytest.fixture
def backend():
    return FakeNotificationBackend()


@pytest.fixture
def denied_backend():
    return FakeNotificationBackend(permitted=False)


@pytest.fixture
def profile_provider(profile):
    return StaticProfileProvider(profile)


@pytest.fixture
def reminder_scheduler(backend, record_repo, schedule_service, settings, clock):
    return ReminderScheduler(backend, record_repo, schedule_service, settings=settings, clock=clock)
