"""Tests for AppStateRepository."""


class TestKeyValue:

    def test_get_missing(self, app_state_repo):
        assert app_state_repo.get("missing") is None

    def test_set_overwrites(self, app_state_repo):
        app_state_repo.set("key", "one")
        app_state_repo.set("key", "two")

        assert app_state_repo.get("key") == "two"


class TestReminderPreferences:

    def test_defaults(self, app_state_repo, monkeypatch):
        monkeypatch.delenv("EASY_REMINDER_ADVANCE_MINUTES", raising=False)

        preferences = app_state_repo.get_reminder_preferences()

        assert preferences.enabled is False
        assert preferences.advance_minutes == 5

    def test_round_trip(self, app_state_repo):
        app_state_repo.set_reminder_preferences(True, advance_minutes=10)

        preferences = app_state_repo.get_reminder_preferences()
        assert preferences.enabled is True
        assert preferences.advance_minutes == 10

    def test_disable_keeps_advance(self, app_state_repo):
        app_state_repo.set_reminder_preferences(True, advance_minutes=10)
        app_state_repo.set_reminder_preferences(False)

        preferences = app_state_repo.get_reminder_preferences()
        assert preferences.enabled is False
        assert preferences.advance_minutes == 10

    def test_garbage_advance_falls_back(self, app_state_repo):
        app_state_repo.set("easy_reminder_advance_minutes", "soon")

        assert app_state_repo.get_reminder_preferences().advance_minutes == 5
