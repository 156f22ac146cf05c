"""Tests for the command line interface."""

import io
import sys

import pytest
from rich.console import Console

from easy_schedule import cli
from easy_schedule.db.repositories import AdjustmentRepository
from easy_schedule.models import ScheduleAdjustment


@pytest.fixture
def output(monkeypatch):
    buffer = io.StringIO()
    monkeypatch.setattr(cli, "console", Console(file=buffer, width=200, color_system=None))
    return buffer


def run_cli(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["easy-schedule", *args])
    cli.main()


class TestCli:

    def test_formulas(self, monkeypatch, output, temp_db_path):
        run_cli(monkeypatch, "--db", temp_db_path, "formulas")

        text = output.getvalue()
        for formula_id in ("easy3", "easy3_5", "easy4", "easy234", "easy56"):
            assert formula_id in text
        assert "46+ wk" in text

    def test_show_overnight_progress(self, monkeypatch, output, temp_db_path):
        run_cli(
            monkeypatch,
            "--db", temp_db_path,
            "show", "--wake", "23:00", "--formula", "easy3", "--date", "2024-05-15", "--at", "00:30",
        )

        text = output.getvalue()
        assert "EASY 3" in text
        assert "Nap 1" in text
        assert "25%" in text

    def test_show_unknown_formula_exits(self, monkeypatch, output, temp_db_path):
        with pytest.raises(SystemExit) as exc_info:
            run_cli(monkeypatch, "--db", temp_db_path, "show", "--formula", "nope", "--date", "2024-05-15")

        assert exc_info.value.code == 1
        assert "Error" in output.getvalue()

    def test_cleanup(self, monkeypatch, output, temp_db_path):
        AdjustmentRepository(db_path=temp_db_path).save(ScheduleAdjustment(1, "2000-01-01", 2, "09:00", "10:00"))

        run_cli(monkeypatch, "--db", temp_db_path, "cleanup")

        text = output.getvalue()
        assert "schedule_adjustments" in text
        assert "Total deleted: 1" in text

    def test_no_command_prints_help(self, monkeypatch, capsys, output):
        run_cli(monkeypatch)

        assert "usage" in capsys.readouterr().out.lower()
