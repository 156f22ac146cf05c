#!/usr/bin/env python3
"""
EASY schedule CLI.

Inspect formulas, print a day's schedule and run the stale-data cleanup.

Usage:
    easy-schedule formulas
    easy-schedule show --wake 07:00 --formula easy3
    easy-schedule show --wake 23:00 --formula easy3 --at 00:30
    easy-schedule cleanup
"""

import argparse
import logging
import sys
from datetime import date, datetime
from typing import Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .config import get_settings
from .db.repositories import AdjustmentRepository, FormulaRepository, NotificationRecordRepository
from .exceptions import EasyScheduleError
from .models import ActivityType, BabyProfile, PhaseProgress
from .services.cleanup_scheduler import CleanupScheduler
from .services.schedule_service import ScheduleService
from .utils.time_utils import format_duration, parse_time

console = Console()

ACTIVITY_STYLES = {
    ActivityType.EAT: "magenta",
    ActivityType.ACTIVITY: "yellow",
    ActivityType.SLEEP: "blue",
    ActivityType.YOUR_TIME: "green",
}


def setup_logging(level: Optional[str] = None) -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def format_weeks(min_weeks: int, max_weeks: Optional[int]) -> str:
    if max_weeks is None:
        return f"{min_weeks}+ wk"
    return f"{min_weeks}-{max_weeks} wk"


def progress_marker(progress: PhaseProgress, order: int) -> Text:
    """Status cell for one schedule row."""
    if progress.is_active(order):
        return Text(f"▶ {progress.progress_ratio:.0%}", style="bold green")
    if progress.is_past(order):
        return Text("✓", style="dim")
    return Text("")


def cmd_formulas(args, formulas: FormulaRepository):
    """List the available formulas."""
    rules = formulas.list_rules(baby_id=args.baby)

    table = Table(title="EASY Formulas", box=box.ROUNDED)
    table.add_column("ID", style="cyan")
    table.add_column("Label", style="white")
    table.add_column("Age", style="white")
    table.add_column("Cycles", justify="right")
    table.add_column("Description", style="dim")

    for rule in rules:
        table.add_row(
            rule.id,
            rule.label,
            format_weeks(rule.min_weeks, rule.max_weeks),
            str(len(rule.phases)),
            rule.description or "",
        )

    console.print()
    console.print(table)
    console.print()


def cmd_show(args, service: ScheduleService):
    """Print one day's schedule grouped into cycles."""
    profile = BabyProfile(
        id=args.baby,
        first_wake_time=args.wake,
        selected_formula_id=args.formula,
        birth_date=args.birth_date,
    )
    on_date = date.fromisoformat(args.date) if args.date else None
    day = service.build_day(profile, on_date=on_date)

    now_minutes = parse_time(args.at) if args.at else None
    if now_minutes is None and day.date == date.today().isoformat():
        now = datetime.now()
        now_minutes = now.hour * 60 + now.minute
    progress = service.progress_for(day, now_minutes) if now_minutes is not None else {}

    title = f"[bold]{day.formula.label}[/bold]  {day.date}  wake {day.first_wake_time}"
    if day.is_adjusted:
        title += "  [yellow](adjusted)[/yellow]"
    console.print()
    console.print(Panel(title))

    table = Table(box=box.SIMPLE_HEAVY)
    table.add_column("Cycle", justify="right", style="dim")
    table.add_column("Phase")
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Now")

    for group in day.groups:
        group_progress = progress.get(group.number)
        for index, item in enumerate(group.items):
            table.add_row(
                str(group.number) if index == 0 else "",
                Text(item.label, style=ACTIVITY_STYLES[item.activity_type]),
                item.start_time,
                item.end_time,
                format_duration(item.duration_minutes),
                progress_marker(group_progress, item.order) if group_progress else "",
            )
        table.add_section()

    for item in day.items:
        if item.activity_type == ActivityType.YOUR_TIME:
            table.add_row(
                "",
                Text(item.label, style=ACTIVITY_STYLES[item.activity_type]),
                item.start_time,
                "",
                format_duration(item.duration_minutes) if item.duration_minutes else "",
                "",
            )

    console.print(table)


def cmd_cleanup(args, adjustments: AdjustmentRepository, records: NotificationRecordRepository, formulas: FormulaRepository):
    """Run the stale-data cleanup once."""
    scheduler = CleanupScheduler(adjustments, records, formulas)
    report = scheduler.run_full_cleanup()

    table = Table(title="Cleanup", box=box.ROUNDED)
    table.add_column("Category", style="cyan")
    table.add_column("Deleted", justify="right")
    table.add_column("Cutoff")
    table.add_column("Status")

    for result in report.results:
        status = Text("ok", style="green") if result.success else Text(result.error or "failed", style="red")
        table.add_row(result.category, str(result.records_deleted), result.cutoff, status)

    console.print()
    console.print(table)
    console.print(f"Total deleted: [bold]{report.total_deleted}[/bold] in {report.duration_seconds}s")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="EASY schedule - feed/activity/sleep cycle planner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  easy-schedule formulas
  easy-schedule show --wake 07:00 --formula easy4
  easy-schedule show --wake 23:00 --formula easy3 --at 00:30
  easy-schedule cleanup
        """,
    )
    parser.add_argument("--db", help="SQLite database path (defaults to EASY_DATABASE_PATH)")
    parser.add_argument("--baby", type=int, default=1, help="Baby profile id")
    parser.add_argument("--log-level", help="Log level (defaults to EASY_LOG_LEVEL)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Formulas command
    subparsers.add_parser("formulas", help="List available formulas")

    # Show command
    show_p = subparsers.add_parser("show", help="Show a day's schedule")
    show_p.add_argument("--wake", "-w", default=None, help="First wake time (HH:MM)")
    show_p.add_argument("--formula", "-f", default=None, help="Formula id, e.g. easy3")
    show_p.add_argument("--birth-date", default=None, help="Birth date for age-based selection (YYYY-MM-DD)")
    show_p.add_argument("--date", "-d", default=None, help="Schedule date (YYYY-MM-DD, default today)")
    show_p.add_argument("--at", default=None, help="Evaluate progress at this time (HH:MM)")

    # Cleanup command
    subparsers.add_parser("cleanup", help="Delete stale adjustments and expired records")

    args = parser.parse_args()
    setup_logging(args.log_level)

    if args.command is None:
        parser.print_help()
        return

    try:
        formulas = FormulaRepository(db_path=args.db)
        formulas.seed_predefined()
        adjustments = AdjustmentRepository(db_path=args.db)

        if args.command == "formulas":
            cmd_formulas(args, formulas)
        elif args.command == "show":
            cmd_show(args, ScheduleService(formulas, adjustments))
        elif args.command == "cleanup":
            cmd_cleanup(args, adjustments, NotificationRecordRepository(db_path=args.db), formulas)
    except EasyScheduleError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
