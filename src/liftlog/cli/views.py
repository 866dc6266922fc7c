"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of sessions, activity and records.
"""

from rich.console import Console
from rich.table import Table

from ..core.models import (
    DailyActivityRecord,
    FrequencyBucket,
    PersonalRecord,
    ProgressSummary,
    SessionRecord,
)
from ..core.rest_timer import format_clock
from ..core.session import SessionStateMachine

console = Console()


def format_value(value: float | int | str | None, suffix: str = "", decimals: int | None = None) -> str:
    """
    Format a possibly-missing value for display.

    Missing values (None, "", NaN) show as "N/A".
    """
    if value is None or value == "" or (isinstance(value, float) and value != value):
        return "N/A"
    text = f"{value:.{decimals}f}" if decimals is not None and not isinstance(value, str) else str(value)
    return f"{text} {suffix}" if suffix else text


def format_number(value: float | int | None, suffix: str = "") -> str:
    """Format a number with thousand separators, e.g. 8547 -> '8,547'."""
    if value is None or (isinstance(value, float) and value != value):
        return "N/A"
    text = f"{value:,.0f}" if float(value).is_integer() else f"{value:,}"
    return f"{text} {suffix}" if suffix else text


def format_duration(minutes: int | None) -> str:
    """Format minutes as 'Xh Ym', e.g. 65 -> '1h 5m'."""
    if minutes is None:
        return "N/A"
    hours, mins = divmod(int(minutes), 60)
    return f"{hours}h {mins}m"


def _fmt_weight(weight: float | None) -> str:
    if weight is None:
        return "-"
    return f"{weight:g} kg"


def print_exercise_progress(session: SessionStateMachine) -> None:
    """
    Print the current exercise with its set ledger.

    Args:
        session: Live session
    """
    exercise = session.current_exercise
    if exercise is None:
        return

    position = session.current_exercise_index + 1
    title = (
        f"[{position}/{len(session.exercises)}] {exercise.exercise_name}"
        f"  ({exercise.planned_sets} x {exercise.planned_reps}, rest {exercise.planned_rest_seconds}s)"
    )
    table = Table(title=title, title_justify="left")
    table.add_column("Set", justify="right", style="dim", width=4)
    table.add_column("Target", justify="right")
    table.add_column("Reps", justify="right", style="bold")
    table.add_column("Weight", justify="right")
    table.add_column("", width=2)

    next_index = exercise.next_set_index
    for i, s in enumerate(exercise.sets):
        marker = "[green]✓[/green]" if s.completed else ("[cyan]›[/cyan]" if i == next_index else "")
        table.add_row(
            str(s.set_number),
            str(s.target_reps) if s.target_reps else "-",
            str(s.reps) if s.reps is not None else "-",
            _fmt_weight(s.weight),
            marker,
        )

    console.print()
    console.print(table)
    if exercise.notes:
        console.print(f"[dim]Notes: {exercise.notes}[/dim]")
    console.print(
        f"[dim]Progress {session.overall_progress:.0f}%  •  "
        f"Volume {session.total_volume:g} kg  •  Sets {session.total_sets}[/dim]"
    )


def print_rest_tick(remaining: int) -> None:
    """Overwrite the current line with the remaining rest time."""
    console.print(f"  Rest {format_clock(remaining)}   ", end="\r")


def print_session_summary(record: SessionRecord) -> None:
    """
    Print the totals of a finalized session.

    Args:
        record: Finalized session
    """
    table = Table(title=f"{record.routine_name} — {record.workout_day_name or 'Workout'}")
    table.add_column("Exercise", style="cyan")
    table.add_column("Sets", justify="right")
    table.add_column("Volume", justify="right", style="bold")
    table.add_column("Status")

    for ex in record.exercises:
        done = sum(1 for s in ex.sets if s.completed)
        status = "done" if ex.completed else ("skipped" if ex.skipped else "unfinished")
        table.add_row(ex.exercise_name, f"{done}/{ex.planned_sets}", f"{ex.total_volume:g}", status)

    console.print()
    console.print(table)
    console.print(
        f"Duration: {record.duration_minutes} min  •  Volume: {record.total_volume:g} kg  •  "
        f"Sets: {record.total_sets}  •  Reps: {record.total_reps}"
    )


def format_session_table(records: list[SessionRecord]) -> Table:
    """
    Create a Rich table of finalized sessions.

    Args:
        records: Sessions to display, in display order

    Returns:
        Rich Table object
    """
    table = Table(title="Workout History")

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Date", style="cyan")
    table.add_column("Workout", style="magenta")
    table.add_column("Day")
    table.add_column("Min", justify="right")
    table.add_column("Sets", justify="right")
    table.add_column("Reps", justify="right")
    table.add_column("Volume", justify="right", style="bold")

    for i, record in enumerate(records, 1):
        table.add_row(
            str(i),
            record.date,
            record.routine_name,
            record.workout_day_name or format_value(record.workout_day_number),
            str(record.duration_minutes),
            str(record.total_sets),
            str(record.total_reps),
            f"{record.total_volume:g}",
        )

    return table


def print_history(records: list[SessionRecord]) -> None:
    """Print session history, or a notice when there is none."""
    if not records:
        console.print("[yellow]No workouts recorded yet.[/yellow]")
        return
    console.print(format_session_table(records))


def print_activity(record: DailyActivityRecord | None, today: str) -> None:
    """
    Print a day's activity metrics and the weekly rollup.

    Args:
        record: Activity record (may be from an earlier day)
        today: Today's date, to flag fallback data
    """
    if record is None:
        console.print("[yellow]No activity recorded in the last week.[/yellow]")
        return
    if record.date != today:
        console.print(f"[dim]No activity logged today; showing {record.date}.[/dim]")

    table = Table(title=f"Activity {record.date}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="bold")
    table.add_column("Goal", justify="right")
    table.add_column("Progress", justify="right")

    rows = [
        ("Steps", record.steps, record.steps_goal, record.steps_progress),
        ("Calories", record.calories, record.calories_goal, record.calories_progress),
        ("Water", record.water, record.water_goal, record.water_progress),
        ("Sleep (h)", record.sleep, record.sleep_goal, record.sleep_progress),
    ]
    for name, value, goal, progress in rows:
        table.add_row(name, format_number(value), format_number(goal), f"{progress}%")
    table.add_row("Weight (kg)", format_value(record.weight), "", "")
    table.add_row("Active min", format_value(record.active_minutes), "", "")
    console.print(table)

    console.print(
        f"This week: {format_value(record.weekly_workouts)} / "
        f"{format_value(record.weekly_workouts_goal)} workouts  •  "
        f"{format_duration(record.weekly_total_time)}  •  "
        f"{format_number(record.weekly_calories_burned, 'kcal')}"
    )
    if record.last_completed_workout is not None:
        last = record.last_completed_workout
        console.print(
            f"[dim]Last workout: {last.workout_name} day {last.day_number}"
            f"{f' ({last.day_name})' if last.day_name else ''}[/dim]"
        )


def print_records(records: list[PersonalRecord]) -> None:
    """Print personal records per exercise."""
    if not records:
        console.print("[yellow]No personal records yet. Complete a workout to set one.[/yellow]")
        return

    table = Table(title="Personal Records")
    table.add_column("Exercise", style="cyan")
    table.add_column("Max weight", justify="right", style="bold")
    table.add_column("Max volume", justify="right")
    table.add_column("Max reps", justify="right")
    table.add_column("Sessions", justify="right")
    table.add_column("Lifetime vol.", justify="right", style="dim")

    for pr in records:
        table.add_row(
            pr.exercise_name,
            f"{pr.max_weight:g} kg ({pr.max_weight_date})",
            f"{pr.max_volume:g} ({pr.max_volume_date})",
            f"{pr.max_reps} ({pr.max_reps_date})",
            str(pr.total_sessions),
            f"{pr.total_volume:g}",
        )
    console.print(table)


def print_frequency(buckets: list[FrequencyBucket]) -> None:
    """Print a horizontal bar per day of the frequency window."""
    top = max((b.count for b in buckets), default=0) or 1
    console.print("[bold]Workouts per day[/bold]")
    for b in buckets:
        bar = "█" * round(b.count / top * 20)
        console.print(f"  {b.day_name} {b.date[5:]}  {bar:<20} {b.count}")


def print_summary(summary: ProgressSummary) -> None:
    """Print lifetime and recent totals."""
    lines = [
        "Progress",
        f"- Total workouts: {summary.total_workouts}",
        f"- Total volume:   {format_number(summary.total_volume, 'kg')}",
        f"- Total time:     {format_duration(summary.total_duration_minutes)}",
        f"- Last 7 days:    {summary.this_week_workouts}",
        f"- Last 30 days:   {summary.this_month_workouts}",
    ]
    console.print("\n".join(lines))


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} \\[y/N]: ")
    return response.lower() in ("y", "yes")
