"""Live session command: start, plus the interactive session loop."""

from pathlib import Path
from typing import Annotated

import typer

from ...core.errors import (
    AlreadyCompletedTodayError,
    LiftlogError,
    PersistenceUnavailableError,
)
from ...core.models import SessionRecord
from ...core.rest_timer import RestTimer, format_clock
from ...core.session import SessionStateMachine
from ...io.program_loader import load_program
from ...io.serializers import parse_set_entry
from .. import views
from ..app import DataDirOption, UserOption, Workspace, app, get_workspace

_HELP_LINE = (
    "  Enter [cyan]reps weight[/cyan] (e.g. [green]10 60[/green]),"
    " [cyan]n[/cyan] next exercise, [cyan]s[/cyan] skip exercise,"
    " [cyan]f[/cyan] finish, [cyan]q[/cyan] quit without saving"
)


def _run_rest(timer: RestTimer) -> None:
    """Count the rest down in the terminal; Ctrl+C skips it."""
    views.console.print(
        f"  [dim]Rest {format_clock(timer.remaining_seconds)} — Ctrl+C to skip[/dim]"
    )
    try:
        timer.run()
    except KeyboardInterrupt:
        timer.skip()
    views.console.print()


def run_session(session: SessionStateMachine, timer: RestTimer | None) -> None:
    """
    Drive a session from the terminal until it is finalized or abandoned.

    Args:
        session: Live session
        timer: Rest timer attached to the session, or None for no rest countdown
    """
    views.console.print(_HELP_LINE)

    while session.state in ("in_progress", "exercise_ready"):
        exercise = session.current_exercise
        assert exercise is not None
        views.print_exercise_progress(session)

        if session.state == "exercise_ready":
            raw = views.console.input("  All sets logged. Next exercise? [Y/f/q]: ").strip().lower()
            if raw in ("", "y", "n"):
                raw = "n"
        else:
            set_index = exercise.next_set_index
            raw = views.console.input(f"  Set {(set_index or 0) + 1}/{exercise.planned_sets}: ").strip().lower()

        if raw == "n":
            try:
                session.confirm_exercise_complete()
            except LiftlogError as e:
                views.print_error(str(e))
        elif raw == "s":
            if views.confirm_action(f"Skip {exercise.exercise_name}?"):
                session.skip_exercise()
                views.print_warning(f"{exercise.exercise_name} skipped")
        elif raw == "f":
            if views.confirm_action("Finish workout now?"):
                break
        elif raw == "q":
            if views.confirm_action("Exit workout? Your progress will not be saved."):
                session.abandon()
                return
        elif raw:
            try:
                reps, weight = parse_set_entry(raw)
                outcome = session.record_set(
                    session.current_exercise_index,
                    exercise.next_set_index if exercise.next_set_index is not None else -1,
                    reps,
                    weight,
                )
            except LiftlogError as e:
                views.print_error(str(e))
                continue

            if outcome.exercise_sets_complete:
                views.print_success(f"{exercise.exercise_name}: all sets logged!")
            else:
                views.print_success("Set logged.")
                if timer is not None and timer.is_active:
                    _run_rest(timer)

    session.finalize()


def save_session(record: SessionRecord, workspace: Workspace) -> bool:
    """
    Persist a finalized session and count it towards the week.

    Store failures are reported and may be retried; the record stays in
    memory until it is saved or the user gives up.

    Returns:
        True if the session record was stored
    """
    sessions = workspace.sessions()
    while True:
        try:
            sessions.append(record)
            break
        except PersistenceUnavailableError as e:
            views.print_error(str(e))
            if not views.confirm_action("Retry saving the workout?"):
                views.print_warning("Workout was not saved.")
                return False

    aggregator = workspace.aggregator()
    while True:
        try:
            aggregator.record_session(record)
            break
        except AlreadyCompletedTodayError as e:
            views.print_warning(f"{e}; weekly count unchanged.")
            break
        except PersistenceUnavailableError as e:
            views.print_error(str(e))
            if not views.confirm_action("Retry updating the weekly summary?"):
                views.print_warning("Weekly summary not updated.")
                break
    return True


@app.command()
def start(
    program: Annotated[
        Path,
        typer.Option("--program", "-p", help="Workout program YAML file"),
    ],
    day: Annotated[
        int,
        typer.Option("--day", "-d", help="Program day number to perform"),
    ] = 1,
    rest: Annotated[
        bool,
        typer.Option("--rest/--no-rest", help="Run the rest countdown between sets"),
    ] = True,
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """
    Start a live workout session for one program day.
    """
    workspace = get_workspace(data_dir, user)

    try:
        workout_program = load_program(program, default_rest=workspace.settings.default_rest_seconds)
        workout_day = workout_program.day(day)
    except FileNotFoundError:
        views.print_error(f"Program file not found: {program}")
        raise typer.Exit(1)
    except (LiftlogError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    timer = RestTimer(
        on_tick=views.print_rest_tick,
        on_complete=lambda: views.print_success("Rest over — next set!"),
    ) if rest else None

    session = SessionStateMachine(
        workout_day.exercises,
        user_id=workspace.user_id,
        routine_id=workout_program.program_id,
        routine_name=workout_program.name,
        day_number=workout_day.day_number,
        day_name=workout_day.name,
        rest_timer=timer,
    )

    views.console.print(
        f"[bold cyan]{workout_program.name}[/bold cyan] — day {workout_day.day_number}: "
        f"{workout_day.name} ({len(workout_day.exercises)} exercises)"
    )
    run_session(session, timer)

    if session.record is None:
        views.print_info("Workout discarded.")
        raise typer.Exit(0)

    views.print_session_summary(session.record)
    if not save_session(session.record, workspace):
        raise typer.Exit(1)
    views.print_success(
        f"Workout saved! Duration: {session.record.duration_minutes} min • "
        f"Volume: {session.record.total_volume:g} kg"
    )
