"""Analysis commands: history, records, frequency, summary."""

import json
from dataclasses import asdict
from typing import Annotated, Optional

import typer

from ...core.analytics import personal_records, progress_summary, weekly_frequency
from ...core.errors import LiftlogError
from ...core.models import SessionRecord
from .. import views
from ..app import DataDirOption, JsonOption, UserOption, app, get_workspace


def _load_sessions(data_dir, user) -> list[SessionRecord]:
    workspace = get_workspace(data_dir, user)
    try:
        return workspace.sessions().load_all()
    except LiftlogError as e:
        views.print_error(str(e))
        raise typer.Exit(1)


@app.command()
def history(
    limit: Annotated[int, typer.Option("--limit", "-n", help="Most recent sessions to show")] = 50,
    data_dir: DataDirOption = None,
    user: UserOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show finalized workouts, most recent first.
    """
    records = list(reversed(_load_sessions(data_dir, user)))[:limit]

    if json_out:
        print(json.dumps([
            {
                "id": r.session_id,
                "date": r.date,
                "routine_name": r.routine_name,
                "day_number": r.workout_day_number,
                "duration_minutes": r.duration_minutes,
                "total_sets": r.total_sets,
                "total_reps": r.total_reps,
                "total_volume": r.total_volume,
            }
            for r in records
        ], indent=2))
        return

    views.print_history(records)


@app.command()
def records(
    exercise: Annotated[
        Optional[str],
        typer.Option("--exercise", "-e", help="Only show this exercise name"),
    ] = None,
    data_dir: DataDirOption = None,
    user: UserOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show personal records per exercise.
    """
    prs = personal_records(_load_sessions(data_dir, user))
    if exercise is not None:
        prs = [pr for pr in prs if pr.exercise_name.lower() == exercise.lower()]

    if json_out:
        print(json.dumps([asdict(pr) for pr in prs], indent=2))
        return

    views.print_records(prs)


@app.command()
def frequency(
    days: Annotated[
        Optional[int],
        typer.Option("--days", help="Window length in days (default from settings)"),
    ] = None,
    data_dir: DataDirOption = None,
    user: UserOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show workouts per day over the last week.
    """
    workspace = get_workspace(data_dir, user)
    window = days if days is not None else workspace.settings.frequency_window_days
    if window < 1:
        views.print_error("--days must be at least 1")
        raise typer.Exit(1)

    buckets = weekly_frequency(_load_sessions(data_dir, user), window_days=window)

    if json_out:
        print(json.dumps([asdict(b) for b in buckets], indent=2))
        return

    views.print_frequency(buckets)


@app.command()
def summary(
    data_dir: DataDirOption = None,
    user: UserOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show lifetime totals and recent workout counts.
    """
    result = progress_summary(_load_sessions(data_dir, user))

    if json_out:
        print(json.dumps(asdict(result), indent=2))
        return

    views.print_summary(result)
