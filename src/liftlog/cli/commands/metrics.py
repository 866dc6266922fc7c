"""Daily activity commands: log-metric, goals, complete-day, today."""

import json
from datetime import date
from typing import Annotated, Optional

import typer

from ...core.config import METRIC_FIELDS
from ...core.errors import LiftlogError
from ...io.serializers import activity_record_to_dict
from .. import views
from ..app import DataDirOption, JsonOption, UserOption, app, get_workspace


@app.command("log-metric")
def log_metric(
    field: Annotated[
        str,
        typer.Argument(help=f"Metric to log: {', '.join(METRIC_FIELDS)}"),
    ],
    value: Annotated[
        float,
        typer.Argument(help="Value for today (non-negative)"),
    ],
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """
    Record one of today's activity metrics.
    """
    workspace = get_workspace(data_dir, user)
    aggregator = workspace.aggregator()

    try:
        record = aggregator.record_daily_metric(field, value)
    except LiftlogError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    progress = getattr(record, f"{field}_progress", None)
    suffix = f" ({progress}% of goal)" if progress is not None else ""
    views.print_success(f"Logged {field} = {views.format_number(value)}{suffix}")


@app.command()
def goals(
    steps: Annotated[Optional[float], typer.Option("--steps", help="Daily steps goal")] = None,
    calories: Annotated[Optional[float], typer.Option("--calories", help="Daily calories goal")] = None,
    water: Annotated[Optional[float], typer.Option("--water", help="Daily water goal (glasses)")] = None,
    sleep: Annotated[Optional[float], typer.Option("--sleep", help="Nightly sleep goal (hours)")] = None,
    weekly_workouts: Annotated[
        Optional[int],
        typer.Option("--weekly-workouts", help="Workouts per week goal"),
    ] = None,
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """
    Update today's goals and recompute progress.
    """
    updates = {
        name: value
        for name, value in (
            ("steps", steps),
            ("calories", calories),
            ("water", water),
            ("sleep", sleep),
            ("weeklyWorkouts", weekly_workouts),
        )
        if value is not None
    }
    if not updates:
        views.print_error("Give at least one goal, e.g. --steps 12000")
        raise typer.Exit(1)

    workspace = get_workspace(data_dir, user)
    try:
        workspace.aggregator().update_goals(updates)
    except LiftlogError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success("Goals updated: " + ", ".join(f"{k}={v:g}" for k, v in updates.items()))


@app.command("complete-day")
def complete_day(
    day_number: Annotated[int, typer.Argument(help="Program day number completed")],
    name: Annotated[str, typer.Option("--name", "-n", help="Workout name")] = "Custom Workout",
    minutes: Annotated[int, typer.Option("--minutes", "-m", help="Workout duration in minutes")] = 0,
    calories: Annotated[float, typer.Option("--calories", help="Calories burned")] = 0,
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """
    Count a program day done without a live session (e.g. logged elsewhere).
    """
    workspace = get_workspace(data_dir, user)
    try:
        record = workspace.aggregator().record_workout_completion(
            day_number, name, duration_minutes=minutes, calories_burned=calories,
        )
    except LiftlogError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(
        f"Day {day_number} completed. This week: {record.weekly_workouts} workout(s)"
    )


@app.command()
def today(
    data_dir: DataDirOption = None,
    user: UserOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show today's activity (or the most recent day of the last week).
    """
    workspace = get_workspace(data_dir, user)
    try:
        record = workspace.aggregator().load_activity()
    except LiftlogError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(activity_record_to_dict(record) if record else None, indent=2))
        return

    views.print_activity(record, date.today().isoformat())
