"""
CLI entry point using Typer.

Provides commands for workout and activity tracking:
- start: Run a live workout session for one program day
- log-metric: Log today's steps, calories, water, sleep, weight or active minutes
- goals: Update daily/weekly goals
- complete-day: Count a program day done without a live session
- today: Show today's activity and the weekly summary
- history: Show finalized workouts
- records: Show personal records per exercise
- frequency: Workouts per day over the last week
- summary: Lifetime totals
"""

from .app import app
from .commands import analysis, metrics, session  # noqa: F401  (registers commands)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
