"""
Configuration constants for the liftlog tracking engine.

All adjustable parameters are centralized here for easy tuning.
User overrides are merged on top of these defaults by config_loader.py.
"""

from dataclasses import dataclass
from typing import Final

# =============================================================================
# PRESCRIPTION DEFAULTS
# =============================================================================

DEFAULT_SETS: Final[int] = 3  # Used when a prescription has no usable set count
DEFAULT_REPS: Final[str] = "10"  # Advisory rep target, display only
DEFAULT_REST_SECONDS: Final[int] = 60
DEFAULT_MUSCLE_GROUP: Final[str] = "unknown"
DEFAULT_EQUIPMENT: Final[str] = "bodyweight"
DEFAULT_ROUTINE_NAME: Final[str] = "Custom Workout"

# =============================================================================
# REST TIMER
# =============================================================================

TICK_INTERVAL_SECONDS: Final[float] = 1.0  # One decrement per elapsed second

# =============================================================================
# DAILY METRIC GOALS
# =============================================================================

DEFAULT_GOALS: Final[dict[str, float]] = {
    "steps": 10000,
    "calories": 500,
    "water": 8,  # glasses
    "sleep": 8,  # hours
}
DEFAULT_WEEKLY_WORKOUTS_GOAL: Final[int] = 5

# Fields accepted by record_daily_metric and whether they must be whole numbers
METRIC_FIELDS: Final[dict[str, bool]] = {
    "steps": True,
    "calories": True,
    "water": True,
    "sleep": False,
    "weight": False,
    "activeMinutes": True,
}

# Fields that carry a <field>Goal / <field>Progress pair
GOAL_FIELDS: Final[tuple[str, ...]] = ("steps", "calories", "water", "sleep")

# =============================================================================
# WEEKLY ROLLUP
# =============================================================================

WEEKLY_FIELDS: Final[tuple[str, ...]] = (
    "weeklyWorkouts",
    "weeklyTotalTime",
    "weeklyCaloriesBurned",
)

# =============================================================================
# ANALYTICS WINDOWS
# =============================================================================

FREQUENCY_WINDOW_DAYS: Final[int] = 7
RECENT_ACTIVITY_LOOKBACK_DAYS: Final[int] = 7  # Fallback search when today has no record
SUMMARY_WEEK_DAYS: Final[int] = 7
SUMMARY_MONTH_DAYS: Final[int] = 30

# =============================================================================
# STORAGE LAYOUT
# =============================================================================

USERS_COLLECTION: Final[str] = "users"
ACTIVITY_COLLECTION: Final[str] = "activity"
SESSIONS_COLLECTION: Final[str] = "workoutSessions"
DEFAULT_USER_ID: Final[str] = "local"


@dataclass(frozen=True)
class Settings:
    """Effective settings after merging user overrides over the defaults."""

    goals: dict[str, float]
    weekly_workouts_goal: int
    default_rest_seconds: int
    frequency_window_days: int
    user_id: str = DEFAULT_USER_ID

    def goal_for(self, field: str) -> float | None:
        """Return the configured goal for a metric field, or None if it has none."""
        return self.goals.get(field)


def default_settings() -> Settings:
    """Return Settings built purely from the module constants."""
    return Settings(
        goals=dict(DEFAULT_GOALS),
        weekly_workouts_goal=DEFAULT_WEEKLY_WORKOUTS_GOAL,
        default_rest_seconds=DEFAULT_REST_SECONDS,
        frequency_window_days=FREQUENCY_WINDOW_DAYS,
    )
