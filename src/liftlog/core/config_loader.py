"""
YAML -> Settings loader.

Merges user overrides over the defaults in config.py. Override files are
looked up in order (later wins):

1. ~/.liftlog/settings.yaml
2. <data-dir>/settings.yaml, when a data directory is given

Example settings.yaml::

    user_id: alice
    goals:
      steps: 12000
      water: 10
    weekly_workouts_goal: 4
    default_rest_seconds: 90

A file that cannot be parsed produces a warning and is ignored.
"""

from __future__ import annotations

import os
import warnings
from pathlib import Path
from typing import Any

import yaml

from .config import DEFAULT_USER_ID, GOAL_FIELDS, Settings, default_settings

SETTINGS_FILENAME = "settings.yaml"


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML mapping; warn and return {} if the file is unreadable or malformed."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as e:
        warnings.warn(f"liftlog: ignoring settings file {path}: {e}", stacklevel=2)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        warnings.warn(f"liftlog: ignoring settings file {path}: expected a mapping", stacklevel=2)
        return {}
    return data


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def get_user_settings_path() -> Path | None:
    """Return ~/.liftlog/settings.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".liftlog" / SETTINGS_FILENAME
    return p if p.exists() else None


def settings_from_dict(data: dict[str, Any]) -> Settings:
    """
    Build Settings from a merged override dict.

    Unknown goal names and non-numeric values are dropped with a warning.
    """
    base = default_settings()

    goals = dict(base.goals)
    for name, value in (data.get("goals") or {}).items():
        if name not in GOAL_FIELDS:
            warnings.warn(f"liftlog: unknown goal '{name}' ignored", stacklevel=2)
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            warnings.warn(f"liftlog: invalid goal {name}={value!r} ignored", stacklevel=2)
            continue
        goals[name] = value

    def _int_option(key: str, default: int) -> int:
        value = data.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            warnings.warn(f"liftlog: invalid {key}={value!r} ignored", stacklevel=2)
            return default
        return value

    return Settings(
        goals=goals,
        weekly_workouts_goal=_int_option("weekly_workouts_goal", base.weekly_workouts_goal),
        default_rest_seconds=_int_option("default_rest_seconds", base.default_rest_seconds),
        frequency_window_days=_int_option("frequency_window_days", base.frequency_window_days) or 1,
        user_id=str(data.get("user_id") or DEFAULT_USER_ID),
    )


def load_settings(data_dir: Path | None = None) -> Settings:
    """
    Load and merge settings from YAML sources.

    Args:
        data_dir: Data directory whose settings.yaml overrides the home one

    Returns:
        Effective Settings (defaults when no file exists)
    """
    merged: dict[str, Any] = {}

    user = get_user_settings_path()
    if user is not None:
        merged = _deep_merge(merged, _load_yaml_file(user))

    if data_dir is not None:
        local = Path(data_dir) / SETTINGS_FILENAME
        if local.exists():
            merged = _deep_merge(merged, _load_yaml_file(local))

    return settings_from_dict(merged)
