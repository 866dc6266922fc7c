"""
YAML -> WorkoutProgram loader.

A program file lists numbered days, each with the exercises a session
starts from::

    id: upper-lower
    name: Upper / Lower
    days:
      - day: 1
        name: Upper
        exercises:
          - exerciseName: Bench Press
            muscleGroup: chest
            equipment: barbell
            sets: 3
            reps: "8-12"
            restTime: 90
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from ..core.config import DEFAULT_REST_SECONDS, DEFAULT_ROUTINE_NAME
from ..core.models import WorkoutDay, WorkoutProgram
from .serializers import ValidationError, dict_to_prescription


def dict_to_program(data: dict[str, Any], default_rest: int = DEFAULT_REST_SECONDS) -> WorkoutProgram:
    """
    Convert a parsed program mapping to WorkoutProgram.

    Raises:
        ValidationError: If days or exercises are missing or malformed
    """
    raw_days = data.get("days")
    if not isinstance(raw_days, list) or not raw_days:
        raise ValidationError("Program has no days")

    days: list[WorkoutDay] = []
    seen: set[int] = set()
    for i, raw in enumerate(raw_days):
        if not isinstance(raw, dict):
            raise ValidationError(f"Program day #{i + 1} is not a mapping")
        day_number = raw.get("day", i + 1)
        if isinstance(day_number, bool) or not isinstance(day_number, int) or day_number < 1:
            raise ValidationError(f"Program day #{i + 1} has invalid day number {day_number!r}")
        if day_number in seen:
            raise ValidationError(f"Program day {day_number} is defined twice")
        seen.add(day_number)

        raw_exercises = raw.get("exercises")
        if not isinstance(raw_exercises, list) or not raw_exercises:
            raise ValidationError(f"Program day {day_number} has no exercises")
        if not all(isinstance(ex, dict) for ex in raw_exercises):
            raise ValidationError(f"Program day {day_number} has an exercise that is not a mapping")

        exercises = tuple(
            dict_to_prescription(ex, idx, default_rest=default_rest)
            for idx, ex in enumerate(raw_exercises)
        )
        days.append(WorkoutDay(day_number=day_number, name=str(raw.get("name") or f"Day {day_number}"),
                               exercises=exercises))

    name = str(data.get("name") or DEFAULT_ROUTINE_NAME)
    return WorkoutProgram(program_id=str(data.get("id") or name), name=name, days=tuple(days))


def load_program(path: str | Path, default_rest: int = DEFAULT_REST_SECONDS) -> WorkoutProgram:
    """
    Load a program from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValidationError: If the file is not valid YAML or not a valid program
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as e:
            raise ValidationError(f"Cannot parse program {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError(f"Program {path} must be a mapping")
    return dict_to_program(data, default_rest=default_rest)
