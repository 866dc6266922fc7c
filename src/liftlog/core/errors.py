"""
Error types raised by the liftlog engine.

Validation and sequence errors are raised before any state is touched, so
a rejected operation never leaves a partial write behind.
"""


class LiftlogError(Exception):
    """Base class for all liftlog errors."""

    pass


class InvalidInputError(LiftlogError, ValueError):
    """Raised for malformed or non-positive reps/weight and bad metric values."""

    pass


class InvalidSequenceError(LiftlogError):
    """Raised for out-of-order set completion or writes to a non-current exercise."""

    pass


class AlreadyFinalizedError(LiftlogError):
    """Raised when a finalized session is finalized or mutated again."""

    pass


class AlreadyCompletedTodayError(LiftlogError):
    """Raised when the same program day is completed twice on one calendar day."""

    def __init__(self, day_number: int, date: str):
        super().__init__(f"Workout day {day_number} already completed on {date}")
        self.day_number = day_number
        self.date = date


class PersistenceUnavailableError(LiftlogError):
    """Raised when the document store cannot be read or written."""

    pass
