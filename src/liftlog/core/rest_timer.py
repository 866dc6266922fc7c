"""
Rest countdown between sets.

The timer is passive: something outside calls ``tick()`` (the CLI driver
in ``run()``, a UI scheduler, or a test). Each tick reconciles the time
elapsed on an injected monotonic clock, so late, bunched or dropped ticks
never make the countdown drift from wall-clock time.
"""

import time
from typing import Callable, Literal

from .config import TICK_INTERVAL_SECONDS
from .errors import InvalidInputError

TimerState = Literal["idle", "running", "paused", "completed", "skipped", "cancelled"]

_ACTIVE_STATES = ("running", "paused")


def format_clock(seconds: int) -> str:
    """Format seconds as M:SS, e.g. 90 -> '1:30'."""
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins}:{secs:02d}"


class RestTimer:
    """
    A single countdown with pause/resume/adjust/skip/cancel.

    Completion fires ``on_complete`` exactly once per started countdown.
    ``skip()`` fires ``on_skip`` instead; ``cancel()`` fires nothing.
    Every ``start()`` returns a generation token; ticks that carry a stale
    token (scheduled for an earlier countdown) are ignored.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        on_tick: Callable[[int], None] | None = None,
        on_complete: Callable[[], None] | None = None,
        on_skip: Callable[[], None] | None = None,
    ):
        """
        Initialize an idle timer.

        Args:
            clock: Monotonic clock returning seconds
            on_tick: Called with the remaining seconds after each decrement
            on_complete: Called once when the countdown reaches 0
            on_skip: Called when the user skips the rest
        """
        self._clock = clock
        self._on_tick = on_tick
        self._on_complete = on_complete
        self._on_skip = on_skip

        self.total_seconds = 0
        self.remaining_seconds = 0
        self.state: TimerState = "idle"

        self._generation = 0
        self._anchor = 0.0  # clock reading at which remaining_seconds was last reconciled
        self._carry = 0.0  # fraction of a second already elapsed when paused

    @property
    def paused(self) -> bool:
        return self.state == "paused"

    @property
    def is_active(self) -> bool:
        """True while the countdown is running or paused."""
        return self.state in _ACTIVE_STATES

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def progress_percent(self) -> float:
        """Elapsed share of the countdown, 0..100."""
        if self.total_seconds <= 0:
            return 100.0 if self.state == "completed" else 0.0
        return (self.total_seconds - self.remaining_seconds) / self.total_seconds * 100

    def start(self, duration_seconds: int) -> int:
        """
        Start (or restart) a countdown.

        Args:
            duration_seconds: Rest length in seconds (>= 0)

        Returns:
            Generation token identifying this countdown

        Raises:
            InvalidInputError: If duration is negative or not a whole number
        """
        if isinstance(duration_seconds, bool) or not isinstance(duration_seconds, int):
            raise InvalidInputError(f"Rest duration must be whole seconds, got {duration_seconds!r}")
        if duration_seconds < 0:
            raise InvalidInputError(f"Rest duration must be non-negative, got {duration_seconds}")

        self._generation += 1
        self.total_seconds = duration_seconds
        self.remaining_seconds = duration_seconds
        self._anchor = self._clock()
        self._carry = 0.0
        self.state = "running"

        if self.remaining_seconds == 0:
            self._finish()
        return self._generation

    def tick(self, generation: int | None = None) -> int:
        """
        Reconcile elapsed time and decrement once per whole elapsed second.

        Args:
            generation: Token returned by start(); stale tokens are ignored

        Returns:
            Remaining seconds after the tick
        """
        if generation is not None and generation != self._generation:
            return self.remaining_seconds
        if self.state != "running":
            return self.remaining_seconds
        self._reconcile()
        return self.remaining_seconds

    def pause(self) -> None:
        """Suspend the countdown, keeping the partial second already elapsed."""
        if self.state != "running":
            return
        self._reconcile()
        if self.state != "running":
            return  # reached 0 while reconciling
        self._carry = self._clock() - self._anchor
        self.state = "paused"

    def resume(self) -> None:
        """Continue a paused countdown from where it stopped."""
        if self.state != "paused":
            return
        self._anchor = self._clock() - self._carry
        self._carry = 0.0
        self.state = "running"

    def adjust(self, delta_seconds: int) -> None:
        """
        Add or remove rest time.

        Remaining time is clamped at 0; hitting 0 completes the countdown.
        A no-op once the countdown has ended, until it is restarted.
        """
        if not self.is_active:
            return
        if self.state == "running":
            self._reconcile()
            if not self.is_active:
                return

        elapsed = self.total_seconds - self.remaining_seconds
        self.remaining_seconds = max(0, self.remaining_seconds + int(delta_seconds))
        self.total_seconds = elapsed + self.remaining_seconds

        if self.remaining_seconds == 0:
            self._finish()

    def skip(self) -> None:
        """End the rest early at the user's request. Never fires on_complete."""
        if not self.is_active:
            return
        self.state = "skipped"
        if self._on_skip is not None:
            self._on_skip()

    def cancel(self) -> None:
        """End the rest silently (session closed, exercise skipped)."""
        if not self.is_active:
            return
        self.state = "cancelled"

    def run(self, sleep: Callable[[float], None] = time.sleep) -> TimerState:
        """
        Drive the current countdown until it ends.

        Blocks, ticking once per interval. Returns the final state.
        Stops early if the timer is restarted from a callback.
        """
        generation = self._generation
        while self.state == "running" and generation == self._generation:
            sleep(TICK_INTERVAL_SECONDS)
            self.tick(generation)
        return self.state

    def _reconcile(self) -> None:
        now = self._clock()
        whole = int((now - self._anchor) // TICK_INTERVAL_SECONDS)
        if whole <= 0:
            return

        self._anchor += whole * TICK_INTERVAL_SECONDS
        self.remaining_seconds -= min(whole, self.remaining_seconds)

        if self._on_tick is not None:
            self._on_tick(self.remaining_seconds)
        if self.remaining_seconds == 0:
            self._finish()

    def _finish(self) -> None:
        self.remaining_seconds = 0
        self.state = "completed"
        if self._on_complete is not None:
            self._on_complete()
