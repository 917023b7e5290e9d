from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)

FOCUS_SECONDS = 25 * 60
BREAK_SECONDS = 5 * 60


# PUBLIC_INTERFACE
class CycleMode(str, Enum):
    FOCUS = "FOCUS"
    BREAK = "BREAK"


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class CycleCompleted:
    """Emitted once per focus period that counts down to zero."""

    focus_seconds_just_completed: int
    cycles_completed_this_run: int


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class FocusCycleState:
    mode: CycleMode
    remaining_seconds: int
    cycles_completed_this_run: int
    accumulated_focus_seconds_this_run: int
    is_running: bool
    generation: int
    focus_seconds: int
    break_seconds: int

    @property
    def duration(self) -> int:
        return self.focus_seconds if self.mode == CycleMode.FOCUS else self.break_seconds

    @property
    def progress(self) -> float:
        """Elapsed fraction of the current period, 0.0 .. 1.0."""
        return (self.duration - self.remaining_seconds) / self.duration


def _validate_duration(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an int, got {type(value).__name__}")
    if value <= 0:
        raise ValueError(f"{name} must be greater than zero, got {value}")
    return value


# PUBLIC_INTERFACE
class FocusCycleEngine:
    """
    Pure focus/break countdown. No clock of its own: the owner of the engine
    calls tick() once per second while it wants time to pass.

    Every pause() and reset() bumps ``generation``. A tick that carries an
    older generation was scheduled before the cancellation and is dropped, so
    a late tick never moves the countdown after the user stopped it.
    """

    def __init__(self, focus_seconds: int = FOCUS_SECONDS, break_seconds: int = BREAK_SECONDS) -> None:
        self.focus_seconds = _validate_duration("focus_seconds", focus_seconds)
        self.break_seconds = _validate_duration("break_seconds", break_seconds)
        self.generation = 0

        self.mode = CycleMode.FOCUS
        self.remaining_seconds = self.focus_seconds
        self.cycles_completed_this_run = 0
        self.accumulated_focus_seconds_this_run = 0
        self.is_running = False

    def snapshot(self) -> FocusCycleState:
        return FocusCycleState(
            mode=self.mode,
            remaining_seconds=self.remaining_seconds,
            cycles_completed_this_run=self.cycles_completed_this_run,
            accumulated_focus_seconds_this_run=self.accumulated_focus_seconds_this_run,
            is_running=self.is_running,
            generation=self.generation,
            focus_seconds=self.focus_seconds,
            break_seconds=self.break_seconds,
        )

    def restore(self, state: FocusCycleState) -> None:
        """
        Roll the countdown back to an earlier snapshot of this engine. Used when
        a completed focus period could not be recorded, so the next tick
        finishes it again.
        """
        self.mode = state.mode
        self.remaining_seconds = state.remaining_seconds
        self.cycles_completed_this_run = state.cycles_completed_this_run
        self.accumulated_focus_seconds_this_run = state.accumulated_focus_seconds_this_run
        self.is_running = state.is_running
        self.generation = state.generation

    def start(self) -> None:
        self.is_running = True

    def pause(self) -> None:
        if not self.is_running:
            return
        self.is_running = False
        self.generation += 1

    def reset(self) -> None:
        self.mode = CycleMode.FOCUS
        self.remaining_seconds = self.focus_seconds
        self.cycles_completed_this_run = 0
        self.accumulated_focus_seconds_this_run = 0
        self.is_running = False
        self.generation += 1

    def tick(self, generation: Optional[int] = None) -> Optional[CycleCompleted]:
        """
        Advance one second. Returns the cycle-complete event when a focus
        period just ended, otherwise None.
        """
        if not self.is_running:
            return None
        if generation is not None and generation != self.generation:
            logger.debug("Dropping stale tick generation=%s current=%s", generation, self.generation)
            return None

        if self.remaining_seconds > 0:
            self.remaining_seconds -= 1
        if self.remaining_seconds > 0:
            return None

        if self.mode == CycleMode.BREAK:
            self.mode = CycleMode.FOCUS
            self.remaining_seconds = self.focus_seconds
            logger.debug("Break over, back to focus")
            return None

        self.cycles_completed_this_run += 1
        self.accumulated_focus_seconds_this_run += self.focus_seconds
        event = CycleCompleted(
            focus_seconds_just_completed=self.focus_seconds,
            cycles_completed_this_run=self.cycles_completed_this_run,
        )
        self.mode = CycleMode.BREAK
        self.remaining_seconds = self.break_seconds
        logger.debug("Focus period complete cycles=%d", self.cycles_completed_this_run)
        return event
