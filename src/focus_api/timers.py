from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from threading import Lock
from typing import Dict, Optional

from .aggregator import DailySessionAggregator
from .focus_cycle import CycleCompleted, FocusCycleEngine, FocusCycleState
from .models import DailySessionEntity
from .settings import get_settings
from .task_engine import require_owner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickResult:
    state: FocusCycleState
    cycle_completed: Optional[CycleCompleted] = None
    today: Optional[DailySessionEntity] = None


@dataclass
class _Slot:
    engine: FocusCycleEngine
    lock: Lock


# PUBLIC_INTERFACE
class TimerRegistry:
    """
    One focus timer per owner, living as long as the owner's timer view.

    Each engine is driven under its own lock so concurrent intents from the
    same owner apply one at a time; a tick never overlaps another tick.
    Completed focus periods are reported to the daily aggregator before the
    tick returns.
    """

    def __init__(self, focus_seconds: int, break_seconds: int) -> None:
        self._focus_seconds = focus_seconds
        self._break_seconds = break_seconds
        self._lock = Lock()
        self._slots: Dict[str, _Slot] = {}

    def _slot(self, owner_id: str) -> _Slot:
        owner_id = require_owner(owner_id)
        with self._lock:
            slot = self._slots.get(owner_id)
            if slot is None:
                slot = _Slot(FocusCycleEngine(self._focus_seconds, self._break_seconds), Lock())
                self._slots[owner_id] = slot
                logger.debug("Timer created owner=%s", owner_id)
            return slot

    def state(self, owner_id: str) -> FocusCycleState:
        slot = self._slot(owner_id)
        with slot.lock:
            return slot.engine.snapshot()

    def start(self, owner_id: str) -> FocusCycleState:
        slot = self._slot(owner_id)
        with slot.lock:
            slot.engine.start()
            return slot.engine.snapshot()

    def pause(self, owner_id: str) -> FocusCycleState:
        slot = self._slot(owner_id)
        with slot.lock:
            slot.engine.pause()
            return slot.engine.snapshot()

    def reset(self, owner_id: str) -> FocusCycleState:
        slot = self._slot(owner_id)
        with slot.lock:
            slot.engine.reset()
            return slot.engine.snapshot()

    def tick(
        self,
        owner_id: str,
        aggregator: DailySessionAggregator,
        generation: Optional[int] = None,
    ) -> TickResult:
        slot = self._slot(owner_id)
        with slot.lock:
            before = slot.engine.snapshot()
            event = slot.engine.tick(generation)
            state = slot.engine.snapshot()
            if event is None:
                return TickResult(state=state)
            try:
                today = aggregator.report_cycle(
                    owner_id, event.focus_seconds_just_completed, event.cycles_completed_this_run
                )
            except Exception:
                # Unrecorded cycle: stay on the last focus second so the next tick reports it.
                slot.engine.restore(before)
                logger.warning("Cycle report failed owner=%s; focus period kept open", owner_id)
                raise
            return TickResult(state=state, cycle_completed=event, today=today)

    def discard(self, owner_id: str) -> bool:
        """Drop an owner's timer; its in-memory run counters are lost."""
        owner_id = require_owner(owner_id)
        with self._lock:
            slot = self._slots.pop(owner_id, None)
        if slot is None:
            return False
        with slot.lock:
            # Any tick still queued on this engine sees a cancelled run.
            slot.engine.reset()
        logger.debug("Timer discarded owner=%s", owner_id)
        return True


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_timer_registry() -> TimerRegistry:
    """Process-wide timer registry using the configured durations."""
    settings = get_settings()
    return TimerRegistry(settings.focus_seconds, settings.break_seconds)
