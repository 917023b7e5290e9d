from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, status

from ..aggregator import DailySessionAggregator
from ..auth import get_owner_id
from ..dependencies import get_aggregator
from ..focus_cycle import FocusCycleState
from ..schemas import CycleCompletedOut, DailySessionOut, TimerStateOut, TimerTick, TimerTickOut
from ..timers import TimerRegistry, get_timer_registry

router = APIRouter(
    prefix="/api/v1/timer",
    tags=["timer"],
)


def _state_out(state: FocusCycleState) -> TimerStateOut:
    return TimerStateOut(**asdict(state), progress=state.progress)


# PUBLIC_INTERFACE
@router.get("", response_model=TimerStateOut, summary="Timer State")
def get_timer(
    owner_id: str = Depends(get_owner_id),
    timers: TimerRegistry = Depends(get_timer_registry),
) -> TimerStateOut:
    """Return the caller's timer, creating it in its initial FOCUS state on first access."""
    return _state_out(timers.state(owner_id))


# PUBLIC_INTERFACE
@router.post("/start", response_model=TimerStateOut, summary="Start Timer")
def start_timer(
    owner_id: str = Depends(get_owner_id),
    timers: TimerRegistry = Depends(get_timer_registry),
) -> TimerStateOut:
    """Let ticks advance the countdown. Starting a running timer changes nothing."""
    return _state_out(timers.start(owner_id))


# PUBLIC_INTERFACE
@router.post("/pause", response_model=TimerStateOut, summary="Pause Timer")
def pause_timer(
    owner_id: str = Depends(get_owner_id),
    timers: TimerRegistry = Depends(get_timer_registry),
) -> TimerStateOut:
    """Stop the countdown where it is and invalidate ticks already in flight."""
    return _state_out(timers.pause(owner_id))


# PUBLIC_INTERFACE
@router.post("/reset", response_model=TimerStateOut, summary="Reset Timer")
def reset_timer(
    owner_id: str = Depends(get_owner_id),
    timers: TimerRegistry = Depends(get_timer_registry),
) -> TimerStateOut:
    """Return to a full FOCUS period, stopped, with the run counters cleared."""
    return _state_out(timers.reset(owner_id))


# PUBLIC_INTERFACE
@router.post(
    "/tick",
    response_model=TimerTickOut,
    summary="Tick Timer",
    description=(
        "Advance the running timer by one second. Sent by the client once per second. "
        "When a focus period ends, the cycle is recorded in today's session."
    ),
)
def tick_timer(
    payload: Optional[TimerTick] = None,
    owner_id: str = Depends(get_owner_id),
    timers: TimerRegistry = Depends(get_timer_registry),
    aggregator: DailySessionAggregator = Depends(get_aggregator),
) -> TimerTickOut:
    """
    Advance one second.

    Returns:
        The new timer state. When a focus period just ended, also the cycle
        event and today's updated record. If recording the cycle fails the
        timer stays on the last focus second and the next tick retries.
    """
    generation = payload.generation if payload is not None else None
    result = timers.tick(owner_id, aggregator, generation=generation)
    return TimerTickOut(
        state=_state_out(result.state),
        cycle_completed=(
            CycleCompletedOut(**asdict(result.cycle_completed)) if result.cycle_completed else None
        ),
        today=DailySessionOut(**result.today) if result.today else None,  # type: ignore[arg-type]
    )


# PUBLIC_INTERFACE
@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Close Timer",
    description="Discard the caller's timer and its in-memory run counters.",
)
def close_timer(
    owner_id: str = Depends(get_owner_id),
    timers: TimerRegistry = Depends(get_timer_registry),
) -> None:
    """Drop the caller's timer. Closing a timer that does not exist is a no-op."""
    timers.discard(owner_id)
    return None
