from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .focus_cycle import CycleMode
from .models import TaskStatus
from .task_engine import TITLE_MAX_LENGTH


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a new task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Write report",
                "is_priority": True,
            }
        }
    )

    title: str = Field(..., description="Short title for the task (trimmed, 1..100 chars)")
    is_priority: bool = Field(default=False, description="Flag as one of the day's top focuses")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..100 length.
        """
        s = v.strip()
        if not (1 <= len(s) <= TITLE_MAX_LENGTH):
            raise ValueError(f"title length must be between 1 and {TITLE_MAX_LENGTH} characters")
        return s


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Schema for updating a task. Only provided fields are changed; the title is immutable.
    """

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={"example": {"status": "DOING", "is_priority": False}},
    )

    status: Optional[TaskStatus] = Field(default=None, description="New status (any transition allowed)")
    is_priority: Optional[bool] = Field(default=None, description="New priority flag")


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "3f1c9a0e5b7d4e2a8c6b1d0f9e8a7b6c",
                "title": "Write report",
                "status": "TODO",
                "is_priority": True,
                "owner_id": "user-123",
                "created_at": "2025-01-25T10:15:30.123456",
                "updated_at": "2025-01-25T10:15:30.123456",
            }
        }
    )

    id: str = Field(..., description="Opaque unique identifier of the task")
    title: str = Field(..., description="Short title for the task")
    status: TaskStatus = Field(..., description="TODO, DOING or DONE")
    is_priority: bool = Field(..., description="Priority flag")
    owner_id: str = Field(..., description="Owning user")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


# PUBLIC_INTERFACE
class CycleReport(BaseModel):
    """
    A finished focus period, as reported by a client that runs its own timer.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"focus_seconds": 1500, "cycles_completed": 2}}
    )

    focus_seconds: int = Field(..., ge=0, description="Length of the focus period just completed, in seconds")
    cycles_completed: int = Field(..., ge=0, description="Completed focus periods since the timer was last reset")


# PUBLIC_INTERFACE
class DailySessionOut(BaseModel):
    """
    Today's accumulated focus for the caller.
    """

    day: date = Field(..., description="Local calendar day")
    focus_minutes: int = Field(..., description="Focus minutes accumulated today")
    cycles_completed: int = Field(..., description="Latest reported cycle count for today")


# PUBLIC_INTERFACE
class TimerStateOut(BaseModel):
    """
    Current focus timer state for the caller.
    """

    mode: CycleMode = Field(..., description="FOCUS or BREAK")
    remaining_seconds: int = Field(..., description="Seconds left in the current period")
    is_running: bool = Field(..., description="Whether ticks advance the countdown")
    cycles_completed_this_run: int = Field(..., description="Focus periods completed since last reset")
    accumulated_focus_seconds_this_run: int = Field(..., description="Focus seconds completed since last reset")
    progress: float = Field(..., description="Elapsed fraction of the current period")
    generation: int = Field(..., description="Token to echo back on tick; bumped by pause and reset")
    focus_seconds: int = Field(..., description="Configured focus period length")
    break_seconds: int = Field(..., description="Configured break period length")


# PUBLIC_INTERFACE
class TimerTick(BaseModel):
    """
    One second of countdown. Echo the generation from the last state to have
    the tick dropped if the timer was paused or reset in the meantime.
    """

    generation: Optional[int] = Field(default=None, description="Generation the tick was scheduled under")


# PUBLIC_INTERFACE
class CycleCompletedOut(BaseModel):
    """
    Emitted by a tick that ended a focus period.
    """

    focus_seconds_just_completed: int = Field(..., description="Length of the focus period that just ended")
    cycles_completed_this_run: int = Field(..., description="Focus periods completed since last reset, this one included")


# PUBLIC_INTERFACE
class TimerTickOut(BaseModel):
    """
    Timer state after a tick, plus the cycle event and refreshed daily record
    when the tick finished a focus period.
    """

    state: TimerStateOut
    cycle_completed: Optional[CycleCompletedOut] = None
    today: Optional[DailySessionOut] = None
