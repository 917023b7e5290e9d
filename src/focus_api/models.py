from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import TypedDict


# PUBLIC_INTERFACE
class TaskStatus(str, Enum):
    """Task status. Any status may be set from any other."""

    TODO = "TODO"
    DOING = "DOING"
    DONE = "DONE"


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    A lightweight domain model representing a task for non-ORM storage backends.

    Fields:
    - id: Opaque unique identifier (uuid4 hex)
    - owner_id: Identifier of the owning user
    - title: Trimmed title (1..100 chars), immutable after creation
    - status: TaskStatus value
    - is_priority: Whether the task is one of the owner's top focuses
    - created_at: Local creation timestamp, used for ordering
    - updated_at: Local last update timestamp
    - seq: Store-assigned creation sequence, breaks ties on created_at
    """

    id: str
    owner_id: str
    title: str
    status: TaskStatus
    is_priority: bool
    created_at: datetime
    updated_at: datetime
    seq: int


# PUBLIC_INTERFACE
class DailySessionEntity(TypedDict):
    """
    Accumulated focus for one owner on one local calendar day.

    - focus_minutes grows with every reported focus period
    - cycles_completed holds the latest reported run total
    """

    owner_id: str
    day: date
    focus_minutes: int
    cycles_completed: int
    updated_at: datetime
