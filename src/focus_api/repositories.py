from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date, datetime
from functools import lru_cache
from threading import RLock
from typing import ContextManager, Dict, Iterator, List, Optional, Tuple

from .models import DailySessionEntity, TaskEntity, TaskStatus
from .settings import get_settings
from .utils import Clock, local_now


def new_task_id() -> str:
    return uuid.uuid4().hex


# PUBLIC_INTERFACE
class Repository(ABC):
    """
    Abstract store contract for tasks and daily session records.

    Every method is individually atomic. Check-then-write sequences that span
    several calls (count priorities, then insert) must run inside ``atomic()``,
    which guarantees that no other ``atomic()`` block for the same owner
    interleaves with them.
    """

    @abstractmethod
    def atomic(self, owner_id: str) -> ContextManager["Repository"]:
        """Serialize a read-modify-write sequence for one owner."""

    @abstractmethod
    def find_tasks_by_owner(self, owner_id: str) -> List[TaskEntity]:
        """Return all tasks of an owner, in no particular order."""

    @abstractmethod
    def find_task_by_id(self, task_id: str, owner_id: str) -> Optional[TaskEntity]:
        """Return a task if it exists and belongs to owner_id, else None."""

    @abstractmethod
    def create_task(
        self,
        owner_id: str,
        title: str,
        is_priority: bool = False,
        status: TaskStatus = TaskStatus.TODO,
    ) -> TaskEntity:
        """Create and return a new TaskEntity."""

    @abstractmethod
    def update_task(
        self,
        task_id: str,
        owner_id: str,
        *,
        status: Optional[TaskStatus] = None,
        is_priority: Optional[bool] = None,
    ) -> Optional[TaskEntity]:
        """Update the provided fields. Return the updated entity or None if not found."""

    @abstractmethod
    def delete_task(self, task_id: str, owner_id: str) -> bool:
        """Delete a task. Return True if deleted, False if not found."""

    @abstractmethod
    def count_priority_active_tasks(self, owner_id: str, exclude_id: Optional[str] = None) -> int:
        """Count an owner's priority tasks whose status is not DONE, optionally skipping one task."""

    @abstractmethod
    def find_daily_record(self, owner_id: str, day: date) -> Optional[DailySessionEntity]:
        """Return the record for (owner_id, day) or None."""

    @abstractmethod
    def upsert_daily_record(
        self, owner_id: str, day: date, focus_minutes: int, cycles_completed: int
    ) -> DailySessionEntity:
        """Create or overwrite the record for (owner_id, day) with the given totals."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.

    ``atomic()`` holds a per-owner lock, so two owners never block each other.
    """

    def __init__(self, now: Optional[Clock] = None) -> None:
        self._lock = RLock()
        # owner -> [lock, holders]; an entry lives only while someone is inside atomic()
        self._owner_locks: Dict[str, List] = {}
        self._tasks: Dict[str, TaskEntity] = {}
        self._days: Dict[Tuple[str, date], DailySessionEntity] = {}
        self._next_seq = 1
        self._clock = now or local_now

    def _now(self) -> datetime:
        return self._clock()

    def _allocate_seq(self) -> int:
        with self._lock:
            i = self._next_seq
            self._next_seq += 1
            return i

    def _acquire_owner_lock(self, owner_id: str) -> RLock:
        with self._lock:
            entry = self._owner_locks.get(owner_id)
            if entry is None:
                entry = self._owner_locks[owner_id] = [RLock(), 0]
            entry[1] += 1
            return entry[0]

    def _release_owner_lock(self, owner_id: str) -> None:
        with self._lock:
            entry = self._owner_locks[owner_id]
            entry[1] -= 1
            if entry[1] == 0:
                del self._owner_locks[owner_id]

    @contextmanager
    def atomic(self, owner_id: str) -> Iterator[Repository]:
        lock = self._acquire_owner_lock(owner_id)
        try:
            with lock:
                yield self
        finally:
            self._release_owner_lock(owner_id)

    def find_tasks_by_owner(self, owner_id: str) -> List[TaskEntity]:
        with self._lock:
            return [t.copy() for t in self._tasks.values() if t["owner_id"] == owner_id]

    def find_task_by_id(self, task_id: str, owner_id: str) -> Optional[TaskEntity]:
        with self._lock:
            item = self._tasks.get(task_id)
            if item is None or item["owner_id"] != owner_id:
                return None
            return item.copy()

    def create_task(
        self,
        owner_id: str,
        title: str,
        is_priority: bool = False,
        status: TaskStatus = TaskStatus.TODO,
    ) -> TaskEntity:
        now = self._now()
        entity: TaskEntity = {
            "id": new_task_id(),
            "owner_id": owner_id,
            "title": title,
            "status": status,
            "is_priority": is_priority,
            "created_at": now,
            "updated_at": now,
            "seq": self._allocate_seq(),
        }
        with self._lock:
            self._tasks[entity["id"]] = entity
        return entity.copy()

    def update_task(
        self,
        task_id: str,
        owner_id: str,
        *,
        status: Optional[TaskStatus] = None,
        is_priority: Optional[bool] = None,
    ) -> Optional[TaskEntity]:
        with self._lock:
            existing = self._tasks.get(task_id)
            if existing is None or existing["owner_id"] != owner_id:
                return None

            updated = existing.copy()
            if status is not None:
                updated["status"] = status
            if is_priority is not None:
                updated["is_priority"] = is_priority
            updated["updated_at"] = self._now()

            self._tasks[task_id] = updated
            return updated.copy()

    def delete_task(self, task_id: str, owner_id: str) -> bool:
        with self._lock:
            existing = self._tasks.get(task_id)
            if existing is None or existing["owner_id"] != owner_id:
                return False
            del self._tasks[task_id]
            return True

    def count_priority_active_tasks(self, owner_id: str, exclude_id: Optional[str] = None) -> int:
        with self._lock:
            return sum(
                1
                for t in self._tasks.values()
                if t["owner_id"] == owner_id
                and t["is_priority"]
                and t["status"] != TaskStatus.DONE
                and t["id"] != exclude_id
            )

    def find_daily_record(self, owner_id: str, day: date) -> Optional[DailySessionEntity]:
        with self._lock:
            item = self._days.get((owner_id, day))
            return None if item is None else item.copy()

    def upsert_daily_record(
        self, owner_id: str, day: date, focus_minutes: int, cycles_completed: int
    ) -> DailySessionEntity:
        record: DailySessionEntity = {
            "owner_id": owner_id,
            "day": day,
            "focus_minutes": focus_minutes,
            "cycles_completed": cycles_completed,
            "updated_at": self._now(),
        }
        with self._lock:
            self._days[(owner_id, day)] = record
        return record.copy()


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_repository() -> Repository:
    """
    Factory returning the process-wide repository selected by settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository
    """
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(settings.sqlite_db_path)
    return InMemoryRepository()
