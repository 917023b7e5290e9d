from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .errors import NotFound, PriorityLimitExceeded, Unauthorized, ValidationError
from .models import TaskEntity, TaskStatus
from .repositories import Repository

logger = logging.getLogger(__name__)

MAX_ACTIVE_PRIORITY_TASKS = 3
TITLE_MAX_LENGTH = 100

# Order the interaction layer steps through on a status click.
NEXT_STATUS: Dict[TaskStatus, TaskStatus] = {
    TaskStatus.TODO: TaskStatus.DOING,
    TaskStatus.DOING: TaskStatus.DONE,
    TaskStatus.DONE: TaskStatus.TODO,
}


def require_owner(owner_id: Optional[str]) -> str:
    if owner_id is None or not str(owner_id).strip():
        raise Unauthorized("Not authenticated")
    return str(owner_id)


def normalize_title(title: Optional[str]) -> str:
    """Trim a task title and enforce 1..100 characters."""
    s = (title or "").strip()
    if not s:
        raise ValidationError("title is required")
    if len(s) > TITLE_MAX_LENGTH:
        raise ValidationError(f"title must be at most {TITLE_MAX_LENGTH} characters")
    return s


def task_sort_key(task: TaskEntity) -> tuple:
    return (task["is_priority"], task["created_at"], task["seq"])


# PUBLIC_INTERFACE
class TaskEngine:
    """
    Task lifecycle and the per-owner cap on active priority tasks.

    A task counts against the cap while ``is_priority`` is set and its status
    is not DONE. Every count-then-write runs inside ``repo.atomic(owner_id)``,
    so two racing requests from one owner cannot both pass the check.
    """

    def __init__(self, repo: Repository, max_priorities: int = MAX_ACTIVE_PRIORITY_TASKS) -> None:
        self._repo = repo
        self._max_priorities = max_priorities

    def _check_priority_room(self, tx: Repository, owner_id: str, exclude_id: Optional[str] = None) -> None:
        active = tx.count_priority_active_tasks(owner_id, exclude_id=exclude_id)
        if active >= self._max_priorities:
            logger.warning(
                "Priority limit reached owner=%s active=%d task=%s", owner_id, active, exclude_id
            )
            raise PriorityLimitExceeded(
                f"At most {self._max_priorities} active priority tasks are allowed"
            )

    def create_task(self, owner_id: str, title: str, is_priority: bool = False) -> TaskEntity:
        owner_id = require_owner(owner_id)
        clean_title = normalize_title(title)
        with self._repo.atomic(owner_id) as tx:
            if is_priority:
                self._check_priority_room(tx, owner_id)
            task = tx.create_task(owner_id, clean_title, is_priority=bool(is_priority))
        logger.info("Task created owner=%s id=%s priority=%s", owner_id, task["id"], task["is_priority"])
        return task

    def list_tasks(self, owner_id: str) -> List[TaskEntity]:
        """
        Priority tasks first, newest first within each group. Tasks created
        within the same clock tick keep creation order, later first.
        """
        owner_id = require_owner(owner_id)
        return sorted(self._repo.find_tasks_by_owner(owner_id), key=task_sort_key, reverse=True)

    def get_task(self, task_id: str, owner_id: str) -> TaskEntity:
        owner_id = require_owner(owner_id)
        task = self._repo.find_task_by_id(task_id, owner_id)
        if task is None:
            raise NotFound("Task not found")
        return task

    def update_task(
        self,
        task_id: str,
        owner_id: str,
        status: Optional[TaskStatus] = None,
        is_priority: Optional[bool] = None,
    ) -> TaskEntity:
        """
        Apply a status and/or priority change in one transaction.

        Status is a free setter: any of the three values may follow any other.
        The only guarded moves are the ones that add a task to the active
        priority count: flagging it (False -> True) or reopening a DONE task
        that is still flagged.
        """
        owner_id = require_owner(owner_id)
        new_status = TaskStatus(status) if status is not None else None
        with self._repo.atomic(owner_id) as tx:
            current = tx.find_task_by_id(task_id, owner_id)
            if current is None:
                raise NotFound("Task not found")

            flagging = is_priority is not None and bool(is_priority) and not current["is_priority"]
            will_flag = current["is_priority"] if is_priority is None else bool(is_priority)
            reopening = (
                will_flag
                and current["status"] == TaskStatus.DONE
                and new_status is not None
                and new_status != TaskStatus.DONE
            )
            if flagging or reopening:
                self._check_priority_room(tx, owner_id, exclude_id=task_id)

            updated = tx.update_task(task_id, owner_id, status=new_status, is_priority=is_priority)
            if updated is None:
                raise NotFound("Task not found")
        return updated

    def set_status(self, task_id: str, owner_id: str, new_status: TaskStatus) -> TaskEntity:
        return self.update_task(task_id, owner_id, status=new_status)

    def set_priority(self, task_id: str, owner_id: str, is_priority: bool) -> TaskEntity:
        return self.update_task(task_id, owner_id, is_priority=is_priority)

    def cycle_status(self, task_id: str, owner_id: str) -> TaskEntity:
        """Advance TODO -> DOING -> DONE -> TODO."""
        owner_id = require_owner(owner_id)
        with self._repo.atomic(owner_id):
            current = self.get_task(task_id, owner_id)
            return self.update_task(task_id, owner_id, status=NEXT_STATUS[current["status"]])

    def toggle_priority(self, task_id: str, owner_id: str) -> TaskEntity:
        owner_id = require_owner(owner_id)
        with self._repo.atomic(owner_id):
            current = self.get_task(task_id, owner_id)
            return self.update_task(task_id, owner_id, is_priority=not current["is_priority"])

    def delete_task(self, task_id: str, owner_id: str) -> None:
        owner_id = require_owner(owner_id)
        if not self._repo.delete_task(task_id, owner_id):
            raise NotFound("Task not found")
        logger.info("Task deleted owner=%s id=%s", owner_id, task_id)
