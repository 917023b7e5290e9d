from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from ..auth import get_owner_id
from ..dependencies import get_task_engine
from ..schemas import TaskCreate, TaskOut, TaskUpdate
from ..task_engine import TaskEngine

router = APIRouter(
    prefix="/api/v1/tasks",
    tags=["tasks"],
)

_NOT_FOUND = {404: {"description": "Task not found or owned by someone else"}}
_LIMIT = {409: {"description": "Maximum of 3 active priority tasks reached"}}


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a new task for the caller. Priority tasks are capped at 3 active per owner.",
    responses={
        201: {"description": "Task created successfully"},
        422: {"description": "Validation error"},
        **_LIMIT,
    },
)
def create_task(
    payload: TaskCreate,
    owner_id: str = Depends(get_owner_id),
    engine: TaskEngine = Depends(get_task_engine),
) -> TaskOut:
    created = engine.create_task(owner_id, payload.title, is_priority=payload.is_priority)
    return TaskOut(**created)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[TaskOut],
    summary="List Tasks",
    description="List the caller's tasks: priority tasks first, newest first within each group.",
)
def list_tasks(
    owner_id: str = Depends(get_owner_id),
    engine: TaskEngine = Depends(get_task_engine),
) -> List[TaskOut]:
    return [TaskOut(**t) for t in engine.list_tasks(owner_id)]  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TaskOut,
    summary="Get Task",
    responses=_NOT_FOUND,
)
def get_task(
    task_id: str,
    owner_id: str = Depends(get_owner_id),
    engine: TaskEngine = Depends(get_task_engine),
) -> TaskOut:
    return TaskOut(**engine.get_task(task_id, owner_id))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.patch(
    "/{task_id}",
    response_model=TaskOut,
    summary="Update Task",
    description=(
        "Set status and/or priority. Any status may follow any other. Flagging a task as "
        "priority fails when 3 other active priority tasks exist; unflagging always succeeds."
    ),
    responses={**_NOT_FOUND, **_LIMIT},
)
def patch_task(
    task_id: str,
    payload: TaskUpdate,
    owner_id: str = Depends(get_owner_id),
    engine: TaskEngine = Depends(get_task_engine),
) -> TaskOut:
    updated = engine.update_task(
        task_id, owner_id, status=payload.status, is_priority=payload.is_priority
    )
    return TaskOut(**updated)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "/{task_id}/cycle-status",
    response_model=TaskOut,
    summary="Cycle Task Status",
    description="Advance the task TODO -> DOING -> DONE -> TODO.",
    responses={**_NOT_FOUND, **_LIMIT},
)
def cycle_status(
    task_id: str,
    owner_id: str = Depends(get_owner_id),
    engine: TaskEngine = Depends(get_task_engine),
) -> TaskOut:
    return TaskOut(**engine.cycle_status(task_id, owner_id))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "/{task_id}/toggle-priority",
    response_model=TaskOut,
    summary="Toggle Task Priority",
    responses={**_NOT_FOUND, **_LIMIT},
)
def toggle_priority(
    task_id: str,
    owner_id: str = Depends(get_owner_id),
    engine: TaskEngine = Depends(get_task_engine),
) -> TaskOut:
    return TaskOut(**engine.toggle_priority(task_id, owner_id))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Task",
    description="Delete a task permanently.",
    responses={
        204: {"description": "Task deleted"},
        **_NOT_FOUND,
    },
)
def delete_task(
    task_id: str,
    owner_id: str = Depends(get_owner_id),
    engine: TaskEngine = Depends(get_task_engine),
) -> None:
    engine.delete_task(task_id, owner_id)
    return None
