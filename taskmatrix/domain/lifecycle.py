"""Task workflow: BACKLOG → TODO → IN_PROGRESS → REVIEW → DONE.

Every function here is pure. Failures come back as ``Err`` values, the caller
decides what to do with them, and the store commits whatever ``Ok`` carries.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional, Union

from .entities import TaskEntity, touch, utcnow
from .enums import TaskStatus
from .errors import InvalidState, InvalidTransition, WipLimitExceeded
from .result import Err, Ok, Result

NEXT_STATUS: dict[TaskStatus, TaskStatus] = {
    TaskStatus.BACKLOG: TaskStatus.TODO,
    TaskStatus.TODO: TaskStatus.IN_PROGRESS,
    TaskStatus.IN_PROGRESS: TaskStatus.REVIEW,
    TaskStatus.REVIEW: TaskStatus.DONE,
}

TransitionError = Union[InvalidTransition, WipLimitExceeded]


def can_transition(source: TaskStatus, target: TaskStatus) -> bool:
    return NEXT_STATUS.get(source) == target


def count_other_in_progress(tasks: Iterable[TaskEntity], task_id: str) -> int:
    return sum(
        1 for task in tasks
        if task.status == TaskStatus.IN_PROGRESS and task.id != task_id
    )


def transition(
    task: TaskEntity,
    target: TaskStatus,
    *,
    other_in_progress: int,
    wip_limit: int,
    now: Optional[datetime] = None,
) -> Result[TaskEntity, TransitionError]:
    if not can_transition(task.status, target):
        return Err(InvalidTransition(task.status, target))

    if target == TaskStatus.IN_PROGRESS and other_in_progress >= wip_limit:
        return Err(WipLimitExceeded(other_in_progress, wip_limit))

    now = now or utcnow()
    return Ok(replace(task, status=target, updated_at=touch(task.updated_at, now)))


def promote(task: TaskEntity) -> TaskEntity:
    # Important and urgent tasks leave the backlog on their own.
    if task.status == TaskStatus.BACKLOG and task.importance and task.urgency:
        return replace(task, status=TaskStatus.TODO)
    return task


def start(task: TaskEntity, now: Optional[datetime] = None) -> Result[TaskEntity, InvalidState]:
    if task.status != TaskStatus.BACKLOG:
        return Err(InvalidState(task.status))
    now = now or utcnow()
    return Ok(replace(task, status=TaskStatus.TODO, updated_at=touch(task.updated_at, now)))
