from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from taskmatrix.domain.entities import BoardSettings, TaskEntity
from taskmatrix.domain.filters import TaskFilters
from taskmatrix.services.validators import parse_wip_limit

logger = logging.getLogger(__name__)


class InMemoryTaskStore:
    """Process-local store; lives as long as the object does."""

    def __init__(self, settings: BoardSettings | None = None) -> None:
        self._tasks: dict[str, TaskEntity] = {}
        self._settings = settings or BoardSettings()

    def list_tasks(self, filters: TaskFilters) -> list[TaskEntity]:
        tasks = [task for task in self._tasks.values() if filters.matches(task.status)]
        return sorted(tasks, key=lambda task: task.updated_at, reverse=True)

    def get_task(self, task_id: str) -> Optional[TaskEntity]:
        return self._tasks.get(task_id)

    def insert_task(self, task: TaskEntity) -> TaskEntity:
        self._tasks[task.id] = task
        return task

    def replace_task(self, task: TaskEntity) -> Optional[TaskEntity]:
        if task.id not in self._tasks:
            return None
        self._tasks[task.id] = task
        return task

    def get_settings(self) -> BoardSettings:
        return self._settings

    def get_wip_limit(self) -> int:
        return self._settings.wip_limit

    def set_wip_limit(self, limit: int) -> BoardSettings:
        wip_limit = parse_wip_limit(limit).unwrap()
        self._settings = replace(self._settings, wip_limit=wip_limit)
        logger.info("WIP limit set to %s", wip_limit)
        return self._settings
