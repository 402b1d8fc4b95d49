from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional, Protocol, Union

from taskmatrix.domain import lifecycle
from taskmatrix.domain.entities import (
    BoardSettings,
    Classification,
    MetaPatch,
    PriorityOverride,
    TaskDraft,
    TaskEntity,
    new_task_id,
    touch,
    utcnow,
)
from taskmatrix.domain.enums import TaskStatus
from taskmatrix.domain.errors import (
    InvalidConfig,
    InvalidState,
    InvalidTransition,
    NotFound,
    ValidationError,
    WipLimitExceeded,
)
from taskmatrix.domain.filters import TaskFilters
from taskmatrix.domain.result import Err, Ok, Result

from .classifier import Classifier, draft_from_task
from .csv_import import parse_csv_tasks
from .validators import parse_wip_limit

logger = logging.getLogger(__name__)


class TaskStore(Protocol):
    def list_tasks(self, filters: TaskFilters) -> list[TaskEntity]: ...

    def get_task(self, task_id: str) -> Optional[TaskEntity]: ...

    def insert_task(self, task: TaskEntity) -> TaskEntity: ...

    def replace_task(self, task: TaskEntity) -> Optional[TaskEntity]: ...

    def get_settings(self) -> BoardSettings: ...

    def get_wip_limit(self) -> int: ...

    def set_wip_limit(self, limit: int) -> BoardSettings: ...


class TaskService:
    def __init__(
        self,
        store: TaskStore,
        classifier: Classifier,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._classifier = classifier
        self._clock = clock

    def list_tasks(self, filters: TaskFilters | None = None) -> list[TaskEntity]:
        return self._store.list_tasks(filters or TaskFilters())

    def get_task(self, task_id: str) -> Result[TaskEntity, NotFound]:
        task = self._store.get_task(task_id)
        if task is None:
            return Err(NotFound(task_id))
        return Ok(task)

    def classify_preview(self, draft: TaskDraft) -> Classification:
        return self._classifier.classify(draft)

    def create_task(self, draft: TaskDraft) -> TaskEntity:
        suggestion = self._classifier.classify(draft)
        now = self._clock()
        task = TaskEntity(
            id=new_task_id(),
            title=draft.title,
            description=draft.description,
            status=TaskStatus.BACKLOG,
            importance=False,
            urgency=False,
            ai_suggested_importance=suggestion.importance,
            ai_suggested_urgency=suggestion.urgency,
            ai_explanation=suggestion.explanation,
            effort=draft.effort,
            due_date=draft.due_date,
            tags=draft.tags,
            created_at=now,
            updated_at=now,
        )
        created = self._store.insert_task(task)
        logger.info("Created task %s (%r)", created.id, created.title)
        return created

    def import_csv(self, text: str) -> Result[list[TaskEntity], ValidationError]:
        parsed = parse_csv_tasks(text)
        if isinstance(parsed, Err):
            return parsed
        created = [self.create_task(draft) for draft in parsed.value]
        logger.info("Imported %d task(s) from CSV", len(created))
        return Ok(created)

    def update_meta(self, task_id: str, patch: MetaPatch) -> Result[TaskEntity, NotFound]:
        return self._mutate(
            task_id,
            lambda task: replace(task, **patch.changes(), updated_at=self._touch(task)),
        )

    def reclassify(self, task_id: str) -> Result[TaskEntity, NotFound]:
        found = self.get_task(task_id)
        if isinstance(found, Err):
            return found
        task = found.value
        suggestion = self._classifier.classify(draft_from_task(task))
        return self._commit(replace(
            task,
            ai_suggested_importance=suggestion.importance,
            ai_suggested_urgency=suggestion.urgency,
            ai_explanation=suggestion.explanation,
            updated_at=self._touch(task),
        ))

    def accept_suggestion(self, task_id: str) -> Result[TaskEntity, NotFound]:
        return self._mutate(
            task_id,
            lambda task: lifecycle.promote(replace(
                task,
                importance=task.ai_suggested_importance,
                urgency=task.ai_suggested_urgency,
                updated_at=self._touch(task),
            )),
        )

    def override_priority(
        self, task_id: str, override: PriorityOverride
    ) -> Result[TaskEntity, NotFound]:
        return self._mutate(
            task_id,
            lambda task: lifecycle.promote(replace(
                task,
                importance=override.importance,
                urgency=override.urgency,
                updated_at=self._touch(task),
            )),
        )

    def start_task(self, task_id: str) -> Result[TaskEntity, Union[NotFound, InvalidState]]:
        found = self.get_task(task_id)
        if isinstance(found, Err):
            return found
        started = lifecycle.start(found.value, self._clock())
        if isinstance(started, Err):
            logger.debug("Start rejected for %s: %s", task_id, started.error)
            return started
        return self._commit(started.value)

    def transition(
        self, task_id: str, target: TaskStatus
    ) -> Result[TaskEntity, Union[NotFound, InvalidTransition, WipLimitExceeded]]:
        found = self.get_task(task_id)
        if isinstance(found, Err):
            return found
        in_progress = self._store.list_tasks(TaskFilters(status=TaskStatus.IN_PROGRESS))
        moved = lifecycle.transition(
            found.value,
            target,
            other_in_progress=lifecycle.count_other_in_progress(in_progress, task_id),
            wip_limit=self._store.get_wip_limit(),
            now=self._clock(),
        )
        if isinstance(moved, Err):
            logger.debug("Transition rejected for %s: %s", task_id, moved.error)
            return moved
        return self._commit(moved.value)

    def get_settings(self) -> BoardSettings:
        return self._store.get_settings()

    def set_wip_limit(self, value: object) -> Result[BoardSettings, InvalidConfig]:
        parsed = parse_wip_limit(value)
        if isinstance(parsed, Err):
            return parsed
        return Ok(self._store.set_wip_limit(parsed.value))

    def get_stats(self) -> dict[str, object]:
        tasks = self._store.list_tasks(TaskFilters())
        settings = self._store.get_settings()
        by_status = {status.value: 0 for status in TaskStatus}
        for task in tasks:
            by_status[task.status.value] += 1
        return {
            "total": len(tasks),
            "by_status": by_status,
            "wip_limit": settings.wip_limit,
            "backlog_over_threshold": (
                by_status[TaskStatus.BACKLOG.value] > settings.backlog_warn_threshold
            ),
        }

    def _touch(self, task: TaskEntity) -> datetime:
        return touch(task.updated_at, self._clock())

    def _mutate(
        self, task_id: str, change: Callable[[TaskEntity], TaskEntity]
    ) -> Result[TaskEntity, NotFound]:
        found = self.get_task(task_id)
        if isinstance(found, Err):
            return found
        return self._commit(change(found.value))

    def _commit(self, task: TaskEntity) -> Result[TaskEntity, NotFound]:
        saved = self._store.replace_task(task)
        if saved is None:
            return Err(NotFound(task.id))
        logger.info("Task %s saved (status=%s)", saved.id, saved.status.value)
        return Ok(saved)
