from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from taskmatrix.domain.entities import BoardSettings, TaskEntity
from taskmatrix.domain.enums import Effort, TaskStatus
from taskmatrix.domain.filters import TaskFilters
from taskmatrix.services.validators import parse_wip_limit

from .models import BoardSettingsModel, TaskModel

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = 1


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive values; everything is written in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_entity(model: TaskModel) -> TaskEntity:
    return TaskEntity(
        id=model.id,
        title=model.title,
        description=model.description,
        status=TaskStatus(model.status),
        importance=model.importance,
        urgency=model.urgency,
        ai_suggested_importance=model.ai_suggested_importance,
        ai_suggested_urgency=model.ai_suggested_urgency,
        ai_explanation=model.ai_explanation,
        effort=Effort(model.effort) if model.effort else None,
        due_date=model.due_date,
        tags=tuple(model.tags or ()),
        created_at=_as_utc(model.created_at),
        updated_at=_as_utc(model.updated_at),
    )


def _to_columns(task: TaskEntity) -> dict:
    return {
        "title": task.title,
        "description": task.description,
        "status": task.status.value,
        "importance": task.importance,
        "urgency": task.urgency,
        "ai_suggested_importance": task.ai_suggested_importance,
        "ai_suggested_urgency": task.ai_suggested_urgency,
        "ai_explanation": task.ai_explanation,
        "effort": task.effort.value if task.effort else None,
        "due_date": task.due_date,
        "tags": list(task.tags),
        "created_at": task.created_at,
        "updated_at": task.updated_at,
    }


def _apply_filters(stmt, filters: TaskFilters) -> object:
    if filters.status is not None:
        stmt = stmt.where(TaskModel.status == filters.status.value)
    if filters.not_status is not None:
        stmt = stmt.where(TaskModel.status != filters.not_status.value)
    return stmt


class SqlTaskStore:
    def __init__(self, session_factory: sessionmaker, defaults: BoardSettings | None = None) -> None:
        self._session_factory = session_factory
        self._defaults = defaults or BoardSettings()

    def list_tasks(self, filters: TaskFilters) -> list[TaskEntity]:
        with self._session_factory() as session:
            stmt = select(TaskModel)
            stmt = _apply_filters(stmt, filters)
            stmt = stmt.order_by(TaskModel.updated_at.desc(), TaskModel.id.asc())
            return [_to_entity(task) for task in session.scalars(stmt)]

    def get_task(self, task_id: str) -> Optional[TaskEntity]:
        with self._session_factory() as session:
            task = session.get(TaskModel, task_id)
            return _to_entity(task) if task else None

    def insert_task(self, task: TaskEntity) -> TaskEntity:
        with self._session_factory() as session:
            model = TaskModel(id=task.id, **_to_columns(task))
            session.add(model)
            session.commit()
            session.refresh(model)
            return _to_entity(model)

    def replace_task(self, task: TaskEntity) -> Optional[TaskEntity]:
        with self._session_factory() as session:
            model = session.get(TaskModel, task.id)
            if not model:
                return None
            for key, value in _to_columns(task).items():
                setattr(model, key, value)
            session.commit()
            session.refresh(model)
            return _to_entity(model)

    def get_settings(self) -> BoardSettings:
        with self._session_factory() as session:
            row = session.get(BoardSettingsModel, SETTINGS_ROW_ID)
            if not row:
                return self._defaults
            return BoardSettings(
                wip_limit=row.wip_limit,
                backlog_warn_threshold=row.backlog_warn_threshold,
            )

    def get_wip_limit(self) -> int:
        return self.get_settings().wip_limit

    def set_wip_limit(self, limit: int) -> BoardSettings:
        wip_limit = parse_wip_limit(limit).unwrap()
        with self._session_factory() as session:
            row = session.get(BoardSettingsModel, SETTINGS_ROW_ID)
            if not row:
                row = BoardSettingsModel(
                    id=SETTINGS_ROW_ID,
                    backlog_warn_threshold=self._defaults.backlog_warn_threshold,
                )
                session.add(row)
            row.wip_limit = wip_limit
            session.commit()
            logger.info("WIP limit set to %s", wip_limit)
            return BoardSettings(
                wip_limit=row.wip_limit,
                backlog_warn_threshold=row.backlog_warn_threshold,
            )
