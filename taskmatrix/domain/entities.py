from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from .enums import Effort, TaskStatus

EXPLANATION_MAX_LENGTH = 300
DEFAULT_WIP_LIMIT = 3
DEFAULT_BACKLOG_WARN_THRESHOLD = 12


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_task_id() -> str:
    return uuid.uuid4().hex


def touch(previous: datetime, now: datetime) -> datetime:
    """Return the new ``updated_at``; never earlier than ``previous``."""
    return now if now >= previous else previous


@dataclass(frozen=True)
class TaskEntity:
    id: str
    title: str
    description: str
    status: TaskStatus
    importance: bool
    urgency: bool
    ai_suggested_importance: bool
    ai_suggested_urgency: bool
    ai_explanation: str
    effort: Optional[Effort]
    due_date: Optional[str]
    tags: tuple[str, ...]
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "importance": self.importance,
            "urgency": self.urgency,
            "ai_suggested_importance": self.ai_suggested_importance,
            "ai_suggested_urgency": self.ai_suggested_urgency,
            "ai_explanation": self.ai_explanation,
            "effort": self.effort.value if self.effort else None,
            "due_date": self.due_date,
            "tags": list(self.tags),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class Classification:
    importance: bool
    urgency: bool
    explanation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "importance": self.importance,
            "urgency": self.urgency,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class TaskDraft:
    title: str
    description: str = ""
    due_date: Optional[str] = None
    effort: Optional[Effort] = None
    tags: tuple[str, ...] = field(default_factory=tuple)


class _Unset(Enum):
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset.UNSET


@dataclass(frozen=True)
class MetaPatch:
    # UNSET leaves the field alone; None clears the optional fields.
    title: Union[str, _Unset] = UNSET
    description: Union[str, _Unset] = UNSET
    due_date: Union[str, None, _Unset] = UNSET
    effort: Union[Effort, None, _Unset] = UNSET
    tags: Union[tuple[str, ...], _Unset] = UNSET

    def changes(self) -> dict[str, Any]:
        return {
            name: value
            for name, value in (
                ("title", self.title),
                ("description", self.description),
                ("due_date", self.due_date),
                ("effort", self.effort),
                ("tags", self.tags),
            )
            if value is not UNSET
        }


@dataclass(frozen=True)
class PriorityOverride:
    importance: bool
    urgency: bool


@dataclass(frozen=True)
class BoardSettings:
    wip_limit: int = DEFAULT_WIP_LIMIT
    backlog_warn_threshold: int = DEFAULT_BACKLOG_WARN_THRESHOLD

    def to_dict(self) -> dict[str, int]:
        return {
            "wip_limit": self.wip_limit,
            "backlog_warn_threshold": self.backlog_warn_threshold,
        }
