from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Optional

from taskmatrix.domain.entities import MetaPatch, PriorityOverride, TaskDraft
from taskmatrix.domain.enums import Effort, TaskStatus
from taskmatrix.domain.errors import InvalidConfig, ValidationError
from taskmatrix.domain.result import Err, Ok, Result


def normalize_effort(value: Any) -> Optional[Effort]:
    if isinstance(value, str):
        try:
            return Effort(value)
        except ValueError:
            return None
    return None


def parse_status(value: Any) -> Result[TaskStatus, ValidationError]:
    if isinstance(value, str):
        try:
            return Ok(TaskStatus(value))
        except ValueError:
            pass
    return Err(ValidationError(f"status must be one of {', '.join(s.value for s in TaskStatus)}"))


def parse_create(payload: Any) -> Result[TaskDraft, ValidationError]:
    if not isinstance(payload, Mapping):
        return Err(ValidationError("Body must be an object"))

    title = payload.get("title")
    if not isinstance(title, str) or not title.strip():
        return Err(ValidationError("title is required"))

    description = payload.get("description")
    due_date = payload.get("dueDate")
    tags = payload.get("tags")

    return Ok(TaskDraft(
        title=title.strip(),
        description=description if isinstance(description, str) else "",
        due_date=due_date if isinstance(due_date, str) else None,
        effort=normalize_effort(payload.get("effort")),
        tags=tuple(t for t in tags if isinstance(t, str)) if isinstance(tags, list) else (),
    ))


def parse_patch(payload: Any) -> Result[MetaPatch, ValidationError]:
    if not isinstance(payload, Mapping):
        return Err(ValidationError("Body must be an object"))

    fields: dict[str, Any] = {}

    if "title" in payload:
        title = payload["title"]
        if not isinstance(title, str) or not title.strip():
            return Err(ValidationError("title must be a non-empty string"))
        fields["title"] = title.strip()

    if "description" in payload:
        if not isinstance(payload["description"], str):
            return Err(ValidationError("description must be a string"))
        fields["description"] = payload["description"]

    if "dueDate" in payload:
        due_date = payload["dueDate"]
        if due_date is not None and not isinstance(due_date, str):
            return Err(ValidationError("dueDate must be string or null"))
        fields["due_date"] = due_date

    if "effort" in payload:
        effort = payload["effort"]
        if effort is not None and normalize_effort(effort) is None:
            return Err(ValidationError("effort must be S/M/L or null"))
        fields["effort"] = normalize_effort(effort)

    if "tags" in payload:
        tags = payload["tags"]
        if not isinstance(tags, list) or any(not isinstance(t, str) for t in tags):
            return Err(ValidationError("tags must be a list of strings"))
        fields["tags"] = tuple(tags)

    return Ok(MetaPatch(**fields))


def parse_override(payload: Any) -> Result[PriorityOverride, ValidationError]:
    if not isinstance(payload, Mapping):
        return Err(ValidationError("Body must be an object"))
    importance = payload.get("importance")
    urgency = payload.get("urgency")
    if not isinstance(importance, bool):
        return Err(ValidationError("importance must be boolean"))
    if not isinstance(urgency, bool):
        return Err(ValidationError("urgency must be boolean"))
    return Ok(PriorityOverride(importance=importance, urgency=urgency))


def parse_wip_limit(value: Any) -> Result[int, InvalidConfig]:
    # bool is an int subclass and never a meaningful limit
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return Err(InvalidConfig("wipLimit must be a number"))
    if not math.isfinite(value) or value <= 0:
        return Err(InvalidConfig(f"Invalid wipLimit: {value}"))
    limit = math.floor(value)
    if limit < 1:
        return Err(InvalidConfig(f"Invalid wipLimit: {value}"))
    return Ok(limit)
