from __future__ import annotations

import csv
import re
from typing import Optional

from taskmatrix.domain.entities import TaskDraft
from taskmatrix.domain.enums import Effort
from taskmatrix.domain.errors import ValidationError
from taskmatrix.domain.result import Err, Ok, Result

_TAG_SEPARATORS = re.compile(r"[;,]")


def _normalize_effort(value: str) -> Optional[Effort]:
    try:
        return Effort(value.strip().upper())
    except ValueError:
        return None


def _normalize_tags(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in _TAG_SEPARATORS.split(value) if part.strip())


def parse_csv_tasks(text: str) -> Result[list[TaskDraft], ValidationError]:
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return Ok([])

    rows = [[cell.strip() for cell in row] for row in csv.reader(lines, skipinitialspace=True)]
    header = [name.lower() for name in rows[0]]
    if "title" not in header:
        return Err(ValidationError("CSV must include a 'title' column"))

    def column(row: list[str], name: str) -> str:
        if name not in header:
            return ""
        index = header.index(name)
        return row[index] if index < len(row) else ""

    drafts = []
    for row in rows[1:]:
        title = column(row, "title")
        if not title:
            continue
        drafts.append(TaskDraft(
            title=title,
            description=column(row, "description"),
            due_date=column(row, "duedate") or None,
            effort=_normalize_effort(column(row, "effort")),
            tags=_normalize_tags(column(row, "tags")),
        ))
    return Ok(drafts)
