from __future__ import annotations

from enum import StrEnum


class TaskStatus(StrEnum):
    BACKLOG = "BACKLOG"
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    REVIEW = "REVIEW"
    DONE = "DONE"


class Effort(StrEnum):
    SMALL = "S"
    MEDIUM = "M"
    LARGE = "L"

    @property
    def hours(self) -> int:
        return _EFFORT_HOURS[self]


_EFFORT_HOURS = {
    Effort.SMALL: 1,
    Effort.MEDIUM: 4,
    Effort.LARGE: 10,
}
