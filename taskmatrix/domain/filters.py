from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .enums import TaskStatus


@dataclass(frozen=True)
class TaskFilters:
    status: Optional[TaskStatus] = None
    not_status: Optional[TaskStatus] = None

    def matches(self, status: TaskStatus) -> bool:
        if self.status is not None and status != self.status:
            return False
        if self.not_status is not None and status == self.not_status:
            return False
        return True
