from __future__ import annotations

from .enums import TaskStatus


class TaskMatrixError(Exception):
    code = "ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "error": self.message}


class ValidationError(TaskMatrixError):
    code = "VALIDATION_ERROR"


class NotFound(TaskMatrixError):
    code = "NOT_FOUND"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class InvalidTransition(TaskMatrixError):
    code = "INVALID_TRANSITION"

    def __init__(self, source: TaskStatus, target: TaskStatus) -> None:
        super().__init__(f"{source.value} → {target.value} is not allowed")
        self.source = source
        self.target = target


class WipLimitExceeded(TaskMatrixError):
    code = "WIP_LIMIT_EXCEEDED"

    def __init__(self, count: int, limit: int) -> None:
        super().__init__(f"WIP limit exceeded ({count}/{limit})")
        self.count = count
        self.limit = limit


class InvalidState(TaskMatrixError):
    code = "INVALID_STATE"

    def __init__(self, status: TaskStatus) -> None:
        super().__init__(f"Only BACKLOG tasks can be started (task is {status.value})")
        self.status = status


class InvalidConfig(TaskMatrixError):
    code = "INVALID_CONFIG"
