from __future__ import annotations


class TaskTrackerError(Exception):
    """Base class for errors raised by the task store and service layer."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# PUBLIC_INTERFACE
class ValidationError(TaskTrackerError, ValueError):
    """
    Invalid task input (empty title, unknown status).

    Subclasses ValueError so pydantic field validators can raise it directly
    and have it reported as a regular validation failure.
    """


# PUBLIC_INTERFACE
class NotFoundError(TaskTrackerError):
    """No task exists with the requested id."""

    def __init__(self, task_id: int, message: str = "Task not found") -> None:
        super().__init__(message)
        self.task_id = task_id


# PUBLIC_INTERFACE
class StoreError(TaskTrackerError):
    """The underlying persistence layer failed."""
