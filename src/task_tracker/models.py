from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, TypedDict

from .errors import ValidationError

TITLE_REQUIRED_MESSAGE = "Title is required and cannot be empty"

# Status filter value meaning "do not filter by status".
ALL_STATUSES = "all"


# PUBLIC_INTERFACE
class TaskStatus(str, Enum):
    """Lifecycle status of a task. The only values a persisted task may carry."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


TASK_STATUSES = tuple(s.value for s in TaskStatus)
DEFAULT_STATUS = TaskStatus.PENDING.value
STATUS_INVALID_MESSAGE = f"Status must be one of: {', '.join(TASK_STATUSES)}"


# PUBLIC_INTERFACE
class Task(TypedDict):
    """
    A task record as returned by the stores.

    Fields:
    - id: Unique integer identifier assigned by the store
    - title: Non-empty, trimmed title
    - description: Free text, empty string when not given
    - status: One of TASK_STATUSES
    - created_at: Creation timestamp (UTC), never modified
    - updated_at: Last update timestamp (UTC)
    """

    id: int
    title: str
    description: str
    status: str
    created_at: datetime
    updated_at: datetime


# PUBLIC_INTERFACE
def validate_title(value: Any) -> str:
    """Return the trimmed title or raise ValidationError when it is missing or blank."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(TITLE_REQUIRED_MESSAGE)
    return value.strip()


# PUBLIC_INTERFACE
def validate_status(value: Any) -> Optional[str]:
    """Return the status as a plain string, None when not supplied."""
    if value is None:
        return None
    if isinstance(value, TaskStatus):
        return value.value
    if not isinstance(value, str) or value not in TASK_STATUSES:
        raise ValidationError(STATUS_INVALID_MESSAGE)
    return value


def normalize_description(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("Description must be text")
    return value.strip()


def normalize_status_filter(status: Optional[str]) -> Optional[str]:
    """Map an absent, blank or 'all' status filter to None."""
    if status is None:
        return None
    s = status.strip()
    if not s or s == ALL_STATUSES:
        return None
    return s


def normalize_search(search: Optional[str]) -> Optional[str]:
    if search is None:
        return None
    s = search.strip()
    return s or None


def contains_ci(haystack: Optional[str], needle: str) -> bool:
    """Case-insensitive substring test; None never matches."""
    if haystack is None:
        return False
    return needle.casefold() in haystack.casefold()


# PUBLIC_INTERFACE
def matches_status(task: Mapping[str, Any], status: Optional[str]) -> bool:
    status = normalize_status_filter(status)
    return status is None or task.get("status") == status


# PUBLIC_INTERFACE
def matches_search(task: Mapping[str, Any], search: Optional[str]) -> bool:
    search = normalize_search(search)
    if search is None:
        return True
    return contains_ci(task.get("title"), search) or contains_ci(task.get("description"), search)


# PUBLIC_INTERFACE
def filter_tasks(
    tasks: Iterable[Mapping[str, Any]],
    status: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Mapping[str, Any]]:
    """
    Apply the listing filters shared by the stores and the client view.

    Status equality (skipped for None/'all') AND case-insensitive substring
    match against title or description. Input order is preserved.
    """
    return [t for t in tasks if matches_status(t, status) and matches_search(t, search)]
