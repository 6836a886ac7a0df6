from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from threading import RLock
from typing import List, Optional

from ..errors import NotFoundError
from ..models import (
    DEFAULT_STATUS,
    Task,
    filter_tasks,
    normalize_description,
    normalize_search,
    normalize_status_filter,
    validate_status,
    validate_title,
)
from ..settings import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListQuery:
    """
    Filters for listing tasks. Both are optional and combined with AND.
    """
    status: Optional[str] = None  # exact match; None or 'all' disables it
    search: Optional[str] = None  # case-insensitive substring of title or description

    def normalized(self) -> "ListQuery":
        return ListQuery(
            status=normalize_status_filter(self.status),
            search=normalize_search(self.search),
        )


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
class TaskStore(ABC):
    """Abstract contract for task storage backends."""

    @abstractmethod
    def list(self, query: Optional[ListQuery] = None) -> List[Task]:
        """
        Return tasks matching the query, newest created_at first.
        - status: exact match (None/'all' means any)
        - search: case-insensitive substring across title and description
        """

    @abstractmethod
    def get(self, task_id: int) -> Task:
        """Return a task by id. Raise NotFoundError if missing."""

    @abstractmethod
    def create(
        self, title: str, description: Optional[str] = None, status: Optional[str] = None
    ) -> Task:
        """Validate, persist and return a new task."""

    @abstractmethod
    def update(
        self,
        task_id: int,
        title: str,
        description: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Task:
        """
        Overwrite title; overwrite description/status only when given.
        Raise NotFoundError if missing, ValidationError on bad input.
        """

    @abstractmethod
    def delete(self, task_id: int) -> Task:
        """Remove a task permanently and return its last state. Raise NotFoundError if missing."""

    def ping(self) -> bool:
        """Return True when the backing storage is reachable."""
        return True


class InMemoryTaskStore(TaskStore):
    """
    Thread-safe in-memory store suitable for testing and ephemeral runs.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[int, Task] = {}
        self._next_id = 1

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

    def list(self, query: Optional[ListQuery] = None) -> List[Task]:
        q = (query or ListQuery()).normalized()
        with self._lock:
            items = sorted(
                self._items.values(),
                key=lambda t: (t["created_at"], t["id"]),
                reverse=True,
            )
            matched = filter_tasks(items, status=q.status, search=q.search)
            # Return copies to avoid external mutation
            return [t.copy() for t in matched]  # type: ignore[attr-defined]

    def get(self, task_id: int) -> Task:
        with self._lock:
            item = self._items.get(task_id)
            if item is None:
                raise NotFoundError(task_id)
            return item.copy()

    def create(
        self, title: str, description: Optional[str] = None, status: Optional[str] = None
    ) -> Task:
        clean_title = validate_title(title)
        clean_status = validate_status(status) or DEFAULT_STATUS
        clean_description = normalize_description(description) or ""

        now = utc_now()
        with self._lock:
            entity: Task = {
                "id": self._allocate_id(),
                "title": clean_title,
                "description": clean_description,
                "status": clean_status,
                "created_at": now,
                "updated_at": now,
            }
            self._items[entity["id"]] = entity
        logger.info("Created task id=%s status=%s", entity["id"], clean_status)
        return entity.copy()

    def update(
        self,
        task_id: int,
        title: str,
        description: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Task:
        clean_title = validate_title(title)
        clean_status = validate_status(status)
        clean_description = normalize_description(description)

        with self._lock:
            existing = self._items.get(task_id)
            if existing is None:
                raise NotFoundError(task_id)

            updated = existing.copy()
            updated["title"] = clean_title
            if clean_description is not None:
                updated["description"] = clean_description
            if clean_status is not None:
                updated["status"] = clean_status
            updated["updated_at"] = utc_now()
            self._items[task_id] = updated
        logger.info("Updated task id=%s status=%s", task_id, updated["status"])
        return updated.copy()

    def delete(self, task_id: int) -> Task:
        with self._lock:
            removed = self._items.pop(task_id, None)
        if removed is None:
            raise NotFoundError(task_id)
        logger.info("Deleted task id=%s", task_id)
        return removed


# PUBLIC_INTERFACE
def build_store(settings: Optional[Settings] = None) -> TaskStore:
    """
    Return the configured store based on settings.
    - sqlite: SQLiteTaskStore at settings.sqlite_db_path (default)
    - memory: InMemoryTaskStore
    """
    settings = settings or get_settings()
    if settings.persistence_backend == "memory":
        return InMemoryTaskStore()

    from .db import SQLiteTaskStore

    return SQLiteTaskStore(settings.sqlite_db_path)
