from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..models import ALL_STATUSES, DEFAULT_STATUS, filter_tasks, normalize_status_filter
from .api_client import ApiError, TaskApiClient

logger = logging.getLogger(__name__)

DELETE_PROMPT = "Are you sure you want to delete this task?"
EMPTY_FILTERED = "Try adjusting your search or filter criteria"
EMPTY_BOARD = "Create your first task to get started"

Confirm = Callable[[str], bool]


def console_confirm(message: str) -> bool:
    """Ask on the terminal; anything but y/yes declines."""
    return input(f"{message} [y/N] ").strip().lower() in {"y", "yes"}


@dataclass
class TaskForm:
    """Create/edit form and modal state."""

    title: str = ""
    description: str = ""
    status: str = DEFAULT_STATUS
    editing_id: Optional[int] = None
    is_open: bool = False

    @property
    def is_editing(self) -> bool:
        return self.editing_id is not None


@dataclass
class TaskBoard:
    """
    State behind a task list view.

    Holds the last fetched collection, the filter inputs, the form and a single
    error message. The collection is only ever replaced by a full refetch; the
    filtered view is recomputed from (tasks, status_filter, search_term) on
    every access.
    """

    api: TaskApiClient
    confirm: Confirm = console_confirm
    tasks: List[Dict[str, Any]] = field(default_factory=list)
    status_filter: str = ALL_STATUSES
    search_term: str = ""
    error: Optional[str] = None
    loading: bool = False
    form: TaskForm = field(default_factory=TaskForm)

    @property
    def filtered_tasks(self) -> List[Mapping[str, Any]]:
        return filter_tasks(self.tasks, status=self.status_filter, search=self.search_term)

    @property
    def has_active_filters(self) -> bool:
        return bool(self.search_term) or normalize_status_filter(self.status_filter) is not None

    def empty_message(self) -> str:
        return EMPTY_FILTERED if self.has_active_filters else EMPTY_BOARD

    def set_status_filter(self, value: str) -> None:
        self.status_filter = value or ALL_STATUSES

    def set_search(self, text: str) -> None:
        self.search_term = text or ""

    def load(self) -> bool:
        """Fetch the full collection and replace local state with it."""
        self.loading = True
        try:
            self.tasks = self.api.list_tasks()
            self.error = None
            return True
        except ApiError as exc:
            self.error = exc.message
            self.tasks = []
            return False
        finally:
            self.loading = False

    def open_create(self) -> None:
        self.form = TaskForm(is_open=True)

    def open_edit(self, task: Mapping[str, Any]) -> None:
        self.form = TaskForm(
            title=task["title"],
            description=task.get("description") or "",
            status=task.get("status") or DEFAULT_STATUS,
            editing_id=task["id"],
            is_open=True,
        )

    def close_form(self) -> None:
        self.form = TaskForm()

    def submit_form(self) -> bool:
        """
        Create or update from the form, then refetch and close the form.
        On failure the error is set and the form stays open for a retry.
        """
        form = self.form
        try:
            if form.is_editing:
                self.api.update_task(
                    form.editing_id,  # type: ignore[arg-type]
                    form.title,
                    description=form.description,
                    status=form.status,
                )
            else:
                self.api.create_task(form.title, description=form.description, status=form.status)
        except ApiError as exc:
            self.error = exc.message
            return False
        self.load()
        self.close_form()
        return True

    def delete(self, task_id: int) -> bool:
        """Delete after confirmation; returns False when declined or failed."""
        if not self.confirm(DELETE_PROMPT):
            logger.debug("Delete of task %s declined", task_id)
            return False
        try:
            self.api.delete_task(task_id)
        except ApiError as exc:
            self.error = exc.message
            return False
        self.load()
        return True
