from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from ...settings import get_settings
from ..repositories import ListQuery, TaskStore, build_store
from ..schemas import ErrorOut, TaskCreate, TaskEnvelope, TaskListEnvelope, TaskOut, TaskUpdate
from ..utils import item_envelope, list_envelope

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
)

_ERRORS = {
    400: {"model": ErrorOut, "description": "Validation error"},
    404: {"model": ErrorOut, "description": "Task not found"},
    500: {"model": ErrorOut, "description": "Database error"},
}


def get_store(request: Request) -> TaskStore:
    """
    Return the store attached to the application, building it from settings
    on first use when the app was created without one.
    """
    store = getattr(request.app.state, "store", None)
    if store is None:
        store = build_store(getattr(request.app.state, "settings", None) or get_settings())
        request.app.state.store = store
    return store


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=TaskListEnvelope,
    summary="List Tasks",
    description=(
        "List tasks, newest first.\n\n"
        "Query parameters:\n"
        "- status: exact status match; 'all' or empty disables the filter\n"
        "- search: case-insensitive substring of title or description\n\n"
        "Returns the matching tasks and their count."
    ),
    responses={200: {"description": "List retrieved successfully"}, 500: _ERRORS[500]},
)
def list_tasks(
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status"),
    search: Optional[str] = Query(None, description="Search text for title/description"),
    store: TaskStore = Depends(get_store),
) -> TaskListEnvelope:
    """
    List tasks with the optional status and search filters.
    """
    items = store.list(ListQuery(status=status_filter, search=search))
    return TaskListEnvelope(**list_envelope([TaskOut(**it) for it in items]))


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TaskEnvelope,
    response_model_exclude_none=True,
    summary="Get Task",
    description="Get a single task by ID.",
    responses={404: _ERRORS[404], 500: _ERRORS[500]},
)
def get_task(task_id: int, store: TaskStore = Depends(get_store)) -> TaskEnvelope:
    """
    Retrieve a single task by its ID.
    """
    return TaskEnvelope(**item_envelope(TaskOut(**store.get(task_id))))


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TaskEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a new task and return the stored record.",
    responses={400: _ERRORS[400], 500: _ERRORS[500]},
)
def create_task(payload: TaskCreate, store: TaskStore = Depends(get_store)) -> TaskEnvelope:
    """
    Create a task. Status defaults to 'pending', description to ''.
    """
    created = store.create(payload.title, payload.description, payload.status)
    return TaskEnvelope(**item_envelope(TaskOut(**created), "Task created successfully"))


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}",
    response_model=TaskEnvelope,
    summary="Update Task",
    description=(
        "Update a task. The title is always replaced; description and status "
        "keep their stored values when omitted."
    ),
    responses=_ERRORS,
)
def update_task(
    task_id: int, payload: TaskUpdate, store: TaskStore = Depends(get_store)
) -> TaskEnvelope:
    updated = store.update(task_id, payload.title, payload.description, payload.status)
    return TaskEnvelope(**item_envelope(TaskOut(**updated), "Task updated successfully"))


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    response_model=TaskEnvelope,
    summary="Delete Task",
    description="Delete a task permanently and return its last state.",
    responses={404: _ERRORS[404], 500: _ERRORS[500]},
)
def delete_task(task_id: int, store: TaskStore = Depends(get_store)) -> TaskEnvelope:
    removed = store.delete(task_id)
    return TaskEnvelope(**item_envelope(TaskOut(**removed), "Task deleted successfully"))
