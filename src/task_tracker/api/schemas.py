from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models import (
    TASK_STATUSES,
    normalize_description,
    validate_status,
    validate_title,
)

_STATUS_DESCRIPTION = f"Task status, one of: {', '.join(TASK_STATUSES)}"


class _TaskInput(BaseModel):
    """
    Shared body for create and update requests.

    Title is required on both. Validators delegate to the task model helpers so
    the API and the store reject exactly the same input with the same message.
    """

    title: str = Field(
        ...,
        description="Short title for the task (required, trimmed, non-empty)",
    )
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    status: Optional[str] = Field(default=None, description=_STATUS_DESCRIPTION)

    @field_validator("title", mode="before")
    @classmethod
    def check_title(cls, v: Any) -> str:
        return validate_title(v)

    @field_validator("description", mode="before")
    @classmethod
    def check_description(cls, v: Any) -> Optional[str]:
        return normalize_description(v)

    @field_validator("status", mode="before")
    @classmethod
    def check_status(cls, v: Any) -> Optional[str]:
        return validate_status(v)


# PUBLIC_INTERFACE
class TaskCreate(_TaskInput):
    """
    Schema for creating a task. Missing status defaults to 'pending' in the store.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "status": "pending",
            }
        }
    )


# PUBLIC_INTERFACE
class TaskUpdate(_TaskInput):
    """
    Schema for updating a task.
    Title is overwritten; description and status are kept when omitted.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries and supplies",
                "description": "Milk, eggs, bread, and paper towels",
                "status": "in_progress",
            }
        }
    )


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 123,
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "status": "pending",
                "created_at": "2025-01-25T10:15:30.123456+00:00",
                "updated_at": "2025-01-26T09:00:00.000001+00:00",
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the task")
    title: str = Field(..., description="Short title for the task")
    description: str = Field(default="", description="Detailed description, empty when not set")
    status: str = Field(..., description=_STATUS_DESCRIPTION)
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class TaskEnvelope(BaseModel):
    """Single-task response. message is set for mutations."""

    success: bool = True
    message: Optional[str] = None
    data: TaskOut


class TaskListEnvelope(BaseModel):
    """List response: matching tasks and their count."""

    success: bool = True
    data: List[TaskOut]
    count: int


class HealthOut(BaseModel):
    status: str = Field(..., description="'healthy' while the service answers")
    timestamp: datetime
    database: str = Field(..., description="'connected' or 'disconnected'")


class ErrorOut(BaseModel):
    """Body of every failed response."""

    success: bool = False
    error: str = Field(..., description="Error category, e.g. 'Validation error'")
    message: str = Field(..., description="Human-readable detail")
