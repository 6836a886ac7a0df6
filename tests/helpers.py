from __future__ import annotations

from datetime import datetime
from pathlib import Path

from task_tracker.models import TASK_STATUSES
from task_tracker.settings import Settings


def make_settings(tmp_path: Path, backend: str = "memory") -> Settings:
    return Settings(
        persistence_backend=backend,
        sqlite_db_path=str(tmp_path / "data" / "tasks.db"),
        cors_allow_origins=["*"],
        log_level="WARNING",
        log_file=None,
        api_url="http://testserver",
    )


def create_task_payload(title="Test Task", description="Do something", status=None):
    payload = {"title": title, "description": description}
    if status is not None:
        payload["status"] = status
    return payload


def assert_task_shape(task: dict):
    for key in ["id", "title", "description", "status", "created_at", "updated_at"]:
        assert key in task
    assert isinstance(task["id"], int)
    assert isinstance(task["title"], str) and task["title"]
    assert isinstance(task["description"], str)
    assert task["status"] in TASK_STATUSES
    # Timestamps are ISO8601 strings parseable by datetime.fromisoformat
    parse_ts(task["created_at"])
    parse_ts(task["updated_at"])


def parse_ts(value: str) -> datetime:
    # pydantic emits a trailing 'Z' for UTC; fromisoformat accepts it only on 3.11+
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)
