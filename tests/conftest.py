from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from task_tracker.api.db import SQLiteTaskStore
from task_tracker.api.main import create_app
from task_tracker.api.repositories import InMemoryTaskStore, TaskStore
from task_tracker.settings import Settings

from .helpers import make_settings


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path: Path) -> TaskStore:
    """Fresh store per test, for both backends."""
    if request.param == "memory":
        return InMemoryTaskStore()
    return SQLiteTaskStore(str(tmp_path / "data" / "tasks.db"))


@pytest.fixture()
def client(settings: Settings, store: TaskStore) -> TestClient:
    app = create_app(settings=settings, store=store)
    return TestClient(app)
