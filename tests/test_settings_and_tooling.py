import json
import logging
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from task_tracker.api.generate_openapi import generate_openapi
from task_tracker.api.main import create_app
from task_tracker.api.repositories import InMemoryTaskStore
from task_tracker.logging_setup import setup_logging
from task_tracker.settings import get_settings

from .helpers import make_settings


@pytest.fixture()
def restore_root_handlers():
    root = logging.getLogger()
    saved = list(root.handlers)
    level = root.level
    yield root
    for h in list(root.handlers):
        if h not in saved:
            root.removeHandler(h)
            h.close()
    for h in saved:
        if h not in root.handlers:
            root.addHandler(h)
    root.setLevel(level)


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in [
            "PERSISTENCE_BACKEND",
            "SQLITE_DB_PATH",
            "CORS_ALLOW_ORIGINS",
            "LOG_LEVEL",
            "LOG_FILE",
            "TASKS_API_URL",
        ]:
            monkeypatch.delenv(name, raising=False)
        s = get_settings()
        assert s.persistence_backend == "sqlite"
        assert s.sqlite_db_path == "./data/tasks.db"
        assert s.cors_allow_origins == ["*"]
        assert s.log_level == "INFO"
        assert s.log_file is None
        assert s.api_url == "http://localhost:3001"

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("PERSISTENCE_BACKEND", "MEMORY")
        monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.test, http://b.test,")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("TASKS_API_URL", "http://tasks.test:8080/")
        s = get_settings()
        assert s.persistence_backend == "memory"
        assert s.cors_allow_origins == ["http://a.test", "http://b.test"]
        assert s.log_level == "DEBUG"
        assert s.api_url == "http://tasks.test:8080"

    def test_unknown_values_fall_back(self, monkeypatch):
        monkeypatch.setenv("PERSISTENCE_BACKEND", "postgres")
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        s = get_settings()
        assert s.persistence_backend == "sqlite"
        assert s.log_level == "INFO"


def test_setup_logging_writes_file(tmp_path, restore_root_handlers):
    log_file = tmp_path / "logs" / "tasks.log"
    setup_logging("INFO", log_file)
    logging.getLogger("task_tracker.tests").info("hello from tests")
    logging.getLogger("task_tracker.tests").debug("below threshold")
    for h in logging.getLogger().handlers:
        h.flush()

    text = log_file.read_text(encoding="utf-8")
    assert "INFO task_tracker.tests: hello from tests" in text
    assert "below threshold" not in text


def test_generate_openapi(tmp_path):
    out = tmp_path / "interfaces" / "openapi.json"
    assert generate_openapi(str(out)) == str(out)

    schema = json.loads(out.read_text(encoding="utf-8"))
    assert "/tasks" in schema["paths"]
    assert "/tasks/{task_id}" in schema["paths"]
    assert {"health", "tasks"} <= {t["name"] for t in schema["tags"]}
    assert schema["info"]["x-task-statuses"] == ["pending", "in_progress", "completed"]
    required = {
        name: set(schema["components"]["schemas"][name].get("required", []))
        for name in ["TaskCreate", "TaskUpdate"]
    }
    assert required == {"TaskCreate": {"title"}, "TaskUpdate": {"title"}}


class TestAppLogging:
    def test_building_app_keeps_host_handlers(self, tmp_path, caplog):
        root = logging.getLogger()
        sentinel = logging.NullHandler()
        root.addHandler(sentinel)
        try:
            caplog.set_level(logging.INFO)
            app = create_app(settings=make_settings(tmp_path), store=InMemoryTaskStore())
            with TestClient(app) as client:
                res = client.post("/tasks", json={"title": "Logged"})
            assert res.status_code == 201
            assert sentinel in root.handlers
            assert any("Created task id=" in r.getMessage() for r in caplog.records)
        finally:
            root.removeHandler(sentinel)

    def test_server_startup_configures_logging(self, tmp_path, restore_root_handlers):
        log_file = tmp_path / "logs" / "server.log"
        settings = replace(make_settings(tmp_path), log_level="INFO", log_file=str(log_file))
        app = create_app(settings=settings, store=InMemoryTaskStore(), configure_logging=True)
        assert not log_file.exists()

        with TestClient(app) as client:
            client.post("/tasks", json={"title": "Logged"})
        for h in restore_root_handlers.handlers:
            h.flush()

        assert "Created task id=" in log_file.read_text(encoding="utf-8")
