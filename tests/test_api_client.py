import json

import httpx
import pytest

from task_tracker.client import ApiError, TaskApiClient

TASK = {
    "id": 1,
    "title": "Buy milk",
    "description": "",
    "status": "pending",
    "created_at": "2025-01-25T10:15:30.123456Z",
    "updated_at": "2025-01-25T10:15:30.123456Z",
}


def make_client(handler) -> TaskApiClient:
    http = httpx.Client(base_url="http://tasks.test", transport=httpx.MockTransport(handler))
    return TaskApiClient(http=http)


def test_list_sends_filters():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"success": True, "data": [TASK], "count": 1})

    client = make_client(handler)
    assert client.list_tasks(status="pending", search="milk") == [TASK]
    assert seen == {"path": "/tasks", "params": {"status": "pending", "search": "milk"}}


def test_create_omits_unset_fields():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"success": True, "message": "Task created successfully", "data": TASK})

    assert make_client(handler).create_task("Buy milk") == TASK
    assert seen == {"method": "POST", "body": {"title": "Buy milk"}}


def test_error_uses_server_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"success": False, "error": "Not found", "message": "Task not found"})

    with pytest.raises(ApiError) as excinfo:
        make_client(handler).delete_task(7)
    assert excinfo.value.message == "Task not found"
    assert excinfo.value.status_code == 404


def test_error_without_json_body_uses_fallback():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="Bad Gateway")

    with pytest.raises(ApiError) as excinfo:
        make_client(handler).list_tasks()
    assert excinfo.value.message == "Failed to fetch tasks"
    assert excinfo.value.status_code == 502


def test_transport_failure_is_api_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ApiError) as excinfo:
        make_client(handler).update_task(1, "x")
    assert excinfo.value.message.startswith("Failed to save task")
    assert excinfo.value.status_code is None


def test_get_task_returns_record():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        return httpx.Response(200, json={"success": True, "data": TASK})

    assert make_client(handler).get_task(1) == TASK
    assert seen == {"method": "GET", "path": "/tasks/1"}


def test_get_task_error_uses_fallback():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="oops")

    with pytest.raises(ApiError) as excinfo:
        make_client(handler).get_task(1)
    assert excinfo.value.message == "Failed to fetch task"
    assert excinfo.value.status_code == 500


def test_health_returns_body():
    body = {"status": "healthy", "timestamp": "2025-01-25T10:15:30.123456Z", "database": "connected"}

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/health"
        return httpx.Response(200, json=body)

    assert make_client(handler).health() == body


def test_health_transport_failure_is_api_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ApiError) as excinfo:
        make_client(handler).health()
    assert excinfo.value.message.startswith("Health check failed")
    assert excinfo.value.status_code is None
