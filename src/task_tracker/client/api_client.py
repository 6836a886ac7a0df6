"""HTTP client for the task tracker API."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..settings import get_settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A request failed; message is suitable for showing to the user."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TaskApiClient:
    """
    Synchronous client for the /tasks endpoints.

    One request per call: no retries, no cancellation. Any non-2xx response
    or transport failure raises ApiError.
    """

    def __init__(self, base_url: Optional[str] = None, http: Optional[httpx.Client] = None):
        if http is None:
            http = httpx.Client(
                base_url=base_url or get_settings().api_url,
                headers={"Accept": "application/json"},
            )
            self._owns_http = True
        else:
            self._owns_http = False
        self._http = http

    def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "TaskApiClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @staticmethod
    def _error_message(response: httpx.Response, fallback: str) -> str:
        try:
            body = response.json()
        except ValueError:
            return fallback
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return fallback

    def _request(
        self,
        method: str,
        path: str,
        *,
        fallback: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            response = self._http.request(method, path, json=json, params=params)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(f"{fallback}: {exc}") from exc

        if response.is_error:
            message = self._error_message(response, fallback)
            logger.warning("%s %s -> %s: %s", method, path, response.status_code, message)
            raise ApiError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(f"{fallback}: invalid JSON response", response.status_code) from exc

    def list_tasks(self, *, status: Optional[str] = None, search: Optional[str] = None) -> List[Dict[str, Any]]:
        """List tasks with optional server-side filters."""
        params: Dict[str, Any] = {}
        if status:
            params["status"] = status
        if search:
            params["search"] = search
        body = self._request("GET", "/tasks", params=params or None, fallback="Failed to fetch tasks")
        return list(body.get("data") or [])

    def get_task(self, task_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/tasks/{task_id}", fallback="Failed to fetch task")["data"]

    def create_task(
        self, title: str, *, description: Optional[str] = None, status: Optional[str] = None
    ) -> Dict[str, Any]:
        """Create a task and return the stored record."""
        data: Dict[str, Any] = {"title": title}
        if description is not None:
            data["description"] = description
        if status is not None:
            data["status"] = status
        return self._request("POST", "/tasks", json=data, fallback="Failed to save task")["data"]

    def update_task(
        self,
        task_id: int,
        title: str,
        *,
        description: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Update a task and return the stored record."""
        data: Dict[str, Any] = {"title": title}
        if description is not None:
            data["description"] = description
        if status is not None:
            data["status"] = status
        return self._request("PUT", f"/tasks/{task_id}", json=data, fallback="Failed to save task")["data"]

    def delete_task(self, task_id: int) -> Dict[str, Any]:
        """Delete a task and return its last state."""
        return self._request("DELETE", f"/tasks/{task_id}", fallback="Failed to delete task")["data"]

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health", fallback="Health check failed")
