from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..errors import NotFoundError, StoreError, TaskTrackerError, ValidationError
from ..logging_setup import setup_logging
from ..models import TITLE_REQUIRED_MESSAGE
from ..settings import Settings, get_settings
from .repositories import TaskStore, utc_now
from .routers import tasks as tasks_router
from .schemas import HealthOut
from .utils import error_body

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "tasks",
        "description": "CRUD operations for tasks with status and text filtering.",
    },
]


def _validation_message(errors: Sequence[Dict[str, Any]]) -> str:
    """
    Reduce pydantic/FastAPI error details to the first human-readable cause.
    Errors raised by the task model validators keep their own message.
    """
    if not errors:
        return "Request validation failed"
    first = errors[0]
    loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path")]
    if first.get("type") == "missing" and loc == ["title"]:
        return TITLE_REQUIRED_MESSAGE
    cause = (first.get("ctx") or {}).get("error")
    if isinstance(cause, TaskTrackerError):
        return cause.message
    msg = str(first.get("msg", "Invalid value"))
    if msg.startswith("Value error, "):
        return msg[len("Value error, "):]
    return f"{'.'.join(loc)}: {msg}" if loc else msg


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return the shared error body for request validation failures.

        Response format:
            {"success": false, "error": "Validation error", "message": "..."}
        """
        message = _validation_message(exc.errors())
        logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
        return JSONResponse(status_code=400, content=error_body("Validation error", message))

    @app.exception_handler(ValidationError)
    async def task_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=400, content=error_body("Validation error", exc.message))

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content=error_body("Not found", exc.message))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Routes never raise HTTPException themselves; 404/405 here are routing misses.
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content=error_body("Not found", "Route not found"))
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body("HTTP error", str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        return JSONResponse(status_code=500, content=error_body("Database error", exc.message))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=error_body("Internal server error", str(exc)))


# PUBLIC_INTERFACE
def create_app(
    settings: Optional[Settings] = None,
    store: Optional[TaskStore] = None,
    configure_logging: bool = False,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Explicit settings; read from the environment when None.
        store: Task store to serve; built from settings on first request when None.
        configure_logging: Install root logging handlers from settings when the
            server starts. Left off for embedded and test apps so the host keeps
            its own logging setup.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if configure_logging:
            setup_logging(settings.log_level, settings.log_file)
        yield

    app = FastAPI(
        lifespan=lifespan,
        title="Task Tracker",
        description="Backend API service for tracking tasks persisted in SQLite.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )
    app.state.settings = settings
    app.state.store = store

    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    # PUBLIC_INTERFACE
    @app.get("/health", response_model=HealthOut, summary="Health Check", tags=["health"])
    def health_check(request: Request) -> HealthOut:
        """
        Health check endpoint. Always 200; 'database' reports whether the store answers.
        """
        try:
            connected = tasks_router.get_store(request).ping()
        except StoreError:
            connected = False
        return HealthOut(
            status="healthy",
            timestamp=utc_now(),
            database="connected" if connected else "disconnected",
        )

    app.include_router(tasks_router.router)
    return app


# ASGI entry point: logging is configured once, at server startup.
app = create_app(configure_logging=True)
