"""
Utility script to generate and write the OpenAPI schema for the FastAPI app.

Serializes the app's OpenAPI schema to a JSON file so that API clients and
documentation tools can consume a stable contract without running the server.

Usage:
    python -m task_tracker.api.generate_openapi [output_path]

Notes:
- Every tag declared in main.openapi_tags is present in the output.
- Default output path is interfaces/openapi.json under the current directory.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from fastapi import FastAPI

from ..logging_setup import setup_logging
from ..models import TASK_STATUSES
from ..settings import Settings
from .main import create_app, openapi_tags
from .repositories import InMemoryTaskStore

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = os.path.join("interfaces", "openapi.json")


def _ensure_tags(schema: Dict[str, Any]) -> None:
    """
    Ensure the OpenAPI schema contains the declared tags metadata without
    overriding existing definitions.
    """
    existing_tags: List[Dict[str, Any]] = schema.get("tags", []) or []
    existing_names = {t.get("name") for t in existing_tags if isinstance(t, dict)}
    for tag in openapi_tags:
        if tag.get("name") not in existing_names:
            existing_tags.append(tag)
    if existing_tags:
        schema["tags"] = existing_tags


def build_schema(app: Optional[FastAPI] = None) -> Dict[str, Any]:
    """Return the OpenAPI document, with the task status values published as an extension."""
    if app is None:
        # No store is touched while generating the schema.
        settings = Settings(
            persistence_backend="memory",
            sqlite_db_path="",
            cors_allow_origins=["*"],
            log_level="WARNING",
            log_file=None,
            api_url="",
        )
        app = create_app(settings=settings, store=InMemoryTaskStore())
    schema = app.openapi()
    _ensure_tags(schema)
    schema.setdefault("info", {})["x-task-statuses"] = list(TASK_STATUSES)
    return schema


# PUBLIC_INTERFACE
def generate_openapi(out_path: str = DEFAULT_OUTPUT, app: Optional[FastAPI] = None) -> str:
    """Write the OpenAPI schema file, creating directories as needed, and return its path."""
    schema = build_schema(app)
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(schema, f, indent=2, ensure_ascii=False)
    logger.info("Wrote OpenAPI schema to %s", out_path)
    return out_path


def main(argv: Optional[List[str]] = None) -> None:
    setup_logging("INFO")
    args = sys.argv[1:] if argv is None else argv
    path = generate_openapi(args[0] if args else DEFAULT_OUTPUT)
    print(f"Wrote OpenAPI schema to: {path}")


if __name__ == "__main__":
    main()
