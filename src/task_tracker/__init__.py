"""
Task Tracker package.

- task_tracker.api: FastAPI service persisting tasks in SQLite (or memory)
- task_tracker.client: HTTP client and the state container driving a task list view
"""

__version__ = "0.1.0"
