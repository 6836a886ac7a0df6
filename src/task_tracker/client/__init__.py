from .api_client import ApiError, TaskApiClient
from .state import TaskBoard, TaskForm

__all__ = ["ApiError", "TaskApiClient", "TaskBoard", "TaskForm"]
