"""Service layer with business logic."""

from .task import TASK_ID_PATTERN, TaskService, TaskStats

__all__ = [
    "TASK_ID_PATTERN",
    "TaskService",
    "TaskStats",
]
