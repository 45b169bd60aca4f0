"""Repository layer for data access."""

from .base import BaseRepository
from .task import TaskFilters, TaskRepository

__all__ = [
    "BaseRepository",
    "TaskFilters",
    "TaskRepository",
]
