"""SQLAlchemy models for the task tracker."""

from .base import Base, TimestampMixin, generate_object_id, to_naive_utc, utc_now
from .task import Task, TaskPriority

__all__ = [
    "Base",
    "TimestampMixin",
    "Task",
    "TaskPriority",
    "generate_object_id",
    "to_naive_utc",
    "utc_now",
]
