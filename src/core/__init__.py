"""Core application components."""

from .config import Settings, settings
from .database import Database
from .exceptions import (
    InvalidDueDateError,
    InvalidIdError,
    NotFoundError,
    TaskError,
    ValidationError,
)

__all__ = [
    "settings",
    "Settings",
    "Database",
    "TaskError",
    "ValidationError",
    "InvalidIdError",
    "InvalidDueDateError",
    "NotFoundError",
]
