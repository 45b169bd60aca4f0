"""Task model."""

import enum
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, validates

from ..core.exceptions import ValidationError
from .base import Base, TimestampMixin, generate_object_id, to_naive_utc, utc_now

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000


class TaskPriority(str, enum.Enum):
    """Task priority enum."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Task(Base, TimestampMixin):
    """
    Single persisted task.

    Валидаторы (@validates) срабатывают при каждом присваивании атрибута:
    и в конструкторе, и при setattr в TaskRepository.update_by_id.
    При загрузке из БД они не вызываются, поэтому задача с прошедшим
    дедлайном читается без ошибок (просроченная задача - это нормально).
    """

    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=generate_object_id)
    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    priority: Mapped[TaskPriority] = mapped_column(
        SQLEnum(TaskPriority, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        default=TaskPriority.MEDIUM,
        nullable=False,
    )
    due_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, index=True)
    tags: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    @validates("title")
    def validate_title(self, key: str, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError("title", "Task title is required")
        value = value.strip()
        if len(value) > TITLE_MAX_LENGTH:
            raise ValidationError("title", f"Title cannot exceed {TITLE_MAX_LENGTH} characters")
        return value

    @validates("description")
    def validate_description(self, key: str, value: Any) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValidationError("description", "Description must be a string")
        value = value.strip()
        if len(value) > DESCRIPTION_MAX_LENGTH:
            raise ValidationError(
                "description", f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters"
            )
        return value or None

    @validates("priority")
    def validate_priority(self, key: str, value: Any) -> TaskPriority:
        try:
            return TaskPriority(value)
        except ValueError:
            raise ValidationError("priority", "Priority must be low, medium, or high") from None

    @validates("due_date")
    def validate_due_date(self, key: str, value: Any) -> datetime | None:
        if value is None:
            return None
        if not isinstance(value, datetime):
            raise ValidationError("dueDate", "Due date must be a date-time")
        value = to_naive_utc(value)
        if value <= utc_now():
            raise ValidationError("dueDate", "Due date must be in the future")
        return value

    @validates("tags")
    def validate_tags(self, key: str, value: Any) -> list[str]:
        if value is None:
            return []
        if not isinstance(value, list | tuple) or not all(isinstance(t, str) for t in value):
            raise ValidationError("tags", "Tags must be a list of strings")
        return [tag.strip() for tag in value]

    @validates("is_completed")
    def validate_is_completed(self, key: str, value: Any) -> bool:
        if not isinstance(value, bool):
            raise ValidationError("isCompleted", "isCompleted must be a boolean")
        return value

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, title='{self.title}', completed={self.is_completed})>"
