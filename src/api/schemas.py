"""
Pydantic схемы для API.

DTOs (Data Transfer Objects) - объекты для передачи данных через HTTP.

JSON использует camelCase (isCompleted, dueDate, createdAt), как ожидает
веб-клиент. При разборе запроса snake_case тоже принимается.

Ограничения длины/enum здесь намеренно не дублируются: их проверяет
модель Task и отвечает ValidationError с понятным сообщением.
"""

from datetime import UTC, datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from ..models import TaskPriority

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# TASK SCHEMAS
# ============================================================================


class TaskCreate(CamelModel):
    """
    Схема для создания задачи (POST /api/tasks).

    Пример запроса:
    {
        "title": "Pay rent",
        "priority": "high",
        "dueDate": "2026-11-01T09:00:00Z",
        "tags": ["home", "money"]
    }
    """

    title: str = Field(..., description="Название задачи (1-200 символов)")
    description: str | None = Field(None, description="Описание (до 1000 символов)")
    priority: str | None = Field(None, description="low, medium или high (по умолчанию medium)")
    due_date: datetime | None = Field(None, description="Дедлайн, строго в будущем")
    tags: list[str] | None = Field(None, description="Теги, порядок сохраняется")


class TaskUpdate(CamelModel):
    """
    Схема для обновления задачи (PUT /api/tasks/{id}).

    Все поля опциональные. Применяются только переданные поля:
    model_dump(exclude_unset=True) отличает "поле не передано" от
    "передано false/null".

    Пример запроса:
    {
        "isCompleted": true,
        "priority": "low"
    }
    """

    title: str | None = None
    description: str | None = None
    priority: str | None = None
    due_date: datetime | None = None
    tags: list[str] | None = None
    is_completed: bool | None = None


class TaskResponse(CamelModel):
    """
    Задача в ответе API.

    Пример:
    {
        "id": "65f1c2a9e4b0a1b2c3d4e5f6",
        "title": "Pay rent",
        "description": null,
        "isCompleted": false,
        "priority": "high",
        "dueDate": "2026-11-01T09:00:00+00:00",
        "tags": ["home"],
        "createdAt": "2026-10-18T12:00:00+00:00",
        "updatedAt": "2026-10-18T12:00:00+00:00"
    }
    """

    id: str
    title: str
    description: str | None
    is_completed: bool
    priority: TaskPriority
    due_date: datetime | None
    tags: list[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    @field_serializer("due_date", "created_at", "updated_at")
    def serialize_utc(self, value: datetime | None) -> str | None:
        # В БД хранится naive UTC
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.isoformat()


class TaskStatsResponse(BaseModel):
    """
    Статистика задач (GET /api/tasks/stats).

    overdue - незавершённые задачи с дедлайном в прошлом.
    """

    total: int
    completed: int
    pending: int
    overdue: int


# ============================================================================
# RESPONSE ENVELOPES
# ============================================================================


class ApiResponse(BaseModel, Generic[T]):
    """
    Единый формат успешного ответа.

    Пример:
    {
        "success": true,
        "data": [...],
        "message": "Found 3 tasks"
    }
    """

    success: bool = True
    data: T | None = None
    message: str | None = None


class ErrorDetail(BaseModel):
    """
    Детали ошибки для конкретного поля.

    Пример:
    {
        "field": "title",
        "message": "Task title is required"
    }
    """

    field: str = Field(..., description="Название поля с ошибкой")
    message: str = Field(..., description="Описание ошибки")


class ErrorResponse(BaseModel):
    """
    Единый формат ответа для всех ошибок API.

    Коды ошибок:
    - VALIDATION_ERROR: поле не прошло проверку
    - INVALID_ID: неверный формат идентификатора
    - INVALID_DUE_DATE: дедлайн не в будущем
    - NOT_FOUND: ресурс не найден
    - UNAUTHORIZED: нет bearer токена
    - RATE_LIMIT_EXCEEDED: слишком много запросов

    Пример:
    {
        "success": false,
        "error": "NOT_FOUND",
        "message": "Task not found",
        "details": null
    }
    """

    success: bool = False
    error: str = Field(..., description="Код ошибки")
    message: str = Field(..., description="Человекочитаемое сообщение")
    details: list[ErrorDetail] | None = Field(
        default=None, description="Список ошибок по полям (для валидации)"
    )
