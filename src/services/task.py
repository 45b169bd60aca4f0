"""Task service: request-level validation, queries and statistics."""

import re
from collections.abc import Callable
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import InvalidDueDateError, InvalidIdError, NotFoundError, ValidationError
from ..core.logging import get_logger
from ..models import Task, to_naive_utc, utc_now
from ..repositories import TaskFilters, TaskRepository

logger = get_logger(__name__)

# Формат идентификатора хранилища: 24 hex символа
TASK_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")


@dataclass(frozen=True)
class TaskStats:
    """Aggregate counters for the dashboard."""

    total: int
    completed: int
    pending: int
    overdue: int

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class TaskService:
    """
    Сервис для работы с задачами.

    Два уровня валидации:
    - структурные ограничения (длина, enum, обязательные поля) - модель Task;
    - бизнес-правила, зависящие от времени (дедлайн в будущем) - здесь.

    Проверка дедлайна выполняется и тут, и в модели намеренно: сервис
    отвечает клиенту InvalidDueDateError до обращения к хранилищу,
    а модель не даёт записать такое значение в обход сервиса.

    Args:
        db: сессия БД текущего запроса
        clock: источник "сейчас" (naive UTC), подменяется в тестах
    """

    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock
        self.task_repo = TaskRepository(db)

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    @staticmethod
    def validate_task_id(task_id: str) -> str:
        """Raise InvalidIdError unless task_id has the store identifier format."""
        if not isinstance(task_id, str) or not TASK_ID_PATTERN.match(task_id):
            raise InvalidIdError(task_id)
        return task_id.lower()

    def validate_due_date(self, due_date: datetime) -> datetime:
        """Raise InvalidDueDateError unless due_date is strictly in the future."""
        if not isinstance(due_date, datetime):
            raise ValidationError("dueDate", "Due date must be a date-time")
        due_date = to_naive_utc(due_date)
        if due_date <= self.clock():
            raise InvalidDueDateError()
        return due_date

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_tasks(self, filters: TaskFilters | None = None) -> list[Task]:
        """
        Получить задачи по фильтрам, новые сверху.

        Пустой результат - не ошибка. Пустая строка поиска = нет поиска.

        Примеры:
            await service.list_tasks(TaskFilters(is_completed=False))
            await service.list_tasks(TaskFilters(priority="high", search="rent"))
        """
        filters = filters or TaskFilters()
        if filters.search is not None and not filters.search.strip():
            filters = TaskFilters(is_completed=filters.is_completed, priority=filters.priority)
        return await self.task_repo.find_many(filters)

    async def get_task(self, task_id: str) -> Task:
        """
        Получить задачу по ID.

        Raises:
            InvalidIdError: ID неверного формата
            NotFoundError: задачи с таким ID нет
        """
        task_id = self.validate_task_id(task_id)
        task = await self.task_repo.find_by_id(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def create_task(
        self,
        title: str,
        description: str | None = None,
        priority: str | None = None,
        due_date: datetime | None = None,
        tags: list[str] | None = None,
    ) -> Task:
        """
        Создать задачу.

        Raises:
            InvalidDueDateError: дедлайн не в будущем (до обращения к БД)
            ValidationError: поле не прошло ограничения модели или due_date не datetime
        """
        if due_date is not None:
            due_date = self.validate_due_date(due_date)

        draft: dict[str, Any] = {"title": title, "description": description, "due_date": due_date}
        if priority is not None:
            draft["priority"] = priority
        if tags is not None:
            draft["tags"] = tags

        task = await self.task_repo.insert(draft)
        logger.info(
            "Task created",
            extra={"task_id": task.id, "priority": task.priority.value},
        )
        return task

    async def update_task(self, task_id: str, patch: dict[str, Any]) -> Task:
        """
        Частичное обновление задачи.

        Ключ отсутствует в patch - поле не трогаем. Значение False/None
        применяется как есть (None очищает description и due_date).

        Raises:
            InvalidIdError, InvalidDueDateError, ValidationError, NotFoundError
        """
        task_id = self.validate_task_id(task_id)

        patch = dict(patch)
        if patch.get("due_date") is not None:
            patch["due_date"] = self.validate_due_date(patch["due_date"])

        task = await self.task_repo.update_by_id(task_id, patch)
        if task is None:
            raise NotFoundError("Task", task_id)

        logger.info("Task updated", extra={"task_id": task_id, "fields": sorted(patch)})
        return task

    async def mark_completed(self, task_id: str) -> Task:
        """Пометить задачу выполненной."""
        return await self.update_task(task_id, {"is_completed": True})

    async def mark_pending(self, task_id: str) -> Task:
        """Вернуть задачу в работу."""
        return await self.update_task(task_id, {"is_completed": False})

    async def delete_task(self, task_id: str) -> None:
        """
        Удалить задачу навсегда.

        Повторное удаление того же ID даёт NotFoundError: клиент не может
        отличить "уже удалена" от "никогда не существовала".
        """
        task_id = self.validate_task_id(task_id)

        deleted = await self.task_repo.delete_by_id(task_id)
        if not deleted:
            raise NotFoundError("Task", task_id)

        logger.info("Task deleted", extra={"task_id": task_id})

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    async def get_task_stats(self) -> TaskStats:
        """
        Посчитать статистику четырьмя независимыми запросами.

        Запросы не объединены в одну транзакцию/снимок: при параллельных
        записях между ними completed + pending может временно не совпасть
        с total. Без параллельных записей всегда:
            completed + pending == total, overdue <= pending

        Пример:
            {"total": 10, "completed": 4, "pending": 6, "overdue": 2}
        """
        now = self.clock()

        total = await self.task_repo.count()
        completed = await self.task_repo.count(TaskFilters(is_completed=True))
        pending = await self.task_repo.count(TaskFilters(is_completed=False))
        overdue = await self.task_repo.count(TaskFilters(is_completed=False), overdue_at=now)

        return TaskStats(total=total, completed=completed, pending=pending, overdue=overdue)
