"""Task repository: persistence of Task records."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import ColumnElement, false, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ValidationError
from ..models import Task, TaskPriority, utc_now
from .base import BaseRepository

# Поля, которые можно передавать в insert/update_by_id
MUTABLE_FIELDS = frozenset(
    {"title", "description", "is_completed", "priority", "due_date", "tags"}
)


@dataclass(frozen=True)
class TaskFilters:
    """
    Structured predicate for task queries.

    None означает "не фильтровать по этому полю". Поэтому is_completed=False
    - это реальный фильтр (только незавершённые), а не отсутствие фильтра.
    """

    is_completed: bool | None = None
    priority: str | None = None
    search: str | None = None


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class TaskRepository(BaseRepository[Task]):
    """
    Репозиторий задач.

    Отвечает за структурную корректность записи (через валидаторы модели),
    временные бизнес-правила живут в TaskService.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Task, db)

    @staticmethod
    def _check_fields(data: dict[str, Any]) -> None:
        unknown = set(data) - MUTABLE_FIELDS
        if unknown:
            field = sorted(unknown)[0]
            raise ValidationError(field, f"Field '{field}' cannot be set")

    @staticmethod
    def build_conditions(
        filters: TaskFilters, overdue_at: datetime | None = None
    ) -> list[ColumnElement[bool]]:
        """
        Translate TaskFilters into SQL conditions (combined with AND).

        SQL эквивалент (все фильтры заданы):
            WHERE is_completed = :is_completed
              AND priority = :priority
              AND (title ILIKE '%term%' OR description ILIKE '%term%')
              AND due_date IS NOT NULL AND due_date < :overdue_at

        overdue_at не приходит от клиента: его передаёт сервис при подсчёте
        просроченных задач.

        Note:
            На SQLite ILIKE компилируется в lower(...) LIKE lower(...), а
            встроенная lower() приводит к нижнему регистру только ASCII.
            Поиск по кириллице и другим не-ASCII буквам там регистрозависим.
            PostgreSQL сравнивает без учёта регистра для всех букв.
        """
        conditions: list[ColumnElement[bool]] = []

        if filters.is_completed is not None:
            conditions.append(Task.is_completed == filters.is_completed)

        if filters.priority is not None:
            try:
                conditions.append(Task.priority == TaskPriority(filters.priority))
            except ValueError:
                # Неизвестный приоритет - пустой результат, не ошибка
                conditions.append(false())

        if filters.search:
            pattern = f"%{_escape_like(filters.search)}%"
            conditions.append(
                or_(
                    Task.title.ilike(pattern, escape="\\"),
                    Task.description.ilike(pattern, escape="\\"),
                )
            )

        if overdue_at is not None:
            conditions.append(Task.due_date.is_not(None))
            conditions.append(Task.due_date < overdue_at)

        return conditions

    async def insert(self, draft: dict[str, Any]) -> Task:
        """
        Создать задачу из черновика (без id и timestamps).

        Raises:
            ValidationError: поле не проходит ограничения модели
        """
        self._check_fields(draft)
        task = Task(**draft)
        return await self.create(task)

    async def find_by_id(self, task_id: str) -> Task | None:
        """Получить задачу по ID или None (не бросает исключений)."""
        return await self.get_by_id(task_id)

    async def find_many(self, filters: TaskFilters | None = None) -> list[Task]:
        """
        Получить задачи по фильтру, новые сверху.

        Пагинации нет: возвращаются все подходящие задачи.
        """
        query = select(Task)
        conditions = self.build_conditions(filters or TaskFilters())
        if conditions:
            query = query.where(*conditions)
        query = query.order_by(Task.created_at.desc(), Task.id.desc())

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update_by_id(self, task_id: str, patch: dict[str, Any]) -> Task | None:
        """
        Частичное обновление: меняются только ключи, присутствующие в patch.

        Каждое изменённое поле проходит те же валидаторы, что и при insert.
        updated_at обновляется всегда, даже для пустого patch.

        Patch применяется целиком или никак: сначала все значения проверяются
        на временном объекте, и только потом меняется задача в сессии.

        Returns:
            Обновлённая задача или None, если задачи нет

        Raises:
            ValidationError: хотя бы одно поле patch не проходит ограничения
        """
        self._check_fields(patch)
        Task(**patch)

        task = await self.get_by_id(task_id)
        if task is None:
            return None

        for key, value in patch.items():
            setattr(task, key, value)
        now = utc_now()
        # updated_at строго растёт, даже если часы не сдвинулись
        if now <= task.updated_at:
            now = task.updated_at + timedelta(microseconds=1)
        task.updated_at = now

        await self.db.flush()
        await self.db.refresh(task)
        return task

    async def delete_by_id(self, task_id: str) -> bool:
        """Удалить задачу. Возвращает True, если она существовала."""
        return await self.delete(task_id)

    async def count(
        self, filters: TaskFilters | None = None, *, overdue_at: datetime | None = None
    ) -> int:
        """
        Количество задач по фильтру без загрузки строк.

        overdue_at: считать только задачи с due_date раньше этого момента.
        """
        conditions = self.build_conditions(filters or TaskFilters(), overdue_at)
        return await self.count_where(*conditions)
