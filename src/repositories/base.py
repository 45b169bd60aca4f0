"""Base repository with common CRUD operations."""

from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import Base

# TypeVar для Generic класса - позволяет работать с любой моделью
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Базовый репозиторий с CRUD операциями.

    Репозиторий не делает commit: границы транзакции задаёт владелец
    сессии (dependency get_db или тест).

    Пример использования:
        repo = BaseRepository[Task](Task, db_session)
        task = await repo.get_by_id("65f1c2a9e4b0a1b2c3d4e5f6")
    """

    def __init__(self, model: type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    async def create(self, obj: ModelType) -> ModelType:
        """
        Сохранить новый объект.

        flush() отправляет INSERT в БД без commit,
        refresh() подтягивает значения по умолчанию (id, timestamps).
        """
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def get_by_id(self, id: Any) -> ModelType | None:
        """
        Получить объект по первичному ключу.

        SQL эквивалент:
            SELECT * FROM table WHERE id = {id} LIMIT 1;
        """
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def delete(self, id: Any) -> bool:
        """
        Удалить запись по ID.

        Returns:
            True если запись существовала и удалена
        """
        result = await self.db.execute(delete(self.model).where(self.model.id == id))
        return result.rowcount > 0

    async def count_where(self, *conditions: ColumnElement[bool]) -> int:
        """
        Подсчитать записи, удовлетворяющие условиям (AND).

        SQL эквивалент:
            SELECT COUNT(*) FROM table WHERE {conditions};
        """
        query = select(func.count()).select_from(self.model)
        if conditions:
            query = query.where(*conditions)
        result = await self.db.execute(query)
        return result.scalar_one()
