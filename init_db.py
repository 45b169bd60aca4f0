"""
Скрипт для инициализации базы данных.

Создаёт таблицу tasks для DATABASE_URL из настроек.
Приложение делает то же самое при старте (lifespan), скрипт нужен,
чтобы подготовить БД заранее.
"""

import asyncio

from src.core.config import settings
from src.core.database import Database


async def main():
    """Создать все таблицы."""
    database = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    print(f"Создание таблиц: {settings.DATABASE_URL}")
    try:
        await database.create_all()
    finally:
        await database.dispose()
    print("✓ Таблицы созданы успешно!")


if __name__ == "__main__":
    asyncio.run(main())
