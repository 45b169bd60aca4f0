"""
Главный файл FastAPI приложения.

Точка входа в Task Tracker API.

Запуск:
    uvicorn src.main:app --reload
    python -m src.main            # HOST/PORT из настроек

API документация:
    http://localhost:5000/docs       - Swagger UI
    http://localhost:5000/redoc      - ReDoc
"""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from .api import tasks_router
from .api.dependencies import get_database, require_principal
from .api.errors import register_error_handlers
from .api.middleware import RequestLoggingMiddleware
from .core.config import settings
from .core.database import Database
from .core.logging import get_logger, setup_logging

setup_logging(
    log_level=settings.LOG_LEVEL,
    log_format=settings.LOG_FORMAT,
    sql_echo=settings.DATABASE_ECHO,
)

logger = get_logger(__name__)

APP_VERSION = "1.0.0"

# Rate limiter по IP адресу клиента
limiter = Limiter(key_func=get_remote_address)


# ============================================================================
# LIFESPAN EVENT HANDLER
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: подключение к хранилищу, создание таблиц.
    Shutdown: закрытие соединений.
    """
    app.state.started_at = time.time()
    app.state.database = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    await app.state.database.create_all()

    logger.info(
        "Application started",
        extra={"app_name": settings.APP_NAME, "version": APP_VERSION, "debug": settings.DEBUG},
    )
    print(f"🚀 {settings.APP_NAME} v{APP_VERSION} started on port {settings.PORT}")

    yield

    await app.state.database.dispose()
    uptime = int(time.time() - app.state.started_at)
    logger.info("Application stopped", extra={"uptime_seconds": uptime})
    print(f"👋 {settings.APP_NAME} stopped! (uptime: {uptime}s)")


# ============================================================================
# CREATE APPLICATION
# ============================================================================

app = FastAPI(
    lifespan=lifespan,
    title=settings.APP_NAME,
    description="""
    Персональный трекер задач.

    ## Возможности

    * **Задачи** - создание, частичное обновление, удаление
    * **Фильтры** - по выполнению, приоритету, поиск по тексту
    * **Статистика** - всего / выполнено / в работе / просрочено

    ## 3-Layer Architecture

    ```
    API Layer (FastAPI) → Service Layer (Business Logic) → Repository Layer (Database)
    ```

    ## Авторизация

    Все endpoints /api/tasks требуют заголовок `Authorization: Bearer <token>`.
    """,
    version=APP_VERSION,
)

app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

api_router = APIRouter(prefix="/api")
api_router.include_router(tasks_router)
app.include_router(api_router, dependencies=[Depends(require_principal)])

register_error_handlers(app)


# ============================================================================
# ROOT / HEALTH
# ============================================================================


@app.get("/", tags=["root"], summary="Root endpoint")
@limiter.limit(settings.RATE_LIMIT)
async def root(request: Request):
    """Информация о API и полезные ссылки."""
    return {
        "name": settings.APP_NAME,
        "version": APP_VERSION,
        "docs": "/docs",
        "endpoints": {
            "tasks": "/api/tasks",
            "stats": "/api/tasks/stats",
            "health": "/health",
        },
        "rate_limit": settings.RATE_LIMIT,
    }


@app.get("/health", tags=["health"], summary="Health check")
@limiter.limit(settings.RATE_LIMIT)
async def health_check(request: Request):
    """
    Проверка работоспособности API и подключения к БД.

    Пример ответа (200 OK):
    ```json
    {
        "status": "ok",
        "checks": {"database": "connected", "version": "1.0.0", "uptime_seconds": 3600},
        "timestamp": "2026-10-18T12:00:00+00:00"
    }
    ```
    При недоступной БД - status "error" и код 503.
    """
    started_at = getattr(request.app.state, "started_at", None)
    uptime_seconds = int(time.time() - started_at) if started_at else 0

    connected = await get_database(request).ping()
    overall_status = "ok" if connected else "error"

    return JSONResponse(
        status_code=200 if connected else 503,
        content={
            "status": overall_status,
            "checks": {
                "database": "connected" if connected else "disconnected",
                "version": APP_VERSION,
                "uptime_seconds": uptime_seconds,
            },
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("src.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
