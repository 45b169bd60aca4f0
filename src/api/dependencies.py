"""
Dependencies для FastAPI endpoints.

Цепочка зависимостей для endpoint задач:
    get_task_service -> get_db -> app.state.database (создаётся в lifespan)

В тестах get_db подменяется через app.dependency_overrides.
"""

from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.database import Database
from ..services import TaskService

# ============================================================================
# BEARER TOKEN AUTHENTICATION
# ============================================================================

# Токен выдаёт внешний identity provider. Сервер не проверяет подпись
# и не хранит сессии: достаточно, что принципал присутствует.
bearer_scheme = HTTPBearer(
    auto_error=False,
    description="Bearer токен от identity provider: Authorization: Bearer <token>",
)


async def require_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str | None:
    """
    Dependency: запрос должен нести bearer токен.

    Returns:
        Токен (или None, если AUTH_ENABLED=false)

    Raises:
        HTTPException 401 если токен не передан
    """
    if not settings.AUTH_ENABLED:
        return None

    if credentials is None or not credentials.credentials.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required. Add header: Authorization: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return credentials.credentials


# ============================================================================
# DATABASE SESSION DEPENDENCY
# ============================================================================


def get_database(request: Request) -> Database:
    """Database, созданная в lifespan приложения."""
    return request.app.state.database


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency для получения сессии БД.

    commit() при успехе endpoint, rollback() при ошибке
    (в том числе при ValidationError/NotFoundError).
    """
    async with get_database(request).session() as session:
        yield session


# ============================================================================
# SERVICE DEPENDENCIES
# ============================================================================


async def get_task_service(db: AsyncSession = Depends(get_db)) -> TaskService:
    """Dependency для TaskService (новый экземпляр на каждый запрос)."""
    return TaskService(db)
