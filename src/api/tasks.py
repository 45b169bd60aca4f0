"""
API endpoints для работы с задачами.

- CRUD операции
- Фильтрация и поиск
- Статистика (всего / выполнено / в работе / просрочено)

Порядок объявления важен: статический путь /tasks/stats объявлен раньше
параметрического /tasks/{task_id}, иначе "stats" будет принят за ID.

Доменные ошибки (InvalidIdError, NotFoundError, ...) не перехватываются
здесь: их переводит в HTTP ответ api/errors.py.
"""

from fastapi import APIRouter, Depends, Query, status

from ..repositories import TaskFilters
from ..services import TaskService
from .dependencies import get_task_service
from .schemas import (
    ApiResponse,
    ErrorResponse,
    TaskCreate,
    TaskResponse,
    TaskStatsResponse,
    TaskUpdate,
)

router = APIRouter(prefix="/tasks", tags=["tasks"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Ошибка валидации / неверный ID"},
    404: {"model": ErrorResponse, "description": "Задача не найдена"},
}


def parse_completed(value: str | None) -> bool | None:
    """Query "true"/"false" -> bool, всё остальное - фильтр не задан."""
    if value == "true":
        return True
    if value == "false":
        return False
    return None


# ============================================================================
# LIST TASKS
# ============================================================================


@router.get(
    "",
    response_model=ApiResponse[list[TaskResponse]],
    summary="Получить задачи с фильтрами",
    description="""
    Все фильтры опциональные и комбинируются через AND:
    - completed: "true" / "false"
    - priority: low, medium, high
    - search: подстрока в title или description (без учёта регистра)

    Сортировка: сначала новые.
    """,
)
async def list_tasks(
    completed: str | None = Query(None, description='Фильтр по выполнению: "true" или "false"'),
    priority: str | None = Query(None, description="Фильтр по приоритету"),
    search: str | None = Query(None, description="Поиск по названию и описанию"),
    service: TaskService = Depends(get_task_service),
) -> ApiResponse[list[TaskResponse]]:
    """
    Примеры запросов:
    ```
    GET /api/tasks
    GET /api/tasks?completed=false&priority=high
    GET /api/tasks?search=rent
    ```
    """
    filters = TaskFilters(
        is_completed=parse_completed(completed),
        priority=priority or None,
        search=search,
    )
    tasks = await service.list_tasks(filters)
    return ApiResponse[list[TaskResponse]](
        data=[TaskResponse.model_validate(t) for t in tasks],
        message=f"Found {len(tasks)} tasks",
    )


# ============================================================================
# STATISTICS
# ============================================================================


@router.get(
    "/stats",
    response_model=ApiResponse[TaskStatsResponse],
    summary="Статистика задач",
    description="""
    - total: всего задач
    - completed: выполнено
    - pending: не выполнено
    - overdue: не выполнено и дедлайн уже прошёл
    """,
)
async def get_task_stats(
    service: TaskService = Depends(get_task_service),
) -> ApiResponse[TaskStatsResponse]:
    stats = await service.get_task_stats()
    return ApiResponse[TaskStatsResponse](data=TaskStatsResponse(**stats.as_dict()))


# ============================================================================
# GET TASK BY ID
# ============================================================================


@router.get(
    "/{task_id}",
    response_model=ApiResponse[TaskResponse],
    summary="Получить задачу по ID",
    responses=ERROR_RESPONSES,
)
async def get_task(
    task_id: str,
    service: TaskService = Depends(get_task_service),
) -> ApiResponse[TaskResponse]:
    task = await service.get_task(task_id)
    return ApiResponse[TaskResponse](data=TaskResponse.model_validate(task))


# ============================================================================
# CREATE TASK
# ============================================================================


@router.post(
    "",
    response_model=ApiResponse[TaskResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Создать задачу",
    description="""
    Бизнес-правила:
    - title обязателен (1-200 символов после обрезки пробелов)
    - description до 1000 символов
    - priority: low, medium, high (по умолчанию medium)
    - dueDate строго в будущем
    """,
    responses={400: ERROR_RESPONSES[400]},
)
async def create_task(
    data: TaskCreate,
    service: TaskService = Depends(get_task_service),
) -> ApiResponse[TaskResponse]:
    """
    Пример запроса:
    ```json
    {
        "title": "Pay rent",
        "priority": "high",
        "dueDate": "2026-11-01T09:00:00Z"
    }
    ```
    """
    task = await service.create_task(
        title=data.title,
        description=data.description,
        priority=data.priority,
        due_date=data.due_date,
        tags=data.tags,
    )
    return ApiResponse[TaskResponse](
        data=TaskResponse.model_validate(task),
        message="Task created successfully",
    )


# ============================================================================
# UPDATE TASK
# ============================================================================


@router.put(
    "/{task_id}",
    response_model=ApiResponse[TaskResponse],
    summary="Обновить задачу",
    description="""
    Частичное обновление: меняются только переданные поля.
    `{"isCompleted": false}` применяется, отсутствующий isCompleted - нет.
    """,
    responses=ERROR_RESPONSES,
)
async def update_task(
    task_id: str,
    data: TaskUpdate,
    service: TaskService = Depends(get_task_service),
) -> ApiResponse[TaskResponse]:
    # exclude_unset: только поля, которые клиент реально прислал
    patch = data.model_dump(exclude_unset=True)
    task = await service.update_task(task_id, patch)
    return ApiResponse[TaskResponse](
        data=TaskResponse.model_validate(task),
        message="Task updated successfully",
    )


@router.post(
    "/{task_id}/complete",
    response_model=ApiResponse[TaskResponse],
    summary="Пометить задачу выполненной",
    responses=ERROR_RESPONSES,
)
async def complete_task(
    task_id: str,
    service: TaskService = Depends(get_task_service),
) -> ApiResponse[TaskResponse]:
    task = await service.mark_completed(task_id)
    return ApiResponse[TaskResponse](
        data=TaskResponse.model_validate(task),
        message="Task marked as completed",
    )


@router.post(
    "/{task_id}/reopen",
    response_model=ApiResponse[TaskResponse],
    summary="Вернуть задачу в работу",
    responses=ERROR_RESPONSES,
)
async def reopen_task(
    task_id: str,
    service: TaskService = Depends(get_task_service),
) -> ApiResponse[TaskResponse]:
    task = await service.mark_pending(task_id)
    return ApiResponse[TaskResponse](
        data=TaskResponse.model_validate(task),
        message="Task marked as pending",
    )


# ============================================================================
# DELETE TASK
# ============================================================================


@router.delete(
    "/{task_id}",
    response_model=ApiResponse[None],
    response_model_exclude_none=True,
    summary="Удалить задачу",
    description="""
    Удаление навсегда. Повторное удаление возвращает 404:
    "уже удалена" и "никогда не было" неразличимы.
    """,
    responses=ERROR_RESPONSES,
)
async def delete_task(
    task_id: str,
    service: TaskService = Depends(get_task_service),
) -> ApiResponse[None]:
    await service.delete_task(task_id)
    return ApiResponse[None](message="Task deleted successfully")
