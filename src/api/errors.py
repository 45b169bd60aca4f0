"""
Обработчики ошибок (Exception Handlers) для API.

Все ошибки возвращаются в едином формате ErrorResponse:
    {"success": false, "error": CODE, "message": "...", "details": [...]}

Доменные исключения (core/exceptions.py) ничего не знают об HTTP,
соответствие кодам статуса задаётся здесь.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..core.exceptions import (
    InvalidDueDateError,
    InvalidIdError,
    NotFoundError,
    TaskError,
    ValidationError,
)
from .schemas import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)

# Доменная ошибка -> HTTP статус
STATUS_BY_ERROR: dict[type[TaskError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    InvalidIdError: status.HTTP_400_BAD_REQUEST,
    InvalidDueDateError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
}

# Коды для HTTPException, поднятых FastAPI/Starlette
CODE_BY_STATUS = {
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: list[ErrorDetail] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build a JSONResponse in the ErrorResponse format."""
    body = ErrorResponse(error=code, message=message, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


async def task_error_handler(request: Request, exc: TaskError) -> JSONResponse:
    """
    Обработчик доменных ошибок.

    ValidationError/InvalidIdError/InvalidDueDateError -> 400,
    NotFoundError -> 404.
    """
    status_code = STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    logger.warning(
        "Task error",
        extra={"code": exc.code, "error_message": exc.message, "path": request.url.path},
    )

    details = [ErrorDetail(field=exc.field, message=exc.message)] if exc.field else None
    return error_response(status_code, exc.code, exc.message, details)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Обработчик ошибок разбора запроса (422).

    Например, dueDate, который нельзя распарсить как дату: такое значение
    отклоняется, а не молча отбрасывается.
    """
    logger.warning("Request validation error", extra={"errors": exc.errors()})

    details = []
    for error in exc.errors():
        # loc: ["body", "dueDate"] или ["query", "completed"]
        field_path = error.get("loc", [])
        if len(field_path) > 1 and field_path[0] in ("body", "query", "path"):
            field_name = ".".join(str(p) for p in field_path[1:])
        else:
            field_name = str(field_path[-1]) if field_path else "unknown"
        details.append(ErrorDetail(field=field_name, message=error.get("msg", "Invalid value")))

    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Request validation failed",
        details,
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """HTTPException (401 от авторизации, 404 неизвестного маршрута и т.п.)."""
    code = CODE_BY_STATUS.get(exc.status_code, "HTTP_ERROR")
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
        message = f"Route {request.url.path} not found"
    return error_response(exc.status_code, code, message, headers=getattr(exc, "headers", None))


async def rate_limit_error_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Превышен лимит запросов slowapi (429)."""
    return error_response(
        status.HTTP_429_TOO_MANY_REQUESTS,
        "RATE_LIMIT_EXCEEDED",
        f"Too many requests. Limit: {exc.detail}",
        [ErrorDetail(field="rate_limit", message=str(exc.detail))],
    )


def register_error_handlers(app: FastAPI) -> None:
    """Регистрирует все error handlers в приложении FastAPI."""
    app.add_exception_handler(TaskError, task_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_error_handler)
