"""HTTP middleware for request logging and tracing."""

import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from ..core.logging import generate_request_id, get_logger, request_id_var

logger = get_logger("api.requests")

# Служебные пути не логируем, чтобы не шуметь
QUIET_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Логирует каждый HTTP запрос: метод, путь, статус, длительность.

    Присваивает запросу request ID (ContextVar для логов) и возвращает его
    клиенту в заголовке X-Request-ID.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        token = request_id_var.set(request_id)
        try:
            return await self._process(request, call_next, request_id)
        finally:
            request_id_var.reset(token)

    async def _process(
        self, request: Request, call_next: RequestResponseEndpoint, request_id: str
    ) -> Response:
        start = time.perf_counter()
        extra = {
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else "unknown",
        }

        try:
            response = await call_next(request)
        except Exception:
            extra["duration_ms"] = int((time.perf_counter() - start) * 1000)
            logger.error("Request failed", extra=extra, exc_info=True)
            raise

        response.headers["X-Request-ID"] = request_id

        if request.url.path not in QUIET_PATHS:
            extra["status"] = response.status_code
            extra["duration_ms"] = int((time.perf_counter() - start) * 1000)
            if response.status_code < 400:
                logger.info("Request completed", extra=extra)
            else:
                logger.warning("Request completed", extra=extra)

        return response
