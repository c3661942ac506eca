"""LoggingMiddleware -- 请求级日志

每个请求分配一个 ULID 作为 request_id，绑定到 structlog contextvars，
并通过 X-Request-ID 响应头返回。

完成日志的级别随状态码变化：5xx 为 error，4xx 为 warning。
健康检查探针请求只记 debug，避免淹没业务日志。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

REQUEST_ID_HEADER = "X-Request-ID"

_PROBE_PATHS = frozenset({"/health", "/ready"})


def completion_level(path: str, status_code: int) -> str:
    """选择 request_completed 的日志级别"""
    if status_code >= 500:
        return "error"
    if status_code >= 400:
        return "warning"
    if path in _PROBE_PATHS:
        return "debug"
    return "info"


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = str(ULID())
        path = request.url.path

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=path,
        )
        log = structlog.get_logger()
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            log.exception("request_failed")
            raise

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        level = completion_level(path, response.status_code)
        getattr(log, level)(
            "request_completed",
            status_code=response.status_code,
            duration_ms=duration_ms,
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
