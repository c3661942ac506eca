"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + 引擎装配 + 路由与异常处理器注册。
"""

import secrets
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse
from taskmaster.core.activity import ActivityLogQuery
from taskmaster.core.config import get_db_path
from taskmaster.core.exceptions import (
    InvalidArgumentError,
    StoreFailureError,
    TaskError,
    TaskNotFoundError,
    UnauthenticatedError,
)
from taskmaster.core.mutation import TaskMutationEngine
from taskmaster.core.principal import SessionPrincipalResolver
from taskmaster.core.query import TaskQueryEngine
from taskmaster.core.session import load_session_config
from taskmaster.core.store import StoreGroup, create_store_group

from .middleware.logging_config import setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import activity, health, tasks

log = structlog.get_logger()

_STATUS_BY_CODE: dict[str, int] = {
    UnauthenticatedError.code: 401,
    InvalidArgumentError.code: 400,
    TaskNotFoundError.code: 404,
    StoreFailureError.code: 500,
}


def attach_services(app: FastAPI, store_group: StoreGroup, session_secret: str) -> None:
    """在 app.state 上装配 Store、Principal 解析器与各引擎"""
    app.state.store_group = store_group
    app.state.principal_resolver = SessionPrincipalResolver(
        store_group.user_store,
        session_secret,
    )
    app.state.query_engine = TaskQueryEngine(store_group.task_store)
    app.state.mutation_engine = TaskMutationEngine(store_group.task_store)
    app.state.activity_query = ActivityLogQuery(store_group.activity_store)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB 和引擎，关闭时清理连接"""
    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    app.state.db_path = db_path

    session_config = load_session_config()
    session_secret = session_config.secret.get_secret_value()
    if not session_secret:
        # 未配置密钥时使用进程内随机密钥，重启后已签发令牌全部失效
        session_secret = secrets.token_urlsafe(32)
        log.warning("session_secret_generated", reason="TASKMASTER_SESSION_SECRET unset")

    attach_services(app, store_group, session_secret)
    log.info("gateway_started", db_path=db_path)

    yield

    # 关闭：清理数据库连接
    if getattr(app.state, "store_group", None):
        await app.state.store_group.conn.close()


async def task_error_handler(request: Request, exc: TaskError) -> JSONResponse:
    """核心层异常 -> 统一错误响应"""
    status_code = _STATUS_BY_CODE.get(exc.code, 500)
    if exc.recoverable:
        message = exc.message
    else:
        # 不可恢复错误不暴露底层异常细节
        log.error("task_operation_failed", code=exc.code, error=exc.message)
        message = "Internal server error"
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": exc.code, "message": message}},
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """请求体/路径参数校验失败 -> 400"""
    details = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "code": "INVALID_INPUT",
                "message": "Invalid input",
                "details": details,
            }
        },
    )


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="TaskMaster Gateway",
        version="0.1.0",
        description="TaskMaster 多用户任务管理 API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    setup_logging()

    app.add_exception_handler(TaskError, task_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(activity.router, tags=["activity"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
