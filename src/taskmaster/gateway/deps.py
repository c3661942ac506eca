"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store / 引擎 / 当前用户

实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

import structlog
from fastapi import Depends, Request
from taskmaster.core.activity import ActivityLogQuery
from taskmaster.core.config import SESSION_COOKIE_NAME
from taskmaster.core.models import Principal
from taskmaster.core.mutation import TaskMutationEngine
from taskmaster.core.principal import require_principal
from taskmaster.core.query import TaskQueryEngine
from taskmaster.core.store import StoreGroup


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_query_engine(request: Request) -> TaskQueryEngine:
    return request.app.state.query_engine


def get_mutation_engine(request: Request) -> TaskMutationEngine:
    return request.app.state.mutation_engine


def get_activity_query(request: Request) -> ActivityLogQuery:
    return request.app.state.activity_query


def extract_credential(request: Request) -> str | None:
    """读取会话凭证：优先 session cookie，其次 Authorization: Bearer"""
    cookie = request.cookies.get(SESSION_COOKIE_NAME)
    if cookie:
        return cookie
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]
    return None


async def get_principal(request: Request) -> Principal | None:
    """解析当前用户，失败返回 None"""
    resolver = request.app.state.principal_resolver
    principal = await resolver.resolve_principal(extract_credential(request))
    if principal is not None:
        structlog.contextvars.bind_contextvars(user_id=principal.user_id)
    return principal


async def get_current_principal(
    principal: Principal | None = Depends(get_principal),
) -> Principal:
    """要求已认证用户

    依赖在请求体/路径参数校验之前执行，
    未认证请求总是先得到 401，而不是 400 或 404。
    """
    return require_principal(principal)
