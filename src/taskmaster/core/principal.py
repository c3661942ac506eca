"""Principal 解析 -- 会话凭证 -> 当前用户

核心层只消费「解析当前用户」这一能力：
解析失败返回 None，由各操作统一转换为 UnauthenticatedError，
且必须发生在任何任务存储访问之前。
"""

import time
from collections.abc import Callable
from typing import Protocol

from .exceptions import UnauthenticatedError
from .models import Principal
from .session import verify_session_token
from .store.protocols import UserStore


class PrincipalResolver(Protocol):
    """凭证解析接口"""

    async def resolve_principal(self, credential: str | None) -> Principal | None:
        """解析凭证；过期或格式错误返回 None"""
        ...


class SessionPrincipalResolver:
    """基于签名会话令牌的解析实现

    令牌有效且对应用户未注销时返回 Principal。
    """

    def __init__(
        self,
        user_store: UserStore,
        secret: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._user_store = user_store
        self._secret = secret
        self._clock = clock

    async def resolve_principal(self, credential: str | None) -> Principal | None:
        if not credential:
            return None

        claims = verify_session_token(
            token=credential,
            secret=self._secret,
            now=int(self._clock()),
        )
        if claims is None:
            return None

        user = await self._user_store.get_active_user(claims.user_id)
        if user is None:
            return None
        return Principal.from_user(user)


def require_principal(principal: Principal | None) -> Principal:
    """确认存在已认证用户

    Raises:
        UnauthenticatedError: principal 为 None
    """
    if principal is None:
        raise UnauthenticatedError()
    return principal
