"""ActivityLogQuery -- 当前用户最近的账户活动（只读）"""

from .config import ACTIVITY_LOG_LIMIT
from .exceptions import InvalidArgumentError
from .models import ActivityLog, Principal
from .principal import require_principal
from .store.protocols import ActivityStore


class ActivityLogQuery:
    """账户活动查询"""

    def __init__(self, activity_store: ActivityStore) -> None:
        self._activity_store = activity_store

    async def list_recent_activity(
        self,
        principal: Principal | None,
        limit: int = ACTIVITY_LOG_LIMIT,
    ) -> list[ActivityLog]:
        """最近的活动记录，按时间倒序"""
        owner = require_principal(principal)
        if limit < 1:
            raise InvalidArgumentError("limit must be positive", field="limit")
        return await self._activity_store.list_recent_for_user(owner.user_id, limit)
