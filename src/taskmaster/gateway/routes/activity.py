"""账户活动路由

GET /api/activity: 当前用户最近 10 条账户活动。
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from taskmaster.core.activity import ActivityLogQuery
from taskmaster.core.models import Principal

from ..deps import get_activity_query, get_current_principal

router = APIRouter()


class ActivityResponse(BaseModel):
    """活动记录响应"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    action: str
    timestamp: datetime
    ip_address: str | None
    metadata: dict
    user_name: str | None


@router.get("/api/activity", response_model=list[ActivityResponse])
async def list_activity(
    principal: Principal = Depends(get_current_principal),
    query: ActivityLogQuery = Depends(get_activity_query),
):
    """当前用户最近的账户活动，按时间倒序"""
    entries = await query.list_recent_activity(principal)
    return [
        ActivityResponse(
            id=e.log_id,
            action=e.action.value,
            timestamp=e.ts,
            ip_address=e.ip_address,
            metadata=e.metadata,
            user_name=e.user_name,
        )
        for e in entries
    ]
