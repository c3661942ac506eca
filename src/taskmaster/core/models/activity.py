"""ActivityLog 模型 -- 账户活动记录（只读视图）"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import ActivityType


class ActivityLog(BaseModel):
    """账户活动记录"""

    log_id: int | None = Field(default=None, description="记录 ID，落库后分配")
    user_id: int = Field(description="用户 ID")
    action: ActivityType = Field(description="活动类型")
    ts: datetime = Field(description="发生时间")
    ip_address: str | None = Field(default=None, description="来源 IP")
    metadata: dict = Field(default_factory=dict, description="附加信息")
    user_name: str | None = Field(default=None, description="用户名称（查询时关联）")
