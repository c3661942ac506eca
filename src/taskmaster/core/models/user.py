"""User / Principal 模型

User 是 users 表的一行；Principal 是认证成功后的当前用户身份，
所有任务操作都以 Principal.user_id 作为归属范围。
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """用户记录"""

    user_id: int = Field(description="用户 ID")
    email: str = Field(description="登录邮箱")
    name: str = Field(default="", description="显示名称")
    created_at: datetime = Field(description="注册时间")
    deleted_at: datetime | None = Field(default=None, description="注销时间")


class Principal(BaseModel):
    """当前已认证的用户身份"""

    model_config = ConfigDict(frozen=True)

    user_id: int
    email: str
    name: str = ""

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(user_id=user.user_id, email=user.email, name=user.name)
