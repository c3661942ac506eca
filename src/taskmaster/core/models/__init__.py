"""TaskMaster Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .activity import ActivityLog
from .enums import ActivityType, TaskLifecycle, TaskPriority, TaskStatus
from .task import (
    TAG_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    NewTask,
    Task,
    TaskDraft,
    TaskPatch,
    ensure_utc,
)
from .user import Principal, User

__all__ = [
    # 枚举
    "TaskPriority",
    "TaskStatus",
    "TaskLifecycle",
    "ActivityType",
    # Task
    "Task",
    "NewTask",
    "TaskDraft",
    "TaskPatch",
    "TITLE_MAX_LENGTH",
    "TAG_MAX_LENGTH",
    "ensure_utc",
    # User
    "User",
    "Principal",
    # Activity
    "ActivityLog",
]
