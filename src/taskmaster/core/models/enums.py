"""枚举定义

包含 TaskPriority、TaskStatus、TaskLifecycle、ActivityType 枚举。
取值与持久化层及 HTTP 接口中的字符串一一对应。
"""

from enum import StrEnum


class TaskPriority(StrEnum):
    """任务优先级"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(StrEnum):
    """任务状态"""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskLifecycle(StrEnum):
    """任务生命周期 -- 软删除的判别字段

    deleted_at 仅作为补充元数据，所有查询谓词只看 lifecycle。
    """

    ACTIVE = "active"
    DELETED = "deleted"


class ActivityType(StrEnum):
    """账户活动类型（由认证侧写入，核心层只读）"""

    SIGN_UP = "SIGN_UP"
    SIGN_IN = "SIGN_IN"
    SIGN_OUT = "SIGN_OUT"
    UPDATE_ACCOUNT = "UPDATE_ACCOUNT"
    DELETE_ACCOUNT = "DELETE_ACCOUNT"
