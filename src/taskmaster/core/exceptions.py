"""核心层异常体系

每种异常带有稳定的 code，供表示层映射到响应码。
TaskNotFoundError 对「不存在 / 已删除 / 属于他人」三种情况使用同一条消息，
避免通过错误信息枚举他人任务。
"""


class TaskError(Exception):
    """核心层基础异常"""

    code = "TASK_ERROR"

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 调用方是否可以通过修正输入或重试恢复
        """
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable


class UnauthenticatedError(TaskError):
    """无法解析当前用户身份（在任何存储访问之前检查）"""

    code = "UNAUTHENTICATED"

    def __init__(self, message: str = "User not authenticated") -> None:
        super().__init__(message, recoverable=True)


class InvalidArgumentError(TaskError):
    """参数违反领域约束（非法枚举值、空标题等）"""

    code = "INVALID_ARGUMENT"

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, recoverable=True)
        self.field = field


class TaskNotFoundError(TaskError):
    """任务不存在、已软删除或不属于当前用户"""

    code = "TASK_NOT_FOUND"

    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task with id {task_id} does not exist", recoverable=True)
        self.task_id = task_id


class StoreFailureError(TaskError):
    """底层持久化失败 -- 核心层不重试，原样向上传播"""

    code = "STORE_FAILURE"

    def __init__(self, operation: str, original_error: Exception) -> None:
        """
        Args:
            operation: 失败的存储操作名
            original_error: 原始异常
        """
        super().__init__(
            f"Store operation {operation} failed: {original_error}",
            recoverable=False,
        )
        self.operation = operation
        self.original_error = original_error
