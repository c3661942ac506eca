"""TaskQueryEngine -- 任务读取操作

每个操作按固定顺序检查：
1. principal 是否存在（UnauthenticatedError）
2. 筛选参数是否为合法枚举值（InvalidArgumentError）
3. 访问存储，范围限定为当前用户的未删除任务
"""

from enum import StrEnum

from .exceptions import InvalidArgumentError, TaskNotFoundError
from .models import Principal, Task, TaskPriority, TaskStatus
from .principal import require_principal
from .store.protocols import TaskStore


def _parse_enum(enum_cls: type[StrEnum], value: str, field: str) -> StrEnum:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidArgumentError(
            f"Invalid {field}. Must be one of: {allowed}",
            field=field,
        ) from None


def parse_status(value: str) -> TaskStatus:
    """解析状态筛选值

    Raises:
        InvalidArgumentError: 非 todo / in_progress / completed
    """
    return _parse_enum(TaskStatus, value, "status")


def parse_priority(value: str) -> TaskPriority:
    """解析优先级筛选值

    Raises:
        InvalidArgumentError: 非 low / medium / high
    """
    return _parse_enum(TaskPriority, value, "priority")


class TaskQueryEngine:
    """任务查询引擎"""

    def __init__(self, task_store: TaskStore) -> None:
        self._task_store = task_store

    async def list_tasks(self, principal: Principal | None) -> list[Task]:
        """当前用户的全部未删除任务，按 created_at 倒序"""
        owner = require_principal(principal)
        return await self._task_store.list_tasks(owner.user_id)

    async def get_task(self, principal: Principal | None, task_id: int) -> Task:
        """查询单个任务

        不存在、已删除、属于他人三种情况统一抛出 TaskNotFoundError。
        """
        owner = require_principal(principal)
        task = await self._task_store.get_task(owner.user_id, task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def list_by_status(self, principal: Principal | None, status: str) -> list[Task]:
        """按状态筛选，非法状态值在访问存储前拒绝"""
        owner = require_principal(principal)
        parsed = parse_status(status)
        return await self._task_store.list_tasks(owner.user_id, status=parsed)

    async def list_by_priority(
        self,
        principal: Principal | None,
        priority: str,
    ) -> list[Task]:
        """按优先级筛选，非法优先级在访问存储前拒绝"""
        owner = require_principal(principal)
        parsed = parse_priority(priority)
        return await self._task_store.list_tasks(owner.user_id, priority=parsed)
