"""Store Protocol 接口定义

定义 TaskStore、UserStore、ActivityStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from datetime import datetime
from typing import Protocol

from ..models import ActivityLog, NewTask, Task, TaskPriority, TaskStatus, User


class TaskStore(Protocol):
    """Task 存储接口 -- 按 owner 划分，单条记录操作原子"""

    async def create_task(self, new_task: NewTask) -> Task:
        """创建任务记录并分配 task_id"""
        ...

    async def get_task(self, owner_id: int, task_id: int) -> Task | None:
        """查询当前用户的一条可见任务"""
        ...

    async def list_tasks(
        self,
        owner_id: int,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
    ) -> list[Task]:
        """查询当前用户的可见任务，按 created_at 倒序"""
        ...

    async def update_task(self, task: Task) -> bool:
        """写回可变字段，返回是否命中可见记录"""
        ...

    async def soft_delete_task(
        self,
        owner_id: int,
        task_id: int,
        deleted_at: datetime,
    ) -> bool:
        """软删除，返回是否命中可见记录"""
        ...


class UserStore(Protocol):
    """User 存储接口"""

    async def get_active_user(self, user_id: int) -> User | None:
        """根据 user_id 查询未注销的用户"""
        ...


class ActivityStore(Protocol):
    """ActivityLog 存储接口"""

    async def append_activity(self, entry: ActivityLog) -> ActivityLog:
        """追加活动记录"""
        ...

    async def list_recent_for_user(self, user_id: int, limit: int) -> list[ActivityLog]:
        """查询用户最近的活动记录"""
        ...
