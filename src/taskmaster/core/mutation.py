"""TaskMutationEngine -- 任务创建/更新/软删除

- create: 分配 ID，设置 owner_id 与时间戳，补齐默认值
- update: merge patch，只覆盖显式提供的字段
- delete: 软删除，返回删除前的最后快照

updated_at 取 max(now, 上次 updated_at + 1µs)，在时钟精度不足时仍严格递增。
completed 是 status 的快捷写法，在此统一折算，不单独存储。
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from .exceptions import InvalidArgumentError, TaskNotFoundError
from .models import NewTask, Principal, Task, TaskDraft, TaskPatch, TaskStatus
from .principal import require_principal
from .store.protocols import TaskStore

_MIN_TICK = timedelta(microseconds=1)


def utcnow() -> datetime:
    return datetime.now(UTC)


def _check_title(title: str) -> None:
    if not title.strip():
        raise InvalidArgumentError("Title is required", field="title")


def resolve_status(
    current: TaskStatus,
    status: TaskStatus | None,
    completed: bool | None,
) -> TaskStatus:
    """折算 status 与 completed 快捷写法

    Args:
        current: 当前状态（创建时为默认状态）
        status: 显式提供的状态
        completed: 显式提供的完成标记

    Raises:
        InvalidArgumentError: status 与 completed 同时提供且互相矛盾
    """
    if status is not None:
        if completed is not None and completed != (status == TaskStatus.COMPLETED):
            raise InvalidArgumentError(
                f"completed={completed} contradicts status={status.value}",
                field="completed",
            )
        return status
    if completed is True:
        return TaskStatus.COMPLETED
    if completed is False and current == TaskStatus.COMPLETED:
        return TaskStatus.TODO
    return current


class TaskMutationEngine:
    """任务变更引擎"""

    def __init__(
        self,
        task_store: TaskStore,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._task_store = task_store
        self._clock = clock

    def _next_timestamp(self, previous: datetime | None = None) -> datetime:
        now = self._clock()
        if previous is not None and now <= previous:
            return previous + _MIN_TICK
        return now

    async def create_task(self, principal: Principal | None, draft: TaskDraft) -> Task:
        """创建任务

        Raises:
            UnauthenticatedError: 无当前用户
            InvalidArgumentError: 标题为空白，或 status 与 completed 矛盾
        """
        owner = require_principal(principal)
        _check_title(draft.title)
        status = resolve_status(TaskStatus.TODO, draft.status, draft.completed)

        now = self._next_timestamp()
        new_task = NewTask(
            owner_id=owner.user_id,
            title=draft.title,
            description=draft.description,
            priority=draft.priority,
            status=status,
            tags=list(draft.tags),
            due_date=draft.due_date,
            created_at=now,
            updated_at=now,
        )
        return await self._task_store.create_task(new_task)

    async def update_task(
        self,
        principal: Principal | None,
        task_id: int,
        patch: TaskPatch,
    ) -> Task:
        """按 merge patch 语义更新任务，返回合并后的完整记录

        Raises:
            UnauthenticatedError: 无当前用户
            InvalidArgumentError: 标题为空白，或 status 与 completed 矛盾
            TaskNotFoundError: 任务不存在、已删除或属于他人
        """
        owner = require_principal(principal)
        changes = patch.changes()
        completed = changes.pop("completed", None)
        if "title" in changes:
            _check_title(changes["title"])

        current = await self._task_store.get_task(owner.user_id, task_id)
        if current is None:
            raise TaskNotFoundError(task_id)

        changes["status"] = resolve_status(
            current.status,
            changes.get("status"),
            completed,
        )
        if "tags" in changes:
            changes["tags"] = list(changes["tags"])
        changes["updated_at"] = self._next_timestamp(current.updated_at)

        merged = current.model_copy(update=changes)
        # 读取与写回之间被并发删除时，写回不命中
        if not await self._task_store.update_task(merged):
            raise TaskNotFoundError(task_id)
        return merged

    async def delete_task(self, principal: Principal | None, task_id: int) -> Task:
        """软删除任务，返回删除前的最后快照

        Raises:
            UnauthenticatedError: 无当前用户
            TaskNotFoundError: 任务不存在、已删除或属于他人
        """
        owner = require_principal(principal)
        snapshot = await self._task_store.get_task(owner.user_id, task_id)
        if snapshot is None:
            raise TaskNotFoundError(task_id)

        deleted_at = self._next_timestamp(snapshot.updated_at)
        if not await self._task_store.soft_delete_task(owner.user_id, task_id, deleted_at):
            raise TaskNotFoundError(task_id)
        return snapshot
