"""TaskStore SQLite 实现

所有面向用户的读写都经过 scoped_predicate 构造的同一谓词：
owner_id = ? AND lifecycle = 'active' [AND 额外筛选]，
新增筛选维度只需加入白名单，无法绕过归属与软删除检查。
"""

from datetime import datetime
from enum import Enum
from typing import Any

import aiosqlite
import structlog

from ..models import NewTask, Task, TaskLifecycle, TaskPriority, TaskStatus
from .codec import decode_tags, encode_tags, format_ts, parse_ts
from .transaction import read_guard, write_transaction

log = structlog.get_logger()

_TASK_COLUMNS = (
    "task_id",
    "owner_id",
    "title",
    "description",
    "priority",
    "status",
    "tags",
    "due_date",
    "created_at",
    "updated_at",
    "lifecycle",
    "deleted_at",
)

_SELECT_TASKS = f"SELECT {', '.join(_TASK_COLUMNS)} FROM tasks"

# created_at 相同时按 task_id 倒序，保证同一快照下排序稳定
_ORDER_BY = "ORDER BY created_at DESC, task_id DESC"

# 允许叠加在归属谓词之上的筛选列
_FILTER_COLUMNS = frozenset({"task_id", "status", "priority"})

# SQLite INTEGER 为 64 位有符号整数
_SQLITE_INT_MIN = -(2**63)
_SQLITE_INT_MAX = 2**63 - 1


def _storable_id(task_id: int) -> bool:
    """超出 SQLite INTEGER 范围的 ID 不可能存在"""
    return _SQLITE_INT_MIN <= task_id <= _SQLITE_INT_MAX


def _param(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def scoped_predicate(owner_id: int, /, **filters: Any) -> tuple[str, list[Any]]:
    """构造归属 + 可见性谓词

    Args:
        owner_id: 当前用户 ID
        **filters: 额外筛选条件，值为 None 的条件忽略；
            owner_id 只能按位置传入，作为关键字出现时视为非法筛选列

    Returns:
        (WHERE 子句, 参数列表)

    Raises:
        ValueError: 筛选列不在白名单内
    """
    clauses = ["owner_id = ?", "lifecycle = ?"]
    params: list[Any] = [owner_id, TaskLifecycle.ACTIVE.value]
    for column, value in filters.items():
        if column not in _FILTER_COLUMNS:
            raise ValueError(f"不支持的筛选列: {column}")
        if value is None:
            continue
        clauses.append(f"{column} = ?")
        params.append(_param(value))
    return " AND ".join(clauses), params


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(self, new_task: NewTask) -> Task:
        """创建任务记录，返回带 task_id 的完整 Task"""
        async with write_transaction(self._conn, "create_task"):
            cursor = await self._conn.execute(
                """
                INSERT INTO tasks (owner_id, title, description, priority, status,
                                   tags, due_date, created_at, updated_at, lifecycle)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    new_task.owner_id,
                    new_task.title,
                    new_task.description,
                    new_task.priority.value,
                    new_task.status.value,
                    encode_tags(new_task.tags),
                    format_ts(new_task.due_date),
                    format_ts(new_task.created_at),
                    format_ts(new_task.updated_at),
                    TaskLifecycle.ACTIVE.value,
                ),
            )
            task_id = cursor.lastrowid

        log.debug("task_created", task_id=task_id, owner_id=new_task.owner_id)
        return Task(task_id=task_id, **new_task.model_dump())

    async def get_task(self, owner_id: int, task_id: int) -> Task | None:
        """查询当前用户的一条可见任务"""
        if not _storable_id(task_id):
            return None
        where, params = scoped_predicate(owner_id, task_id=task_id)
        async with read_guard("get_task"):
            cursor = await self._conn.execute(
                f"{_SELECT_TASKS} WHERE {where} LIMIT 1",
                params,
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_task(row)

    async def list_tasks(
        self,
        owner_id: int,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
    ) -> list[Task]:
        """查询当前用户的可见任务，支持按状态/优先级筛选，按 created_at 倒序"""
        where, params = scoped_predicate(owner_id, status=status, priority=priority)
        async with read_guard("list_tasks"):
            cursor = await self._conn.execute(
                f"{_SELECT_TASKS} WHERE {where} {_ORDER_BY}",
                params,
            )
            rows = await cursor.fetchall()
            return [self._row_to_task(row) for row in rows]

    async def update_task(self, task: Task) -> bool:
        """整体写回可变字段

        仅当记录仍属于 task.owner_id 且未删除时生效；
        owner_id / task_id / created_at 不在 SET 列表中。

        Returns:
            True 如果有记录被更新
        """
        if not _storable_id(task.task_id):
            return False
        where, params = scoped_predicate(task.owner_id, task_id=task.task_id)
        async with write_transaction(self._conn, "update_task"):
            cursor = await self._conn.execute(
                f"""
                UPDATE tasks
                SET title = ?, description = ?, priority = ?, status = ?,
                    tags = ?, due_date = ?, updated_at = ?
                WHERE {where}
                """,
                (
                    task.title,
                    task.description,
                    task.priority.value,
                    task.status.value,
                    encode_tags(task.tags),
                    format_ts(task.due_date),
                    format_ts(task.updated_at),
                    *params,
                ),
            )
            updated = cursor.rowcount == 1
        return updated

    async def soft_delete_task(
        self,
        owner_id: int,
        task_id: int,
        deleted_at: datetime,
    ) -> bool:
        """软删除：lifecycle 置为 deleted 并记录 deleted_at / updated_at

        Returns:
            True 如果有记录被标记删除
        """
        if not _storable_id(task_id):
            return False
        where, params = scoped_predicate(owner_id, task_id=task_id)
        stamp = format_ts(deleted_at)
        async with write_transaction(self._conn, "soft_delete_task"):
            cursor = await self._conn.execute(
                f"""
                UPDATE tasks
                SET lifecycle = ?, deleted_at = ?, updated_at = ?
                WHERE {where}
                """,
                (TaskLifecycle.DELETED.value, stamp, stamp, *params),
            )
            deleted = cursor.rowcount == 1

        if deleted:
            log.debug("task_soft_deleted", task_id=task_id, owner_id=owner_id)
        return deleted

    async def inspect_task(self, task_id: int) -> Task | None:
        """按 task_id 直接读取原始记录（不限归属，包含已删除记录）

        仅供运维和一致性检查使用，不得用于面向用户的查询。
        """
        if not _storable_id(task_id):
            return None
        async with read_guard("inspect_task"):
            cursor = await self._conn.execute(
                f"{_SELECT_TASKS} WHERE task_id = ?",
                (task_id,),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_task(row)

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            task_id=row[0],
            owner_id=row[1],
            title=row[2],
            description=row[3],
            priority=row[4],
            status=row[5],
            tags=decode_tags(row[6]),
            due_date=parse_ts(row[7]),
            created_at=parse_ts(row[8]),
            updated_at=parse_ts(row[9]),
            lifecycle=row[10],
            deleted_at=parse_ts(row[11]),
        )
