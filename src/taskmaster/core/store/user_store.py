"""UserStore SQLite 实现

用户账户由认证侧维护，核心层只需要「按 ID 查询未注销用户」这一能力；
create_user / delete_user 供 CLI 与测试使用。
"""

from datetime import datetime

import aiosqlite

from ..models import User
from .codec import format_ts, parse_ts
from .transaction import read_guard, write_transaction


class SqliteUserStore:
    """UserStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_user(self, email: str, name: str, created_at: datetime) -> User:
        """创建用户记录"""
        async with write_transaction(self._conn, "create_user"):
            cursor = await self._conn.execute(
                "INSERT INTO users (email, name, created_at) VALUES (?, ?, ?)",
                (email, name, format_ts(created_at)),
            )
            user_id = cursor.lastrowid
        return User(user_id=user_id, email=email, name=name, created_at=created_at)

    async def get_active_user(self, user_id: int) -> User | None:
        """根据 user_id 查询未注销的用户"""
        async with read_guard("get_active_user"):
            cursor = await self._conn.execute(
                """
                SELECT user_id, email, name, created_at, deleted_at
                FROM users
                WHERE user_id = ? AND deleted_at IS NULL
                LIMIT 1
                """,
                (user_id,),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return User(
                user_id=row[0],
                email=row[1],
                name=row[2],
                created_at=parse_ts(row[3]),
                deleted_at=parse_ts(row[4]),
            )

    async def delete_user(self, user_id: int, deleted_at: datetime) -> bool:
        """注销用户（软删除）"""
        async with write_transaction(self._conn, "delete_user"):
            cursor = await self._conn.execute(
                "UPDATE users SET deleted_at = ? WHERE user_id = ? AND deleted_at IS NULL",
                (format_ts(deleted_at), user_id),
            )
            deleted = cursor.rowcount == 1
        return deleted
