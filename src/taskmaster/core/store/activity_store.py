"""ActivityStore SQLite 实现 -- 账户活动记录"""

import json

import aiosqlite

from ..models import ActivityLog
from .codec import format_ts, parse_ts
from .transaction import read_guard, write_transaction


class SqliteActivityStore:
    """ActivityStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def append_activity(self, entry: ActivityLog) -> ActivityLog:
        """追加一条活动记录"""
        async with write_transaction(self._conn, "append_activity"):
            cursor = await self._conn.execute(
                """
                INSERT INTO activity_logs (user_id, action, ts, ip_address, metadata)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    entry.user_id,
                    entry.action.value,
                    format_ts(entry.ts),
                    entry.ip_address,
                    json.dumps(entry.metadata, ensure_ascii=False),
                ),
            )
            log_id = cursor.lastrowid
        return entry.model_copy(update={"log_id": log_id})

    async def list_recent_for_user(self, user_id: int, limit: int) -> list[ActivityLog]:
        """查询用户最近的活动记录，按时间倒序，附带用户名称"""
        async with read_guard("list_recent_for_user"):
            cursor = await self._conn.execute(
                """
                SELECT a.log_id, a.user_id, a.action, a.ts, a.ip_address,
                       a.metadata, u.name
                FROM activity_logs AS a
                LEFT JOIN users AS u ON a.user_id = u.user_id
                WHERE a.user_id = ?
                ORDER BY a.ts DESC, a.log_id DESC
                LIMIT ?
                """,
                (user_id, limit),
            )
            rows = await cursor.fetchall()
            return [
                ActivityLog(
                    log_id=row[0],
                    user_id=row[1],
                    action=row[2],
                    ts=parse_ts(row[3]),
                    ip_address=row[4],
                    metadata=json.loads(row[5]),
                    user_name=row[6],
                )
                for row in rows
            ]
