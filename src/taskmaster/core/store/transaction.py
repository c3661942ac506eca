"""存储操作的事务与错误封装

单条记录的写操作在同一事务内执行并提交，失败时回滚，
保证 create / update / soft-delete 要么完整生效，要么完全不生效。
底层异常统一包装为 StoreFailureError 向上传播，不做重试。
"""

import contextlib
from collections.abc import AsyncIterator

import aiosqlite
import structlog

from ..exceptions import StoreFailureError

log = structlog.get_logger()

# 连接已关闭时 aiosqlite 抛出 ValueError；行数据损坏时解码同样抛出 ValueError
_STORE_ERRORS = (aiosqlite.Error, ValueError)


@contextlib.asynccontextmanager
async def write_transaction(
    conn: aiosqlite.Connection,
    operation: str,
) -> AsyncIterator[None]:
    """在事务内执行写操作，正常退出时提交

    Args:
        conn: 数据库连接
        operation: 操作名（用于日志和异常）

    Raises:
        StoreFailureError: 写入或提交失败，已回滚
    """
    try:
        yield
        await conn.commit()
    except _STORE_ERRORS as e:
        with contextlib.suppress(*_STORE_ERRORS):
            await conn.rollback()
        log.warning("store_write_failed", operation=operation, error=str(e))
        raise StoreFailureError(operation, e) from e


@contextlib.asynccontextmanager
async def read_guard(operation: str) -> AsyncIterator[None]:
    """读操作错误封装

    Raises:
        StoreFailureError: 查询或行解码失败
    """
    try:
        yield
    except _STORE_ERRORS as e:
        log.warning("store_read_failed", operation=operation, error=str(e))
        raise StoreFailureError(operation, e) from e
