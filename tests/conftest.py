"""全局 pytest 配置 -- 临时 SQLite 数据库 + 测试用户 + 可控时钟"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from taskmaster.core.models import Principal
from taskmaster.core.store import StoreGroup, create_store_group


class FakeClock:
    """可手动推进的 UTC 时钟"""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """固定起点的可控时钟"""
    return FakeClock(datetime(2026, 1, 1, 9, 0, tzinfo=UTC))


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "sqlite" / "test.db"


@pytest_asyncio.fixture
async def store_group(tmp_db_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """提供已初始化的 Store 实例组"""
    group = await create_store_group(str(tmp_db_path))
    yield group
    await group.conn.close()


@pytest_asyncio.fixture
async def alice(store_group: StoreGroup) -> Principal:
    user = await store_group.user_store.create_user(
        "alice@example.com", "Alice", datetime.now(UTC)
    )
    return Principal.from_user(user)


@pytest_asyncio.fixture
async def bob(store_group: StoreGroup) -> Principal:
    user = await store_group.user_store.create_user(
        "bob@example.com", "Bob", datetime.now(UTC)
    )
    return Principal.from_user(user)
