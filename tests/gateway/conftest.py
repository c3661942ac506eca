"""gateway 测试配置 -- FastAPI app + httpx AsyncClient + 会话令牌"""

import os
from collections.abc import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from taskmaster.core.models import Principal
from taskmaster.core.session import issue_session_token

TEST_SECRET = "gateway-test-secret"


@pytest_asyncio.fixture
async def test_app(store_group, tmp_db_path):
    """创建测试用 FastAPI app，手动初始化 lifespan 状态"""
    os.environ["TASKMASTER_DB_PATH"] = str(tmp_db_path)

    from taskmaster.gateway.main import attach_services, create_app

    app = create_app()
    attach_services(app, store_group, TEST_SECRET)
    app.state.db_path = str(tmp_db_path)

    yield app

    os.environ.pop("TASKMASTER_DB_PATH", None)


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient"""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def auth_headers() -> Callable[[Principal], dict[str, str]]:
    """为指定用户生成 Authorization 头"""

    def _headers(principal: Principal) -> dict[str, str]:
        token = issue_session_token(secret=TEST_SECRET, user_id=principal.user_id)
        return {"Authorization": f"Bearer {token}"}

    return _headers
