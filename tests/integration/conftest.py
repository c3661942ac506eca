"""集成测试共享 fixture -- 经由 lifespan 启动完整应用"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

INTEGRATION_SECRET = "integration-secret"


@pytest_asyncio.fixture
async def integration_app(tmp_path: Path, monkeypatch):
    """集成测试用 FastAPI app（lifespan 负责初始化与关闭）"""
    monkeypatch.setenv("TASKMASTER_DB_PATH", str(tmp_path / "sqlite" / "integration.db"))
    monkeypatch.setenv("TASKMASTER_SESSION_SECRET", INTEGRATION_SECRET)

    from taskmaster.gateway.main import create_app, lifespan

    app = create_app()
    async with lifespan(app):
        yield app


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac
