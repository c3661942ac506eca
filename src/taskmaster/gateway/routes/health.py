"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含 SQLite 连通性与磁盘空间。
"""

import shutil
from pathlib import Path

import structlog
from fastapi import APIRouter, Depends, Request
from starlette.responses import JSONResponse
from taskmaster.core.store import StoreGroup

from ..deps import get_store_group

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(
    request: Request,
    store_group: StoreGroup = Depends(get_store_group),
):
    """Readiness 检查 -- 验证核心依赖可用性

    检查项：
    1. sqlite: 数据库连通性
    2. disk_space_mb: 数据库所在磁盘剩余空间
    """
    checks: dict = {}
    all_ok = True

    # 1. SQLite 连通性检查
    try:
        cursor = await store_group.conn.execute("SELECT 1")
        await cursor.fetchone()
        checks["sqlite"] = "ok"
    except Exception as e:
        # 不向外暴露底层异常细节
        log.warning("ready_check_sqlite_failed", error=str(e))
        checks["sqlite"] = "unavailable"
        all_ok = False

    # 2. 磁盘空间检查
    try:
        db_path = getattr(request.app.state, "db_path", None)
        target = Path(db_path).parent if db_path else Path("/")
        disk_usage = shutil.disk_usage(target if target.exists() else "/")
        checks["disk_space_mb"] = disk_usage.free // (1024 * 1024)
    except OSError:
        checks["disk_space_mb"] = 0
        all_ok = False

    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={
            "status": "ready" if all_ok else "not_ready",
            "checks": checks,
        },
    )
