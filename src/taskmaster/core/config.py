"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、会话有效期等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TASKMASTER_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TASKMASTER_DB_PATH",
        str(_get_base_dir() / "sqlite" / "taskmaster.db"),
    )


# 会话 cookie 名称
SESSION_COOKIE_NAME: str = "session"

# 会话默认有效期（秒）
DEFAULT_SESSION_TTL_S: int = 24 * 60 * 60

# 最近活动记录默认条数
ACTIVITY_LOG_LIMIT: int = 10
