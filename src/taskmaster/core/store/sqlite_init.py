"""SQLite 数据库初始化

PRAGMA 配置 + 三张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# users 表 DDL
_USERS_DDL = """
CREATE TABLE IF NOT EXISTS users (
    user_id     INTEGER PRIMARY KEY AUTOINCREMENT,
    email       TEXT NOT NULL UNIQUE,
    name        TEXT NOT NULL DEFAULT '',
    created_at  TEXT NOT NULL,
    deleted_at  TEXT
);
"""

# tasks 表 DDL
# AUTOINCREMENT 保证 task_id 全库唯一且永不复用
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id     INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id    INTEGER NOT NULL,
    title       TEXT NOT NULL,
    description TEXT,
    priority    TEXT NOT NULL DEFAULT 'medium',
    status      TEXT NOT NULL DEFAULT 'todo',
    tags        TEXT NOT NULL DEFAULT '[]',
    due_date    TEXT,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL,
    lifecycle   TEXT NOT NULL DEFAULT 'active',
    deleted_at  TEXT,

    FOREIGN KEY (owner_id) REFERENCES users(user_id)
);
"""

_TASKS_INDEXES = [
    # 所有列表查询共用的归属 + 可见性 + 排序索引
    (
        "CREATE INDEX IF NOT EXISTS idx_tasks_owner_visible "
        "ON tasks(owner_id, lifecycle, created_at DESC, task_id DESC);"
    ),
    "CREATE INDEX IF NOT EXISTS idx_tasks_owner_status ON tasks(owner_id, status);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_owner_priority ON tasks(owner_id, priority);",
]

# activity_logs 表 DDL
_ACTIVITY_LOGS_DDL = """
CREATE TABLE IF NOT EXISTS activity_logs (
    log_id      INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id     INTEGER NOT NULL,
    action      TEXT NOT NULL,
    ts          TEXT NOT NULL,
    ip_address  TEXT,
    metadata    TEXT NOT NULL DEFAULT '{}',

    FOREIGN KEY (user_id) REFERENCES users(user_id)
);
"""

_ACTIVITY_LOGS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_activity_logs_user_ts ON activity_logs(user_id, ts DESC);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    await conn.execute(_USERS_DDL)
    await conn.execute(_TASKS_DDL)
    await conn.execute(_ACTIVITY_LOGS_DDL)

    # 创建索引
    for idx_sql in _TASKS_INDEXES + _ACTIVITY_LOGS_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
