"""CLI 入口模块 -- python -m taskmaster.core <command>

支持的命令：
  init-db                     初始化数据库
  create-user <email> [name]  创建用户
  issue-token <user_id>       为用户签发会话令牌
"""

import asyncio
import sys
from datetime import UTC, datetime

from .config import get_db_path
from .models import ActivityLog, ActivityType
from .session import issue_session_token, load_session_config

_USAGE = """用法: python -m taskmaster.core <command>
命令:
  init-db                     初始化数据库
  create-user <email> [name]  创建用户
  issue-token <user_id>       为用户签发会话令牌"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(_USAGE)
        sys.exit(1)

    command, args = sys.argv[1], sys.argv[2:]

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "create-user" and len(args) >= 1:
        asyncio.run(create_user(args[0], args[1] if len(args) > 1 else ""))
    elif command == "issue-token" and len(args) == 1 and args[0].isdigit():
        sys.exit(asyncio.run(issue_token(int(args[0]))))
    else:
        print(f"未知命令或参数错误: {' '.join(sys.argv[1:])}")
        print(_USAGE)
        sys.exit(1)


async def init_database() -> None:
    """创建表和索引"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    await store_group.conn.close()
    print("初始化完成")


async def create_user(email: str, name: str) -> None:
    """创建用户并记录 SIGN_UP"""
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        now = datetime.now(UTC)
        user = await store_group.user_store.create_user(email, name, now)
        await store_group.activity_store.append_activity(
            ActivityLog(user_id=user.user_id, action=ActivityType.SIGN_UP, ts=now)
        )
        print(f"已创建用户 user_id={user.user_id} email={user.email}")
    finally:
        await store_group.conn.close()


async def issue_token(user_id: int) -> int:
    """为未注销用户签发令牌并记录 SIGN_IN

    Returns:
        进程退出码
    """
    from .store import create_store_group

    config = load_session_config()
    secret = config.secret.get_secret_value()
    if not secret:
        print("未配置 TASKMASTER_SESSION_SECRET")
        return 1

    store_group = await create_store_group(get_db_path())
    try:
        user = await store_group.user_store.get_active_user(user_id)
        if user is None:
            print(f"用户不存在或已注销: {user_id}")
            return 1
        token = issue_session_token(
            secret=secret,
            user_id=user.user_id,
            ttl_seconds=config.ttl_s,
        )
        await store_group.activity_store.append_activity(
            ActivityLog(
                user_id=user.user_id,
                action=ActivityType.SIGN_IN,
                ts=datetime.now(UTC),
            )
        )
        print(token)
        return 0
    finally:
        await store_group.conn.close()


if __name__ == "__main__":
    main()
