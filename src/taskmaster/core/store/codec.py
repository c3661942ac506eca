"""存储边界编解码

时间戳统一存为带微秒的 UTC ISO-8601 文本，保证字符串排序与时间排序一致；
tags 存为 JSON 数组文本。领域模型中不出现任何序列化调用。
"""

import json
from datetime import datetime

from ..models.task import ensure_utc


def format_ts(value: datetime | None) -> str | None:
    if value is None:
        return None
    return ensure_utc(value).isoformat(timespec="microseconds")


def parse_ts(raw: str | None) -> datetime | None:
    if raw is None:
        return None
    return ensure_utc(datetime.fromisoformat(raw))


def encode_tags(tags: list[str]) -> str:
    """有序标签列表 -> JSON 文本"""
    return json.dumps(list(tags), ensure_ascii=False)


def decode_tags(raw: str | None) -> list[str]:
    """JSON 文本 -> 有序标签列表；空值视为无标签

    Raises:
        ValueError: 列内容不是字符串数组
    """
    if not raw:
        return []
    data = json.loads(raw)
    if not isinstance(data, list) or not all(isinstance(tag, str) for tag in data):
        raise ValueError(f"tags 列内容非法: {raw!r}")
    return data
