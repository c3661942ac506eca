"""structlog 配置模块

TASKMASTER_LOG_FORMAT: "dev"（默认，控制台可读输出）或 "json"
TASKMASTER_LOG_LEVEL: 根日志级别，默认 INFO

处理器链在 structlog 默认链之外增加两步：
- tag_component: 按事件名标注来源组件（store / http / auth）
- redact_credentials: 会话令牌等凭证字段不落日志
"""

import logging
import os
from collections.abc import MutableMapping
from typing import Any

import structlog

# 事件名前缀 -> 组件
_COMPONENT_PREFIXES: tuple[tuple[str, str], ...] = (
    ("store_", "store"),
    ("task_", "store"),
    ("request_", "http"),
    ("session_", "auth"),
)

_CREDENTIAL_KEYS = frozenset({"token", "credential", "authorization", "cookie", "secret"})

# aiosqlite 每条语句都会打 DEBUG 日志
_NOISY_LOGGERS = ("aiosqlite",)


def tag_component(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """按事件名前缀补充 component 字段，已显式指定时不覆盖"""
    event = event_dict.get("event")
    if isinstance(event, str) and "component" not in event_dict:
        for prefix, component in _COMPONENT_PREFIXES:
            if event.startswith(prefix):
                event_dict["component"] = component
                break
    return event_dict


def redact_credentials(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """凭证类字段替换为掩码"""
    for key in event_dict.keys() & _CREDENTIAL_KEYS:
        if event_dict[key]:
            event_dict[key] = "***"
    return event_dict


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging() -> None:
    """初始化 structlog，并让标准库 logging 共用同一渲染器"""
    log_format = os.environ.get("TASKMASTER_LOG_FORMAT", "dev")
    level = _resolve_level(os.environ.get("TASKMASTER_LOG_LEVEL", "INFO"))

    # request_id / task_id / user_id 经 contextvars 合入每条日志
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        tag_component,
        redact_credentials,
    ]

    renderer: structlog.types.Processor
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
