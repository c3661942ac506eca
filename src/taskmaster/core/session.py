"""会话令牌 -- HMAC-SHA256 签名 + 过期时间

令牌格式：base64url(payload).base64url(signature)，
payload 为 "v1:<user_id>:<expires_at>"。
校验失败（格式错误、签名不符、已过期）一律返回 None，不抛异常。
"""

import base64
import hashlib
import hmac
import os
import time

import structlog
from pydantic import BaseModel, Field, SecretStr

from .config import DEFAULT_SESSION_TTL_S

log = structlog.get_logger()

_TOKEN_VERSION = "v1"


class SessionClaims(BaseModel):
    """令牌中携带的声明"""

    user_id: int
    expires_at: int


class SessionConfig(BaseModel):
    """会话配置 -- 从环境变量加载

    环境变量:
        TASKMASTER_SESSION_SECRET: 令牌签名密钥
        TASKMASTER_SESSION_TTL_S: 令牌有效期（秒，默认 86400）
    """

    secret: SecretStr = Field(default=SecretStr(""), description="令牌签名密钥")
    ttl_s: int = Field(default=DEFAULT_SESSION_TTL_S, ge=1, description="令牌有效期（秒）")


def load_session_config() -> SessionConfig:
    """从环境变量加载会话配置"""
    kwargs: dict = {}

    if val := os.environ.get("TASKMASTER_SESSION_SECRET"):
        kwargs["secret"] = SecretStr(val)

    if val := os.environ.get("TASKMASTER_SESSION_TTL_S"):
        try:
            kwargs["ttl_s"] = int(val)
        except ValueError:
            log.warning(
                "invalid_session_ttl_config",
                env_var="TASKMASTER_SESSION_TTL_S",
                value=val,
                fallback=DEFAULT_SESSION_TTL_S,
            )

    return SessionConfig(**kwargs)


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")


def _b64url_decode(raw: str) -> bytes:
    padding = "=" * (-len(raw) % 4)
    return base64.urlsafe_b64decode(raw + padding)


def _sign(secret: str, payload: bytes) -> bytes:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).digest()


def issue_session_token(
    *,
    secret: str,
    user_id: int,
    ttl_seconds: int = DEFAULT_SESSION_TTL_S,
    now: int | None = None,
) -> str:
    """签发会话令牌

    Raises:
        ValueError: 未配置签名密钥
    """
    if not secret:
        raise ValueError("session secret 未配置")
    issued_at = int(now if now is not None else time.time())
    expires_at = issued_at + max(1, ttl_seconds)
    payload = f"{_TOKEN_VERSION}:{user_id}:{expires_at}".encode("utf-8")
    return f"{_b64url_encode(payload)}.{_b64url_encode(_sign(secret, payload))}"


def verify_session_token(
    *,
    token: str,
    secret: str,
    now: int | None = None,
) -> SessionClaims | None:
    """校验令牌完整性与有效期，返回声明或 None"""
    if not secret or not token or "." not in token:
        return None

    payload_b64, sig_b64 = token.split(".", 1)
    try:
        payload = _b64url_decode(payload_b64)
        signature = _b64url_decode(sig_b64)
    except ValueError:
        return None

    if not hmac.compare_digest(signature, _sign(secret, payload)):
        return None

    try:
        version, user_id_raw, expires_at_raw = payload.decode("utf-8").split(":", 2)
        user_id = int(user_id_raw)
        expires_at = int(expires_at_raw)
    except ValueError:
        return None

    if version != _TOKEN_VERSION:
        return None

    current = int(now if now is not None else time.time())
    if current > expires_at:
        return None

    return SessionClaims(user_id=user_id, expires_at=expires_at)
