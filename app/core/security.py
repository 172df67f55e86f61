"""校验身份提供方签发的 JWT access token。本服务不签发令牌。"""
from typing import Any

import jwt
from jwt.exceptions import PyJWTError

from app.core.config import settings


def decode_access_token(token: str) -> dict[str, Any] | None:
    """解码并校验提供方 access token，成功返回 claims，失败返回 None。"""
    try:
        return jwt.decode(
            token,
            settings.identity_provider_jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except PyJWTError:
        return None


def claims_username(claims: dict[str, Any]) -> str | None:
    """注册时写入的 user_metadata.username。"""
    metadata = claims.get("user_metadata") or {}
    return metadata.get("username")
