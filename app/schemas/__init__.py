"""API 请求/响应 Pydantic 模型。按模块组织，路由从本包或子模块导入。"""
from app.schemas.auth import (
    AuthFailure,
    AuthMode,
    AuthOutcome,
    AuthSuccess,
    LoginRequest,
    ProviderSession,
    RegisterRequest,
    SessionClaimsResponse,
    SubmitRequest,
)
from app.schemas.health import HealthResponse

__all__ = [
    "AuthFailure",
    "AuthMode",
    "AuthOutcome",
    "AuthSuccess",
    "LoginRequest",
    "ProviderSession",
    "RegisterRequest",
    "SessionClaimsResponse",
    "SubmitRequest",
    "HealthResponse",
]
