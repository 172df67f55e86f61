"""API 依赖项：认证控制器与当前会话。"""
from typing import Any

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.security import decode_access_token
from app.services.auth_service import CredentialOnboardingController, get_controller

_bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_controller() -> CredentialOnboardingController:
    return get_controller()


def get_current_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> dict[str, Any]:
    """从 Authorization: Bearer <token> 中解析提供方签发的会话。"""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Not signed in or token invalid")
    claims = decode_access_token(credentials.credentials)
    if not claims or not claims.get("sub"):
        raise HTTPException(status_code=401, detail="Not signed in or token invalid")
    return claims
