"""身份提供方（Supabase / GoTrue 兼容）REST 适配层。

对外只暴露两种结果：ProviderOk（可能带会话）或 ProviderErr（kind + message），
控制器按 kind 分支，不去解析提供方的原始错误文本。
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

import httpx

from app.core.config import settings
from app.schemas.auth import ProviderSession

logger = logging.getLogger(__name__)

_TOKEN_PATH = "/auth/v1/token"
_SIGNUP_PATH = "/auth/v1/signup"
_HEALTH_PATH = "/auth/v1/health"


class ProviderErrorKind(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    USER_ALREADY_EXISTS = "user_already_exists"
    WEAK_PASSWORD = "weak_password"
    RATE_LIMITED = "rate_limited"
    NETWORK = "network"
    UNKNOWN = "unknown"


# GoTrue error_code / 旧版 error 字段 -> kind
_ERROR_CODE_KINDS: dict[str, ProviderErrorKind] = {
    "invalid_credentials": ProviderErrorKind.INVALID_CREDENTIALS,
    "invalid_grant": ProviderErrorKind.INVALID_CREDENTIALS,
    "email_not_confirmed": ProviderErrorKind.EMAIL_NOT_CONFIRMED,
    "user_already_exists": ProviderErrorKind.USER_ALREADY_EXISTS,
    "email_exists": ProviderErrorKind.USER_ALREADY_EXISTS,
    "weak_password": ProviderErrorKind.WEAK_PASSWORD,
    "over_request_rate_limit": ProviderErrorKind.RATE_LIMITED,
    "over_email_send_rate_limit": ProviderErrorKind.RATE_LIMITED,
}


@dataclass(frozen=True)
class ProviderOk:
    session: ProviderSession | None = None


@dataclass(frozen=True)
class ProviderErr:
    kind: ProviderErrorKind
    message: str
    status: int | None = None


ProviderResult = Union[ProviderOk, ProviderErr]


def _error_kind(status: int, body: dict[str, Any]) -> ProviderErrorKind:
    code = body.get("error_code") or body.get("error")
    if isinstance(code, str) and code in _ERROR_CODE_KINDS:
        return _ERROR_CODE_KINDS[code]
    if status == 429:
        return ProviderErrorKind.RATE_LIMITED
    return ProviderErrorKind.UNKNOWN


def _error_message(body: dict[str, Any], fallback: str) -> str:
    for key in ("msg", "error_description", "message", "error"):
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return fallback


def parse_error(response: httpx.Response) -> ProviderErr:
    """将非 2xx 响应转为 ProviderErr。响应体不是 JSON 时退回到原始文本。"""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    fallback = response.text.strip() or f"HTTP {response.status_code}"
    return ProviderErr(
        kind=_error_kind(response.status_code, body),
        message=_error_message(body, fallback),
        status=response.status_code,
    )


def parse_session(body: dict[str, Any]) -> ProviderSession | None:
    """token 接口返回会话；未开启自动确认时 signup 只返回 user，没有 access_token。"""
    user = body.get("user") if isinstance(body.get("user"), dict) else body
    access_token = body.get("access_token")
    user_id = user.get("id") if isinstance(user, dict) else None
    if not access_token and not user_id:
        return None
    return ProviderSession(
        accessToken=access_token,
        refreshToken=body.get("refresh_token"),
        expiresIn=body.get("expires_in"),
        userId=user_id,
        email=user.get("email") if isinstance(user, dict) else None,
    )


class IdentityProvider:
    """GoTrue REST 客户端，复用一个 httpx.AsyncClient。"""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        *,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        headers = {"apikey": anon_key, "Authorization": f"Bearer {anon_key}"}
        if client is None:
            client = httpx.AsyncClient(base_url=self.base_url, headers=headers, timeout=timeout)
        else:
            client.headers.update(headers)
        self._client = client

    async def _post(self, path: str, payload: dict[str, Any], params: dict[str, str]) -> ProviderResult:
        try:
            response = await self._client.post(path, json=payload, params=params)
        except httpx.RequestError as e:
            logger.warning(f"Identity provider request failed: {path} {e!r}")
            return ProviderErr(kind=ProviderErrorKind.NETWORK, message="Unable to reach authentication service")
        if response.is_success:
            try:
                body = response.json()
            except ValueError:
                body = {}
            return ProviderOk(session=parse_session(body) if isinstance(body, dict) else None)
        err = parse_error(response)
        logger.info(f"Identity provider rejected {path}: status={err.status} kind={err.kind.value}")
        return err

    async def sign_in_with_password(self, email: str, password: str) -> ProviderResult:
        return await self._post(
            _TOKEN_PATH,
            {"email": email, "password": password},
            {"grant_type": "password"},
        )

    async def sign_up(
        self,
        email: str,
        password: str,
        data: dict[str, Any],
        email_redirect_to: str | None = None,
    ) -> ProviderResult:
        params = {"redirect_to": email_redirect_to} if email_redirect_to else {}
        return await self._post(
            _SIGNUP_PATH,
            {"email": email, "password": password, "data": data},
            params,
        )

    async def health(self) -> bool:
        try:
            response = await self._client.get(_HEALTH_PATH)
        except httpx.RequestError:
            return False
        return response.is_success

    async def aclose(self) -> None:
        await self._client.aclose()


_provider: IdentityProvider | None = None


def get_identity_provider() -> IdentityProvider:
    """进程内共享的提供方客户端。"""
    global _provider
    if _provider is None:
        _provider = IdentityProvider(
            settings.identity_provider_url,
            settings.identity_provider_anon_key,
            timeout=settings.identity_provider_timeout,
        )
    return _provider


async def close_identity_provider() -> None:
    global _provider
    if _provider is not None:
        await _provider.aclose()
        _provider = None
