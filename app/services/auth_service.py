"""登录/注册控制器。

职责只有：本地校验 -> 用户名映射为合成邮箱 -> 调用一次身份提供方 -> 返回 AuthOutcome。
密码哈希、会话、邮件等全部由提供方负责。所有错误在 submit 内被转换为 AuthFailure，不向外抛。

用户名唯一性：注册前查一次 profiles 表只是尽力而为，并发注册仍可能同时通过，
最终是否唯一取决于提供方对邮箱的约束。
"""
from __future__ import annotations

import logging
import random
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

from app.core.config import settings
from app.core.errors import (
    GENERIC_AUTH_FAILURE,
    AuthError,
    InvalidCredentialsError,
    ProviderError,
    SubmissionInProgressError,
    UsernameTakenError,
    ValidationError,
)
from app.core.identity import derive_email, generate_username, normalize_username
from app.repositories.profile_repository import profile_exists
from app.schemas.auth import (
    AuthFailure,
    AuthMode,
    AuthOutcome,
    AuthSuccess,
    LoginRequest,
    ProviderSession,
    RegisterRequest,
    SubmitRequest,
)
from app.services.identity_provider import (
    IdentityProvider,
    ProviderErr,
    close_identity_provider,
    get_identity_provider,
)

logger = logging.getLogger(__name__)

LOGIN_SUCCESS_MESSAGE = "Welcome back!"
SIGNUP_SUCCESS_MESSAGE = "Account created! Welcome to Mind Mend"

# 返回 True 表示用户名已存在
ProfileLookup = Callable[[str], Awaitable[bool]]


class CredentialOnboardingController:
    def __init__(
        self,
        provider: IdentityProvider,
        profile_lookup: ProfileLookup | None = None,
        *,
        email_domain: str | None = None,
        redirect_target: str | None = None,
        email_redirect_to: str | None = None,
        min_password_length: int | None = None,
        min_username_length: int | None = None,
        rng: random.Random | None = None,
    ):
        self.provider = provider
        self.profile_lookup = profile_lookup
        self.email_domain = email_domain or settings.identity_email_domain
        self.redirect_target = redirect_target or settings.success_redirect_path
        self.email_redirect_to = email_redirect_to or settings.email_redirect_to
        self.min_password_length = min_password_length or settings.min_password_length
        self.min_username_length = min_username_length or settings.min_username_length
        self.rng = rng
        self._in_flight: set[str] = set()

    async def submit(self, request: SubmitRequest) -> AuthOutcome:
        """按 mode 登录或注册，永远返回 outcome。"""
        try:
            if request.mode is AuthMode.LOGIN:
                return await self.login(request.to_login())
            return await self.sign_up(request.to_register())
        except AuthError as e:
            logger.info(f"Auth {request.mode.value} failed: {e.code}")
            return AuthFailure(reason=e.message, error=e.code)
        except Exception:
            logger.exception(f"Unexpected error during {request.mode.value}")
            return AuthFailure(reason=GENERIC_AUTH_FAILURE, error="auth_error")

    def is_pending(self, username: str) -> bool:
        return normalize_username(username) in self._in_flight

    @asynccontextmanager
    async def _in_flight_guard(self, key: str) -> AsyncIterator[None]:
        """同一用户名同时只允许一个提交；任何退出路径都会释放。"""
        if key in self._in_flight:
            raise SubmissionInProgressError()
        self._in_flight.add(key)
        try:
            yield
        finally:
            self._in_flight.discard(key)

    # ----- 登录 -----
    async def login(self, request: LoginRequest) -> AuthSuccess:
        username = normalize_username(request.username)
        if not username:
            raise ValidationError("missing_username", "Please enter your username")
        email = derive_email(username, self.email_domain)
        async with self._in_flight_guard(username):
            session = await self.authenticate(email, request.password)
        return AuthSuccess(redirectTarget=self.redirect_target, message=LOGIN_SUCCESS_MESSAGE, session=session)

    async def authenticate(self, email: str, password: str) -> ProviderSession | None:
        """提供方的错误细节只记日志，对外统一为 InvalidCredentialsError。"""
        result = await self.provider.sign_in_with_password(email, password)
        if isinstance(result, ProviderErr):
            logger.warning(f"Login error for {email}: {result.kind.value} {result.message}")
            raise InvalidCredentialsError()
        return result.session

    # ----- 注册 -----
    def finalize_username(self, username: str, name: str) -> str:
        """未填写用户名时由姓名生成。"""
        final = (username or "").strip()
        if not final:
            final = generate_username(name, self.rng)
        return final

    @staticmethod
    def signup_guard_key(username: str, name: str) -> str:
        """按提交的原始输入取键；用户名为空时按姓名，避免随机后缀让重复提交绕过。"""
        explicit = normalize_username(username)
        if explicit:
            return explicit
        return "name:" + "".join((name or "").lower().split())

    async def sign_up(self, request: RegisterRequest) -> AuthSuccess:
        if not request.name.strip():
            raise ValidationError("missing_name", "Name is required")
        if request.password != request.confirmPassword:
            raise ValidationError("password_mismatch", "Passwords do not match")
        if len(request.password) < self.min_password_length:
            raise ValidationError(
                "password_too_short",
                f"Password must be at least {self.min_password_length} characters",
            )
        guard_key = self.signup_guard_key(request.username, request.name)
        username = self.finalize_username(request.username, request.name)
        if len(username) < self.min_username_length:
            raise ValidationError(
                "username_too_short",
                f"Username must be at least {self.min_username_length} characters",
            )

        async with self._in_flight_guard(guard_key):
            if await self.username_taken(username):
                raise UsernameTakenError(username)
            session = await self.register(
                derive_email(username, self.email_domain),
                request.password,
                {"username": username, "name": request.name},
            )
        return AuthSuccess(redirectTarget=self.redirect_target, message=SIGNUP_SUCCESS_MESSAGE, session=session)

    async def username_taken(self, username: str) -> bool:
        """预检失败（库不可用等）按未占用处理，交由提供方裁决。"""
        if self.profile_lookup is None:
            return False
        try:
            return await self.profile_lookup(username)
        except Exception as e:
            logger.warning(f"Profile lookup failed for {username}, skipping pre-check: {e!r}")
            return False

    async def register(self, email: str, password: str, profile: dict[str, str]) -> ProviderSession | None:
        result = await self.provider.sign_up(email, password, profile, self.email_redirect_to)
        if isinstance(result, ProviderErr):
            raise ProviderError(result.message, kind=result.kind.value)
        logger.info(f"Registered {email}")
        return result.session


_controller: CredentialOnboardingController | None = None


def get_controller() -> CredentialOnboardingController:
    """进程内共享的控制器，in-flight 记录在实例上。"""
    global _controller
    if _controller is None:
        _controller = CredentialOnboardingController(
            get_identity_provider(),
            profile_exists if settings.profile_precheck_enabled else None,
        )
    return _controller


async def close_controller() -> None:
    """关闭共享的提供方客户端，并丢弃持有它的控制器。"""
    global _controller
    _controller = None
    await close_identity_provider()
