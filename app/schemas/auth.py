"""认证相关请求/响应模型。字段名与前端表单一致（camelCase）。"""
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class AuthMode(str, Enum):
    LOGIN = "login"
    SIGNUP = "signup"

    def toggled(self) -> "AuthMode":
        """登录/注册切换。"""
        return AuthMode.SIGNUP if self is AuthMode.LOGIN else AuthMode.LOGIN


# ----- 请求体：不在 schema 层做长度校验，统一交给控制器，保证校验失败时不发请求 -----
class LoginRequest(BaseModel):
    username: str = Field("", description="用户名")
    password: str = Field("", description="密码")


class RegisterRequest(BaseModel):
    name: str = Field("", description="姓名（必填）")
    username: str = Field("", description="用户名，为空时由姓名自动生成")
    password: str = Field("", description="密码（至少 6 位）")
    confirmPassword: str = Field("", description="确认密码")


class SubmitRequest(BaseModel):
    """单一入口：按 mode 决定登录或注册。"""
    mode: AuthMode = Field(AuthMode.LOGIN, description="login / signup")
    name: str = Field("", description="姓名，仅注册")
    username: str = Field("", description="用户名")
    password: str = Field("", description="密码")
    confirmPassword: str = Field("", description="确认密码，仅注册")

    def to_login(self) -> LoginRequest:
        return LoginRequest(username=self.username, password=self.password)

    def to_register(self) -> RegisterRequest:
        return RegisterRequest(
            name=self.name,
            username=self.username,
            password=self.password,
            confirmPassword=self.confirmPassword,
        )


# ----- 响应体 -----
class ProviderSession(BaseModel):
    accessToken: str | None = Field(None, description="提供方签发的 access token")
    refreshToken: str | None = Field(None, description="refresh token")
    expiresIn: int | None = Field(None, description="有效期（秒）")
    userId: str | None = Field(None, description="提供方用户 ID")
    email: str | None = Field(None, description="合成邮箱")


class AuthSuccess(BaseModel):
    status: Literal["success"] = "success"
    redirectTarget: str = Field(..., description="成功后跳转路径")
    message: str = Field("", description="成功提示")
    session: ProviderSession | None = Field(None, description="会话（若提供方已签发）")


class AuthFailure(BaseModel):
    status: Literal["failure"] = "failure"
    reason: str = Field(..., description="展示给用户的失败原因")
    error: str = Field("auth_error", description="错误码")


AuthOutcome = Annotated[Union[AuthSuccess, AuthFailure], Field(discriminator="status")]


class SessionClaimsResponse(BaseModel):
    userId: str = Field(..., description="提供方用户 ID")
    email: str | None = Field(None, description="合成邮箱")
    username: str | None = Field(None, description="用户名")
