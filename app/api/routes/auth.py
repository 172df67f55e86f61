"""登录与注册接口：POST /auth/login、POST /auth/register、POST /auth/submit、GET /auth/session。"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.deps import get_auth_controller, get_current_claims
from app.core.security import claims_username
from app.schemas.auth import (
    AuthFailure,
    AuthMode,
    AuthSuccess,
    LoginRequest,
    RegisterRequest,
    SessionClaimsResponse,
    SubmitRequest,
)
from app.services.auth_service import CredentialOnboardingController

router = APIRouter()

# 错误码 -> HTTP 状态码，未列出的按 400
_FAILURE_STATUS = {
    "invalid_credentials": 401,
    "username_taken": 409,
    "in_progress": 409,
    "provider_unavailable": 502,
    "auth_error": 500,
}


def _respond(outcome: AuthSuccess | AuthFailure) -> AuthSuccess | JSONResponse:
    if isinstance(outcome, AuthSuccess):
        return outcome
    return JSONResponse(
        status_code=_FAILURE_STATUS.get(outcome.error, 400),
        content=outcome.model_dump(),
    )


_responses = {code: {"model": AuthFailure} for code in (400, 401, 409, 500, 502)}


@router.post("/login", response_model=AuthSuccess, responses=_responses)
async def login(body: LoginRequest, controller: CredentialOnboardingController = Depends(get_auth_controller)):
    """登录：用户名+密码，成功返回跳转路径与会话。"""
    request = SubmitRequest(mode=AuthMode.LOGIN, username=body.username, password=body.password)
    return _respond(await controller.submit(request))


@router.post("/register", response_model=AuthSuccess, responses=_responses)
async def register(body: RegisterRequest, controller: CredentialOnboardingController = Depends(get_auth_controller)):
    """注册：姓名+可选用户名+密码+确认密码。"""
    request = SubmitRequest(mode=AuthMode.SIGNUP, **body.model_dump())
    return _respond(await controller.submit(request))


@router.post("/submit", response_model=AuthSuccess, responses=_responses)
async def submit(body: SubmitRequest, controller: CredentialOnboardingController = Depends(get_auth_controller)):
    """表单单一入口，按 mode 分派。"""
    return _respond(await controller.submit(body))


@router.get("/session", response_model=SessionClaimsResponse)
def session(claims: dict = Depends(get_current_claims)):
    """解析提供方签发的 access token，返回当前用户。"""
    return SessionClaimsResponse(
        userId=claims["sub"],
        email=claims.get("email"),
        username=claims_username(claims),
    )
