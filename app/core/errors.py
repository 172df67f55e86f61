"""认证流程的错误类型，均在提交边界被转换为 AuthFailure。"""

GENERIC_AUTH_FAILURE = "Authentication failed"
INVALID_CREDENTIALS_MESSAGE = "Invalid username or password"


class AuthError(Exception):
    """code 为简短错误码，message 为展示给用户的提示。"""

    code = "auth_error"

    def __init__(self, message: str = GENERIC_AUTH_FAILURE, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(AuthError):
    """本地校验失败，未发起任何网络请求。"""

    def __init__(self, code: str, message: str):
        super().__init__(message, code=code)


class InvalidCredentialsError(AuthError):
    """登录被提供方拒绝。消息固定，不区分“用户不存在”与“密码错误”。"""

    code = "invalid_credentials"

    def __init__(self):
        super().__init__(INVALID_CREDENTIALS_MESSAGE)


class UsernameTakenError(AuthError):
    code = "username_taken"

    def __init__(self, username: str):
        super().__init__("Username already taken, please provide a custom username")
        self.username = username


class ProviderError(AuthError):
    """注册阶段提供方返回的其它错误，消息原样透出。"""

    code = "provider_error"

    def __init__(self, message: str | None, kind: str = "unknown"):
        super().__init__(message or GENERIC_AUTH_FAILURE)
        self.kind = kind
        if kind == "network":
            self.code = "provider_unavailable"


class SubmissionInProgressError(AuthError):
    code = "in_progress"

    def __init__(self):
        super().__init__("Authentication already in progress, please wait")
