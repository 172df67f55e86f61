"""检查身份提供方连通性与 profiles 预检配置。可选传入用户名，查看该用户名是否已被占用。
与应用使用同一配置（会从项目根目录 .env 加载环境变量）。"""
import argparse
import asyncio
import os
import sys

_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _project_root)

_env_file = os.path.join(_project_root, ".env")
if os.path.isfile(_env_file):
    with open(_env_file, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line and "=" in line and not line.startswith("#"):
                k, _, v = line.partition("=")
                k, v = k.strip(), v.strip()
                if k and os.environ.get(k) is None:
                    os.environ[k] = v

from app.core.config import settings
from app.core.identity import derive_email
from app.repositories.profile_repository import profile_exists
from app.services.identity_provider import close_identity_provider, get_identity_provider


def _redact_url(url: str) -> str:
    """隐藏密码，便于核对连接的是哪个库。"""
    if "@" in url and "//" in url:
        pre, _, rest = url.partition("//")
        if "@" in rest:
            user_part, _, host_part = rest.rpartition("@")
            if ":" in user_part:
                user = user_part.split(":")[0]
                return f"{pre}//{user}:****@{host_part}"
    return url


async def main(username: str | None) -> int:
    print("=== 身份提供方:", settings.identity_provider_url)
    print("  anon key:", "已配置" if settings.identity_provider_anon_key else "未配置")
    print("  邮箱域名:", settings.identity_email_domain)
    print("  注册跳转:", settings.email_redirect_to)
    print("  profiles 预检:", "开启" if settings.profile_precheck_enabled else "关闭")
    print("  数据库:", _redact_url(settings.database_url))
    print()

    provider = get_identity_provider()
    try:
        healthy = await provider.health()
    finally:
        await close_identity_provider()
    print("=== 健康检查:", "OK" if healthy else "FAILED")

    if username:
        print()
        print(f"=== 用户名 {username!r} -> {derive_email(username)}")
        try:
            taken = await profile_exists(username.strip())
        except Exception as e:
            print(f"  profiles 查询失败: {e!r}")
            return 1
        print("  已被占用" if taken else "  可用")
    return 0 if healthy else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("username", nargs="?", help="要检查的用户名")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.username)))
