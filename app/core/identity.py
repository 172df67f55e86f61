"""用户名与合成邮箱的映射。

身份提供方只支持邮箱登录，这里把用户名机械地拼成 <username>@<域名>，
前端只需要用户名。所有函数都是纯函数（generate_username 除外，带随机后缀）。
"""
import random
import re

from app.core.config import settings

_WHITESPACE_RE = re.compile(r"\s+")

# 随机后缀取值范围 [0, 9999)
USERNAME_SUFFIX_UPPER = 9999


def normalize_username(username: str) -> str:
    """去掉首尾空白并转小写。"""
    return (username or "").strip().lower()


def derive_email(username: str, domain: str | None = None) -> str:
    """用户名 -> 合成邮箱，大小写与首尾空白不影响结果。"""
    return f"{normalize_username(username)}@{domain or settings.identity_email_domain}"


def generate_username(name: str, rng: random.Random | None = None) -> str:
    """由姓名生成用户名：小写、去掉所有空白、追加随机数字。不保证全局唯一。"""
    base = _WHITESPACE_RE.sub("", (name or "").lower())
    suffix = (rng or random).randrange(USERNAME_SUFFIX_UPPER)
    return f"{base}{suffix}"
