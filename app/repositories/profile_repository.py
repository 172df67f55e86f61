from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import SessionLocal
from app.models.profile import Profile


async def find_profile_by_username(db: AsyncSession, username: str) -> Profile | None:
    """按用户名查询 profile，不存在返回 None。"""
    result = await db.execute(select(Profile).where(Profile.username == username))
    return result.scalars().first()


async def profile_exists(username: str) -> bool:
    """注册预检用：自行开启会话，只读。"""
    async with SessionLocal() as db:
        return await find_profile_by_username(db, username) is not None
