from sqlalchemy import Column, String

from app.core.db import Base


class Profile(Base):
    """身份提供方数据库中的 profiles 表，本服务只读，只映射用到的列。"""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)
    username = Column(String(100), nullable=True, index=True)
    name = Column(String(100), nullable=True)
