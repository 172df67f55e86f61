from app.core.db import Base
from app.models.profile import Profile

__all__ = [
    "Base",
    "Profile",
]
