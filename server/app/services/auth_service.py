from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    """根据 ID 查找用户"""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()
