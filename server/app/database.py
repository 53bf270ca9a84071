"""数据库初始化 - SQLite + async SQLAlchemy"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from app.config import settings

logger = logging.getLogger(__name__)

engine = create_async_engine(settings.DATABASE_URL, echo=False)

AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    pass


async def commit_session(session: AsyncSession) -> None:
    """提交请求事务，数据库不可用时抛 DependencyError"""
    from app.services.budget_service import DependencyError

    try:
        await session.commit()
    except SQLAlchemyError as e:
        logger.error(f"[数据库] 提交失败: {e}")
        await session.rollback()
        raise DependencyError("预算存储暂不可用") from e


async def get_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        await commit_session(session)


async def init_db():
    """创建所有表（users 由认证服务写入，这里仅保证表结构存在）"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
