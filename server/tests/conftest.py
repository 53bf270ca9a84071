"""测试公共 Fixtures —— 内存 SQLite + 独立 TestClient"""

import uuid
from datetime import date
from decimal import Decimal

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.database import Base, commit_session, get_db
from app.models.user import User
from app.models.budget import Budget  # noqa: F401
from app.models.expense import Expense
from app.utils.security import create_access_token


# ──────────── 内存数据库引擎 ────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

# 所有会话共用一个连接，否则每个连接都是一个新的空库
test_engine = create_async_engine(
    TEST_DB_URL,
    echo=False,
    poolclass=StaticPool,
    connect_args={"check_same_thread": False},
)
TestSessionLocal = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """每个测试前建表，测试后清表"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db():
    async with TestSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        await commit_session(session)


# ──────────── FastAPI TestClient ────────────

@pytest_asyncio.fixture
async def client():
    from app.main import app

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ──────────── 测试用户 ────────────

async def _create_user(email: str, name: str, budget_alerts_enabled: bool = True) -> User:
    async with TestSessionLocal() as db:
        user = User(
            id=str(uuid.uuid4()),
            email=email,
            name=name,
            budget_alerts_enabled=budget_alerts_enabled,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user


@pytest_asyncio.fixture
async def test_user() -> User:
    return await _create_user("test@example.com", "测试用户")


@pytest_asyncio.fixture
async def other_user() -> User:
    return await _create_user("other@example.com", "其他用户")


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict:
    token = create_access_token(test_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def other_auth_headers(other_user: User) -> dict:
    token = create_access_token(other_user.id)
    return {"Authorization": f"Bearer {token}"}


# ──────────── 消费流水 ────────────

async def add_expense(
    user_id: str,
    amount,
    purchase_date: date,
    category: str = "Groceries",
    store_name: str = "测试超市",
) -> Expense:
    """直接写入一条消费记录（记账模块不在本服务内）"""
    async with TestSessionLocal() as db:
        expense = Expense(
            user_id=user_id,
            store_name=store_name,
            category=category,
            amount=Decimal(str(amount)),
            purchase_date=purchase_date,
        )
        db.add(expense)
        await db.commit()
        await db.refresh(expense)
        return expense
