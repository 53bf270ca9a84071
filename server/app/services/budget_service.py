"""预算存储服务 — 按用户隔离的预算增删改查"""

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal

from dateutil.relativedelta import relativedelta
from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.budget import Budget
from app.schemas.budget import BudgetCreate, BudgetUpdate
from app.utils.seed import DEFAULT_EXPENSE_CATEGORIES

logger = logging.getLogger(__name__)


class BudgetError(Exception):
    """预算业务异常基类，由 main.py 统一映射为 HTTP 响应"""

    status_code = 400
    code = "BUDGET_ERROR"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class BudgetValidationError(BudgetError):
    """输入违反预算约束（金额、阈值、日期区间）"""

    status_code = 400
    code = "VALIDATION_ERROR"


class BudgetNotFoundError(BudgetError):
    """预算不存在或不属于当前用户（两种情况不做区分）"""

    status_code = 404
    code = "NOT_FOUND"


class DependencyError(BudgetError):
    """预算库或消费流水不可用"""

    status_code = 503
    code = "DEPENDENCY_ERROR"


class DomainError(BudgetError):
    """读取到本应在写入时被拦截的非法数据，例如 amount == 0"""

    status_code = 500
    code = "DOMAIN_ERROR"


# 不允许显式置空的字段
_REQUIRED_FIELDS = (
    "name", "amount", "period", "start_date", "end_date",
    "alert_threshold", "is_active",
)


# ─────────────────────── helpers ───────────────────────


def period_date_range(period: str, today: date | None = None) -> tuple[date, date]:
    """返回 today 所在周期的首日和末日（含两端）"""
    today = today or date.today()
    if period == "weekly":
        first = today - timedelta(days=today.weekday())
        return first, first + timedelta(days=6)
    if period == "yearly":
        return date(today.year, 1, 1), date(today.year, 12, 31)
    month_start = today.replace(day=1)
    return month_start, (month_start + relativedelta(months=1)) - timedelta(days=1)


def validate_budget_fields(
    amount: Decimal | None,
    alert_threshold: int | None,
    start_date: date | None,
    end_date: date | None,
) -> None:
    """校验预算不变量，违反时抛 BudgetValidationError"""
    if amount is None or amount <= 0:
        raise BudgetValidationError("amount 必须大于 0")
    if alert_threshold is None or not 1 <= alert_threshold <= 100:
        raise BudgetValidationError("alert_threshold 必须在 1-100 之间")
    if start_date is None or end_date is None:
        raise BudgetValidationError("start_date 与 end_date 不能为空")
    if start_date > end_date:
        raise BudgetValidationError("start_date 不能晚于 end_date")


def _warn_unknown_category(category: str | None) -> None:
    if category is not None and category not in DEFAULT_EXPENSE_CATEGORIES:
        logger.warning(f"[预算] 分类 {category!r} 不在默认消费分类中")


async def _flush(db: AsyncSession) -> None:
    try:
        await db.flush()
    except SQLAlchemyError as e:
        logger.error(f"[预算] 写入失败: {e}")
        raise DependencyError("预算存储暂不可用") from e


# ─────────────────────── CRUD ───────────────────────


async def create_budget(db: AsyncSession, user_id: str, body: BudgetCreate) -> Budget:
    """新建预算，未给日期区间时按 period 取当前周期"""
    start_date, end_date = body.start_date, body.end_date
    if start_date is None and end_date is None:
        start_date, end_date = period_date_range(body.period)

    validate_budget_fields(body.amount, body.alert_threshold, start_date, end_date)
    _warn_unknown_category(body.category)

    budget = Budget(
        user_id=user_id,
        name=body.name,
        amount=body.amount,
        category=body.category,
        period=body.period,
        start_date=start_date,
        end_date=end_date,
        alert_threshold=body.alert_threshold,
        is_active=body.is_active,
    )
    db.add(budget)
    await _flush(db)
    await db.refresh(budget)
    return budget


async def get_user_budgets(db: AsyncSession, user_id: str) -> list[Budget]:
    """获取用户全部预算，最新创建的在前"""
    try:
        result = await db.execute(
            select(Budget)
            .where(Budget.user_id == user_id)
            .order_by(Budget.created_at.desc())
        )
    except SQLAlchemyError as e:
        logger.error(f"[预算] 查询失败 user={user_id}: {e}")
        raise DependencyError("预算存储暂不可用") from e
    return list(result.scalars().all())


async def get_budget(db: AsyncSession, budget_id: str, user_id: str) -> Budget:
    """按 (id, user_id) 获取预算，找不到时抛 BudgetNotFoundError"""
    try:
        result = await db.execute(
            select(Budget).where(Budget.id == budget_id, Budget.user_id == user_id)
        )
    except SQLAlchemyError as e:
        logger.error(f"[预算] 查询失败 budget={budget_id}: {e}")
        raise DependencyError("预算存储暂不可用") from e
    budget = result.scalar_one_or_none()
    if budget is None:
        raise BudgetNotFoundError("预算不存在")
    return budget


async def update_budget(
    db: AsyncSession,
    budget_id: str,
    user_id: str,
    body: BudgetUpdate,
) -> Budget:
    """部分更新预算，校验合并后的记录"""
    budget = await get_budget(db, budget_id, user_id)

    changes = body.model_dump(exclude_unset=True)
    if not changes:
        raise BudgetValidationError("没有可更新的字段")
    for field in _REQUIRED_FIELDS:
        if field in changes and changes[field] is None:
            raise BudgetValidationError(f"{field} 不能为空")

    validate_budget_fields(
        changes.get("amount", budget.amount),
        changes.get("alert_threshold", budget.alert_threshold),
        changes.get("start_date", budget.start_date),
        changes.get("end_date", budget.end_date),
    )
    if "category" in changes:
        _warn_unknown_category(changes["category"])

    for field, value in changes.items():
        setattr(budget, field, value)
    budget.updated_at = datetime.utcnow()

    await _flush(db)
    await db.refresh(budget)
    return budget


async def delete_budget(db: AsyncSession, budget_id: str, user_id: str) -> None:
    """删除预算；不存在或不属于该用户时静默返回（幂等）"""
    try:
        await db.execute(
            delete(Budget).where(Budget.id == budget_id, Budget.user_id == user_id)
        )
    except SQLAlchemyError as e:
        logger.error(f"[预算] 删除失败 budget={budget_id}: {e}")
        raise DependencyError("预算存储暂不可用") from e
