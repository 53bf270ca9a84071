"""SqlExpenseLedger — 基于 expenses 表的消费汇总"""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.expense import Expense
from app.services.budget_service import DependencyError

from .base import ExpenseLedger

logger = logging.getLogger(__name__)


class SqlExpenseLedger(ExpenseLedger):
    """
    直接对 expenses 表做 SUM 聚合。
    只读，不缓存，每次调用都反映当前数据。
    """

    def __init__(self, db: AsyncSession):
        self._db = db

    async def sum_expenses(
        self,
        user_id: str,
        category: str | None,
        start_date: date,
        end_date: date,
    ) -> Decimal:
        stmt = select(func.coalesce(func.sum(Expense.amount), 0)).where(
            Expense.user_id == user_id,
            Expense.purchase_date.between(start_date, end_date),
        )
        if category is not None:
            # 区分大小写，按存储值精确匹配
            stmt = stmt.where(Expense.category == category)

        try:
            result = await self._db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"[消费汇总] 查询失败 user={user_id}: {e}")
            raise DependencyError("消费流水暂不可用") from e

        total = result.scalar()
        return Decimal(str(total or 0))
