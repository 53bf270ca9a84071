"""ExpenseLedger 抽象基类 — 定义消费流水汇总接口"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal


class ExpenseLedger(ABC):
    """
    消费流水访问器抽象基类。
    预算模块只通过此接口读取消费汇总，不直接依赖流水的存储方式。
    """

    @abstractmethod
    async def sum_expenses(
        self,
        user_id: str,
        category: str | None,
        start_date: date,
        end_date: date,
    ) -> Decimal:
        """
        汇总某用户在 [start_date, end_date]（含两端）内的消费金额。
        category 为 None 时匹配全部分类；无匹配记录时返回 Decimal("0")，不返回 None。
        """
        ...
