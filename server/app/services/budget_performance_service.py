"""预算执行情况服务：实际支出汇总、使用率评估、预算提醒、整体分析

所有结果均实时计算，不做缓存；每次调用都重新读取预算和消费流水。
"""

import logging
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.base import ExpenseLedger
from app.config import settings
from app.models.budget import Budget
from app.schemas.budget import BudgetPerformance, BudgetAlert, BudgetAnalysis
from app.services.budget_service import (
    DomainError,
    get_budget,
    get_user_budgets,
)

logger = logging.getLogger(__name__)

# 固定的 "danger" 升级线，与预算自身的 alert_threshold 无关
DANGER_PERCENTAGE = Decimal("90")
FULL_PERCENTAGE = Decimal("100")

_CENT = Decimal("0.01")


def round2(value: Decimal) -> Decimal:
    """四舍五入到两位小数"""
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


# ─────────────────────── 实际支出 ───────────────────────


async def calculate_spent(ledger: ExpenseLedger, user_id: str, budget: Budget) -> Decimal:
    """预算区间（含两端）内、匹配分类的消费合计，无记录时为 0"""
    spent = await ledger.sum_expenses(
        user_id, budget.category, budget.start_date, budget.end_date
    )
    return round2(_to_decimal(spent))


# ─────────────────────── 评估 ───────────────────────


def calc_percentage_used(budget: Budget, spent: Decimal) -> Decimal:
    amount = _to_decimal(budget.amount)
    if amount <= 0:
        logger.error(f"[预算评估] 预算 {budget.id} 金额非法: {amount}")
        raise DomainError(f"预算 {budget.id} 金额非法，无法计算使用率")
    return round2(spent / amount * 100)


def calc_status(percentage_used: Decimal, alert_threshold: int) -> str:
    if percentage_used >= FULL_PERCENTAGE:
        return "over"
    if percentage_used >= alert_threshold:
        return "warning"
    return "under"


def evaluate_budget(budget: Budget, spent: Decimal) -> BudgetPerformance:
    """
    根据预算定义和实际支出生成执行记录。
    remaining 可以为负数（超支），不做截断。
    """
    spent = round2(_to_decimal(spent))
    amount = _to_decimal(budget.amount)
    percentage_used = calc_percentage_used(budget, spent)

    return BudgetPerformance(
        budget_id=budget.id,
        name=budget.name,
        budget_amount=float(round2(amount)),
        spent=float(spent),
        remaining=float(round2(amount - spent)),
        percentage_used=float(percentage_used),
        status=calc_status(percentage_used, budget.alert_threshold),
    )


async def get_budget_performance(
    db: AsyncSession,
    ledger: ExpenseLedger,
    budget_id: str,
    user_id: str,
) -> BudgetPerformance:
    """单个预算的当前执行情况"""
    budget = await get_budget(db, budget_id, user_id)
    spent = await calculate_spent(ledger, user_id, budget)
    return evaluate_budget(budget, spent)


# ─────────────────────── 预算提醒 ───────────────────────


def calc_alert_level(percentage_used: Decimal) -> str:
    if percentage_used >= FULL_PERCENTAGE:
        return "exceeded"
    if percentage_used >= DANGER_PERCENTAGE:
        return "danger"
    return "warning"


def build_alert(budget: Budget, performance: BudgetPerformance) -> BudgetAlert | None:
    """使用率达到预算自身阈值时生成提醒，否则返回 None"""
    percentage_used = _to_decimal(performance.percentage_used)
    if percentage_used < budget.alert_threshold:
        return None

    level = calc_alert_level(percentage_used)
    shown = percentage_used.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    symbol = settings.CURRENCY_SYMBOL
    if level == "exceeded":
        over = round2(_to_decimal(performance.spent) - _to_decimal(budget.amount))
        msg = f"{budget.name}预算已超支 {symbol}{over}"
    elif level == "danger":
        msg = f"{budget.name}预算即将用完（已使用 {shown}%）"
    else:
        msg = f"{budget.name}预算已使用 {shown}%"

    return BudgetAlert(
        budget_id=budget.id,
        budget_name=budget.name,
        current_spent=performance.spent,
        budget_amount=performance.budget_amount,
        percentage_used=performance.percentage_used,
        alert_level=level,
        message=msg,
    )


async def generate_alerts(
    db: AsyncSession,
    ledger: ExpenseLedger,
    user_id: str,
) -> list[BudgetAlert]:
    """
    扫描用户的全部活跃预算，返回需要提醒的列表。
    消费流水不可用时抛 DependencyError，不会返回空列表冒充“无提醒”。
    """
    budgets = await get_user_budgets(db, user_id)
    alerts: list[BudgetAlert] = []

    for budget in budgets:
        if not budget.is_active:
            continue
        spent = await calculate_spent(ledger, user_id, budget)
        alert = build_alert(budget, evaluate_budget(budget, spent))
        if alert is not None:
            alerts.append(alert)

    return alerts


# ─────────────────────── 整体分析 ───────────────────────


def summarize_performance(
    total_budgets: int,
    active_budgets: list[Budget],
    performance: list[BudgetPerformance],
) -> BudgetAnalysis:
    """汇总各预算执行记录；savings 可为负数（整体超支）"""
    total_budget_amount = round2(
        sum((_to_decimal(b.amount) for b in active_budgets), Decimal("0"))
    )
    total_spent = round2(
        sum((_to_decimal(p.spent) for p in performance), Decimal("0"))
    )

    return BudgetAnalysis(
        total_budgets=total_budgets,
        active_budgets=len(active_budgets),
        total_budget_amount=float(total_budget_amount),
        total_spent=float(total_spent),
        over_budget_count=sum(1 for p in performance if p.status == "over"),
        savings=float(round2(total_budget_amount - total_spent)),
        budget_performance=performance,
    )


async def get_budget_analysis(
    db: AsyncSession,
    ledger: ExpenseLedger,
    user_id: str,
) -> BudgetAnalysis:
    """用户全部活跃预算的整体执行分析"""
    budgets = await get_user_budgets(db, user_id)
    active = [b for b in budgets if b.is_active]

    performance: list[BudgetPerformance] = []
    for budget in active:
        spent = await calculate_spent(ledger, user_id, budget)
        performance.append(evaluate_budget(budget, spent))

    return summarize_performance(len(budgets), active, performance)
