"""每日预算提醒定时任务"""

import logging

from sqlalchemy import select

from app.adapters.sql_ledger import SqlExpenseLedger
from app.database import AsyncSessionLocal
from app.models.budget import Budget
from app.models.user import User
from app.schemas.budget import BudgetAlert
from app.services.budget_performance_service import generate_alerts
from app.services.budget_service import BudgetError

logger = logging.getLogger(__name__)


async def run_daily_budget_alerts() -> dict[str, list[BudgetAlert]]:
    """
    每日晚间执行
    为开启了预算提醒、且至少有一个活跃预算的用户生成提醒
    返回 {user_id: alerts}，只包含有提醒的用户
    """
    logger.info("[预算提醒] 开始执行")

    async with AsyncSessionLocal() as db:
        result = await db.execute(
            select(Budget.user_id)
            .join(User, Budget.user_id == User.id)
            .where(
                Budget.is_active == True,
                User.budget_alerts_enabled == True,
            )
            .distinct()
        )
        user_ids = [row[0] for row in result.all()]

        ledger = SqlExpenseLedger(db)
        alerts_by_user: dict[str, list[BudgetAlert]] = {}
        for user_id in user_ids:
            try:
                alerts = await generate_alerts(db, ledger, user_id)
            except BudgetError as e:
                logger.error(f"[预算提醒] 用户 {user_id} 失败: {e.detail}")
                continue

            for alert in alerts:
                logger.info(
                    f"[预算提醒] 用户 {user_id} {alert.alert_level}: {alert.message}"
                )
            if alerts:
                alerts_by_user[user_id] = alerts

        total = sum(len(a) for a in alerts_by_user.values())
        logger.info(f"[预算提醒] 完成，共 {len(user_ids)} 个用户，生成 {total} 条提醒")
        return alerts_by_user
