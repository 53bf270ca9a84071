from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.base import ExpenseLedger
from app.database import get_db
from app.models.user import User
from app.schemas.budget import (
    BudgetCreate,
    BudgetUpdate,
    BudgetResponse,
    BudgetPerformance,
    BudgetAlert,
    BudgetAnalysis,
)
from app.schemas.common import ErrorResponse, MessageResponse
from app.services.budget_service import (
    create_budget,
    get_user_budgets,
    get_budget,
    update_budget,
    delete_budget,
)
from app.services.budget_performance_service import (
    get_budget_analysis,
    generate_alerts,
    get_budget_performance,
)
from app.utils.deps import get_current_user, get_ledger

router = APIRouter(prefix="/budgets", tags=["预算"])

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "预算不存在"}}


# ───── 预算列表 ─────

@router.get("", response_model=list[BudgetResponse], summary="预算列表")
async def list_budgets(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """当前用户的全部预算，最新创建的在前"""
    return await get_user_budgets(db, user.id)


# ───── 新建预算 ─────

@router.post(
    "",
    response_model=BudgetResponse,
    status_code=201,
    summary="新建预算",
    responses={400: {"model": ErrorResponse}},
)
async def create_budget_endpoint(
    body: BudgetCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await create_budget(db, user.id, body)


# ───── 整体分析 ─────

@router.get("/analysis", response_model=BudgetAnalysis, summary="预算整体分析")
async def budget_analysis(
    db: AsyncSession = Depends(get_db),
    ledger: ExpenseLedger = Depends(get_ledger),
    user: User = Depends(get_current_user),
):
    return await get_budget_analysis(db, ledger, user.id)


# ───── 预算提醒 ─────

@router.get("/alerts", response_model=list[BudgetAlert], summary="预算提醒")
async def budget_alerts(
    db: AsyncSession = Depends(get_db),
    ledger: ExpenseLedger = Depends(get_ledger),
    user: User = Depends(get_current_user),
):
    return await generate_alerts(db, ledger, user.id)


# ───── 预算详情 ─────

@router.get("/{budget_id}", response_model=BudgetResponse, summary="预算详情", responses=_NOT_FOUND)
async def get_budget_endpoint(
    budget_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await get_budget(db, budget_id, user.id)


@router.get(
    "/{budget_id}/performance",
    response_model=BudgetPerformance,
    summary="单个预算执行情况",
    responses=_NOT_FOUND,
)
async def budget_performance(
    budget_id: str,
    db: AsyncSession = Depends(get_db),
    ledger: ExpenseLedger = Depends(get_ledger),
    user: User = Depends(get_current_user),
):
    return await get_budget_performance(db, ledger, budget_id, user.id)


# ───── 更新预算 ─────

@router.put("/{budget_id}", response_model=BudgetResponse, summary="更新预算", responses=_NOT_FOUND)
async def update_budget_endpoint(
    budget_id: str,
    body: BudgetUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await update_budget(db, budget_id, user.id, body)


# ───── 删除预算 ─────

@router.delete("/{budget_id}", response_model=MessageResponse, summary="删除预算")
async def delete_budget_endpoint(
    budget_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """幂等删除：预算不存在时同样返回成功"""
    await delete_budget(db, budget_id, user.id)
    return MessageResponse(message="预算已删除")
