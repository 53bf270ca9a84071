from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, Field, StringConstraints, field_validator, model_validator


BudgetPeriod = Literal["weekly", "monthly", "yearly"]
BudgetStatus = Literal["under", "warning", "over"]
AlertLevel = Literal["warning", "danger", "exceeded"]

BudgetName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]


def _blank_to_none(value):
    """空白分类等同于不限分类"""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


# ---- 请求 ----

class BudgetCreate(BaseModel):
    name: BudgetName = Field(..., description="预算名称")
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2, description="预算金额")
    category: str | None = Field(None, max_length=100, description="消费分类，NULL = 全部分类")
    period: BudgetPeriod = "monthly"
    # 两者都不传时按 period 取当前周期
    start_date: date | None = None
    end_date: date | None = None
    alert_threshold: int = Field(default=80, ge=1, le=100, description="预警百分比（1-100）")
    is_active: bool = True

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v):
        return _blank_to_none(v)

    @model_validator(mode="after")
    def check_dates(self):
        if (self.start_date is None) != (self.end_date is None):
            raise ValueError("start_date 与 end_date 需同时提供")
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date 不能晚于 end_date")
        return self


class BudgetUpdate(BaseModel):
    """部分更新：只应用显式传入的字段"""

    name: BudgetName | None = None
    amount: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    category: str | None = Field(None, max_length=100)
    period: BudgetPeriod | None = None
    start_date: date | None = None
    end_date: date | None = None
    alert_threshold: int | None = Field(None, ge=1, le=100)
    is_active: bool | None = None

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v):
        return _blank_to_none(v)


# ---- 响应 ----

class BudgetResponse(BaseModel):
    id: str
    user_id: str
    name: str
    amount: float
    category: str | None
    period: str
    start_date: date
    end_date: date
    alert_threshold: int
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class BudgetPerformance(BaseModel):
    budget_id: str
    name: str
    budget_amount: float
    spent: float
    remaining: float  # 可为负数（超支）
    percentage_used: float
    status: BudgetStatus


class BudgetAlert(BaseModel):
    budget_id: str
    budget_name: str
    current_spent: float
    budget_amount: float
    percentage_used: float
    alert_level: AlertLevel
    message: str


class BudgetAnalysis(BaseModel):
    total_budgets: int = 0
    active_budgets: int = 0
    total_budget_amount: float = 0
    total_spent: float = 0
    over_budget_count: int = 0
    savings: float = 0  # 可为负数（整体超支）
    budget_performance: list[BudgetPerformance] = []
