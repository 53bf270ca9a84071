import uuid
from datetime import datetime, date
from decimal import Decimal

from sqlalchemy import (
    String, ForeignKey, Numeric, Boolean, DateTime, Date, Integer,
    Enum as SAEnum, CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Budget(Base):
    __tablename__ = "budgets"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_budgets_amount_positive"),
        CheckConstraint(
            "alert_threshold >= 1 AND alert_threshold <= 100",
            name="ck_budgets_alert_threshold_range",
        ),
        CheckConstraint("start_date <= end_date", name="ck_budgets_date_range"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    # NULL = 全部分类
    category: Mapped[str | None] = mapped_column(String(100))
    # 仅作展示分组，不约束日期区间
    period: Mapped[str] = mapped_column(
        SAEnum("weekly", "monthly", "yearly", name="budget_period"),
        default="monthly",
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    # 百分比整数，如 80 表示 80%
    alert_threshold: Mapped[int] = mapped_column(Integer, default=80)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # 关联
    user = relationship("User", back_populates="budgets")
