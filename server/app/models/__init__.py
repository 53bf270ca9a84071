from app.models.user import User
from app.models.budget import Budget
from app.models.expense import Expense

__all__ = [
    "User",
    "Budget",
    "Expense",
]
