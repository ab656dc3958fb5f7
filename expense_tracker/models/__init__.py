from .user import User
from .category import Category
from .expense import Expense
from .tag import Tag, ExpenseTag

__all__ = [
    "User",
    "Category",
    "Expense",
    "Tag",
    "ExpenseTag"
]
