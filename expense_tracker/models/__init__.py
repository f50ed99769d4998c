"""ORM Models — SQLAlchemy declarative models for expense groups and expenses.

Invariants:
    - All models inherit from Base (db/base.py)
    - ExpenseGroup is the aggregate root; expenses are scoped by expense_group_id

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from expense_tracker.models.expense_group import ExpenseGroup  # noqa: F401
from expense_tracker.models.expense import Expense  # noqa: F401
