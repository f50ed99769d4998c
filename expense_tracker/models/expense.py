"""Expense ORM — a single dated amount inside an expense group.

Invariants:
    - Always belongs to an ExpenseGroup (expense_group_id FK, ON DELETE CASCADE)
    - amount keeps two decimal places
"""

import datetime
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from expense_tracker.db.base import Base


class Expense(Base):
    """Expense entity — one line of an expense group."""
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    expense_group_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("expense_groups.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    date: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, default=Decimal("0"),
    )

    # Relationships
    expense_group: Mapped["ExpenseGroup"] = relationship(
        "ExpenseGroup", back_populates="expenses",
    )
