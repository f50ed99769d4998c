"""ExpenseGroup ORM — aggregate root owning an ordered list of expenses.

Invariants:
    - id is an autoincrement integer primary key, never reassigned
    - expense_group_status_id is 1 (open), 2 (confirmed) or 3 (processed)
    - Deleting a group deletes its expenses (ORM and database cascade)

Design Decisions:
    - Status stored as integer id (no lookup table): the enum is closed
    - expenses relationship is lazy by default; callers eager-load with selectinload
      only when the collection was requested
"""

from sqlalchemy import CheckConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from expense_tracker.core.domain_types import ExpenseGroupStatus
from expense_tracker.db.base import Base


class ExpenseGroup(Base):
    """Expense group — a titled batch of expenses submitted by one user."""
    __tablename__ = "expense_groups"
    __table_args__ = (
        CheckConstraint(
            "expense_group_status_id IN (1, 2, 3)",
            name="ck_expense_groups_status",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str | None] = mapped_column(String(500), nullable=True, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    expense_group_status_id: Mapped[int] = mapped_column(
        Integer, nullable=False, default=int(ExpenseGroupStatus.OPEN), index=True,
    )

    # Relationships
    expenses: Mapped[list["Expense"]] = relationship(
        "Expense", back_populates="expense_group",
        cascade="all, delete-orphan", order_by="Expense.id",
    )
