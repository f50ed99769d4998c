"""Initial schema — expense_groups and expenses.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "expense_groups",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(500), nullable=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("expense_group_status_id", sa.Integer, nullable=False, server_default="1"),
        sa.CheckConstraint(
            "expense_group_status_id IN (1, 2, 3)", name="ck_expense_groups_status",
        ),
    )
    op.create_index("ix_expense_groups_user_id", "expense_groups", ["user_id"])
    op.create_index(
        "ix_expense_groups_expense_group_status_id", "expense_groups", ["expense_group_status_id"],
    )

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "expense_group_id", sa.Integer,
            sa.ForeignKey("expense_groups.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("description", sa.String(500), nullable=False, server_default=""),
        sa.Column("date", sa.Date, nullable=True),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False, server_default="0"),
    )
    op.create_index("ix_expenses_expense_group_id", "expenses", ["expense_group_id"])


def downgrade() -> None:
    op.drop_index("ix_expenses_expense_group_id", table_name="expenses")
    op.drop_table("expenses")
    op.drop_index("ix_expense_groups_expense_group_status_id", table_name="expense_groups")
    op.drop_index("ix_expense_groups_user_id", table_name="expense_groups")
    op.drop_table("expense_groups")
