"""Request Dependencies — per-request wiring of store, service and caller identity.

Invariants:
    - One SqlExpenseGroupRepository per request, sharing the request's AsyncSession
    - Caller identity comes from X-User-Id; absent or blank → settings.default_user_id
    - Page size reads pageSize, falling back to the lower-case pagesize older clients send
"""

from fastapi import Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from expense_tracker.config import Settings, get_settings
from expense_tracker.infrastructure.database import get_db
from expense_tracker.infrastructure.expense_group_repository import SqlExpenseGroupRepository
from expense_tracker.services.expense_group_service import ExpenseGroupService


def get_expense_group_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ExpenseGroupService:
    return ExpenseGroupService(SqlExpenseGroupRepository(db), settings)


def current_user_id(
    x_user_id: str | None = Header(None),
    settings: Settings = Depends(get_settings),
) -> str:
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()
    return settings.default_user_id


def page_size_param(
    page_size: int | None = Query(None, alias="pageSize"),
    lowercase_page_size: int | None = Query(None, alias="pagesize", include_in_schema=False),
) -> int | None:
    return page_size if page_size is not None else lowercase_page_size
