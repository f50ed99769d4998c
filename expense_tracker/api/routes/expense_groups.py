"""Expense Group Routes — CRUD, field shaping, JSON patch and paged listings.

Invariants:
    - Listings always carry an X-Pagination header (JSON PaginationMetadata)
    - Navigation links keep the caller's other query parameters (fields, sort, filters)
    - POST answers 201 with a Location header pointing at the new resource
    - Routes hold no business rules: validation, shaping and patching live in
      ExpenseGroupService and the core modules it composes
"""

from fastapi import APIRouter, Depends, Query, Request, Response, status

from expense_tracker.api.dependencies import (
    current_user_id, get_expense_group_service, page_size_param,
)
from expense_tracker.core.domain_types import ExpenseGroupId
from expense_tracker.core.pagination import LinkBuilder
from expense_tracker.schemas.expense_group import (
    ExpenseGroupCreate, ExpenseGroupReplace, PatchOperationIn,
)
from expense_tracker.services.expense_group_service import ExpenseGroupService

router = APIRouter(prefix="/api/expensegroups", tags=["expense-groups"])

PAGINATION_HEADER = "X-Pagination"


def _link_builder(request: Request) -> LinkBuilder:
    def link_for(page: int, page_size: int) -> str:
        return str(request.url.include_query_params(page=page, pageSize=page_size))
    return link_for


@router.get("")
async def list_expense_groups(
    request: Request,
    response: Response,
    fields: str | None = Query(None),
    sort: str | None = Query(None),
    status_filter: str | None = Query(None, alias="status"),
    user_id: str | None = Query(None, alias="userId"),
    page: int = Query(1),
    page_size: int | None = Depends(page_size_param),
    service: ExpenseGroupService = Depends(get_expense_group_service),
):
    """List expense groups: filter, sort, page, then shape."""
    result = await service.list_groups(
        fields=fields, sort=sort, status=status_filter, user_id=user_id,
        page=page, page_size=page_size, link_for=_link_builder(request),
    )
    response.headers[PAGINATION_HEADER] = result.metadata.to_header()
    return result.items


@router.get("/{group_id}")
async def get_expense_group(
    group_id: int,
    fields: str | None = Query(None),
    service: ExpenseGroupService = Depends(get_expense_group_service),
):
    return await service.get_group(ExpenseGroupId(group_id), fields)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_expense_group(
    body: ExpenseGroupCreate,
    request: Request,
    response: Response,
    user_id: str = Depends(current_user_id),
    service: ExpenseGroupService = Depends(get_expense_group_service),
):
    """Create a new expense group owned by the caller. Status starts Open."""
    created = await service.create_group(body, user_id)
    response.headers["Location"] = str(
        request.url_for("get_expense_group", group_id=created["id"]),
    )
    return created


@router.put("/{group_id}")
async def replace_expense_group(
    group_id: int,
    body: ExpenseGroupReplace,
    service: ExpenseGroupService = Depends(get_expense_group_service),
):
    return await service.replace_group(ExpenseGroupId(group_id), body)


@router.patch("/{group_id}")
async def patch_expense_group(
    group_id: int,
    operations: list[PatchOperationIn],
    service: ExpenseGroupService = Depends(get_expense_group_service),
):
    """Apply a JSON patch document. All operations succeed or nothing is stored."""
    return await service.patch_group(
        ExpenseGroupId(group_id), [op.to_raw() for op in operations],
    )


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense_group(
    group_id: int,
    service: ExpenseGroupService = Depends(get_expense_group_service),
) -> Response:
    await service.delete_group(ExpenseGroupId(group_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{group_id}/expenses")
async def list_group_expenses(
    group_id: int,
    request: Request,
    response: Response,
    fields: str | None = Query(None),
    sort: str | None = Query(None),
    page: int = Query(1),
    page_size: int | None = Depends(page_size_param),
    service: ExpenseGroupService = Depends(get_expense_group_service),
):
    """List one group's expenses with the same shaping and paging rules."""
    result = await service.list_expenses(
        ExpenseGroupId(group_id), fields=fields, sort=sort,
        page=page, page_size=page_size, link_for=_link_builder(request),
    )
    response.headers[PAGINATION_HEADER] = result.metadata.to_header()
    return result.items
