"""Pagination & Sort Planner — page arithmetic, sort parsing and navigation metadata.

Invariants:
    - page >= 1, otherwise InvalidPageError; page_size >= 1, otherwise InvalidPageError
    - page_size larger than max_page_size is clamped, never rejected
    - Unknown or unsortable sort fields raise InvalidSortFieldError (never ignored)
    - total_pages = ceil(total_count / page_size)
    - A page past the end yields an empty slice, not an error
    - previous link only when page > 1; next link only when page < total_pages

Design Decisions:
    - Planner is store-agnostic: PageRequest carries offset/limit/sort keys, the SQL
      store turns them into ORDER BY/OFFSET/LIMIT, paginate() applies them in memory
    - Links are produced by a caller-supplied callable so core never builds URLs
"""

import json
import math
from dataclasses import dataclass
from typing import Any, Callable, Generic, Sequence, TypeVar

from expense_tracker.core.errors import InvalidPageError, InvalidSortFieldError
from expense_tracker.core.field_registry import EntitySchema, FieldSpec

T = TypeVar("T")

LinkBuilder = Callable[[int, int], str]  # (page, page_size) -> url


@dataclass(frozen=True, eq=False)
class SortKey:
    """One component of a multi-key sort."""
    field: FieldSpec
    ascending: bool = True


@dataclass(frozen=True, eq=False)
class PageRequest:
    """A validated request for one page of a sorted listing."""
    page: int
    page_size: int
    sort: tuple[SortKey, ...] = ()

    @property
    def offset(self) -> int:
        return self.page_size * (self.page - 1)

    @property
    def limit(self) -> int:
        return self.page_size


@dataclass(frozen=True)
class PaginationMetadata:
    """Navigation data surfaced in the X-Pagination header."""
    current_page: int
    page_size: int
    total_count: int
    total_pages: int
    previous_page_link: str = ""
    next_page_link: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentPage": self.current_page,
            "pageSize": self.page_size,
            "totalCount": self.total_count,
            "totalPages": self.total_pages,
            "previousPageLink": self.previous_page_link,
            "nextPageLink": self.next_page_link,
        }

    def to_header(self) -> str:
        return json.dumps(self.to_dict())


@dataclass(frozen=True)
class Page(Generic[T]):
    """A bounded slice plus its metadata."""
    items: list[T]
    metadata: PaginationMetadata


def parse_sort(sort: str | None, schema: EntitySchema) -> tuple[SortKey, ...]:
    """Parse "field1,-field2" into sort keys; empty means id ascending."""
    keys = []
    for token in (sort or "").split(","):
        token = token.strip()
        if not token:
            continue
        ascending = not token.startswith("-")
        name = token.lstrip("-").strip()
        spec = schema.field(name)
        if spec is None or not spec.sortable:
            raise InvalidSortFieldError(name)
        keys.append(SortKey(spec, ascending))
    if not keys:
        keys.append(SortKey(schema.id_field, True))
    return tuple(keys)


def build_page_request(
    page: int,
    page_size: int | None,
    sort: str | None,
    max_page_size: int,
    schema: EntitySchema,
) -> PageRequest:
    """Validate paging input, clamp page_size and parse the sort expression."""
    if page < 1:
        raise InvalidPageError(f"page must be 1 or greater, got {page}")
    if page_size is None:
        page_size = max_page_size
    if page_size < 1:
        raise InvalidPageError(f"pageSize must be 1 or greater, got {page_size}")
    return PageRequest(
        page=page,
        page_size=min(page_size, max_page_size),
        sort=parse_sort(sort, schema),
    )


def build_metadata(
    total_count: int, request: PageRequest, link_for: LinkBuilder | None = None,
) -> PaginationMetadata:
    total_pages = math.ceil(total_count / request.page_size)
    previous_link = next_link = ""
    if link_for is not None:
        if request.page > 1:
            previous_link = link_for(request.page - 1, request.page_size)
        if request.page < total_pages:
            next_link = link_for(request.page + 1, request.page_size)
    return PaginationMetadata(
        current_page=request.page,
        page_size=request.page_size,
        total_count=total_count,
        total_pages=total_pages,
        previous_page_link=previous_link,
        next_page_link=next_link,
    )


def sort_items(items: Sequence[T], keys: Sequence[SortKey]) -> list[T]:
    """Stable multi-key sort, primary key first. None sorts after values when ascending."""
    ordered = list(items)
    # Least significant key first; list.sort is stable.
    for key in reversed(keys):
        ordered.sort(key=_sort_value(key.field), reverse=not key.ascending)
    return ordered


def _sort_value(spec: FieldSpec) -> Callable[[Any], tuple]:
    def value_of(item: Any) -> tuple:
        value = spec.read(item)
        return (True, 0) if value is None else (False, value)
    return value_of


def paginate(
    items: Sequence[T], request: PageRequest, link_for: LinkBuilder | None = None,
) -> Page[T]:
    """Sort, count and slice an already-filtered in-memory sequence."""
    ordered = sort_items(items, request.sort)
    window = ordered[request.offset:request.offset + request.limit]
    return Page(items=window, metadata=build_metadata(len(ordered), request, link_for))
