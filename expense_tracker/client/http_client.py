"""Expense Tracker HTTP Client — async httpx wrapper with paging-header parsing and error mapping.

Invariants:
    - Every non-2xx response raises UpstreamAPIError carrying the status and error code
    - Transport failures (connect, timeout) raise UpstreamAPIError with status 503
    - Listings return PagedResult; paging is None when the X-Pagination header is absent
    - With api_version set, Accept asks for the versioned vendor media type

Design Decisions:
    - ClientConfig is built explicitly and injected, never read from globals
    - Optional transport argument: tests drive the client against the ASGI app in-process
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from expense_tracker.config import Settings
from expense_tracker.core.errors import UpstreamAPIError
from expense_tracker.core.pagination import PaginationMetadata

logger = logging.getLogger(__name__)

PAGINATION_HEADER = "X-Pagination"
VENDOR_MEDIA_TYPE = "application/vnd.expensetrackerapi.v{version}+json"
_TRANSPORT_FAILURE_STATUS = 503


@dataclass(frozen=True)
class ClientConfig:
    base_url: str
    api_version: str | None = None
    timeout_seconds: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClientConfig":
        return cls(
            base_url=settings.api_base_url,
            api_version=settings.api_version,
            timeout_seconds=settings.client_timeout_seconds,
        )

    @property
    def accept(self) -> str:
        if self.api_version:
            return f"{VENDOR_MEDIA_TYPE.format(version=self.api_version)}, application/json"
        return "application/json"


@dataclass
class PagedResult:
    items: list[dict[str, Any]] = field(default_factory=list)
    paging: PaginationMetadata | None = None


def parse_paging_info(headers: Mapping[str, str]) -> PaginationMetadata | None:
    """Read the X-Pagination header; None when absent or unreadable."""
    raw = headers.get(PAGINATION_HEADER)
    if not raw:
        return None
    try:
        data = json.loads(raw)
        return PaginationMetadata(
            current_page=int(data["currentPage"]),
            page_size=int(data["pageSize"]),
            total_count=int(data["totalCount"]),
            total_pages=int(data["totalPages"]),
            previous_page_link=data.get("previousPageLink") or "",
            next_page_link=data.get("nextPageLink") or "",
        )
    except (ValueError, KeyError, TypeError) as e:
        logger.warning(f"Ignoring malformed {PAGINATION_HEADER} header: {e}")
        return None


class ExpenseTrackerClient:
    """Async client for the Expense Tracker API. Use as an async context manager."""

    def __init__(
        self, config: ClientConfig, transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            headers={"Accept": config.accept},
            transport=transport,
        )

    async def __aenter__(self) -> "ExpenseTrackerClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def list_statuses(self) -> list[dict[str, Any]]:
        response = await self._request("GET", "/api/expensegroupstatusses")
        return response.json()

    async def list_expense_groups(
        self,
        page: int = 1,
        page_size: int | None = None,
        sort: str | None = None,
        fields: str | None = None,
        status: str | None = None,
        user_id: str | None = None,
    ) -> PagedResult:
        params = _without_none({
            "page": page, "pageSize": page_size, "sort": sort,
            "fields": fields, "status": status, "userId": user_id,
        })
        response = await self._request("GET", "/api/expensegroups", params=params)
        return PagedResult(items=response.json(), paging=parse_paging_info(response.headers))

    async def get_expense_group(
        self, group_id: int, fields: str | None = None,
    ) -> dict[str, Any]:
        response = await self._request(
            "GET", f"/api/expensegroups/{group_id}", params=_without_none({"fields": fields}),
        )
        return response.json()

    async def create_expense_group(
        self, title: str, description: str | None = None,
        expenses: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        body = {"title": title, "description": description, "expenses": expenses or []}
        response = await self._request("POST", "/api/expensegroups", json=body)
        return response.json()

    async def update_expense_group(
        self, group_id: int, title: str, description: str | None,
    ) -> dict[str, Any]:
        """Replace title and description through a JSON patch."""
        operations = [
            {"op": "replace", "path": "/title", "value": title},
            {"op": "replace", "path": "/description", "value": description},
        ]
        response = await self._request(
            "PATCH", f"/api/expensegroups/{group_id}",
            json=operations, headers={"Content-Type": "application/json-patch+json"},
        )
        return response.json()

    async def delete_expense_group(self, group_id: int) -> None:
        await self._request("DELETE", f"/api/expensegroups/{group_id}")

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Expense Tracker API unreachable: {e}", extra={"method": method, "path": url})
            raise UpstreamAPIError(_TRANSPORT_FAILURE_STATUS, str(e) or type(e).__name__)

        if response.is_success:
            return response
        message, error_code = _error_details(response)
        logger.warning(
            f"Expense Tracker API returned {response.status_code}",
            extra={"method": method, "path": url, "error_code": error_code},
        )
        raise UpstreamAPIError(response.status_code, message, error_code)


def _without_none(params: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in params.items() if v is not None}


def _error_details(response: httpx.Response) -> tuple[str, str | None]:
    try:
        error = response.json().get("error", {})
    except (ValueError, AttributeError):
        return response.reason_phrase or "request failed", None
    return error.get("message", response.reason_phrase), error.get("code")
