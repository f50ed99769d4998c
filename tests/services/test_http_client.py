"""Expense Tracker Client — verifies the async client against the in-process API.

Invariants:
    - Listings return PagedResult with X-Pagination parsed into metadata
    - update_expense_group sends a replace patch for title and description
    - Non-2xx answers raise UpstreamAPIError with status and error code
    - api_version adds the vendor media type to Accept
"""

import httpx
import pytest
from httpx import ASGITransport

from expense_tracker.client.http_client import (
    ClientConfig, ExpenseTrackerClient, parse_paging_info,
)
from expense_tracker.config import Settings
from expense_tracker.core.errors import UpstreamAPIError
from expense_tracker.main import app


@pytest.fixture
async def api(client):
    """ExpenseTrackerClient wired to the app (client fixture provides the test DB)."""
    config = ClientConfig(base_url="http://test")
    async with ExpenseTrackerClient(config, transport=ASGITransport(app=app)) as c:
        yield c


def test_parse_paging_info():
    paging = parse_paging_info({"X-Pagination": (
        '{"currentPage": 2, "pageSize": 10, "totalCount": 23, "totalPages": 3,'
        ' "previousPageLink": "p1", "nextPageLink": "p3"}'
    )})
    assert (paging.current_page, paging.total_pages, paging.next_page_link) == (2, 3, "p3")


def test_parse_paging_info_missing_or_malformed():
    assert parse_paging_info({}) is None
    assert parse_paging_info({"X-Pagination": "not json"}) is None
    assert parse_paging_info({"X-Pagination": '{"currentPage": 1}'}) is None


def test_config_from_settings():
    config = ClientConfig.from_settings(Settings(api_base_url="http://api:1/", api_version="2"))
    assert config.base_url == "http://api:1/"
    assert config.accept.startswith("application/vnd.expensetrackerapi.v2+json")


def test_default_accept_is_json():
    assert ClientConfig(base_url="http://x").accept == "application/json"


async def test_list_statuses(api):
    statuses = await api.list_statuses()
    assert [s["description"] for s in statuses] == ["Open", "Confirmed", "Processed"]


async def test_list_expense_groups_returns_paging(api, seed_groups):
    await seed_groups(12)
    result = await api.list_expense_groups(page=2, page_size=5, sort="-id")
    assert [g["id"] for g in result.items] == [7, 6, 5, 4, 3]
    assert result.paging.total_count == 12
    assert result.paging.total_pages == 3


async def test_create_update_get_delete(api):
    created = await api.create_expense_group("Trip", "Berlin")
    group_id = created["id"]

    updated = await api.update_expense_group(group_id, "Trip 2", None)
    assert (updated["title"], updated["description"]) == ("Trip 2", None)

    fetched = await api.get_expense_group(group_id, fields="title")
    assert fetched == {"id": group_id, "title": "Trip 2"}

    await api.delete_expense_group(group_id)
    with pytest.raises(UpstreamAPIError) as exc:
        await api.get_expense_group(group_id)
    assert exc.value.status_code == 404
    assert exc.value.error_code == "RESOURCE_NOT_FOUND"


async def test_bad_request_raises_upstream_error(api):
    with pytest.raises(UpstreamAPIError) as exc:
        await api.list_expense_groups(sort="nonexistentField")
    assert exc.value.status_code == 400
    assert exc.value.error_code == "INVALID_SORT_FIELD"


async def test_versioned_accept_header_is_sent():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["accept"] = request.headers["accept"]
        return httpx.Response(200, json=[])

    config = ClientConfig(base_url="http://api", api_version="1")
    async with ExpenseTrackerClient(config, transport=httpx.MockTransport(handler)) as api:
        await api.list_statuses()
    assert seen["accept"].startswith("application/vnd.expensetrackerapi.v1+json")


async def test_transport_failure_raises_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    config = ClientConfig(base_url="http://api")
    async with ExpenseTrackerClient(config, transport=httpx.MockTransport(handler)) as api:
        with pytest.raises(UpstreamAPIError) as exc:
            await api.list_statuses()
    assert exc.value.status_code == 503
