"""List Expense Groups — verifies paging, sorting, filtering and shaping over HTTP.

Invariants:
    - Every listing carries an X-Pagination header with camelCase metadata
    - pageSize above the configured maximum is clamped, never rejected
    - The lower-case pagesize spelling is honoured when pageSize is absent
    - Unknown sort fields and unknown status names answer 400
    - fields=id,title returns exactly those keys
"""

import json
from urllib.parse import parse_qs, urlparse


def _paging(res) -> dict:
    return json.loads(res.headers["X-Pagination"])


async def test_first_page_of_23_records(client, seed_groups):
    """23 records, default paging → 10 items, 3 pages, next link to page 2."""
    await seed_groups(23)
    res = await client.get("/api/expensegroups")
    assert res.status_code == 200
    assert len(res.json()) == 10
    paging = _paging(res)
    assert paging["totalCount"] == 23
    assert paging["totalPages"] == 3
    assert paging["previousPageLink"] == ""
    query = parse_qs(urlparse(paging["nextPageLink"]).query)
    assert query["page"] == ["2"]
    assert query["pageSize"] == ["10"]


async def test_last_page_is_partial(client, seed_groups):
    await seed_groups(23)
    res = await client.get("/api/expensegroups", params={"page": 3, "pageSize": 10})
    assert [g["id"] for g in res.json()] == [21, 22, 23]
    paging = _paging(res)
    assert paging["nextPageLink"] == ""
    assert "page=2" in paging["previousPageLink"]


async def test_page_past_the_end_is_empty(client, seed_groups):
    await seed_groups(3)
    res = await client.get("/api/expensegroups", params={"page": 5})
    assert res.status_code == 200
    assert res.json() == []


async def test_page_size_is_clamped(client, seed_groups):
    await seed_groups(15)
    res = await client.get("/api/expensegroups", params={"pageSize": 100})
    assert len(res.json()) == 10
    assert _paging(res)["pageSize"] == 10


async def test_lowercase_pagesize_is_accepted(client, seed_groups):
    await seed_groups(12)
    res = await client.get("/api/expensegroups", params={"pagesize": 5})
    assert len(res.json()) == 5
    assert _paging(res)["pageSize"] == 5
    assert _paging(res)["totalPages"] == 3


async def test_camel_case_page_size_wins_over_lowercase(client, seed_groups):
    await seed_groups(12)
    res = await client.get("/api/expensegroups", params={"pageSize": 3, "pagesize": 5})
    assert len(res.json()) == 3


async def test_links_keep_other_query_parameters(client, seed_groups):
    await seed_groups(12)
    res = await client.get("/api/expensegroups", params={"fields": "title", "sort": "-id"})
    query = parse_qs(urlparse(_paging(res)["nextPageLink"]).query)
    assert query["fields"] == ["title"]
    assert query["sort"] == ["-id"]


async def test_invalid_page_returns_400(client):
    res = await client.get("/api/expensegroups", params={"page": 0})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_PAGE"


async def test_unknown_sort_field_returns_400(client, seed_groups):
    await seed_groups(2)
    res = await client.get("/api/expensegroups", params={"sort": "nonexistentField"})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_SORT_FIELD"


async def test_sort_descending(client, seed_groups):
    await seed_groups(5)
    res = await client.get("/api/expensegroups", params={"sort": "-id"})
    assert [g["id"] for g in res.json()] == [5, 4, 3, 2, 1]


async def test_sort_by_status_then_id(client, seed_groups):
    await seed_groups(6)
    res = await client.get("/api/expensegroups", params={"sort": "-expenseGroupStatusId"})
    assert [g["id"] for g in res.json()] == [3, 6, 2, 5, 1, 4]


async def test_filter_by_status(client, seed_groups):
    await seed_groups(23)
    res = await client.get("/api/expensegroups", params={"status": "Confirmed"})
    assert _paging(res)["totalCount"] == 8
    assert {g["expenseGroupStatusId"] for g in res.json()} == {2}


async def test_filter_by_owner(client, seed_groups):
    await seed_groups(23)
    res = await client.get("/api/expensegroups", params={"userId": "bob"})
    assert _paging(res)["totalCount"] == 11
    assert {g["userId"] for g in res.json()} == {"bob"}


async def test_unknown_status_returns_400(client):
    res = await client.get("/api/expensegroups", params={"status": "archived"})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_fields_shape_every_item(client, seed_groups):
    await seed_groups(3)
    res = await client.get("/api/expensegroups", params={"fields": "id,title"})
    assert all(set(g) == {"id", "title"} for g in res.json())


async def test_fields_with_expenses_loads_children(client, seed_groups):
    await seed_groups(2)
    res = await client.get("/api/expensegroups", params={"fields": "title,expenses"})
    first = res.json()[0]
    assert set(first) == {"id", "title", "expenses"}
    assert [e["description"] for e in first["expenses"]] == ["Taxi 1", "Hotel 1"]
    assert first["expenses"][0]["amount"] == 12.5


async def test_full_representation_without_fields(client, seed_groups):
    await seed_groups(1)
    res = await client.get("/api/expensegroups")
    assert res.json()[0] == {
        "id": 1, "userId": "alice", "title": "Group 01", "description": "Description 1",
        "expenseGroupStatusId": 1, "expenses": None,
    }
