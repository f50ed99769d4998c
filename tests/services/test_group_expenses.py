"""Group Expenses Listing — verifies paging, sorting and shaping of one group's expenses.

Invariants:
    - Same paging rules and X-Pagination header as the group listing
    - Sorting uses the expense fields; unknown names answer 400
    - Unknown group answers 404
"""

import json


async def test_lists_expenses_with_pagination_header(client, seed_groups):
    await seed_groups(1)
    res = await client.get("/api/expensegroups/1/expenses")
    assert res.status_code == 200
    assert [e["description"] for e in res.json()] == ["Taxi 1", "Hotel 1"]
    paging = json.loads(res.headers["X-Pagination"])
    assert (paging["totalCount"], paging["totalPages"]) == (2, 1)


async def test_sort_by_amount_descending(client, seed_groups):
    await seed_groups(1)
    res = await client.get("/api/expensegroups/1/expenses", params={"sort": "-amount"})
    assert [e["description"] for e in res.json()] == ["Hotel 1", "Taxi 1"]


async def test_second_page_of_one(client, seed_groups):
    await seed_groups(1)
    res = await client.get("/api/expensegroups/1/expenses", params={"page": 2, "pageSize": 1})
    assert [e["description"] for e in res.json()] == ["Hotel 1"]
    paging = json.loads(res.headers["X-Pagination"])
    assert paging["nextPageLink"] == ""
    assert "page=1" in paging["previousPageLink"]


async def test_lowercase_pagesize_pages_expenses(client, seed_groups):
    await seed_groups(1)
    res = await client.get("/api/expensegroups/1/expenses", params={"pagesize": 1})
    assert [e["description"] for e in res.json()] == ["Taxi 1"]
    assert json.loads(res.headers["X-Pagination"])["totalPages"] == 2



async def test_fields_shape_expenses(client, seed_groups):
    await seed_groups(1)
    res = await client.get("/api/expensegroups/1/expenses", params={"fields": "amount"})
    assert res.json() == [{"id": 1, "amount": 12.5}, {"id": 2, "amount": 90.0}]


async def test_unknown_sort_field_returns_400(client, seed_groups):
    await seed_groups(1)
    res = await client.get("/api/expensegroups/1/expenses", params={"sort": "title"})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_SORT_FIELD"


async def test_unknown_group_returns_404(client):
    res = await client.get("/api/expensegroups/3/expenses")
    assert res.status_code == 404
