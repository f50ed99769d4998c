"""HTTP Caching — verifies ETag tagging and conditional GETs.

Invariants:
    - Successful GETs carry a weak ETag
    - A matching If-None-Match answers 304 with no body
    - A changed resource produces a different tag
    - Non-GET responses are never tagged
"""

from expense_tracker.api.caching import compute_etag, etag_matches


def test_etag_matches_weak_and_strong_forms():
    etag = compute_etag(b"body")
    assert etag.startswith('W/"')
    assert etag_matches(etag, etag)
    assert etag_matches(etag.removeprefix("W/"), etag)
    assert etag_matches('"other", ' + etag, etag)
    assert etag_matches("*", etag)
    assert not etag_matches('"other"', etag)
    assert not etag_matches(None, etag)


async def test_get_carries_etag(client, seed_groups):
    await seed_groups(1)
    res = await client.get("/api/expensegroups/1")
    assert res.headers["ETag"].startswith('W/"')


async def test_conditional_get_returns_304(client, seed_groups):
    await seed_groups(1)
    first = await client.get("/api/expensegroups/1")
    res = await client.get(
        "/api/expensegroups/1", headers={"If-None-Match": first.headers["ETag"]},
    )
    assert res.status_code == 304
    assert res.content == b""
    assert res.headers["ETag"] == first.headers["ETag"]


async def test_modified_resource_changes_etag(client, seed_groups):
    await seed_groups(1)
    first = await client.get("/api/expensegroups/1")
    await client.patch("/api/expensegroups/1", json=[
        {"op": "replace", "path": "/title", "value": "Changed"},
    ])
    res = await client.get(
        "/api/expensegroups/1", headers={"If-None-Match": first.headers["ETag"]},
    )
    assert res.status_code == 200
    assert res.headers["ETag"] != first.headers["ETag"]


async def test_listing_keeps_pagination_header(client, seed_groups):
    await seed_groups(2)
    res = await client.get("/api/expensegroups")
    assert "X-Pagination" in res.headers
    assert "ETag" in res.headers


async def test_post_is_not_tagged(client):
    res = await client.post("/api/expensegroups", json={"title": "Trip"})
    assert res.status_code == 201
    assert "ETag" not in res.headers
