"""
Pagination Test Suite.

Covers cursor handling, termination, early exit and missing connections.
"""

import pytest

from miners.errors import NotFoundError
from miners.pagination import PaginatedCollector, connection_at, dig

PATH = ("data", "repository", "pullRequests")
QUERY = "query($cursor: String) { ... }"


@pytest.mark.asyncio
@pytest.mark.parametrize("page_count", [1, 2, 5])
async def test_collect_all_concatenates_pages_in_order(page_count, scripted_source, page):
    """Test that all pages up to the last one are concatenated."""

    def handler(query, variables):
        index = 0 if variables["cursor"] is None else int(variables["cursor"])
        return page(
            PATH,
            [{"id": f"{index}-a"}, {"id": f"{index}-b"}],
            has_next=index + 1 < page_count,
            cursor=str(index + 1),
        )

    source = scripted_source(handler)
    items = await PaginatedCollector(source).collect_all(
        QUERY, {"owner": "o"}, connection_at(*PATH)
    )

    assert [item["id"] for item in items] == [
        f"{i}-{suffix}" for i in range(page_count) for suffix in "ab"
    ]
    assert len(source.calls) == page_count
    assert [variables["cursor"] for _, variables in source.calls] == [None] + [
        str(i) for i in range(1, page_count)
    ]
    assert all(variables["owner"] == "o" for _, variables in source.calls)


@pytest.mark.asyncio
async def test_collect_all_keeps_duplicates(scripted_source, page):
    """Test that items are neither deduplicated nor reordered."""
    pages = {
        None: page(PATH, [{"id": 2}, {"id": 1}], has_next=True, cursor="c1"),
        "c1": page(PATH, [{"id": 1}], has_next=False, cursor="c2"),
    }
    source = scripted_source(lambda q, v: pages[v["cursor"]])

    items = await PaginatedCollector(source).collect_all(QUERY, {}, connection_at(*PATH))

    assert items == [{"id": 2}, {"id": 1}, {"id": 1}]


@pytest.mark.asyncio
async def test_collect_all_stops_early(scripted_source, page):
    """Test that stop_when ends pagination even when more pages exist."""
    pages = {
        None: page(PATH, [{"n": 10}, {"n": 9}], has_next=True, cursor="c1"),
        "c1": page(PATH, [{"n": 8}, {"n": 3}], has_next=True, cursor="c2"),
        "c2": page(PATH, [{"n": 2}], has_next=False, cursor="c3"),
    }
    source = scripted_source(lambda q, v: pages[v["cursor"]])

    items = await PaginatedCollector(source).collect_all(
        QUERY, {}, connection_at(*PATH), stop_when=lambda nodes: nodes[-1]["n"] < 5
    )

    assert [item["n"] for item in items] == [10, 9, 8, 3]
    assert len(source.calls) == 2


@pytest.mark.asyncio
async def test_collect_all_handles_empty_page(scripted_source, page):
    source = scripted_source(lambda q, v: page(PATH, [], has_next=False))

    items = await PaginatedCollector(source).collect_all(
        QUERY, {}, connection_at(*PATH), stop_when=lambda nodes: True
    )

    assert items == []


@pytest.mark.asyncio
async def test_collect_all_raises_when_connection_missing(scripted_source):
    """Test that a null repository raises NotFoundError."""
    source = scripted_source(lambda q, v: {"data": {"repository": None}})

    with pytest.raises(NotFoundError, match="data.repository"):
        await PaginatedCollector(source).collect_all(QUERY, {}, connection_at(*PATH))


def test_dig_walks_nested_objects():
    body = {"data": {"user": {"id": "U_1"}}}

    assert dig(body, "data", "user", "id") == "U_1"
    with pytest.raises(NotFoundError):
        dig(body, "data", "organization", "id")
