"""
Tests for cursor pagination and page flattening.
"""

import asyncio
from urllib.parse import parse_qs, urlsplit

import pytest

from sll.collectors.pagination import iter_items, iter_pages
from sll.errors import PaginationLimitError, SchemaValidationError, TransportError

from sc_fixtures import CLIENT_ID, raw_playlist_like, raw_track_like


def page_items(prefix, n):
    return [raw_track_like(f"2024-01-0{prefix}T00:00:{i:02d}Z", prefix * 100 + i) for i in range(n)]


def collect_items(sc, validator, **kwargs):
    async def go():
        pages = iter_pages(sc, validator, sc.likes_url(7), **kwargs)
        return [item async for item in iter_items(pages)]
    return asyncio.run(go())


class TestCursorPagination:
    """Following next_href until the server says there is no more."""

    def test_fetches_every_page_then_stops(self, fake_sc, validator):
        fake_sc.add_likes_pages(7, [page_items(1, 3), page_items(2, 2), page_items(3, 1)])

        items = collect_items(fake_sc, validator)

        assert [it["track"]["id"] for it in items] == [100, 101, 102, 200, 201, 300]
        assert len(fake_sc.requested) == 3

    def test_client_id_on_every_request(self, fake_sc, validator):
        fake_sc.add_likes_pages(7, [page_items(1, 1), page_items(2, 1), page_items(3, 1)])

        collect_items(fake_sc, validator)

        for url in fake_sc.requested:
            assert parse_qs(urlsplit(url).query)["client_id"] == [CLIENT_ID]
        # the cursor itself is carried over untouched
        assert parse_qs(urlsplit(fake_sc.requested[1]).query)["offset"] == ["cursor-1"]
        assert parse_qs(urlsplit(fake_sc.requested[2]).query)["offset"] == ["cursor-2"]

    def test_seed_url_carries_limit(self, fake_sc, validator):
        fake_sc.add_likes_pages(7, [page_items(1, 1)])

        collect_items(fake_sc, validator)

        assert parse_qs(urlsplit(fake_sc.requested[0]).query)["limit"] == ["100"]

    def test_stale_client_id_in_cursor_is_replaced(self, fake_sc, validator):
        next_href = "https://api-v2.soundcloud.com/users/7/likes?offset=c1&limit=100&client_id=old"
        fake_sc.add_json("/users/7/likes", {"collection": page_items(1, 1), "next_href": next_href}, limit=100)
        fake_sc.add_json("/users/7/likes", {"collection": page_items(2, 1), "next_href": None},
                         offset="c1", limit=100)

        collect_items(fake_sc, validator)

        assert parse_qs(urlsplit(fake_sc.requested[1]).query)["client_id"] == [CLIENT_ID]

    def test_empty_collection_pages_are_fine(self, fake_sc, validator):
        fake_sc.add_likes_pages(7, [[], page_items(2, 2), []])

        items = collect_items(fake_sc, validator)

        assert len(items) == 2
        assert len(fake_sc.requested) == 3

    def test_pages_are_fetched_lazily(self, fake_sc, validator):
        fake_sc.add_likes_pages(7, [page_items(1, 2), page_items(2, 2)])

        async def go():
            items = iter_items(iter_pages(fake_sc, validator, fake_sc.likes_url(7)))
            first = await items.__anext__()
            second = await items.__anext__()
            requested_before_third = len(fake_sc.requested)
            await items.aclose()
            return first, second, requested_before_third

        first, second, requested = asyncio.run(go())

        assert first["track"]["id"] == 100
        assert second["track"]["id"] == 101
        assert requested == 1

    def test_stats_count_pages(self, fake_sc, validator):
        fake_sc.add_likes_pages(7, [page_items(1, 1), page_items(2, 1)])
        stats = {}

        collect_items(fake_sc, validator, stats=stats)

        assert stats["pages_fetched"] == 2


class TestPaginationFailures:
    """Any page failure ends the sequence."""

    def test_invalid_page_aborts_without_emitting_it(self, fake_sc, validator):
        bad = page_items(2, 2)
        del bad[1]["created_at"]
        fake_sc.add_likes_pages(7, [page_items(1, 2), bad, page_items(3, 1)])
        received = []

        async def go():
            async for item in iter_items(iter_pages(fake_sc, validator, fake_sc.likes_url(7))):
                received.append(item)

        with pytest.raises(SchemaValidationError) as exc:
            asyncio.run(go())

        assert exc.value.schema_id == "likes"
        assert "created_at" in str(exc.value)
        assert [it["track"]["id"] for it in received] == [100, 101]
        assert len(fake_sc.requested) == 2

    def test_transport_error_propagates(self, fake_sc, validator):
        fake_sc.add_likes_pages(7, [page_items(1, 1), page_items(2, 1)])
        fake_sc.add_json("/users/7/likes", TransportError("503 Service Unavailable"),
                         offset="cursor-1", limit=100)

        with pytest.raises(TransportError, match="503"):
            collect_items(fake_sc, validator)

    def test_max_pages_exceeded(self, fake_sc, validator):
        fake_sc.add_likes_pages(7, [page_items(1, 1), page_items(2, 1), page_items(3, 1)])

        with pytest.raises(PaginationLimitError):
            collect_items(fake_sc, validator, max_pages=2)

        assert len(fake_sc.requested) == 2

    def test_max_pages_equal_to_page_count_is_fine(self, fake_sc, validator):
        fake_sc.add_likes_pages(7, [page_items(1, 1), page_items(2, 1)])

        items = collect_items(fake_sc, validator, max_pages=2)

        assert len(items) == 2


class TestFlattening:
    """Items keep page order and within-page order."""

    def test_mixed_kinds_keep_positions(self, fake_sc, validator):
        pages = [
            [raw_track_like("2024-02-01T00:00:00Z", 1), raw_playlist_like("2024-01-31T00:00:00Z", 50, [1, 2])],
            [raw_track_like("2024-01-30T00:00:00Z", 3)],
        ]
        fake_sc.add_likes_pages(7, pages)

        items = collect_items(fake_sc, validator)

        assert [("track" in it, "playlist" in it) for it in items] == [(True, False), (False, True), (True, False)]
