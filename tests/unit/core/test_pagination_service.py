import asyncio

import pytest

from pexcli.core.services.pagination_service import PaginationService, parse_next_link
from pexcli.domain.errors import HttpError

BASE = "https://api.test/v1/curated"


class FakePages:
    """Serves canned pages keyed by URL and records each fetch."""

    def __init__(self, pages):
        self.pages = pages
        self.requests = []

    async def __call__(self, url, params):
        self.requests.append((url, params))
        page = self.pages[url]
        if isinstance(page, Exception):
            raise page
        return page


def two_pages():
    return {
        BASE: {
            "page": 1,
            "per_page": 2,
            "total_results": 4,
            "photos": [{"id": 1}, {"id": 2}],
            "next_page": f"{BASE}?page=2&per_page=2",
        },
        f"{BASE}?page=2&per_page=2": {
            "page": 2,
            "per_page": 2,
            "total_results": 4,
            "photos": [{"id": 3}, {"id": 4}],
            "prev_page": f"{BASE}?page=1&per_page=2",
        },
    }


def aggregate(fetch, **kwargs):
    service = PaginationService(fetch)
    return asyncio.run(service.aggregate(BASE, {"per_page": 2}, [("photos", "photos")], **kwargs))


def test_follows_links_until_exhausted():
    fetch = FakePages(two_pages())
    result = aggregate(fetch)
    assert [p["id"] for p in result["photos"]] == [1, 2, 3, 4]
    assert fetch.requests == [(BASE, {"per_page": 2}), (f"{BASE}?page=2&per_page=2", None)]


def test_limit_truncates_within_a_page():
    fetch = FakePages(two_pages())
    result = aggregate(fetch, limit=3)
    assert [p["id"] for p in result["photos"]] == [1, 2, 3]
    assert len(fetch.requests) == 2


def test_limit_reached_on_first_page_stops_early():
    fetch = FakePages(two_pages())
    result = aggregate(fetch, limit=2)
    assert len(result["photos"]) == 2
    assert len(fetch.requests) == 1


def test_zero_limit_fetches_one_page_and_keeps_metadata():
    fetch = FakePages(two_pages())
    result = aggregate(fetch, limit=0)
    assert len(fetch.requests) == 1
    assert result["photos"] == []
    assert result["total_results"] == 4
    assert result["page"] == 1


def test_max_pages_caps_requests():
    fetch = FakePages(two_pages())
    result = aggregate(fetch, max_pages=1)
    assert len(fetch.requests) == 1
    assert len(result["photos"]) == 2


def test_zero_max_pages_fetches_nothing():
    fetch = FakePages(two_pages())
    result = aggregate(fetch, max_pages=0)
    assert fetch.requests == []
    assert result == {"photos": []}


def test_first_page_metadata_wins_and_next_link_is_dropped():
    result = aggregate(FakePages(two_pages()))
    assert result["page"] == 1
    assert "next_page" not in result
    assert "prev_page" not in result


def test_unparseable_next_link_stops_silently():
    pages = two_pages()
    pages[BASE]["next_page"] = "/v1/curated?page=2"
    fetch = FakePages(pages)
    result = aggregate(fetch)
    assert len(fetch.requests) == 1
    assert len(result["photos"]) == 2


def test_error_on_later_page_fails_the_whole_aggregate():
    pages = two_pages()
    pages[f"{BASE}?page=2&per_page=2"] = HttpError(500, "Internal Server Error")
    with pytest.raises(HttpError):
        aggregate(FakePages(pages))


def test_missing_item_array_is_tolerated():
    fetch = FakePages({BASE: {"page": 1}})
    assert aggregate(fetch) == {"photos": [], "page": 1}


@pytest.mark.parametrize("value,expected", [
    ("https://api.pexels.com/v1/curated?page=2", "https://api.pexels.com/v1/curated?page=2"),
    ("/v1/curated?page=2", None),
    ("ftp://example.test/file", None),
    ("", None),
    (2, None),
    (None, None),
])
def test_parse_next_link(value, expected):
    assert parse_next_link(value) == expected
