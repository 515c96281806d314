"""Core service walking multi-page listings into one bounded collection.

Pages are fetched strictly in sequence by following the `next_page` link of
each response. Fetch errors propagate immediately: a failure on any page
fails the whole aggregate, no partial result is returned.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import httpx

from pexcli.domain.events.api_events import PageFetched
from pexcli.domain.models.common import NEXT_PAGE_KEY, ItemKey, JsonValue

logger = logging.getLogger(__name__)

FetchFunc = Callable[[str, Optional[Mapping[str, Any]]], Awaitable[JsonValue]]


def parse_next_link(value: JsonValue) -> Optional[str]:
    """Returns the link if it is an absolute http(s) URL, else None."""
    if not isinstance(value, str) or not value:
        return None
    try:
        url = httpx.URL(value)
    except (httpx.InvalidURL, TypeError, ValueError):
        return None
    if url.scheme not in ("http", "https") or not url.host:
        return None
    return str(url)


class PaginationService:
    """Aggregates the item arrays of consecutive pages."""

    def __init__(self, fetch: FetchFunc):
        """Initializes the service.

        Args:
            fetch: Coroutine function `(url, params) -> parsed JSON`, usually
                `PexelsClient.request_json`, which carries the retry policy.
        """
        self.fetch = fetch

    async def aggregate(
        self,
        url: str,
        params: Optional[Mapping[str, Any]],
        item_keys: Sequence[ItemKey],
        limit: Optional[int] = None,
        max_pages: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Fetches pages until a cap is hit or no next link remains.

        Args:
            url: URL of the first page.
            params: Query parameters of the first page only; follow-up links
                are self-contained.
            item_keys: `(source_key, dest_key)` pairs of arrays to merge.
            limit: Maximum number of items overall, None for unbounded.
            max_pages: Maximum number of pages, None for unbounded.

        Returns:
            The merged document: one list per destination key plus the
            first page's other top-level fields.
        """
        source_keys = {source for source, _ in item_keys}
        aggregate: Dict[str, Any] = {dest: [] for _, dest in item_keys}
        pending: Optional[Tuple[str, Optional[Mapping[str, Any]]]] = (url, params)
        pages = 0
        collected = 0

        def capped() -> bool:
            return (max_pages is not None and pages >= max_pages) or (
                limit is not None and collected >= limit
            )

        # Caps are checked after each page, so limit=0 still fetches the
        # first page and returns its metadata. max_pages=0 fetches nothing.
        while pending is not None:
            if max_pages is not None and pages >= max_pages:
                break
            page_url, page_params = pending
            pending = None
            response = await self.fetch(page_url, page_params)

            if pages == 0 and isinstance(response, dict):
                for key, value in response.items():
                    if key not in source_keys and key != NEXT_PAGE_KEY:
                        aggregate[key] = value

            if isinstance(response, dict):
                for source, dest in item_keys:
                    items = response.get(source)
                    if not isinstance(items, list):
                        continue
                    dest_items: List[Any] = aggregate[dest]
                    for item in items:
                        if limit is not None and collected >= limit:
                            break
                        dest_items.append(item)
                        collected += 1

            pages += 1
            next_value = response.get(NEXT_PAGE_KEY) if isinstance(response, dict) else None
            next_link = parse_next_link(next_value)
            logger.debug(f"EVENT: {PageFetched(page_number=pages, items_collected=collected, has_next=next_link is not None)}")

            if capped():
                break
            if next_link is None:
                if next_value is not None:
                    logger.debug(f"Stopping pagination: unusable next_page link {next_value!r}")
                break
            pending = (next_link, None)

        logger.info(f"Pagination finished: {pages} page(s), {collected} item(s)")
        return aggregate
