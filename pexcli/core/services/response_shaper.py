"""Splits a raw API response into a `data` payload and a normalized `meta`.

The upstream API reports pagination cursors either as page numbers or as
fully-qualified links; both are normalized here to an integer or None.
"""

import logging
from typing import Optional, Tuple
from urllib.parse import parse_qs, urlsplit

from pexcli.domain.models.common import (
    ITEM_ARRAY_KEYS, NEXT_PAGE_KEY, PREV_PAGE_KEY, TOTAL_RESULTS_KEY,
    JsonValue, PageMeta
)

logger = logging.getLogger(__name__)


def as_count(value: JsonValue) -> Optional[int]:
    """Returns `value` if it is a non-negative integer, else None.

    Floats (including the non-standard Infinity/NaN literals) and booleans
    are not counts.
    """
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return None


def parse_page_number(link: str) -> Optional[int]:
    """Extracts the `page` query parameter of a link as a non-negative integer."""
    try:
        query = urlsplit(link).query
    except ValueError:
        return None
    values = parse_qs(query).get("page")
    if not values or not (values[0].isascii() and values[0].isdigit()):
        return None
    return int(values[0])


def _page_cursor(value: JsonValue) -> Optional[int]:
    if isinstance(value, str):
        return parse_page_number(value)
    return as_count(value)


def shape_response(response: JsonValue) -> Tuple[JsonValue, PageMeta]:
    """Returns `(data, meta)` for a response.

    `data` is the first known item array found on the response, or the
    response itself for single resources.
    """
    meta = PageMeta()
    if not isinstance(response, dict):
        meta["next_page"] = None
        meta["prev_page"] = None
        return response, meta

    total = as_count(response.get(TOTAL_RESULTS_KEY))
    if total is not None:
        meta["total_results"] = total
    meta["next_page"] = _page_cursor(response.get(NEXT_PAGE_KEY))
    meta["prev_page"] = _page_cursor(response.get(PREV_PAGE_KEY))

    for key in ITEM_ARRAY_KEYS:
        items = response.get(key)
        if isinstance(items, list):
            logger.debug(f"Shaped response as list of {len(items)} '{key}'")
            return items, meta
    return response, meta
