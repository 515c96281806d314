"""Defines common Value Objects used across different domain contexts.

These objects represent simple values or concepts like item keys, page
metadata and the output envelope, ensuring consistency across the request,
pagination and projection layers.
"""

from enum import Enum
from typing import Any, Dict, NewType, Optional, Tuple, TypedDict

# === Core Value Objects ===

# JSON documents are plain Python structures (dict/list/str/int/float/bool/None)
JsonValue = Any

# === File System Context ===
FilePath = NewType("FilePath", str)           # Destination path of a download

# === Pagination Context ===
ItemKey = Tuple[str, str]                     # (source key in page, destination key in aggregate)

# Item-array keys known to the upstream API, in priority order
ITEM_ARRAY_KEYS: Tuple[str, ...] = ("photos", "videos", "collections", "media")
NEXT_PAGE_KEY = "next_page"
PREV_PAGE_KEY = "prev_page"
TOTAL_RESULTS_KEY = "total_results"

# --- Structured Data ---
class PageMeta(TypedDict, total=False):
    """Normalized pagination metadata attached to every envelope."""
    next_page: Optional[int]
    prev_page: Optional[int]
    total_results: int


def empty_meta() -> PageMeta:
    """Meta block for outputs that are not paginated."""
    return PageMeta(next_page=None, prev_page=None)


def wrap_ok(data: JsonValue, meta: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Builds the `{data, meta}` output envelope; `meta` is omitted when None."""
    envelope: Dict[str, Any] = {"data": data}
    if meta is not None:
        envelope["meta"] = meta
    return envelope


class OutputFormat(str, Enum):
    """How envelopes are rendered on stdout."""
    YAML = "yaml"
    JSON = "json"
    RAW = "raw"
