"""Field projection over arbitrary JSON documents.

Supported selectors:
- dot paths: ``a.b.c``
- array wildcard segments: ``photos[*].id``
- named groups: ``@ids``, ``@urls``, ``@files``, ``@thumbnails``, ``@all``

Each selector is evaluated against the original document and its partial
result is shallow-merged into the output; later selectors win. Misses and
shape mismatches are dropped silently, so a selector list can be reused
across resources with different shapes. The input is never mutated.
"""

import copy
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from pexcli.domain.models.common import JsonValue

logger = logging.getLogger(__name__)

ALL_FIELDS = "@all"
WILDCARD_SUFFIX = "[*]"

# Descriptive fields used when a projection would otherwise be empty
FALLBACK_FIELDS: Tuple[str, ...] = (
    "id",
    "url",
    "photographer",
    "alt",
    "title",
    "description",
    "duration",
)

# --- Shorthand groups ---

FILE_KEYS = frozenset({"video_files", "src"})
THUMBNAIL_KEYS = frozenset({"image", "thumbnail", "thumb", "tiny"})


def is_id_key(key: str) -> bool:
    return key == "id" or key.endswith("_id") or key == "ids"


def is_url_key(key: str) -> bool:
    return "url" in key or "link" in key or "href" in key


def is_file_key(key: str) -> bool:
    return key in FILE_KEYS


def is_thumbnail_key(key: str) -> bool:
    return key in THUMBNAIL_KEYS


# Tagged rule table: (predicate over a key name, shorthand it belongs to)
SHORTHAND_RULES: List[Tuple[Callable[[str], bool], str]] = [
    (is_id_key, "@ids"),
    (is_url_key, "@urls"),
    (is_file_key, "@files"),
    (is_thumbnail_key, "@thumbnails"),
]

SHORTHANDS = frozenset(group for _, group in SHORTHAND_RULES)


def shorthand_groups(key: str) -> List[str]:
    """Returns every shorthand group a key name belongs to."""
    return [group for predicate, group in SHORTHAND_RULES if predicate(key)]


def extract_group(document: JsonValue, group: str) -> Optional[JsonValue]:
    """Extracts the keys of `document` classified under `group`.

    Objects yield the matching subset, arrays are mapped element-wise,
    scalars yield None.
    """
    if isinstance(document, dict):
        return {
            key: copy.deepcopy(value)
            for key, value in document.items()
            if group in shorthand_groups(key)
        }
    if isinstance(document, list):
        return [extract_group(item, group) for item in document]
    return None


# --- Dotted paths ---

def select_path(document: JsonValue, path: str) -> Optional[JsonValue]:
    """Resolves `path` and returns the match re-nested along the path.

    ``select_path({"a": {"b": 1, "c": 2}}, "a.b") == {"a": {"b": 1}}``.
    Returns None when any segment misses.
    """
    return _select(document, path.split("."))


def _select(node: JsonValue, parts: Sequence[str]) -> Optional[JsonValue]:
    if not parts:
        return copy.deepcopy(node)
    head, rest = parts[0], parts[1:]
    if head == "*":
        return None
    if isinstance(node, dict):
        if head.endswith(WILDCARD_SUFFIX):
            base = head[: -len(WILDCARD_SUFFIX)]
            items = node.get(base)
            if not isinstance(items, list):
                return None
            return {base: [_select(item, rest) for item in items]}
        if head not in node:
            return None
        sub = _select(node[head], rest)
        if sub is None:
            return None
        return {head: sub}
    if isinstance(node, list):
        # Positional indexing is unsupported; only wildcards map over arrays
        if head.endswith(WILDCARD_SUFFIX):
            return [_select(item, rest) for item in node]
        return None
    return None


# --- Merge & projection ---

def merge(accumulator: Dict[str, Any], partial: Optional[JsonValue]) -> Dict[str, Any]:
    """Right-biased, depth-1 merge. Non-object partials are dropped."""
    if isinstance(partial, dict):
        accumulator.update(partial)
    elif partial is not None:
        logger.debug(f"Dropping non-object projection result of type {type(partial).__name__}")
    return accumulator


def project(document: JsonValue, selectors: Optional[Sequence[str]]) -> JsonValue:
    """Reduces `document` to the fields named by `selectors`.

    An empty selector list, or one containing ``@all``, returns the
    document unchanged.
    """
    if not selectors or ALL_FIELDS in selectors:
        return document
    out: Dict[str, Any] = {}
    for selector in selectors:
        if selector in SHORTHANDS:
            partial = extract_group(document, selector)
        else:
            partial = select_path(document, selector)
        merge(out, partial)
    return out


def minimal_item(original: JsonValue) -> JsonValue:
    """Builds a small descriptive object from `original`."""
    if not isinstance(original, dict):
        return copy.deepcopy(original)
    out = {key: copy.deepcopy(original[key]) for key in FALLBACK_FIELDS if key in original}
    if not out:
        for key, value in original.items():
            if isinstance(value, (str, int, float, bool)):
                out[key] = value
                break
    return out


def project_item_with_fallback(item: JsonValue, selectors: Optional[Sequence[str]]) -> JsonValue:
    """Projects one resource, never returning an empty object."""
    projected = project(item, selectors)
    if isinstance(projected, dict) and not projected:
        return minimal_item(item)
    return projected


def project_items_with_fallback(items: Sequence[JsonValue], selectors: Optional[Sequence[str]]) -> List[JsonValue]:
    """Projects each item independently."""
    return [project_item_with_fallback(item, selectors) for item in items]
