import copy

import pytest

from pexcli.core.services.field_projector import (
    SHORTHAND_RULES, extract_group, merge, minimal_item, project, project_item_with_fallback,
    project_items_with_fallback, select_path, shorthand_groups
)

DOCUMENT = {
    "id": 10,
    "user_id": 7,
    "url": "https://example.test/10",
    "image": "https://example.test/10.jpg",
    "width": 1920,
    "height": 1080,
    "duration": 12,
    "user": {"id": 7, "name": "Ada", "url": "https://example.test/ada"},
    "video_files": [
        {"id": 1, "quality": "hd", "link": "https://example.test/1.mp4"},
        {"id": 2, "quality": "sd", "link": "https://example.test/2.mp4"},
    ],
}


def test_empty_selectors_return_document_unchanged():
    assert project(DOCUMENT, []) == DOCUMENT
    assert project(DOCUMENT, None) == DOCUMENT


def test_all_selector_returns_document_unchanged():
    assert project(DOCUMENT, ["id", "@all"]) == DOCUMENT


def test_width_and_height_of_a_photo(photo):
    assert project(photo, ["width", "height"]) == {"width": 3024, "height": 3024}


def test_nested_path_is_renested():
    assert project(DOCUMENT, ["user.name"]) == {"user": {"name": "Ada"}}


def test_wildcard_path_maps_over_arrays():
    assert project(DOCUMENT, ["video_files[*].quality"]) == {
        "video_files": [{"quality": "hd"}, {"quality": "sd"}]
    }


def test_missing_paths_are_dropped():
    assert project(DOCUMENT, ["nope", "user.missing", "width.deeper", "width"]) == {"width": 1920}


def test_positional_segments_on_arrays_miss():
    assert select_path(DOCUMENT, "video_files.0") is None
    assert select_path(DOCUMENT, "*") is None
    assert select_path(DOCUMENT, "width[*]") is None


def test_later_selectors_win_at_depth_one():
    result = project(DOCUMENT, ["user.name", "user.id"])
    assert result == {"user": {"id": 7}}


@pytest.mark.parametrize("selectors", [
    ["width", "height"],
    ["user.name", "duration"],
    ["video_files[*].quality"],
    ["video_files[*].link", "id"],
    ["@ids"],
    ["@urls", "@files"],
])
def test_projection_is_idempotent(selectors):
    once = project(DOCUMENT, selectors)
    assert project(once, selectors) == once


def test_projection_does_not_mutate_input():
    original = copy.deepcopy(DOCUMENT)
    result = project(DOCUMENT, ["user", "@files"])
    result["user"]["name"] = "changed"
    result["video_files"].append("extra")
    assert DOCUMENT == original


def test_ids_shorthand():
    assert project(DOCUMENT, ["@ids"]) == {"id": 10, "user_id": 7}


def test_urls_shorthand():
    assert project(DOCUMENT, ["@urls"]) == {"url": "https://example.test/10"}


def test_files_and_thumbnails_shorthands():
    assert project(DOCUMENT, ["@files"]) == {"video_files": DOCUMENT["video_files"]}
    assert project(DOCUMENT, ["@thumbnails"]) == {"image": "https://example.test/10.jpg"}


def test_shorthand_over_a_list_maps_elements():
    assert extract_group([{"id": 1, "x": 0}, 5], "@ids") == [{"id": 1}, None]


@pytest.mark.parametrize("key,groups", [
    ("id", ["@ids"]),
    ("photographer_id", ["@ids"]),
    ("photographer_url", ["@urls"]),
    ("link", ["@urls"]),
    ("src", ["@files"]),
    ("tiny", ["@thumbnails"]),
    ("width", []),
])
def test_shorthand_rule_table(key, groups):
    assert shorthand_groups(key) == groups


def test_rule_table_is_ordered_and_tagged():
    assert [group for _, group in SHORTHAND_RULES] == ["@ids", "@urls", "@files", "@thumbnails"]


def test_merge_ignores_non_objects():
    acc = {"a": 1}
    assert merge(acc, [1, 2]) == {"a": 1}
    assert merge(acc, None) == {"a": 1}
    assert merge(acc, {"a": 2, "b": 3}) == {"a": 2, "b": 3}


def test_fallback_keeps_descriptive_fields(photo):
    projected = project_item_with_fallback(photo, ["does.not.exist"])
    assert projected == {
        "id": photo["id"],
        "url": photo["url"],
        "photographer": photo["photographer"],
        "alt": photo["alt"],
    }


def test_fallback_uses_first_scalar_field():
    item = {"nested": {"a": 1}, "tags": ["x"], "label": "first", "count": 2}
    assert minimal_item(item) == {"label": "first"}


def test_fallback_not_used_for_non_empty_projection(photo):
    assert project_item_with_fallback(photo, ["width"]) == {"width": 3024}


def test_items_are_projected_independently(photo):
    video = {"id": 5, "duration": 30, "width": 640}
    result = project_items_with_fallback([photo, video], ["duration"])
    assert result == [
        {"id": photo["id"], "url": photo["url"], "photographer": photo["photographer"], "alt": photo["alt"]},
        {"duration": 30},
    ]
