"""Core service for photo, video and collection operations.

Chooses between a single request and paginated aggregation, then turns the
raw response into the `{data, meta}` envelope: the response shaper splits
data from meta and the field projector reduces the data.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from pexcli.core.services.field_projector import (
    project, project_item_with_fallback, project_items_with_fallback
)
from pexcli.core.services.pagination_service import PaginationService
from pexcli.core.services.response_shaper import shape_response
from pexcli.domain.errors import ResourceFieldError
from pexcli.domain.interfaces.filesystem import FileSystem
from pexcli.domain.models.common import FilePath, JsonValue, empty_meta, wrap_ok
from pexcli.infrastructure.api.pexels_client import PexelsClient

logger = logging.getLogger(__name__)


class ResourceKind(str, Enum):
    """Resource families, used to pick a default projection."""
    NONE = "none"
    PHOTOS = "photos"
    VIDEOS = "videos"
    COLLECTIONS = "collections"


DEFAULT_FIELDS: Dict[ResourceKind, List[str]] = {
    ResourceKind.NONE: [],
    ResourceKind.PHOTOS: ["id", "photographer", "alt", "width", "height", "avg_color"],
    ResourceKind.VIDEOS: ["duration", "width", "height"],
    ResourceKind.COLLECTIONS: ["title", "description", "media_count"],
}


class PhotoSize(str, Enum):
    """Keys of a photo's `src` object."""
    ORIGINAL = "original"
    LARGE2X = "large2x"
    LARGE = "large"
    MEDIUM = "medium"
    SMALL = "small"
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"
    TINY = "tiny"


@dataclass(frozen=True)
class ListingOptions:
    """Paging flags shared by every list endpoint."""
    page: Optional[int] = None
    per_page: Optional[int] = None
    fetch_all: bool = False
    limit: Optional[int] = None
    max_pages: Optional[int] = None

    @property
    def paginate(self) -> bool:
        return self.fetch_all or self.limit is not None or self.max_pages is not None

    def query_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if self.page is not None:
            params["page"] = self.page
        if self.per_page is not None:
            params["per_page"] = self.per_page
        return params


def resolve_selectors(fields: Optional[Sequence[str]], kind: ResourceKind) -> List[str]:
    """Caller fields win; otherwise the resource's default projection."""
    if fields:
        return list(fields)
    return list(DEFAULT_FIELDS[kind])


def build_envelope(response: JsonValue, selectors: Sequence[str]) -> Dict[str, Any]:
    """Shapes and projects a raw response into the output envelope."""
    data, meta = shape_response(response)
    if isinstance(response, dict) and isinstance(data, list):
        projected = project_items_with_fallback(data, selectors)
    elif isinstance(data, dict):
        projected = project_item_with_fallback(data, selectors)
    else:
        projected = project(data, selectors)
    return wrap_ok(projected, meta)


class MediaService:
    """Orchestrates the media endpoints of the API."""

    def __init__(
        self,
        client: PexelsClient,
        file_system: FileSystem,
        pagination: Optional[PaginationService] = None,
    ):
        self.client = client
        self.file_system = file_system
        self.pagination = pagination or PaginationService(client.request_json)

    async def _listing(self, url: str, item_key: str, options: ListingOptions, **filters: Any) -> JsonValue:
        params = options.query_params()
        params.update({k: v for k, v in filters.items() if v is not None})
        if options.paginate:
            logger.info(f"Aggregating '{item_key}' from {url} (limit={options.limit}, max_pages={options.max_pages})")
            return await self.pagination.aggregate(
                url, params, [(item_key, item_key)],
                limit=options.limit, max_pages=options.max_pages,
            )
        return await self.client.request_json(url, params)

    # --- Photos ---

    async def search_photos(self, query: str, options: ListingOptions) -> JsonValue:
        return await self._listing(self.client.photos_url("search"), "photos", options, query=query)

    async def curated_photos(self, options: ListingOptions) -> JsonValue:
        return await self._listing(self.client.photos_url("curated"), "photos", options)

    async def get_photo(self, photo_id: str) -> JsonValue:
        return await self.client.request_json(self.client.photos_url(f"photos/{photo_id}"))

    async def photo_url(self, photo_id: str, size: PhotoSize = PhotoSize.ORIGINAL) -> Dict[str, Any]:
        """Envelope holding the URL of one size variant of a photo."""
        photo = await self.get_photo(photo_id)
        url = _src_variant(photo, size.value)
        return wrap_ok(url, {"id": photo_id, "size": size.value})

    async def download_photo(self, photo_id: str, path: str) -> Dict[str, Any]:
        """Downloads the original photo to `path`."""
        photo = await self.get_photo(photo_id)
        url = _src_variant(photo, PhotoSize.ORIGINAL.value)
        content = await self.client.request_bytes(url)
        written = await self.file_system.write_bytes(FilePath(path), content)
        logger.info(f"Downloaded photo {photo_id} ({len(content)} bytes) to {written}")
        return wrap_ok({"path": written, "bytes": len(content)}, {"id": photo_id, "url": url})

    # --- Videos ---

    async def search_videos(self, query: str, options: ListingOptions) -> JsonValue:
        return await self._listing(self.client.videos_url("search"), "videos", options, query=query)

    async def popular_videos(self, options: ListingOptions) -> JsonValue:
        return await self._listing(self.client.videos_url("popular"), "videos", options)

    async def get_video(self, video_id: str) -> JsonValue:
        return await self.client.request_json(self.client.videos_url(f"videos/{video_id}"))

    # --- Collections ---

    async def list_collections(self, options: ListingOptions) -> JsonValue:
        return await self._listing(self.client.photos_url("collections"), "collections", options)

    async def featured_collections(self, options: ListingOptions) -> JsonValue:
        return await self._listing(self.client.photos_url("collections/featured"), "collections", options)

    async def get_collection(self, collection_id: str) -> JsonValue:
        return await self.client.request_json(self.client.photos_url(f"collections/{collection_id}"))

    async def collection_items(self, collection_id: str, options: ListingOptions) -> JsonValue:
        return await self._listing(self.client.photos_url(f"collections/{collection_id}/media"), "media", options)

    # --- Account & diagnostics ---

    async def quota(self) -> Dict[str, Any]:
        """Rate-limit headers plus reachability; never fails on its own."""
        try:
            await self.client.ping()
            reachable = True
        except Exception as e:
            logger.warning(f"Ping failed: {e}")
            reachable = False
        try:
            data = await self.client.quota_view()
        except Exception as e:
            logger.warning(f"Quota lookup failed: {e}")
            data = {}
        data["reachable"] = reachable
        return data

    async def ping(self) -> Dict[str, Any]:
        await self.client.ping()
        return wrap_ok({"ok": True}, empty_meta())

    def inspect(self) -> Dict[str, Any]:
        return wrap_ok(self.client.inspect(), empty_meta())

    async def aclose(self) -> None:
        await self.client.aclose()


def _src_variant(photo: JsonValue, size: str) -> str:
    src = photo.get("src") if isinstance(photo, dict) else None
    url = src.get(size) if isinstance(src, dict) else None
    if not isinstance(url, str):
        raise ResourceFieldError(f"src.{size} not found")
    return url
