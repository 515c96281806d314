"""HTTP adapter for the Pexels API.

Wraps an `httpx.AsyncClient` configured with the API token, locale and
timeout. Every request goes through `ApiRetryService`; endpoint selection
and pagination live in the core services.
"""

import json
import logging
import sys
from typing import Any, Dict, Mapping, Optional

import httpx

from pexcli import __version__
from pexcli.domain.models.common import JsonValue
from pexcli.infrastructure.config.settings import ClientConfig
from pexcli.infrastructure.resilience.api_retry import ApiRetryService

logger = logging.getLogger(__name__)

PHOTOS_PREFIX = "/v1/"
VIDEOS_PREFIX = "/videos/"
RATE_LIMIT_HEADER_MARKERS = ("limit", "remaining", "reset")


def build_headers(config: ClientConfig) -> Dict[str, str]:
    """Default headers for every request."""
    headers = {
        "Accept": "application/json",
        "User-Agent": f"pexels-cli/{__version__} ({sys.platform})",
    }
    if config.locale:
        headers["Accept-Language"] = config.locale
    if config.token:
        # Pexels expects the raw key, without a Bearer prefix
        headers["Authorization"] = config.token
    return headers


def is_same_origin(url: str, host: str) -> bool:
    """True when `url` has the scheme, host and port of `host`."""
    try:
        target, origin = httpx.URL(url), httpx.URL(host)
    except httpx.InvalidURL:
        return False
    return (target.scheme, target.host, target.port) == (origin.scheme, origin.host, origin.port)


def parse_json_body(response: httpx.Response) -> JsonValue:
    """Parses a JSON body, falling back to the body text."""
    content = response.content
    if not content:
        return ""
    try:
        return json.loads(content)
    except ValueError:
        return response.text


class PexelsClient:
    """Async client for the photo, video and collection endpoints."""

    def __init__(
        self,
        config: ClientConfig,
        retry_service: Optional[ApiRetryService] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initializes the client.

        Args:
            config: Immutable options for this invocation.
            retry_service: Retry policy; built from `config` when omitted.
            transport: Optional httpx transport (tests pass a MockTransport).
        """
        self.config = config
        self.retry_service = retry_service or ApiRetryService(
            max_retries=config.max_retries,
            retry_after=config.retry_after,
            secrets=(config.token,),
        )
        headers = build_headers(config)
        # Attached per request, only for the API host (never the media CDN)
        self._authorization = headers.pop("Authorization", None)
        self._http = httpx.AsyncClient(
            headers=headers,
            timeout=httpx.Timeout(config.timeout_secs),
            follow_redirects=True,
            transport=transport,
        )
        logger.debug(f"PexelsClient initialized for host {config.host}")

    async def __aenter__(self) -> "PexelsClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # --- URLs ---

    def photos_url(self, path: str) -> str:
        return f"{self.config.host}{PHOTOS_PREFIX}{path.lstrip('/')}"

    def videos_url(self, path: str) -> str:
        return f"{self.config.host}{VIDEOS_PREFIX}{path.lstrip('/')}"

    # --- Requests ---

    def _auth_headers(self, url: str) -> Optional[Dict[str, str]]:
        if self._authorization and is_same_origin(url, self.config.host):
            return {"Authorization": self._authorization}
        return None

    async def _send(self, method: str, url: str, params: Optional[Mapping[str, Any]] = None) -> httpx.Response:
        return await self._http.request(
            method, url, params=dict(params) if params else None, headers=self._auth_headers(url)
        )

    async def request(
        self, url: str, params: Optional[Mapping[str, Any]] = None, method: str = "GET"
    ) -> httpx.Response:
        """Sends one logical request with retries and returns the 2xx response."""
        endpoint = httpx.URL(url).path
        return await self.retry_service.execute_with_retry(
            self._send, method, url, params, endpoint_name=f"{method} {endpoint}"
        )

    async def request_json(self, url: str, params: Optional[Mapping[str, Any]] = None) -> JsonValue:
        """GET returning the parsed JSON body (or the text if it is not JSON)."""
        response = await self.request(url, params)
        return parse_json_body(response)

    async def request_bytes(self, url: str, params: Optional[Mapping[str, Any]] = None) -> bytes:
        """GET returning the raw body bytes; media hosts get no token."""
        response = await self.request(url, params)
        return response.content

    # --- Diagnostics ---

    async def ping(self) -> None:
        """HEAD request against the curated endpoint; raises on failure."""
        await self.request(self.photos_url("curated"), method="HEAD")

    async def quota_view(self) -> Dict[str, Any]:
        """Rate-limit headers of a curated request plus a sample body."""
        response = await self.request(self.photos_url("curated"))
        out: Dict[str, Any] = {}
        for key, value in response.headers.items():
            lowered = key.lower()
            if any(marker in lowered for marker in RATE_LIMIT_HEADER_MARKERS):
                out[lowered] = value
        out["sample"] = parse_json_body(response)
        return out

    def inspect(self) -> Dict[str, Any]:
        """Effective connection settings, without credentials."""
        return {
            "host": self.config.host,
            "timeout": self.config.timeout_secs,
            "locale": self.config.locale,
            "max_retries": self.config.max_retries,
        }
