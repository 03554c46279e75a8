from __future__ import annotations

import logging
from typing import Protocol

import httpx

from ..models.photo_asset import FetchResponse
from .classifier import drive_thumbnail_url, extract_drive_file_id

"""Fetch capability used by the photo resolver.

PhotoFetcher is the seam: the pipeline only ever talks to this protocol, so
tests inject fakes and the CLI injects HttpPhotoFetcher.

Google Drive links go through ``fetch_via_proxy``. When an image proxy is
configured the original share URL is handed to it (``<proxy>?url=<original>``);
without one the Drive thumbnail endpoint is fetched directly, which works from
a server process where no browser CORS policy applies.
"""

__all__ = [
    "PhotoFetcher",
    "HttpPhotoFetcher",
    "DEFAULT_TIMEOUT",
]

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(connect=10.0, read=15.0, write=10.0, pool=15.0)
_ACCEPT_IMAGES = {"Accept": "image/*"}
_USER_AGENT = "orphan-import/0.1"


class PhotoFetcher(Protocol):
    async def fetch(self, url: str) -> FetchResponse: ...

    async def fetch_via_proxy(self, original_url: str) -> FetchResponse: ...


class HttpPhotoFetcher:
    """httpx based PhotoFetcher.

    Use as an async context manager so the underlying connection pool is
    released on every path::

        async with HttpPhotoFetcher(proxy_url=cfg.photo_fetch.proxy_url) as fetcher:
            ...
    """

    def __init__(
        self,
        *,
        proxy_url: str | None = None,
        timeout: httpx.Timeout | float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.proxy_url = proxy_url
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> HttpPhotoFetcher:
        if self._client is None:
            self._client = httpx.AsyncClient(
                follow_redirects=True,
                timeout=self._timeout,
                headers={"User-Agent": _USER_AGENT},
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str) -> FetchResponse:
        return await self._get(url, headers=_ACCEPT_IMAGES)

    async def fetch_via_proxy(self, original_url: str) -> FetchResponse:
        if self.proxy_url:
            logger.debug("fetching drive photo via proxy: %s", original_url)
            return await self._get(self.proxy_url, params={"url": original_url})
        file_id = extract_drive_file_id(original_url)
        target = drive_thumbnail_url(file_id) if file_id else original_url
        return await self._get(target, headers=_ACCEPT_IMAGES)

    async def _get(
        self,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> FetchResponse:
        if self._client is None:
            raise RuntimeError("HttpPhotoFetcher must be used inside 'async with'")
        response = await self._client.get(url, params=params, headers=headers)
        return FetchResponse(
            status=response.status_code,
            content_type=response.headers.get("content-type", ""),
            content=response.content,
        )
