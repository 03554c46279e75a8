from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..models.photo_asset import FetchResponse, PhotoAsset
from .classifier import is_candidate, is_drive_url, to_direct_url
from .fetcher import PhotoFetcher

"""Photo resolution: photo cell -> PhotoAsset.

resolve_photo() never raises. Non-candidate values return None without any
fetch; transport errors, timeouts, non-2xx responses and non-image payloads
return None as well and are logged at DEBUG. The pipeline turns a None into a
row warning.
"""

__all__ = [
    "PhotoFetchError",
    "MIME_EXTENSIONS",
    "extension_for_mime",
    "default_photo_filename",
    "resolve_photo",
]

logger = logging.getLogger(__name__)

MIME_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/bmp": ".bmp",
    "image/webp": ".webp",
    "image/svg+xml": ".svg",
}


class PhotoFetchError(Exception):
    """A single photo could not be downloaded (internal to this module)."""


def extension_for_mime(mime_type: str) -> str:
    return MIME_EXTENSIONS.get(mime_type, ".jpg")


def default_photo_filename(orphan_id: str, mime_type: str) -> str:
    return f"orphan_{orphan_id}_photo{extension_for_mime(mime_type)}"


async def resolve_photo(
    value: Any,
    orphan_id: str,
    fetcher: PhotoFetcher,
    *,
    filename: str | None = None,
    timeout: float | None = None,
) -> PhotoAsset | None:
    """Download the photo referenced by ``value`` for record ``orphan_id``.

    Args:
        value: raw photo cell
        orphan_id: id of the owning record (asset key, default filename)
        fetcher: injected fetch capability
        filename: explicit filename; defaults to ``orphan_<id>_photo.<ext>``
        timeout: seconds allowed for the fetch; None means the fetcher's own
    """
    if not is_candidate(value):
        logger.debug("photo value for %s is not a fetchable image: %r", orphan_id, value)
        return None
    url = str(value).strip()
    try:
        response = await _fetch(url, fetcher, timeout)
        return _to_asset(response, orphan_id, filename)
    except PhotoFetchError as e:
        logger.debug("photo for %s not downloaded (%s): %s", orphan_id, url, e)
        return None


async def _fetch(url: str, fetcher: PhotoFetcher, timeout: float | None) -> FetchResponse:
    try:
        if is_drive_url(url):
            call = fetcher.fetch_via_proxy(url)
        else:
            call = fetcher.fetch(to_direct_url(url))
        if timeout is None:
            return await call
        return await asyncio.wait_for(call, timeout)
    except TimeoutError as e:
        raise PhotoFetchError(f"timed out after {timeout}s") from e
    except Exception as e:  # 注入された fetcher の失敗はこの写真だけの失敗
        raise PhotoFetchError(f"{type(e).__name__}: {e}") from e


def _to_asset(response: FetchResponse, orphan_id: str, filename: str | None) -> PhotoAsset:
    try:
        ok = response.ok
        mime_type = (response.content_type or "").split(";", 1)[0].strip().lower()
        content = bytes(response.content)
    except Exception as e:  # fetcher が想定外の形の応答を返した
        raise PhotoFetchError(f"malformed response: {type(e).__name__}: {e}") from e
    if not ok:
        raise PhotoFetchError(f"HTTP {response.status}")
    if not mime_type.startswith("image/"):
        raise PhotoFetchError(f"content is not an image: {mime_type or 'unknown'}")
    return PhotoAsset(
        orphan_id=orphan_id,
        content=content,
        mime_type=mime_type,
        filename=filename or default_photo_filename(orphan_id, mime_type),
    )
