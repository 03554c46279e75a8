from __future__ import annotations

import asyncio

import httpx
import pytest

from orphan_import.models.photo_asset import FetchResponse
from orphan_import.photos.fetcher import HttpPhotoFetcher
from orphan_import.photos.resolver import resolve_photo

pytestmark = pytest.mark.asyncio

DRIVE_URL = "https://drive.google.com/file/d/FILE123/view?usp=sharing"


@pytest.mark.parametrize("value", ["None", "N/A", "", None, "not a url"])
async def test_non_candidates_never_fetch(value, fetcher_factory):
    fetcher = fetcher_factory()
    assert await resolve_photo(value, "ORF001", fetcher) is None
    assert fetcher.calls == 0


async def test_plain_url_success(fetcher_factory, png_bytes):
    url = "https://cdn.example.org/ahmed.png"
    fetcher = fetcher_factory({url: FetchResponse(200, "image/png", png_bytes)})
    asset = await resolve_photo(url, "ORF001", fetcher)
    assert asset is not None
    assert asset.orphan_id == "ORF001"
    assert asset.mime_type == "image/png"
    assert asset.filename == "orphan_ORF001_photo.png"
    assert asset.content == png_bytes
    assert fetcher.fetched == [url]


async def test_url_is_rewritten_before_fetch(fetcher_factory, png_bytes):
    direct = "https://www.dropbox.com/s/abc/kid.jpg?dl=1"
    fetcher = fetcher_factory({direct: FetchResponse(200, "image/jpeg", png_bytes)})
    asset = await resolve_photo("https://www.dropbox.com/s/abc/kid.jpg?dl=0", "7", fetcher)
    assert asset is not None
    assert fetcher.fetched == [direct]


async def test_drive_goes_through_proxy(fetcher_factory, png_bytes):
    fetcher = fetcher_factory({DRIVE_URL: FetchResponse(200, "image/jpeg; charset=binary", png_bytes)})
    asset = await resolve_photo(DRIVE_URL, "ORF002", fetcher, filename="custom.jpg")
    assert asset is not None
    assert asset.mime_type == "image/jpeg"
    assert asset.filename == "custom.jpg"
    assert fetcher.proxied == [DRIVE_URL]
    assert fetcher.fetched == []


async def test_non_success_status(fetcher_factory):
    url = "https://cdn.example.org/missing.png"
    fetcher = fetcher_factory({url: FetchResponse(404, "image/png", b"")})
    assert await resolve_photo(url, "1", fetcher) is None


async def test_non_image_content_type(fetcher_factory):
    url = "https://cdn.example.org/photo.png"
    fetcher = fetcher_factory({url: FetchResponse(200, "text/html", b"<html>login</html>")})
    assert await resolve_photo(url, "1", fetcher) is None


@pytest.mark.parametrize(
    "response",
    [
        FetchResponse(200, None, b"x"),  # type: ignore[arg-type]
        FetchResponse(200, "image/png", None),  # type: ignore[arg-type]
        FetchResponse("200", "image/png", b"x"),  # type: ignore[arg-type]
        "not a response",
    ],
)
async def test_malformed_response_degrades_to_none(fetcher_factory, response):
    url = "https://cdn.example.org/photo.png"
    fetcher = fetcher_factory({url: response})
    assert await resolve_photo(url, "1", fetcher) is None


async def test_fetch_exception_degrades_to_none(fetcher_factory):
    url = "https://cdn.example.org/photo.png"
    fetcher = fetcher_factory({url: httpx.ConnectError("boom")})
    assert await resolve_photo(url, "1", fetcher) is None


async def test_timeout_degrades_to_none(png_bytes):
    class SlowFetcher:
        async def fetch(self, url):
            await asyncio.sleep(5)
            return FetchResponse(200, "image/png", png_bytes)

        async def fetch_via_proxy(self, original_url):
            return await self.fetch(original_url)

    assert await resolve_photo("https://cdn.example.org/a.png", "1", SlowFetcher(), timeout=0.01) is None


async def test_http_fetcher_direct_and_proxy(png_bytes):
    seen: list[httpx.URL] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        return httpx.Response(200, headers={"content-type": "image/png"}, content=png_bytes)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    try:
        async with HttpPhotoFetcher(proxy_url="https://api.example.org/proxy-image", client=client) as fetcher:
            resp = await fetcher.fetch("https://cdn.example.org/a.png")
            assert resp.ok
            assert resp.content_type == "image/png"
            await fetcher.fetch_via_proxy(DRIVE_URL)
    finally:
        await client.aclose()

    assert str(seen[0]) == "https://cdn.example.org/a.png"
    assert seen[1].host == "api.example.org"
    assert seen[1].params["url"] == DRIVE_URL


async def test_http_fetcher_drive_without_proxy_uses_thumbnail(png_bytes):
    seen: list[httpx.URL] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url)
        return httpx.Response(200, headers={"content-type": "image/jpeg"}, content=png_bytes)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    async with HttpPhotoFetcher(client=client) as fetcher:
        asset = await resolve_photo(DRIVE_URL, "ORF9", fetcher)
    await client.aclose()

    assert asset is not None
    assert seen[0].path == "/thumbnail"
    assert seen[0].params["id"] == "FILE123"
    assert seen[0].params["sz"] == "w2048"


async def test_http_fetcher_requires_context():
    fetcher = HttpPhotoFetcher()
    with pytest.raises(RuntimeError):
        await fetcher.fetch("https://cdn.example.org/a.png")
