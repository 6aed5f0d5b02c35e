"""Tests: search-hit normalization, ordered image fetching and hit listings."""

import base64
import json
import logging

import httpx
import pytest
from hypothesis import given, strategies as st

from conftest import FakeSearchBackend, image_transport
from tooldispatch.core.tool_types import DEFAULT_IMAGE_DESCRIPTION, ImageBlock, ImageHit, TextBlock
from tooldispatch.images.processor import (
    NO_IMAGES_TEXT,
    NO_PLACEHOLDER_IMAGES_TEXT,
    ImageResultProcessor,
    UnsupportedMediaTypeError,
    fetch_image_block,
    format_hit_listing,
    normalize_image_hits,
    search_header_text,
)


PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-png"
JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"


def _image(content_type: str, body: bytes) -> httpx.Response:
    return httpx.Response(200, headers={"content-type": content_type}, content=body)


class TestNormalizeImageHits:

    def test_strips_single_trailing_slash_and_defaults_description(self) -> None:
        hits = normalize_image_hits({
            "images": [
                {"url": "https://img.example.com/a.png/", "description": "A"},
                {"url": "https://img.example.com/b.png"},
                {"url": "https://img.example.com/c.png", "description": ""},
            ]
        })

        assert hits == [
            ImageHit("https://img.example.com/a.png", "A"),
            ImageHit("https://img.example.com/b.png", DEFAULT_IMAGE_DESCRIPTION),
            ImageHit("https://img.example.com/c.png", DEFAULT_IMAGE_DESCRIPTION),
        ]

    def test_only_one_trailing_slash_is_removed(self) -> None:
        hits = normalize_image_hits({"images": [{"url": "https://img.example.com/a//"}]})
        assert hits[0].url == "https://img.example.com/a/"

    def test_drops_entries_without_usable_url(self) -> None:
        hits = normalize_image_hits({
            "images": [
                None,
                "https://img.example.com/bare-string.png",
                {"description": "no url"},
                {"url": 42},
                {"url": ""},
                {"url": "/"},
                {"url": "https://img.example.com/ok.png"},
            ]
        })
        assert [hit.url for hit in hits] == ["https://img.example.com/ok.png"]

    @pytest.mark.parametrize("payload", [None, {}, {"images": None}, {"images": []}])
    def test_missing_images_yield_nothing(self, payload) -> None:
        assert normalize_image_hits(payload) == []

    @given(st.text(alphabet=st.characters(exclude_characters="/"), min_size=1))
    def test_url_without_trailing_slash_is_unchanged(self, url: str) -> None:
        hits = normalize_image_hits({"images": [{"url": url}]})
        assert [hit.url for hit in hits] == [url]

    @given(st.text(alphabet=st.characters(exclude_characters="/"), min_size=1))
    def test_trailing_slash_is_removed(self, url: str) -> None:
        hits = normalize_image_hits({"images": [{"url": url + "/"}]})
        assert [hit.url for hit in hits] == [url]


class TestFetchImageBlock:

    @pytest.mark.asyncio
    async def test_encodes_whitelisted_image(self) -> None:
        transport = image_transport({"https://img.example.com/a.png": _image("image/png", PNG_BYTES)})
        async with httpx.AsyncClient(transport=transport) as client:
            block = await fetch_image_block(client, ImageHit("https://img.example.com/a.png"))

        assert block == ImageBlock(media_type="image/png", data=base64.b64encode(PNG_BYTES).decode())

    @pytest.mark.asyncio
    async def test_media_type_parameters_are_ignored(self) -> None:
        transport = image_transport({
            "https://img.example.com/a.jpg": _image("Image/JPEG; charset=binary", JPEG_BYTES),
        })
        async with httpx.AsyncClient(transport=transport) as client:
            block = await fetch_image_block(client, ImageHit("https://img.example.com/a.jpg"))

        assert block.media_type == "image/jpeg"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content_type", ["text/html", "image/svg+xml", "application/octet-stream"])
    async def test_rejects_non_whitelisted_type(self, content_type: str) -> None:
        transport = image_transport({"https://img.example.com/x": _image(content_type, b"<html/>")})
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(UnsupportedMediaTypeError):
                await fetch_image_block(client, ImageHit("https://img.example.com/x"))

    @pytest.mark.asyncio
    async def test_rejects_missing_content_type(self) -> None:
        transport = image_transport({"https://img.example.com/x": httpx.Response(200, content=PNG_BYTES)})
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(UnsupportedMediaTypeError):
                await fetch_image_block(client, ImageHit("https://img.example.com/x"))


class TestSearchImages:

    @pytest.mark.asyncio
    async def test_text_then_fetchable_images_in_hit_order(self, caplog) -> None:
        backend = FakeSearchBackend(images=[
            {"url": "https://img.example.com/1.png/"},
            {"url": "https://img.example.com/2.html"},
            {"url": "https://img.example.com/3.jpg"},
            {"url": "https://img.example.com/4.missing"},
            {"url": "https://img.example.com/5.gif"},
            {"url": "https://img.example.com/6.down"},
            {"url": "https://img.example.com/7.webp"},
        ])
        routes = {
            "https://img.example.com/1.png": _image("image/png", b"one"),
            "https://img.example.com/2.html": _image("text/html", b"<html/>"),
            "https://img.example.com/3.jpg": _image("image/jpeg", b"three"),
            "https://img.example.com/5.gif": _image("image/gif", b"five"),
            "https://img.example.com/6.down": httpx.ConnectError("unreachable"),
            "https://img.example.com/7.webp": _image("image/webp", b"seven"),
        }

        async with httpx.AsyncClient(transport=image_transport(routes)) as client:
            processor = ImageResultProcessor(backend, http_client=client)
            with caplog.at_level(logging.WARNING, logger="tooldispatch.images.processor"):
                content = await processor.search_images("coffee shop hero")

        assert backend.queries == ["coffee shop hero"]
        assert content[0] == TextBlock(search_header_text("coffee shop hero"))
        assert all(isinstance(block, ImageBlock) for block in content[1:])
        assert [base64.b64decode(block.data) for block in content[1:]] == [
            b"one", b"three", b"five", b"seven",
        ]
        assert [block.media_type for block in content[1:]] == [
            "image/png", "image/jpeg", "image/gif", "image/webp",
        ]
        assert "Unsupported media type text/html" in caplog.text
        assert "https://img.example.com/6.down" in caplog.text

    @pytest.mark.asyncio
    async def test_parallel_fetch_keeps_hit_order(self) -> None:
        urls = [f"https://img.example.com/{i}.png" for i in range(6)]
        backend = FakeSearchBackend(images=[{"url": url} for url in urls])
        routes = {url: _image("image/png", url.encode()) for url in urls}

        async with httpx.AsyncClient(transport=image_transport(routes)) as client:
            processor = ImageResultProcessor(backend, http_client=client, max_concurrency=3)
            content = await processor.search_images("grid")

        assert [base64.b64decode(block.data).decode() for block in content[1:]] == urls

    @pytest.mark.asyncio
    async def test_no_hits_yields_header_only(self) -> None:
        processor = ImageResultProcessor(FakeSearchBackend(images=[]))
        content = await processor.search_images("nothing")
        assert content == [TextBlock(search_header_text("nothing"))]

    @pytest.mark.asyncio
    async def test_search_backend_failure_propagates(self) -> None:
        processor = ImageResultProcessor(FakeSearchBackend(error=RuntimeError("search down")))
        with pytest.raises(RuntimeError, match="search down"):
            await processor.search_images("anything")


class TestListImages:

    @pytest.mark.asyncio
    async def test_listing_serializes_normalized_hits(self) -> None:
        backend = FakeSearchBackend(images=[
            {"url": "https://img.example.com/a.png/", "description": "Latte art"},
            {"url": "https://img.example.com/b.png"},
        ])
        processor = ImageResultProcessor(backend)

        content = await processor.list_images("latte", NO_IMAGES_TEXT)

        assert len(content) == 1
        assert json.loads(content[0].text) == [
            {"url": "https://img.example.com/a.png", "description": "Latte art"},
            {"url": "https://img.example.com/b.png", "description": DEFAULT_IMAGE_DESCRIPTION},
        ]
        assert content[0].text.startswith("[\n  {")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("empty_text", [NO_IMAGES_TEXT, NO_PLACEHOLDER_IMAGES_TEXT])
    async def test_empty_listing_returns_fixed_text(self, empty_text: str) -> None:
        processor = ImageResultProcessor(FakeSearchBackend(images=None))
        content = await processor.list_images("nothing", empty_text)
        assert content == [TextBlock(empty_text)]

    def test_format_hit_listing_empty(self) -> None:
        assert format_hit_listing([], "none") == "none"
