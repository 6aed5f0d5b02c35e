"""Tests: provider-specific image search payload reduction."""

import json

import httpx
import pytest

from tooldispatch.backends.search_client import ImageSearchClient, SearchClientConfig


def _config(provider: str, **overrides) -> SearchClientConfig:
    defaults = {
        "provider": provider,
        "search_api_key": "test-key",
        "timeout_seconds": 5.0,
        "max_results": 8,
        "user_agent": "tests",
    }
    defaults.update(overrides)
    return SearchClientConfig(**defaults)


def _transport(payload: dict, captured: list) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json=payload)

    return httpx.MockTransport(handler)


class TestImageSearchClient:

    @pytest.mark.asyncio
    async def test_tavily_mixed_entries(self) -> None:
        captured = []
        payload = {
            "images": [
                {"url": "https://img.example.com/a.png", "description": "A cafe"},
                "https://img.example.com/b.png",
            ]
        }
        client = ImageSearchClient(_config("tavily"), transport=_transport(payload, captured))

        result = await client.search("cafe interior")

        assert result == {"images": [
            {"url": "https://img.example.com/a.png", "description": "A cafe"},
            {"url": "https://img.example.com/b.png"},
        ]}
        body = json.loads(captured[0].content)
        assert captured[0].method == "POST"
        assert body["query"] == "cafe interior"
        assert body["include_images"] is True
        assert body["include_image_descriptions"] is True

    @pytest.mark.asyncio
    async def test_brave_uses_image_property_url(self) -> None:
        captured = []
        payload = {"results": [{"title": "Mountains", "url": "https://page.example.com", "properties": {"url": "https://img.example.com/m.jpg"}}]}
        client = ImageSearchClient(_config("brave"), transport=_transport(payload, captured))

        result = await client.search("mountains")

        assert result == {"images": [{"url": "https://img.example.com/m.jpg", "description": "Mountains"}]}
        assert captured[0].headers["X-Subscription-Token"] == "test-key"
        assert captured[0].url.params["q"] == "mountains"

    @pytest.mark.asyncio
    async def test_serpapi_caps_results(self) -> None:
        captured = []
        payload = {"images_results": [{"original": f"https://img.example.com/{i}.png", "title": str(i)} for i in range(5)]}
        client = ImageSearchClient(_config("serpapi", max_results=2), transport=_transport(payload, captured))

        result = await client.search("numbers")

        assert [image["url"] for image in result["images"]] == [
            "https://img.example.com/0.png",
            "https://img.example.com/1.png",
        ]
        assert captured[0].url.params["engine"] == "google_images"

    @pytest.mark.asyncio
    async def test_blank_query_skips_request(self) -> None:
        captured = []
        client = ImageSearchClient(_config("tavily"), transport=_transport({}, captured))
        assert await client.search("   ") == {"images": []}
        assert captured == []

    @pytest.mark.asyncio
    async def test_http_error_propagates(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        client = ImageSearchClient(_config("tavily"), transport=transport)
        with pytest.raises(httpx.HTTPStatusError):
            await client.search("anything")

    def test_missing_key_raises(self) -> None:
        with pytest.raises(RuntimeError, match="SEARCH_API_KEY"):
            ImageSearchClient(_config("tavily", search_api_key=""))

    def test_unknown_provider_raises(self) -> None:
        with pytest.raises(RuntimeError, match="Unsupported"):
            ImageSearchClient(_config("bing"))
