"""Image search backend for the SEARCH / IMAGE_FINDER / PLACEHOLDER_IMAGE tools.

Architectural role:
    Calls an external search provider and reduces its provider-specific payload to
    the shape the image processor consumes: `{"images": [{"url", "description"}]}`.

Provider strategy:
    - `tavily`: POST JSON endpoint with `include_images` and image descriptions.
      Bare string entries (descriptions unavailable) become `{"url": ...}`.
    - `brave`: GET image-search endpoint with subscription token header.
    - `serpapi`: GET Google Images engine with query params.

Ranking logic:
    Provider order is preserved; the dispatcher relies on it for "the Nth image".

Failure model:
    No retry loop. Transport errors and non-2xx statuses raise `httpx` exceptions
    which propagate out of the dispatcher as backend failures.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any

import httpx
from dotenv import load_dotenv


load_dotenv()

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchClientConfig:
    """Runtime configuration for `ImageSearchClient`.

    Relevant environment variables:
        - `IMAGE_SEARCH_PROVIDER`
        - `SEARCH_API_KEY`
        - `WEB_TIMEOUT_SECONDS`
        - `IMAGE_SEARCH_MAX_RESULTS`
        - `WEB_USER_AGENT`
    """

    provider: str = os.getenv("IMAGE_SEARCH_PROVIDER", "tavily").strip().lower()
    search_api_key: str = os.getenv("SEARCH_API_KEY", "").strip()
    timeout_seconds: float = float(os.getenv("WEB_TIMEOUT_SECONDS", "12"))
    max_results: int = int(os.getenv("IMAGE_SEARCH_MAX_RESULTS", "8"))
    user_agent: str = os.getenv("WEB_USER_AGENT", "tooldispatch/0.1").strip()


class ImageSearchClient:
    """Provider-agnostic image search implementing `SearchBackend`."""

    _TAVILY_URL = "https://api.tavily.com/search"
    _BRAVE_URL = "https://api.search.brave.com/res/v1/images/search"
    _SERPAPI_URL = "https://serpapi.com/search.json"

    def __init__(
        self,
        config: SearchClientConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the search client.

        Args:
            config: Provider and network configuration.
            transport: Optional httpx transport override.

        Raises:
            RuntimeError: If `SEARCH_API_KEY` is missing or the provider is unknown.
        """
        self.config = config
        self._transport = transport
        if not self.config.search_api_key:
            raise RuntimeError("SEARCH_API_KEY not configured")
        if self.config.provider not in {"tavily", "brave", "serpapi"}:
            raise RuntimeError(f"Unsupported IMAGE_SEARCH_PROVIDER: {self.config.provider}")

    async def search(self, query: str) -> dict[str, Any]:
        """Search the configured provider for images matching `query`.

        Returns:
            `{"images": [...]}` in provider order; empty list for blank queries.
        """
        if not query or not query.strip():
            return {"images": []}

        provider = self.config.provider
        if provider == "tavily":
            data = await self._request(
                "POST",
                self._TAVILY_URL,
                headers={"Content-Type": "application/json"},
                json_body={
                    "api_key": self.config.search_api_key,
                    "query": query,
                    "include_images": True,
                    "include_image_descriptions": True,
                    "max_results": self.config.max_results,
                },
            )
            images = self._parse_tavily(data)
        elif provider == "brave":
            data = await self._request(
                "GET",
                self._BRAVE_URL,
                headers={
                    **self._default_headers(),
                    "X-Subscription-Token": self.config.search_api_key,
                },
                params={"q": query, "count": self.config.max_results},
            )
            images = self._parse_brave(data)
        else:
            data = await self._request(
                "GET",
                self._SERPAPI_URL,
                headers=self._default_headers(),
                params={
                    "engine": "google_images",
                    "q": query,
                    "api_key": self.config.search_api_key,
                },
            )
            images = self._parse_serpapi(data)

        logger.info("Image search provider=%s query=%r hits=%d", provider, query, len(images))
        return {"images": images[: self.config.max_results]}

    async def _request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        async with httpx.AsyncClient(
            timeout=self.config.timeout_seconds,
            follow_redirects=True,
            headers=headers,
            transport=self._transport,
        ) as client:
            response = await client.request(method, url, params=params, json=json_body)
        response.raise_for_status()
        data = response.json()
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _parse_tavily(data: dict[str, Any]) -> list[dict[str, Any]]:
        images = []
        for item in data.get("images") or []:
            if isinstance(item, str):
                images.append({"url": item})
            elif isinstance(item, dict):
                images.append({"url": item.get("url"), "description": item.get("description")})
        return images

    @staticmethod
    def _parse_brave(data: dict[str, Any]) -> list[dict[str, Any]]:
        images = []
        for item in data.get("results") or []:
            if not isinstance(item, dict):
                continue
            properties = item.get("properties") or {}
            images.append({"url": properties.get("url"), "description": item.get("title")})
        return images

    @staticmethod
    def _parse_serpapi(data: dict[str, Any]) -> list[dict[str, Any]]:
        return [
            {"url": item.get("original"), "description": item.get("title")}
            for item in data.get("images_results") or []
            if isinstance(item, dict)
        ]

    def _default_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": self.config.user_agent,
        }
