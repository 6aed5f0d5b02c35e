"""Image search result processing for SEARCH, IMAGE_FINDER and PLACEHOLDER_IMAGE.

Processing flow (SEARCH):
    1. Query the search backend and normalize raw entries into `ImageHit`s.
    2. Emit a leading text block describing the query context.
    3. Fetch each hit over HTTP in hit order via `collect_in_order`.
    4. Keep responses whose declared content type is whitelisted, base64-encode
       them, and append one image block per success.

Processing flow (IMAGE_FINDER / PLACEHOLDER_IMAGE):
    Same normalization, then a single text block holding the JSON listing of hits,
    or a fixed empty-result text.

Error handling strategy:
    - Per-image failures (transport, status, unsupported media type, encoding) are
      logged and the image is omitted.
    - Search backend failures are not caught here and propagate to the caller.

Determinism:
    Normalization and listing are deterministic for a fixed backend payload.
    Fetched image bytes depend on third-party hosts.
"""

import base64
import json
import logging
from typing import Any, Mapping

import httpx

from tooldispatch.backends.protocols import SearchBackend
from tooldispatch.core.tool_types import (
    DEFAULT_IMAGE_DESCRIPTION,
    ContentBlock,
    ImageBlock,
    ImageHit,
    TextBlock,
)
from tooldispatch.images.ordered import collect_in_order


logger = logging.getLogger(__name__)

ACCEPTED_MEDIA_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})

NO_IMAGES_TEXT = "No relevant images found"
NO_PLACEHOLDER_IMAGES_TEXT = "No relevant placeholder images found"


class UnsupportedMediaTypeError(ValueError):
    """Raised when a fetched image declares a non-whitelisted content type."""

    def __init__(self, media_type: str | None, url: str) -> None:
        super().__init__(f"Unsupported media type {media_type} for image {url}")
        self.media_type = media_type
        self.url = url


def strip_trailing_slash(url: str) -> str:
    """Drop a single trailing `/` from `url`."""
    return url[:-1] if url.endswith("/") else url


def normalize_image_hits(search_results: Mapping[str, Any] | None) -> list[ImageHit]:
    """Reduce a raw search payload to `ImageHit`s in backend order.

    Edge cases:
        - Missing/`None` `images` yields `[]`.
        - Entries that are not mappings, or whose `url` is not a non-empty
          string, are dropped.
        - Empty descriptions fall back to `DEFAULT_IMAGE_DESCRIPTION`.
    """
    hits: list[ImageHit] = []
    for entry in (search_results or {}).get("images") or []:
        if not isinstance(entry, Mapping):
            continue
        url = entry.get("url")
        if not isinstance(url, str) or not url:
            continue
        url = strip_trailing_slash(url)
        if not url:
            continue
        hits.append(ImageHit(url=url, description=entry.get("description") or DEFAULT_IMAGE_DESCRIPTION))
    return hits


def search_header_text(query: str) -> str:
    return (
        f'Here are relevant images found for the query "{query}". '
        "These images may be useful for designing and creating components for the website:"
    )


def format_hit_listing(hits: list[ImageHit], empty_text: str) -> str:
    """Serialize hits as an indented JSON array, or return `empty_text`."""
    if not hits:
        return empty_text
    return json.dumps([hit.to_dict() for hit in hits], indent=2, ensure_ascii=False)


def media_type_of(response: httpx.Response) -> str | None:
    """Return the bare, lower-cased media type declared by `response`."""
    content_type = response.headers.get("content-type")
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip().lower()


async def fetch_image_block(client: httpx.AsyncClient, hit: ImageHit) -> ImageBlock:
    """Fetch one hit and encode it as a base64 image block.

    Raises:
        httpx.HTTPError: Transport failure or non-2xx status.
        UnsupportedMediaTypeError: Content type outside `ACCEPTED_MEDIA_TYPES`.
    """
    response = await client.get(hit.url)
    response.raise_for_status()

    media_type = media_type_of(response)
    if media_type not in ACCEPTED_MEDIA_TYPES:
        raise UnsupportedMediaTypeError(media_type, hit.url)

    data = base64.b64encode(response.content).decode("ascii")
    return ImageBlock(media_type=media_type, data=data)


class ImageResultProcessor:
    """Turn search-backend output into tool-result content blocks.

    Args:
        search_backend: Image search collaborator.
        http_client: Shared client for image fetches; a short-lived client is
            opened per SEARCH call when omitted.
        max_concurrency: Bound on in-flight image fetches (1 = sequential).
        timeout_seconds: Timeout for the per-call client.
    """

    def __init__(
        self,
        search_backend: SearchBackend,
        http_client: httpx.AsyncClient | None = None,
        max_concurrency: int = 1,
        timeout_seconds: float = 20.0,
    ) -> None:
        self.search_backend = search_backend
        self.http_client = http_client
        self.max_concurrency = max(1, max_concurrency)
        self.timeout_seconds = timeout_seconds

    async def search_images(self, query: str) -> list[ContentBlock]:
        """SEARCH: header text followed by every fetchable whitelisted image."""
        hits = normalize_image_hits(await self.search_backend.search(query))
        content: list[ContentBlock] = [TextBlock(search_header_text(query))]
        if not hits:
            return content

        if self.http_client is not None:
            images = await self._fetch_all(self.http_client, hits)
        else:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                follow_redirects=True,
            ) as client:
                images = await self._fetch_all(client, hits)

        content.extend(images)
        logger.info(
            "Search query=%r hits=%d images=%d skipped=%d",
            query,
            len(hits),
            len(images),
            len(hits) - len(images),
        )
        return content

    async def list_images(self, query: str, empty_text: str) -> list[ContentBlock]:
        """IMAGE_FINDER / PLACEHOLDER_IMAGE: one text block listing the hits."""
        hits = normalize_image_hits(await self.search_backend.search(query))
        return [TextBlock(format_hit_listing(hits, empty_text))]

    async def _fetch_all(self, client: httpx.AsyncClient, hits: list[ImageHit]) -> list[ImageBlock]:
        async def fetch(hit: ImageHit) -> ImageBlock:
            return await fetch_image_block(client, hit)

        collected = await collect_in_order(hits, fetch, max_concurrency=self.max_concurrency)
        for hit, exc in collected.failures:
            if isinstance(exc, UnsupportedMediaTypeError):
                logger.warning("%s", exc)
            else:
                logger.error("Error processing image %s: %r", hit.url, exc)
        return collected.successes
