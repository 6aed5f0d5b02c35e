"""Collaborator contracts consumed by the dispatch core.

Architectural role:
    Declares the minimal async/sync interfaces the sub-flows call. Concrete
    implementations live beside this module (`search_client`, `storage`,
    `progress`) and in `tooldispatch.llm` (`analysis`, `codegen`); tests replace
    them with fakes at this seam.

HTTP client:
    Image fetching uses `httpx.AsyncClient` directly; its `get(url)` response
    exposes `headers["content-type"]` and `content` bytes.

Failure model:
    Implementations raise; the core does not catch backend failures except for
    per-image fetches.
"""

from typing import Any, Protocol


class SearchBackend(Protocol):
    """Image-capable web search."""

    async def search(self, query: str) -> dict[str, Any]:
        """Return `{"images": [{"url": ..., "description": ...}, ...]}`."""
        ...


class ImageAnalysisBackend(Protocol):
    async def analyze(self, urls: list[str], prompt: str) -> str:
        """Return the analysis text for `urls` under `prompt`."""
        ...


class StorageBackend(Protocol):
    """Key/value file storage addressed by `projectFolderName/fileName`."""

    async def write(self, path: str, content: str) -> None:
        ...

    async def read(self, path: str) -> str:
        """Return stored content; raise `FileNotFoundError` when absent."""
        ...


class CodeGenerationBackend(Protocol):
    async def generate(self, query: str, file_path: str, client: Any) -> dict[str, Any]:
        """Generate code for `file_path` and return `{"description": ...}`."""
        ...


class ProgressSink(Protocol):
    """One-way status channel; no acknowledgment, no backpressure."""

    def emit(self, event_kind: str, payload: dict[str, Any]) -> None:
        ...
