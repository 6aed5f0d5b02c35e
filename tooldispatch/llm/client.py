"""Provider-specific transport client for LLM requests.

Architectural role:
    `LLMClient` is the backend client handle carried in `SessionContext.client` and
    used by the default image-analysis and code-generation collaborators. It maps a
    provider-neutral message list onto OpenAI-compatible or Anthropic payloads and
    returns the reply text.

Message format:
    `{"role": "user" | "assistant", "content": str | list[part]}` where a part is
    `{"type": "text", "text": ...}` or `{"type": "image_url", "url": ...}`.

Retry behavior:
    No retry loop is implemented. Each HTTP call is attempted once.

Failure handling model:
    Failures raise `RuntimeError` with a sanitized, provider-labeled message; the
    original exception is chained for logs. Nothing is converted into reply text.
"""

import logging

import requests

from tooldispatch.llm.provider_config import (
    ANTHROPIC_VERSION,
    MAX_TOKENS,
    MODEL_NAME,
    PROVIDER,
    PROVIDERS,
    REQUEST_TIMEOUT_SECONDS,
    load_key,
)


logger = logging.getLogger(__name__)


def _build_sanitized_http_error(provider_name: str, err: requests.exceptions.RequestException) -> str:
    """Build provider-labeled HTTP error text without exposing raw internals."""
    status_code = None
    if getattr(err, "response", None) is not None:
        status_code = getattr(err.response, "status_code", None)

    label = str(provider_name or "provider").upper()
    if status_code:
        return f"{label} HTTP ERROR ({status_code})"
    return f"{label} HTTP ERROR"


def _openai_content(content):
    if isinstance(content, str):
        return content
    parts = []
    for part in content:
        if part.get("type") == "image_url":
            parts.append({"type": "image_url", "image_url": {"url": part["url"]}})
        else:
            parts.append({"type": "text", "text": part.get("text", "")})
    return parts


def _anthropic_content(content):
    if isinstance(content, str):
        return content
    parts = []
    for part in content:
        if part.get("type") == "image_url":
            parts.append({"type": "image", "source": {"type": "url", "url": part["url"]}})
        else:
            parts.append({"type": "text", "text": part.get("text", "")})
    return parts


class LLMClient:
    """Synchronous chat-completion transport for one configured provider."""

    def __init__(
        self,
        provider: str = PROVIDER,
        model: str = MODEL_NAME,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        max_tokens: int = MAX_TOKENS,
    ) -> None:
        if provider not in PROVIDERS:
            raise ValueError(f"Unknown LLM provider: {provider}")
        self.provider = provider
        self.model = model
        self.timeout = timeout
        self.max_tokens = max_tokens

    def complete(self, messages: list[dict], system: str | None = None, model: str | None = None) -> str:
        """Send one non-streaming request and return the reply text.

        Raises:
            RuntimeError: Missing key, HTTP failure, or unexpected response shape.
        """
        try:
            if self.provider == "anthropic":
                return self._complete_anthropic(messages, system, model or self.model)
            return self._complete_openai(messages, system, model or self.model)
        except requests.exceptions.RequestException as err:
            raise RuntimeError(_build_sanitized_http_error(self.provider, err)) from err
        except (KeyError, IndexError, TypeError, ValueError) as err:
            raise RuntimeError(f"{self.provider.upper()} UNEXPECTED RESPONSE") from err

    def _api_key(self) -> str | None:
        key_file = PROVIDERS[self.provider]["key_file"]
        if not key_file:
            return None
        api_key = load_key(key_file)
        if not api_key:
            raise RuntimeError(f"{self.provider.upper()} KEY FILE NOT FOUND")
        return api_key

    def _complete_openai(self, messages, system, model) -> str:
        headers = {"Content-Type": "application/json"}
        api_key = self._api_key()
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        payload_messages = []
        if system:
            payload_messages.append({"role": "system", "content": system})
        for msg in messages:
            payload_messages.append({
                "role": msg["role"],
                "content": _openai_content(msg["content"]),
            })

        response = requests.post(
            PROVIDERS[self.provider]["url"],
            headers=headers,
            json={
                "model": model,
                "messages": payload_messages,
                "max_tokens": self.max_tokens,
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        data = response.json()
        return data["choices"][0]["message"]["content"].strip()

    def _complete_anthropic(self, messages, system, model) -> str:
        headers = {
            "x-api-key": self._api_key(),
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }

        payload = {
            "model": model,
            "max_tokens": self.max_tokens,
            "messages": [
                {"role": msg["role"], "content": _anthropic_content(msg["content"])}
                for msg in messages
            ],
        }
        if system:
            payload["system"] = system

        response = requests.post(
            PROVIDERS["anthropic"]["url"],
            headers=headers,
            json=payload,
            timeout=self.timeout,
        )
        response.raise_for_status()
        data = response.json()

        text_parts = [block["text"] for block in data["content"] if block.get("type") == "text"]
        if not text_parts:
            raise ValueError("No text content in response")
        return "".join(text_parts).strip()
