"""LLM-backed image analysis collaborator for IMAGE_ANALYSIS.

Sends every image url plus the analysis prompt in one multimodal user message and
returns the reply text. Provider failures raise from `LLMClient.complete`.
"""

import asyncio

from tooldispatch.llm.client import LLMClient
from tooldispatch.llm.provider_config import ANALYSIS_SYSTEM_MESSAGE


class LLMImageAnalyzer:
    def __init__(self, client: LLMClient) -> None:
        self.client = client

    async def analyze(self, urls, prompt) -> str:
        if isinstance(urls, str):
            urls = [urls]

        parts = [{"type": "image_url", "url": url} for url in urls or []]
        parts.append({"type": "text", "text": str(prompt or "")})

        return await asyncio.to_thread(
            self.client.complete,
            [{"role": "user", "content": parts}],
            ANALYSIS_SYSTEM_MESSAGE,
        )
