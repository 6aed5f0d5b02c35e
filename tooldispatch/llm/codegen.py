"""LLM-backed code generation collaborator for TASK_ASSIGNER.

Processing flow:
    1. Send the composed task document (`Filename` / `Guidelines` header plus seed
       content) to the model.
    2. Split the reply into the fenced code block and the trailing description.
    3. Write the code to `file_path` through the storage backend.
    4. Return `{"description": ..., "file_path": ...}`.

Client resolution:
    The session's backend client handle is used when it exposes `complete`;
    otherwise the generator's own `LLMClient` is used.

Failure handling:
    Provider and storage failures propagate to the dispatcher's caller.
"""

import asyncio
import logging
import re
from typing import Any

from tooldispatch.backends.protocols import StorageBackend
from tooldispatch.llm.client import LLMClient
from tooldispatch.llm.provider_config import CODEGEN_MODEL_NAME, CODEGEN_SYSTEM_MESSAGE


logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"```[\w.+-]*[ \t]*\n(.*?)```", re.DOTALL)


def split_generated_reply(reply: str, file_path: str) -> tuple[str, str]:
    """Return `(code, description)` extracted from a model reply.

    Edge cases:
        - No fenced block: the whole reply is the code and the description is a
          generic confirmation.
        - Fenced block without surrounding prose: generic confirmation.
    """
    match = _FENCE_PATTERN.search(reply)
    if not match:
        return reply.strip() + "\n", f"Code written to {file_path}."

    code = match.group(1)
    prose = (reply[: match.start()] + reply[match.end():]).strip()
    return code, prose or f"Code written to {file_path}."


class LLMCodeGenerator:
    def __init__(self, storage: StorageBackend, client: LLMClient | None = None) -> None:
        self.storage = storage
        self.client = client

    async def generate(self, query: str, file_path: str, client: Any = None) -> dict[str, Any]:
        llm = client if hasattr(client, "complete") else self.client
        if llm is None:
            raise RuntimeError("No LLM client available for code generation")

        reply = await asyncio.to_thread(
            llm.complete,
            [{"role": "user", "content": query}],
            CODEGEN_SYSTEM_MESSAGE,
            CODEGEN_MODEL_NAME,
        )
        code, description = split_generated_reply(reply, file_path)
        await self.storage.write(file_path, code)
        logger.info("Generated %d chars of code for %s", len(code), file_path)

        return {"description": description, "file_path": file_path}
