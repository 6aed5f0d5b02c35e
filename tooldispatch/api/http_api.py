"""
HTTP API adapter for the tool-dispatch engine.

Architectural role:
- Expose tool definitions and tool execution over HTTP.
- Validate request shape and build the per-call session context.
- Delegate execution to `tooldispatch.core.dispatcher.ToolDispatcher.dispatch`.
- Normalize the outcome to JSON or to an SSE stream carrying progress events.

Endpoint responsibilities:
- `GET /v1/tools`: list model-facing tool definitions.
- `POST /v1/tools/dispatch`: run one tool invocation for a project.

API request lifecycle (`POST /v1/tools/dispatch`):
1. Validate `{tool: {id, name, input}, project_folder_name, stream}`.
2. Build a `SessionContext` with a queue-backed progress sink.
3. Dispatch the invocation.
4. Non-stream: return `{status, results, events}`.
   Stream: emit `progress` frames while the tool runs, then one `result`
   frame and a final `[DONE]` sentinel.

Error handling strategy:
- `FileNotFoundError` -> HTTP 404 (stream: `error` frame).
- `FileStateError` -> HTTP 409 (stream: `error` frame).
- `ValueError` -> HTTP 400 (stream: `error` frame).
- Other backend failures are not wrapped in non-stream mode and follow FastAPI
  default exception handling; in stream mode they become an `error` frame.

Side effects:
- Loads environment variables at import time via `load_dotenv()`.
- Emits verbose request logs only when `DEBUG == "true"`.
"""

from dotenv import load_dotenv

load_dotenv()

import asyncio
import json
import logging
import os
from typing import Any

from fastapi import FastAPI
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field

from tooldispatch.backends.progress import QueueProgressSink
from tooldispatch.core.dispatcher import get_default_dispatcher
from tooldispatch.core.tool_definitions import TOOL_DEFINITIONS
from tooldispatch.core.tool_types import SessionContext, ToolInvocation
from tooldispatch.files.task_pipeline import FileStateError


logger = logging.getLogger(__name__)

app = FastAPI()
# Sensitive request/response debug logging is opt-in.
DEBUG = os.getenv("DEBUG") == "true"


# ============================================================
# Request Schema
# ============================================================

class ToolCall(BaseModel):
    """Model-emitted `tool_use` block."""
    id: str
    name: str
    input: dict[str, Any] = Field(default_factory=dict)


class DispatchRequest(BaseModel):
    tool: ToolCall
    project_folder_name: str
    stream: bool = False


# ============================================================
# Error Mapping
# ============================================================

def _error_status(exc: Exception) -> int | None:
    """Map known dispatch failures to HTTP status codes."""
    if isinstance(exc, FileNotFoundError):
        return 404
    if isinstance(exc, FileStateError):
        return 409
    if isinstance(exc, ValueError):
        return 400
    return None


def _sse(event: str, payload: Any) -> str:
    return f"event: {event}\ndata: {json.dumps(payload, ensure_ascii=False)}\n\n"


# ============================================================
# Tool Listing
# ============================================================

@app.get("/v1/tools")
def list_tools():
    return {"object": "list", "data": TOOL_DEFINITIONS}


# ============================================================
# Tool Dispatch
# ============================================================

@app.post("/v1/tools/dispatch")
async def dispatch_tool(body: DispatchRequest):
    """
    Run one tool invocation for `project_folder_name`.

    Response formatting:
    - Non-stream: `{"status": "handled" | "unhandled", "results": [...],
      "events": [...]}`; `results` is empty for unknown tools.
    - Stream: SSE frames `event: progress`, `event: result` (or `event: error`)
      and `data: [DONE]`.
    """
    invocation = ToolInvocation(id=body.tool.id, name=body.tool.name, input=body.tool.input)
    sink = QueueProgressSink()
    context = SessionContext(project_folder_name=body.project_folder_name, progress_sink=sink)
    dispatcher = get_default_dispatcher()

    if DEBUG:
        logger.info("Dispatch request tool=%s id=%s project=%s stream=%s",
                    invocation.name, invocation.id, body.project_folder_name, body.stream)

    if not body.stream:
        try:
            outcome = await dispatcher.dispatch(invocation, context)
        except Exception as exc:
            status_code = _error_status(exc)
            if status_code is None:
                raise
            return JSONResponse(
                status_code=status_code,
                content={"error": str(exc), "tool_use_id": invocation.id},
            )

        return {
            "status": outcome.status.value,
            "results": outcome.to_messages(),
            "events": sink.events,
        }

    async def event_generator():
        """
        Interleave progress frames with the running dispatch task.

        Side effects:
        - Cancels the dispatch task and any pending queue read when the client
          disconnects mid-stream.
        """
        task = asyncio.create_task(dispatcher.dispatch(invocation, context))
        getter = None
        try:
            while True:
                getter = asyncio.create_task(sink.queue.get())
                done, _ = await asyncio.wait({task, getter}, return_when=asyncio.FIRST_COMPLETED)
                if getter in done:
                    kind, payload = getter.result()
                    yield _sse(kind, payload)
                    continue
                getter.cancel()
                break

            while not sink.queue.empty():
                kind, payload = sink.queue.get_nowait()
                yield _sse(kind, payload)

            try:
                outcome = task.result()
            except Exception as exc:
                logger.exception("Tool dispatch failed for id=%s", invocation.id)
                yield _sse("error", {
                    "error": str(exc),
                    "status": _error_status(exc) or 500,
                    "tool_use_id": invocation.id,
                })
            else:
                yield _sse("result", {
                    "status": outcome.status.value,
                    "results": outcome.to_messages(),
                })
            yield "data: [DONE]\n\n"
        finally:
            if getter is not None and not getter.done():
                getter.cancel()
            if not task.done():
                task.cancel()

    return StreamingResponse(event_generator(), media_type="text/event-stream")
