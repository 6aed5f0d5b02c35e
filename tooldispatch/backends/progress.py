"""Progress-event sinks used to stream tool status to an observing UI.

Architectural role:
    Implements the `ProgressSink` contract for the adapters that ship with this
    package: a no-op sink, a callback sink wrapping a `send_event(kind, payload)`
    callable, and an asyncio-queue sink feeding the HTTP SSE stream.

Delivery model:
    Emission is fire-and-forget. `safe_emit` logs and swallows sink failures so
    a broken UI channel never changes a tool result.
"""

import asyncio
import logging
from typing import Any, Callable

from tooldispatch.backends.protocols import ProgressSink


logger = logging.getLogger(__name__)

PROGRESS_EVENT = "progress"


class NullProgressSink:
    """Discard every event."""

    def emit(self, event_kind: str, payload: dict[str, Any]) -> None:
        return None


class CallbackProgressSink:
    """Forward events to a plain `send_event(kind, payload)` callable."""

    def __init__(self, send_event: Callable[[str, dict[str, Any]], Any]) -> None:
        self._send_event = send_event

    def emit(self, event_kind: str, payload: dict[str, Any]) -> None:
        self._send_event(event_kind, payload)


class QueueProgressSink:
    """Buffer events on an `asyncio.Queue` for a concurrent consumer.

    The queue is unbounded, so `emit` never blocks the producing sub-flow.
    `events` keeps a copy for non-streaming callers.
    """

    def __init__(self) -> None:
        self.queue: asyncio.Queue[tuple[str, dict[str, Any]]] = asyncio.Queue()
        self.events: list[dict[str, Any]] = []

    def emit(self, event_kind: str, payload: dict[str, Any]) -> None:
        self.events.append({"event": event_kind, **payload})
        self.queue.put_nowait((event_kind, payload))


def safe_emit(sink: ProgressSink | None, message: str, event_kind: str = PROGRESS_EVENT) -> None:
    """Emit `{"message": message}` on `sink`, logging instead of raising."""
    if sink is None:
        return
    try:
        sink.emit(event_kind, {"message": message})
    except Exception:
        logger.exception("Progress sink failed for event=%s message=%r", event_kind, message)
