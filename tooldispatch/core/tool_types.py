"""Tool invocation and tool result data contracts for `tooldispatch.core.dispatcher`.

Architectural role:
    Defines the structures exchanged between the conversation loop, the dispatcher,
    and the per-tool sub-flows. Every sub-flow produces an ordered list of content
    blocks; the dispatcher wraps them into exactly one `ToolResult`.

Wire format:
    `to_dict()` methods emit the Anthropic message shapes re-entered into the model
    conversation (`tool_result`, `text`, `image` with a base64 `source`).

Determinism:
    The data classes are purely structural and state-free.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from tooldispatch.backends.protocols import ProgressSink


DEFAULT_IMAGE_DESCRIPTION = "No description available"


class ToolName(str, Enum):
    """Closed set of tool names the dispatcher recognizes."""

    SEARCH = "search_tool"
    IMAGE_FINDER = "image_finder_tool"
    PLACEHOLDER_IMAGE = "placeholder_image_tool"
    IMAGE_ANALYSIS = "image_analysis_tool"
    FILE_CREATOR = "file_creator_tool"
    TASK_ASSIGNER = "task_assigner_tool"
    DEPLOY_PROJECT = "deploy_project_tool"

    @classmethod
    def lookup(cls, name: str) -> "ToolName | None":
        """Return the matching member, or `None` for unknown names."""
        try:
            return cls(name)
        except ValueError:
            return None


@dataclass(frozen=True)
class ToolInvocation:
    """One tool call emitted by the model.

    Attributes:
        id: Provider-assigned tool-use id, echoed back as `tool_use_id`.
        name: Raw tool name; may be outside `ToolName`.
        input: Named parameters; shape depends on `name`.
    """

    id: str
    name: str
    input: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ToolInvocation":
        """Build an invocation from a provider `tool_use` block."""
        if not data.get("id"):
            raise ValueError("Tool invocation is missing an id")
        if not data.get("name"):
            raise ValueError("Tool invocation is missing a name")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            input=dict(data.get("input") or {}),
        )


@dataclass(frozen=True)
class TextBlock:
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass(frozen=True)
class ImageBlock:
    """Base64-encoded image payload with its whitelisted media type."""

    media_type: str
    data: str
    encoding: str = "base64"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "image",
            "source": {
                "type": self.encoding,
                "media_type": self.media_type,
                "data": self.data,
            },
        }


ContentBlock = TextBlock | ImageBlock


@dataclass(frozen=True)
class ToolResult:
    """Normalized result envelope for one invocation.

    Block order is significant: text precedes images, and images keep the
    order of the search hits they were fetched from.
    """

    tool_use_id: str
    content: list[ContentBlock] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "tool_result",
            "tool_use_id": self.tool_use_id,
            "content": [block.to_dict() for block in self.content],
        }


@dataclass(frozen=True)
class ImageHit:
    """Normalized search-backend image reference.

    A single trailing slash is removed from `url`; `description` falls back to
    `DEFAULT_IMAGE_DESCRIPTION`.
    """

    url: str
    description: str = DEFAULT_IMAGE_DESCRIPTION

    def to_dict(self) -> dict[str, str]:
        return {"url": self.url, "description": self.description}


@dataclass(frozen=True)
class SessionContext:
    """Per-call bundle passed through to sub-flows and never persisted.

    Attributes:
        project_folder_name: Root of the `ProjectFilePath` key space.
        progress_sink: Fire-and-forget status channel to an observing UI.
        client: Opaque backend client handle forwarded to code generation.
    """

    project_folder_name: str
    progress_sink: ProgressSink
    client: Any = None


class DispatchStatus(str, Enum):
    HANDLED = "handled"
    UNHANDLED = "unhandled"


@dataclass(frozen=True)
class DispatchOutcome:
    """Explicit dispatch result.

    `UNHANDLED` marks a tool name outside `ToolName`; `result` is then `None`
    and `results` is empty.
    """

    status: DispatchStatus
    result: ToolResult | None = None

    @property
    def handled(self) -> bool:
        return self.status is DispatchStatus.HANDLED

    @property
    def results(self) -> list[ToolResult]:
        return [self.result] if self.result is not None else []

    def to_messages(self) -> list[dict[str, Any]]:
        return [result.to_dict() for result in self.results]
