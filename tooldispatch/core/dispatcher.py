"""Tool dispatch: one model tool invocation in, one normalized result envelope out.

Architectural role:
    Entry point used by the conversation loop and by the API/CLI adapters. Classifies
    an invocation by tool name, runs exactly one sub-flow, and wraps the produced
    content blocks into a `ToolResult` carrying the invocation id.

Control-flow model:
    1. Resolve `invocation.name` against `ToolName`.
    2. Unknown names yield `DispatchOutcome(UNHANDLED)`: no exception, no progress
       event, empty `results`.
    3. Known names run one branch:
       - SEARCH / IMAGE_FINDER / PLACEHOLDER_IMAGE -> `ImageResultProcessor`
       - FILE_CREATOR / TASK_ASSIGNER -> `FileTaskPipeline`
       - IMAGE_ANALYSIS / DEPLOY_PROJECT -> `responders.static`

Error handling strategy:
    Backend failures propagate out of `dispatch` unchanged. The caller decides
    whether to surface them to the model or abort the turn.

Concurrency:
    No mutable state is shared between branches or invocations, apart from the
    file lifecycle registry kept when strict task assignment is enabled.
"""

import logging
from typing import Any, Callable, Mapping

import httpx

from tooldispatch.backends.progress import CallbackProgressSink, NullProgressSink
from tooldispatch.backends.protocols import (
    CodeGenerationBackend,
    ImageAnalysisBackend,
    ProgressSink,
    SearchBackend,
    StorageBackend,
)
from tooldispatch.backends.storage import FileStateRegistry
from tooldispatch.config import DispatchConfig
from tooldispatch.core.tool_types import (
    ContentBlock,
    DispatchOutcome,
    DispatchStatus,
    SessionContext,
    ToolInvocation,
    ToolName,
    ToolResult,
)
from tooldispatch.files.task_pipeline import FileTaskPipeline
from tooldispatch.images.processor import (
    NO_IMAGES_TEXT,
    NO_PLACEHOLDER_IMAGES_TEXT,
    ImageResultProcessor,
)
from tooldispatch.responders.static import analyze_images, deploy_notice


logger = logging.getLogger(__name__)

# Query field and empty-result text for the two listing tools.
_LISTING_TOOLS = {
    ToolName.IMAGE_FINDER: ("query", NO_IMAGES_TEXT),
    ToolName.PLACEHOLDER_IMAGE: ("placeholder_image_requirements", NO_PLACEHOLDER_IMAGES_TEXT),
}


def _require(params: Mapping[str, Any], key: str) -> Any:
    value = params.get(key)
    if value is None:
        raise ValueError(f"Missing tool input: {key}")
    return value


class ToolDispatcher:
    """Route tool invocations to their sub-flows.

    Args:
        search_backend: Image search collaborator.
        analysis_backend: Image analysis collaborator.
        storage: File storage collaborator.
        code_generator: Delegated code-generation collaborator.
        http_client: Optional shared client for image fetches.
        config: Runtime configuration; read from the environment when omitted.
        registry: Optional file lifecycle registry; strict assignment creates one
            when omitted.
    """

    def __init__(
        self,
        search_backend: SearchBackend,
        analysis_backend: ImageAnalysisBackend,
        storage: StorageBackend,
        code_generator: CodeGenerationBackend,
        http_client: httpx.AsyncClient | None = None,
        config: DispatchConfig | None = None,
        registry: FileStateRegistry | None = None,
    ) -> None:
        self.config = config or DispatchConfig()
        self.analysis_backend = analysis_backend
        self.images = ImageResultProcessor(
            search_backend,
            http_client=http_client,
            max_concurrency=self.config.image_fetch_concurrency,
            timeout_seconds=self.config.image_fetch_timeout_seconds,
        )
        self.files = FileTaskPipeline(
            storage,
            code_generator,
            registry=registry,
            strict=self.config.strict_task_assignment,
        )

    async def dispatch(self, invocation: ToolInvocation, context: SessionContext) -> DispatchOutcome:
        """Execute one invocation.

        Returns:
            `DispatchOutcome` with status `HANDLED` and one `ToolResult` whose
            `tool_use_id` equals `invocation.id`, or status `UNHANDLED` and no
            result for unknown tool names.
        """
        tool = ToolName.lookup(invocation.name)
        if tool is None:
            logger.warning("Unhandled tool: %s (id=%s)", invocation.name, invocation.id)
            return DispatchOutcome(DispatchStatus.UNHANDLED)

        logger.debug("Dispatching %s id=%s", tool.value, invocation.id)
        content = await self._run(tool, invocation.input or {}, context)
        return DispatchOutcome(DispatchStatus.HANDLED, ToolResult(invocation.id, content))

    async def _run(
        self,
        tool: ToolName,
        params: Mapping[str, Any],
        context: SessionContext,
    ) -> list[ContentBlock]:
        if tool is ToolName.SEARCH:
            return await self.images.search_images(params.get("query") or "")

        if tool in _LISTING_TOOLS:
            query_field, empty_text = _LISTING_TOOLS[tool]
            return await self.images.list_images(params.get(query_field) or "", empty_text)

        if tool is ToolName.IMAGE_ANALYSIS:
            return await analyze_images(
                self.analysis_backend,
                params.get("image_urls"),
                params.get("analysis_prompt"),
            )

        if tool is ToolName.FILE_CREATOR:
            return await self.files.create_file(
                _require(params, "file_name"),
                params.get("file_comments") or "",
                context,
            )

        if tool is ToolName.TASK_ASSIGNER:
            return await self.files.assign_task(
                _require(params, "file_name"),
                params.get("task_guidelines") or "",
                context,
            )

        return deploy_notice(context.project_folder_name, self.config.deploy_base_url)


def build_default_dispatcher(config: DispatchConfig | None = None) -> ToolDispatcher:
    """Wire the shipped collaborators from environment configuration.

    Raises:
        RuntimeError: When the search backend is not configured.
    """
    from tooldispatch.backends.search_client import ImageSearchClient, SearchClientConfig
    from tooldispatch.backends.storage import LocalFileStorage
    from tooldispatch.llm.analysis import LLMImageAnalyzer
    from tooldispatch.llm.client import LLMClient
    from tooldispatch.llm.codegen import LLMCodeGenerator

    config = config or DispatchConfig()
    client = LLMClient()
    storage = LocalFileStorage(config.storage_root)
    return ToolDispatcher(
        search_backend=ImageSearchClient(SearchClientConfig()),
        analysis_backend=LLMImageAnalyzer(client),
        storage=storage,
        code_generator=LLMCodeGenerator(storage, client),
        config=config,
    )


_DEFAULT_DISPATCHER: ToolDispatcher | None = None


def set_default_dispatcher(dispatcher: ToolDispatcher | None) -> None:
    """Override or clear the dispatcher used by `handle_tool_use`."""
    global _DEFAULT_DISPATCHER
    _DEFAULT_DISPATCHER = dispatcher


def get_default_dispatcher() -> ToolDispatcher:
    """Lazily build and cache the default dispatcher."""
    global _DEFAULT_DISPATCHER
    if _DEFAULT_DISPATCHER is None:
        _DEFAULT_DISPATCHER = build_default_dispatcher()
    return _DEFAULT_DISPATCHER


async def handle_tool_use(
    tool: ToolInvocation | Mapping[str, Any],
    project_folder_name: str,
    send_event: ProgressSink | Callable[[str, dict[str, Any]], Any] | None = None,
    client: Any = None,
    dispatcher: ToolDispatcher | None = None,
) -> list[dict[str, Any]]:
    """Dispatch one `tool_use` block and return the wire-format result list.

    Args:
        tool: Invocation, or a raw `{"id", "name", "input"}` mapping.
        project_folder_name: Project root for file paths and deploy links.
        send_event: Progress sink or `send_event(kind, payload)` callable.
        client: Backend client handle forwarded to code generation.
        dispatcher: Explicit dispatcher; the default one is used when omitted.

    Returns:
        `[tool_result]` for recognized tools, `[]` otherwise.
    """
    invocation = tool if isinstance(tool, ToolInvocation) else ToolInvocation.from_dict(tool)

    if send_event is None:
        sink: ProgressSink = NullProgressSink()
    elif hasattr(send_event, "emit"):
        sink = send_event
    else:
        sink = CallbackProgressSink(send_event)

    context = SessionContext(project_folder_name=project_folder_name, progress_sink=sink, client=client)
    outcome = await (dispatcher or get_default_dispatcher()).dispatch(invocation, context)
    return outcome.to_messages()
