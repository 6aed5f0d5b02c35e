"""File scaffolding and delegated code generation (FILE_CREATOR -> TASK_ASSIGNER).

Protocol:
    The model first calls FILE_CREATOR, which writes `file_comments` as seed content
    and answers with an instruction to call TASK_ASSIGNER next. TASK_ASSIGNER reads
    the seed back, prepends a `Filename` / `Guidelines` header, and hands the
    composed document to the code-generation backend.

Lifecycle:
    With a `FileStateRegistry`, scaffolded paths are marked `CREATED` and filled
    paths `ASSIGNED`. In strict mode TASK_ASSIGNER claims the path (`CREATED ->
    ASSIGNING`) before touching storage and rejects it otherwise, so overlapping
    calls cannot both generate; a failed assignment returns the path to `CREATED`.
    Without strict mode any existing file can be assigned, which allows resuming
    on pre-existing files, and no registry is kept unless one is passed in.

Error handling strategy:
    - Storage read failures (`FileNotFoundError`) propagate unchanged.
    - Generation backend failures propagate unchanged; no completion event is sent.

Side effects:
    Storage writes, progress events, and one generation call per assignment.
"""

import logging
from typing import Any

from tooldispatch.backends.progress import safe_emit
from tooldispatch.backends.protocols import CodeGenerationBackend, StorageBackend
from tooldispatch.backends.storage import FileState, FileStateRegistry
from tooldispatch.core.tool_types import ContentBlock, SessionContext, TextBlock, ToolName


logger = logging.getLogger(__name__)


class FileStateError(RuntimeError):
    """Raised by strict assignment for a path not awaiting assignment."""

    def __init__(self, path: str, state: FileState | None) -> None:
        label = state.value if state is not None else "not created"
        super().__init__(f"File {path} is {label}; call {ToolName.FILE_CREATOR.value} first")
        self.path = path
        self.state = state


def project_file_path(project_folder_name: str, file_name: str) -> str:
    """Return the logical storage key `projectFolderName/fileName`."""
    return f"{project_folder_name}/{file_name}"


def compose_task_document(path: str, task_guidelines: str, file_content: str) -> str:
    return f"Filename: {path}\n\nGuidelines: {task_guidelines}\n\n{file_content}"


class FileTaskPipeline:
    """Two-call scaffold-then-fill flow over storage and code generation."""

    def __init__(
        self,
        storage: StorageBackend,
        code_generator: CodeGenerationBackend,
        registry: FileStateRegistry | None = None,
        strict: bool = False,
    ) -> None:
        if strict and registry is None:
            registry = FileStateRegistry()
        self.storage = storage
        self.code_generator = code_generator
        self.registry = registry
        self.strict = strict

    async def create_file(
        self,
        file_name: str,
        file_comments: str,
        context: SessionContext,
    ) -> list[ContentBlock]:
        """FILE_CREATOR: write the seed content and request assignment."""
        path = project_file_path(context.project_folder_name, file_name)
        await self.storage.write(path, file_comments)
        if self.registry is not None:
            self.registry.mark_created(path)

        safe_emit(context.progress_sink, f"Creating file {file_name}")
        return [
            TextBlock(
                f"File created successfully at {path}. "
                f"Please assign the file immediately using {ToolName.TASK_ASSIGNER.value}"
            )
        ]

    async def assign_task(
        self,
        file_name: str,
        task_guidelines: str,
        context: SessionContext,
    ) -> list[ContentBlock]:
        """TASK_ASSIGNER: compose the task document and delegate generation.

        Raises:
            FileStateError: Strict mode and the path is not `CREATED`.
            FileNotFoundError: No stored file at the path.
        """
        path = project_file_path(context.project_folder_name, file_name)
        claimed = False
        if self.strict:
            state = self.registry.claim(path)
            if state is not FileState.CREATED:
                raise FileStateError(path, state)
            claimed = True

        completed = False
        try:
            file_content = await self.storage.read(path)
            logger.info("Reading file %s for task assignment", path)
            document = compose_task_document(path, task_guidelines, file_content)

            safe_emit(context.progress_sink, f"Writing code for {file_name}")
            response: dict[str, Any] = await self.code_generator.generate(
                query=document,
                file_path=path,
                client=context.client,
            )
            completed = True
        finally:
            if claimed and not completed:
                self.registry.release(path)

        safe_emit(context.progress_sink, f"Code generated for {file_name} ✅")

        if self.registry is not None:
            self.registry.mark_assigned(path)
        return [TextBlock(str(response.get("description", "")))]
