"""Local filesystem storage backend and per-file lifecycle registry.

Architectural role:
    Provides the default `StorageBackend`, addressing files by the logical key
    `projectFolderName/fileName` relative to a configured storage root, plus the
    `FileStateRegistry` consulted by strict task assignment.

Path validation:
    - Keys are resolved under `root` with `os.path.realpath`.
    - Keys escaping the root (absolute paths, `..` traversal) raise `ValueError`.

Error handling strategy:
    - Missing files raise `FileNotFoundError` from `read`.
    - I/O errors propagate to the dispatcher's caller.

Performance characteristics:
    Blocking file I/O runs in a worker thread via `asyncio.to_thread`.
"""

import asyncio
import logging
import os
import threading
from enum import Enum


logger = logging.getLogger(__name__)


class LocalFileStorage:
    """Read/write text files beneath a storage root."""

    def __init__(self, root: str) -> None:
        self.root = os.path.realpath(root)

    async def write(self, path: str, content: str) -> None:
        await asyncio.to_thread(self._write_sync, path, content)

    async def read(self, path: str) -> str:
        return await asyncio.to_thread(self._read_sync, path)

    def resolve(self, path: str) -> str:
        """Map a logical key to an absolute path inside `root`.

        Raises:
            ValueError: For empty keys or keys outside the storage root.
        """
        if not path or not path.strip():
            raise ValueError("Invalid file path")
        if os.path.isabs(path):
            raise ValueError("Access denied: absolute paths are not allowed")

        candidate = os.path.realpath(os.path.join(self.root, path))
        if os.path.commonpath([candidate, self.root]) != self.root or candidate == self.root:
            raise ValueError("Access denied: path is outside storage root")
        return candidate

    def _write_sync(self, path: str, content: str) -> None:
        target = self.resolve(path)
        os.makedirs(os.path.dirname(target), exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            f.write(content)
        logger.debug("Wrote %d chars to %s", len(content), path)

    def _read_sync(self, path: str) -> str:
        target = self.resolve(path)
        if not os.path.isfile(target):
            raise FileNotFoundError(f"File not found: {path}")
        with open(target, "r", encoding="utf-8") as f:
            return f.read()


class FileState(str, Enum):
    CREATED = "created"
    ASSIGNING = "assigning"
    ASSIGNED = "assigned"


class FileStateRegistry:
    """Track the scaffold-then-fill lifecycle per `ProjectFilePath`.

    Paths never scaffolded have no state (`get` returns `None`). A path moves
    `CREATED -> ASSIGNING` atomically through `claim`, so at most one
    assignment runs per creation.
    """

    def __init__(self) -> None:
        self._states: dict[str, FileState] = {}
        self._lock = threading.Lock()

    def get(self, path: str) -> FileState | None:
        with self._lock:
            return self._states.get(path)

    def mark_created(self, path: str) -> None:
        with self._lock:
            self._states[path] = FileState.CREATED

    def claim(self, path: str) -> FileState | None:
        """Move a `CREATED` path to `ASSIGNING` and return its previous state."""
        with self._lock:
            state = self._states.get(path)
            if state is FileState.CREATED:
                self._states[path] = FileState.ASSIGNING
            return state

    def release(self, path: str) -> None:
        """Return an unfinished claim to `CREATED`."""
        with self._lock:
            if self._states.get(path) is FileState.ASSIGNING:
                self._states[path] = FileState.CREATED

    def mark_assigned(self, path: str) -> None:
        with self._lock:
            self._states[path] = FileState.ASSIGNED
