"""Shared workspace file store.

The workspace is a directory the relay shares with the agent that polls
it. Materialized attachments are written here under a relative path and
the agent later opens them by that same path.
"""

from __future__ import annotations

import contextlib
from pathlib import Path

from loguru import logger

from tgrelay.errors import WorkspaceError


class WorkspaceStore:
    """Writes workspace files addressed by relative path."""

    def __init__(self, workspace_path: Path) -> None:
        self._root = workspace_path.expanduser().resolve()

    @property
    def root(self) -> Path:
        return self._root

    def initialize(self) -> None:
        """Create the workspace directory if it does not exist yet."""
        self._root.mkdir(parents=True, exist_ok=True)

    def resolve(self, relative_path: str) -> Path:
        """Map a relative path to an absolute one inside the workspace."""
        target = (self._root / relative_path).resolve()
        if not target.is_relative_to(self._root) or target == self._root:
            logger.warning("Path traversal blocked: {}", relative_path)
            raise WorkspaceError(f"Path escapes workspace: {relative_path}")
        return target

    def write_file(self, relative_path: str, content: bytes) -> Path:
        """Write bytes to a workspace file, creating parent directories.

        Uses temp-file-then-rename so the agent never sees a partial file.
        """
        target = self.resolve(relative_path)
        tmp_path = target.with_name(target.name + ".tmp")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(content)
            tmp_path.replace(target)
        except OSError as exc:
            with contextlib.suppress(OSError):
                tmp_path.unlink()
            raise WorkspaceError(f"Failed to write {relative_path}: {exc}") from exc
        logger.debug("Wrote {} bytes to workspace file {}", len(content), relative_path)
        return target
