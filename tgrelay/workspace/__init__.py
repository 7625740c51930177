"""Workspace file storage shared with the polling agent."""

from tgrelay.workspace.manager import WorkspaceStore

__all__ = ["WorkspaceStore"]
