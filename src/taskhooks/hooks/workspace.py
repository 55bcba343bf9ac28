"""Source of the workspace roots whose hooks directories are searched."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Protocol


class WorkspaceProvider(Protocol):
    """Enumerates the workspace roots currently open in the host."""

    async def get_workspace_paths(self) -> list[Path]: ...


class StaticWorkspaceProvider:
    """Workspace provider over a fixed list of roots."""

    def __init__(self, paths: Iterable[Path | str] = ()) -> None:
        self._paths = [Path(p).absolute() for p in paths]

    async def get_workspace_paths(self) -> list[Path]:
        return list(self._paths)
