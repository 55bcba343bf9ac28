"""Hook discovery across the global hooks directory and each workspace root."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from taskhooks.exception import WorkspaceNotFoundError
from taskhooks.hooks.platform import ExecutionStrategy, select_strategy
from taskhooks.hooks.types import HookType
from taskhooks.hooks.workspace import WorkspaceProvider
from taskhooks.utils.logging import logger

WORKSPACE_HOOKS_SUBDIR = Path(".clinerules") / "hooks"


def get_default_global_hooks_dir() -> Path:
    return Path.home() / "Documents" / "Cline" / "Hooks"


def get_workspace_hooks_dir(workspace_root: Path) -> Path:
    return workspace_root / WORKSPACE_HOOKS_SUBDIR


@dataclass(frozen=True, slots=True)
class HookLocation:
    """A directory that may hold at most one hook file per hook type."""

    hooks_dir: Path
    workspace_root: Path | None = None  # None for the global location

    @property
    def is_global(self) -> bool:
        return self.workspace_root is None

    @property
    def name(self) -> str:
        return "global" if self.workspace_root is None else self.workspace_root.name


@dataclass(frozen=True, slots=True)
class HookFileRef:
    """A discovered, usable hook file."""

    path: Path
    hook_type: HookType
    location: HookLocation

    @property
    def is_global(self) -> bool:
        return self.location.is_global


async def resolve_hooks_directory(
    is_global: bool,
    workspace_name: str | None = None,
    *,
    workspace_provider: WorkspaceProvider,
    global_hooks_dir: Path | None = None,
) -> Path:
    """Resolve the hooks directory for the global location or a workspace.

    Args:
        is_global: Resolve the global hooks directory.
        workspace_name: In a multi-root setup, base name of the workspace root to use.
        workspace_provider: Source of workspace roots.
        global_hooks_dir: Override for the global hooks directory.

    Raises:
        WorkspaceNotFoundError: If no workspace root is named `workspace_name`.
    """
    if is_global:
        return global_hooks_dir or get_default_global_hooks_dir()

    workspace_paths = await workspace_provider.get_workspace_paths()
    if workspace_name:
        for root in workspace_paths:
            if root.name == workspace_name:
                return get_workspace_hooks_dir(root)
        raise WorkspaceNotFoundError(f'Workspace "{workspace_name}" not found')

    primary = workspace_paths[0] if workspace_paths else Path.cwd()
    return get_workspace_hooks_dir(primary)


def resolve_existing_hook_path(
    hooks_dir: Path,
    hook_type: HookType | str,
    strategy: ExecutionStrategy,
) -> Path | None:
    """Return the hook file for `hook_type` in `hooks_dir` if it exists.

    Only the platform's own file name is considered: ``<HookType>.ps1`` on
    Windows, extensionless ``<HookType>`` elsewhere. Enablement is not
    checked here.
    """
    candidate = hooks_dir / strategy.hook_filename(hook_type)
    try:
        if candidate.is_file():
            return candidate
    except OSError as e:
        logger.debug("Cannot stat hook candidate {path}: {error}", path=candidate, error=e)
    return None


def find_hook_in_hooks_dir(
    hook_type: HookType | str,
    hooks_dir: Path,
    strategy: ExecutionStrategy,
) -> Path | None:
    """Return the usable hook file for `hook_type`, or None.

    A missing directory or file is an expected outcome, not an error.
    """
    path = resolve_existing_hook_path(hooks_dir, hook_type, strategy)
    if path is None:
        return None
    if not strategy.is_usable(path):
        logger.debug("Skipping disabled hook {path}", path=path)
        return None
    return path


class HookDiscovery:
    """Discover hook files for the global location and every workspace root."""

    def __init__(
        self,
        workspace_provider: WorkspaceProvider,
        *,
        strategy: ExecutionStrategy | None = None,
        global_hooks_dir: Path | None = None,
    ) -> None:
        self.workspace_provider = workspace_provider
        self.strategy = strategy or select_strategy()
        self.global_hooks_dir = global_hooks_dir or get_default_global_hooks_dir()

    async def get_all_hooks_dirs(self) -> list[HookLocation]:
        """Global location first, then one location per workspace root."""
        locations = [HookLocation(hooks_dir=self.global_hooks_dir)]
        for root in await self.workspace_provider.get_workspace_paths():
            locations.append(
                HookLocation(hooks_dir=get_workspace_hooks_dir(root), workspace_root=root)
            )
        return locations

    async def find_hooks(
        self, hook_type: HookType, locations: list[HookLocation] | None = None
    ) -> list[HookFileRef]:
        """Find every usable hook file for `hook_type`, uncached.

        `locations` defaults to :meth:`get_all_hooks_dirs`.
        """
        if locations is None:
            locations = await self.get_all_hooks_dirs()
        refs: list[HookFileRef] = []
        for location in locations:
            path = find_hook_in_hooks_dir(hook_type, location.hooks_dir, self.strategy)
            if path is not None:
                refs.append(HookFileRef(path=path, hook_type=hook_type, location=location))
        logger.debug(
            "Discovered {count} {hook} hook(s)", count=len(refs), hook=hook_type.value
        )
        return refs
