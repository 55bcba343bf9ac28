"""Enumerate hook enablement for display and flip it on request."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from taskhooks.exception import HookNotFoundError
from taskhooks.hooks.cache import HookDiscoveryCache
from taskhooks.hooks.discovery import (
    HookDiscovery,
    HookLocation,
    resolve_existing_hook_path,
    resolve_hooks_directory,
)
from taskhooks.hooks.platform import InterpreterScriptStrategy
from taskhooks.hooks.types import VALID_HOOK_TYPES, HookType
from taskhooks.utils.logging import logger


@dataclass(frozen=True, slots=True)
class HookInfo:
    name: str
    enabled: bool
    absolute_path: Path


@dataclass(frozen=True, slots=True)
class WorkspaceHooks:
    workspace_name: str
    hooks_dir: Path
    hooks: list[HookInfo] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class HooksToggles:
    global_hooks_dir: Path
    global_hooks: list[HookInfo] = field(default_factory=list)
    workspace_hooks: list[WorkspaceHooks] = field(default_factory=list)
    is_windows: bool = False


def _collect_hooks(discovery: HookDiscovery, location: HookLocation) -> list[HookInfo]:
    hooks: list[HookInfo] = []
    for hook_type in VALID_HOOK_TYPES:
        path = resolve_existing_hook_path(location.hooks_dir, hook_type, discovery.strategy)
        if path is None:
            continue
        hooks.append(
            HookInfo(
                name=hook_type.value,
                enabled=discovery.strategy.is_usable(path),
                absolute_path=path.absolute(),
            )
        )
    return hooks


async def refresh_hooks(discovery: HookDiscovery) -> HooksToggles:
    """Report every existing hook file and whether it is enabled.

    Each workspace root gets an entry, even one without any hooks yet.
    """
    global_location, *workspace_locations = await discovery.get_all_hooks_dirs()
    return HooksToggles(
        global_hooks_dir=global_location.hooks_dir,
        global_hooks=_collect_hooks(discovery, global_location),
        workspace_hooks=[
            WorkspaceHooks(
                workspace_name=location.name,
                hooks_dir=location.hooks_dir,
                hooks=_collect_hooks(discovery, location),
            )
            for location in workspace_locations
        ],
        is_windows=isinstance(discovery.strategy, InterpreterScriptStrategy),
    )


async def toggle_hook(
    cache: HookDiscoveryCache,
    hook_name: HookType | str,
    *,
    is_global: bool,
    enabled: bool,
    workspace_name: str | None = None,
) -> HooksToggles:
    """Enable or disable one hook and return the refreshed state.

    On Windows the file is left as is, since enablement there is existence.

    Raises:
        ValueError: If `hook_name` is not a known hook type.
        WorkspaceNotFoundError: If `workspace_name` matches no workspace root.
        HookNotFoundError: If the hook file does not exist.
    """
    hook_type = HookType(hook_name)
    discovery = cache.discovery
    hooks_dir = await resolve_hooks_directory(
        is_global,
        workspace_name,
        workspace_provider=discovery.workspace_provider,
        global_hooks_dir=discovery.global_hooks_dir,
    )
    hook_path = resolve_existing_hook_path(hooks_dir, hook_type, discovery.strategy)
    if hook_path is None:
        raise HookNotFoundError(f"Hook {hook_type.value} does not exist in {hooks_dir}")

    if discovery.strategy.supports_toggle:
        discovery.strategy.set_enabled(hook_path, enabled)
        logger.info(
            "{action} hook {path}", action="Enabled" if enabled else "Disabled", path=hook_path
        )
    else:
        logger.info("Hook enablement cannot be changed on this platform: {path}", path=hook_path)

    cache.invalidate_all()
    return await refresh_hooks(discovery)
