"""Memoized hook discovery, invalidated explicitly after hooks change on disk."""

from __future__ import annotations

from pathlib import Path

from taskhooks.hooks.discovery import HookDiscovery, HookFileRef
from taskhooks.hooks.types import HookType
from taskhooks.utils.logging import logger

_CacheKey = tuple[HookType, tuple[Path, ...]]


class HookDiscoveryCache:
    """Memoizes discovery results per hook type and set of hooks directories.

    Entries never expire on their own; call :meth:`invalidate_all` after
    anything changes the hooks directories on disk.
    """

    def __init__(self, discovery: HookDiscovery) -> None:
        self.discovery = discovery
        self._entries: dict[_CacheKey, list[HookFileRef]] = {}

    async def get(self, hook_type: HookType) -> list[HookFileRef]:
        locations = await self.discovery.get_all_hooks_dirs()
        key = (hook_type, tuple(location.hooks_dir for location in locations))
        refs = self._entries.get(key)
        if refs is None:
            refs = await self.discovery.find_hooks(hook_type, locations)
            self._entries[key] = refs
            logger.debug(
                "Cached {count} {hook} hook(s)", count=len(refs), hook=hook_type.value
            )
        return list(refs)

    def invalidate_all(self) -> None:
        self._entries.clear()
        logger.debug("Hook discovery cache invalidated")
