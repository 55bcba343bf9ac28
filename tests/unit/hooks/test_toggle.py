from __future__ import annotations

import stat
import sys
from pathlib import Path

import pytest

from taskhooks.exception import HookNotFoundError, WorkspaceNotFoundError
from taskhooks.hooks.cache import HookDiscoveryCache
from taskhooks.hooks.discovery import HookDiscovery
from taskhooks.hooks.platform import InterpreterScriptStrategy, NativeExecutableStrategy
from taskhooks.hooks.toggle import HookInfo, refresh_hooks, toggle_hook
from taskhooks.hooks.types import HookType
from taskhooks.hooks.workspace import StaticWorkspaceProvider

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="relies on POSIX permissions")


def _touch(path: Path, mode: int = 0o755) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n", encoding="utf-8")
    path.chmod(mode)
    return path


@pytest.fixture
def cache(tmp_path: Path) -> HookDiscoveryCache:
    discovery = HookDiscovery(
        StaticWorkspaceProvider([tmp_path / "alpha", tmp_path / "beta"]),
        strategy=NativeExecutableStrategy(),
        global_hooks_dir=tmp_path / "global",
    )
    return HookDiscoveryCache(discovery)


class TestRefreshHooks:
    async def test_reports_every_location(self, tmp_path: Path, cache: HookDiscoveryCache):
        global_hook = _touch(tmp_path / "global" / "TaskStart")
        disabled = _touch(tmp_path / "alpha" / ".clinerules" / "hooks" / "PreToolUse", 0o644)

        toggles = await refresh_hooks(cache.discovery)

        assert toggles.global_hooks_dir == tmp_path / "global"
        assert toggles.global_hooks == [
            HookInfo(name="TaskStart", enabled=True, absolute_path=global_hook)
        ]
        assert [ws.workspace_name for ws in toggles.workspace_hooks] == ["alpha", "beta"]
        assert toggles.workspace_hooks[0].hooks == [
            HookInfo(name="PreToolUse", enabled=False, absolute_path=disabled)
        ]
        assert toggles.workspace_hooks[1].hooks == []
        assert toggles.is_windows is False

    async def test_hooks_listed_in_hook_type_order(
        self, tmp_path: Path, cache: HookDiscoveryCache
    ):
        for name in ("PreCompact", "TaskStart", "PostToolUse"):
            _touch(tmp_path / "global" / name)
        toggles = await refresh_hooks(cache.discovery)
        assert [h.name for h in toggles.global_hooks] == ["TaskStart", "PostToolUse", "PreCompact"]


class TestToggleHook:
    async def test_disable_and_enable(self, tmp_path: Path, cache: HookDiscoveryCache):
        hook = _touch(tmp_path / "alpha" / ".clinerules" / "hooks" / "PreToolUse")
        assert len(await cache.get(HookType.PRE_TOOL_USE)) == 1

        toggles = await toggle_hook(cache, "PreToolUse", is_global=False, enabled=False)
        assert stat.S_IMODE(hook.stat().st_mode) == 0o644
        assert toggles.workspace_hooks[0].hooks[0].enabled is False
        assert await cache.get(HookType.PRE_TOOL_USE) == []

        toggles = await toggle_hook(cache, HookType.PRE_TOOL_USE, is_global=False, enabled=True)
        assert stat.S_IMODE(hook.stat().st_mode) == 0o755
        assert toggles.workspace_hooks[0].hooks[0].enabled is True
        assert len(await cache.get(HookType.PRE_TOOL_USE)) == 1

    async def test_global_hook(self, tmp_path: Path, cache: HookDiscoveryCache):
        hook = _touch(tmp_path / "global" / "TaskComplete")
        toggles = await toggle_hook(cache, "TaskComplete", is_global=True, enabled=False)
        assert not toggles.global_hooks[0].enabled
        assert stat.S_IMODE(hook.stat().st_mode) == 0o644

    async def test_named_workspace(self, tmp_path: Path, cache: HookDiscoveryCache):
        hook = _touch(tmp_path / "beta" / ".clinerules" / "hooks" / "TaskStart")
        await toggle_hook(
            cache, "TaskStart", is_global=False, enabled=False, workspace_name="beta"
        )
        assert stat.S_IMODE(hook.stat().st_mode) == 0o644

    async def test_missing_hook(self, tmp_path: Path, cache: HookDiscoveryCache):
        with pytest.raises(HookNotFoundError, match="Hook TaskStart does not exist"):
            await toggle_hook(cache, "TaskStart", is_global=True, enabled=True)

    async def test_unknown_workspace(self, cache: HookDiscoveryCache):
        with pytest.raises(WorkspaceNotFoundError):
            await toggle_hook(
                cache, "TaskStart", is_global=False, enabled=True, workspace_name="gamma"
            )

    async def test_unknown_hook_name(self, cache: HookDiscoveryCache):
        with pytest.raises(ValueError):
            await toggle_hook(cache, "NotAHook", is_global=True, enabled=True)

    async def test_windows_leaves_file_untouched(self, tmp_path: Path):
        hook = _touch(tmp_path / "global" / "TaskStart.ps1", 0o644)
        cache = HookDiscoveryCache(
            HookDiscovery(
                StaticWorkspaceProvider([tmp_path / "ws"]),
                strategy=InterpreterScriptStrategy(),
                global_hooks_dir=tmp_path / "global",
            )
        )
        toggles = await toggle_hook(cache, "TaskStart", is_global=True, enabled=False)

        assert stat.S_IMODE(hook.stat().st_mode) == 0o644
        assert toggles.is_windows is True
        assert toggles.global_hooks[0].enabled is True
