from __future__ import annotations

import sys
import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from taskhooks.config import Config
from taskhooks.hooks.factory import HookFactory
from taskhooks.hooks.platform import NativeExecutableStrategy
from taskhooks.hooks.workspace import StaticWorkspaceProvider

WriteHook = Callable[[Path, str], Path]


def _write_hook(path: Path, body: str) -> Path:
    """Write an executable Python hook script at `path`."""
    path.parent.mkdir(parents=True, exist_ok=True)
    script = f"#!{sys.executable}\nimport json, os, sys\n" + textwrap.dedent(body)
    path.write_text(script, encoding="utf-8")
    path.chmod(0o755)
    return path


@pytest.fixture
def write_hook() -> WriteHook:
    return _write_hook


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    (root / ".clinerules" / "hooks").mkdir(parents=True)
    return root


@pytest.fixture
def workspace_hooks_dir(workspace: Path) -> Path:
    return workspace / ".clinerules" / "hooks"


@pytest.fixture
def global_hooks_dir(tmp_path: Path) -> Path:
    hooks_dir = tmp_path / "global-hooks"
    hooks_dir.mkdir()
    return hooks_dir


@pytest.fixture
def factory(workspace: Path, global_hooks_dir: Path) -> HookFactory:
    return HookFactory(
        StaticWorkspaceProvider([workspace]),
        config=Config(global_hooks_dir=global_hooks_dir, timeout_seconds=15),
        strategy=NativeExecutableStrategy(),
        cline_version="9.9.9-test",
    )
