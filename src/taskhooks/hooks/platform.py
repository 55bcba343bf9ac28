"""Platform-specific rules for naming, enabling and launching hook files.

Two strategies exist. On Unix-like systems hooks are extensionless native
executables and the execute bit doubles as the enabled flag. On Windows
hooks are ``.ps1`` scripts run through PowerShell; existence alone makes a
hook usable there, so a hook cannot be disabled short of deleting it.
"""

from __future__ import annotations

import os
import platform
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Protocol

from taskhooks.hooks.types import HookType
from taskhooks.utils.powershell import PowerShellResolver

ENABLED_MODE = 0o755
DISABLED_MODE = 0o644

POWERSHELL_SUFFIX = ".ps1"
POWERSHELL_SCRIPT_ARGS = ("-NoProfile", "-NonInteractive", "-ExecutionPolicy", "Bypass", "-File")

ResolveExecutable = Callable[[], Awaitable[str]]


class ExecutionStrategy(Protocol):
    name: str
    supports_toggle: bool

    def hook_filename(self, hook_type: HookType | str) -> str: ...

    def is_usable(self, path: Path) -> bool: ...

    def set_enabled(self, path: Path, enabled: bool) -> None: ...


class NativeExecutableStrategy:
    """Extensionless executables gated by the execute permission bit."""

    name: ClassVar[str] = "native"
    supports_toggle: ClassVar[bool] = True

    def hook_filename(self, hook_type: HookType | str) -> str:
        return str(hook_type)

    def is_usable(self, path: Path) -> bool:
        return os.access(path, os.X_OK)

    def set_enabled(self, path: Path, enabled: bool) -> None:
        path.chmod(ENABLED_MODE if enabled else DISABLED_MODE)


class InterpreterScriptStrategy:
    """``.ps1`` scripts executed by a resolved PowerShell interpreter."""

    name: ClassVar[str] = "powershell"
    supports_toggle: ClassVar[bool] = False

    def hook_filename(self, hook_type: HookType | str) -> str:
        return f"{hook_type}{POWERSHELL_SUFFIX}"

    def is_usable(self, path: Path) -> bool:
        # TODO: consult a persisted enabled/disabled state once one exists.
        return True

    def set_enabled(self, path: Path, enabled: bool) -> None:
        pass


def select_strategy(system: str | None = None) -> ExecutionStrategy:
    """Pick the strategy for `system` (defaults to the running platform)."""
    system = system or platform.system()
    if system == "Windows":
        return InterpreterScriptStrategy()
    return NativeExecutableStrategy()


@dataclass(frozen=True, slots=True)
class LaunchConfig:
    """How to spawn one hook process."""

    command: str
    args: tuple[str, ...] = ()
    shell: bool = False
    detached: bool = False


async def get_hook_launch_config(
    hook_path: Path | str,
    resolve_executable: ResolveExecutable | None = None,
) -> LaunchConfig:
    """Build launch parameters for a resolved hook file.

    ``.ps1`` scripts run through PowerShell, attached to the parent so they
    can be killed. Anything else is executed directly through the shell,
    which honours the shebang, in a detached process group.

    Raises:
        Exception: Whatever `resolve_executable` raises is propagated.
    """
    hook_path = str(hook_path)
    if not hook_path.lower().endswith(POWERSHELL_SUFFIX):
        return LaunchConfig(command=hook_path, args=(), shell=True, detached=True)

    if resolve_executable is None:
        resolve_executable = PowerShellResolver.shared().resolve
    executable = await resolve_executable()
    return LaunchConfig(
        command=executable,
        args=(*POWERSHELL_SCRIPT_ARGS, hook_path),
        shell=False,
        detached=False,
    )
