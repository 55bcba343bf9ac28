"""Locate a usable PowerShell executable for running ``.ps1`` hooks on Windows."""

from __future__ import annotations

import asyncio
import os
import subprocess
from collections.abc import Awaitable, Callable, Mapping

from taskhooks.config import DEFAULT_PROBE_TIMEOUT_SECONDS
from taskhooks.utils.logging import logger

WINDOWS_POWERSHELL_7_PATH = "C:\\Program Files\\PowerShell\\7\\pwsh.exe"
WINDOWS_POWERSHELL_LEGACY_PATH = "C:\\Windows\\System32\\WindowsPowerShell\\v1.0\\powershell.exe"

PROBE_ARGS = ("-NoProfile", "-NonInteractive", "-Command", "$PSVersionTable.PSVersion")

ProbeFunc = Callable[[str, float], Awaitable[bool]]


def get_fallback_windows_powershell_path() -> str:
    return WINDOWS_POWERSHELL_LEGACY_PATH


def get_windows_powershell_candidates(env: Mapping[str, str] | None = None) -> list[str]:
    """Candidate executables, most preferred first.

    Absolute install locations under the 64-bit (then 32-bit) program files
    root come first, bare command names last.
    """
    env = os.environ if env is None else env
    program_files = env.get("ProgramW6432") or env.get("ProgramFiles") or "C:\\Program Files"

    absolute_candidates = [
        f"{program_files}\\PowerShell\\7\\pwsh.exe",
        f"{program_files}\\PowerShell\\6\\pwsh.exe",
        WINDOWS_POWERSHELL_7_PATH,
        WINDOWS_POWERSHELL_LEGACY_PATH,
    ]
    command_names = ["pwsh.exe", "pwsh", "powershell.exe", "powershell"]

    # dict keeps first-seen order
    return list(dict.fromkeys(c for c in [*absolute_candidates, *command_names] if c))


async def probe_windows_executable(
    candidate: str, timeout: float = DEFAULT_PROBE_TIMEOUT_SECONDS
) -> bool:
    """Return True if `candidate` starts and reports its version within `timeout` seconds."""
    try:
        proc = await asyncio.create_subprocess_exec(
            candidate,
            *PROBE_ARGS,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
            creationflags=getattr(subprocess, "CREATE_NO_WINDOW", 0),
        )
    except OSError:
        return False

    try:
        return_code = await asyncio.wait_for(proc.wait(), timeout=timeout)
    except TimeoutError:
        logger.debug("PowerShell probe timed out: {candidate}", candidate=candidate)
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        await proc.wait()
        return False
    return return_code == 0


class PowerShellResolver:
    """Resolves and caches the PowerShell executable.

    Concurrent callers share one in-flight resolution, so the candidate
    list is probed at most once until :meth:`reset` is called.
    """

    _shared: PowerShellResolver | None = None

    def __init__(
        self,
        probe: ProbeFunc | None = None,
        *,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._probe: ProbeFunc = probe or probe_windows_executable
        self._probe_timeout = probe_timeout
        self._env = env
        self._resolved: str | None = None
        self._pending: asyncio.Task[str] | None = None

    @classmethod
    def shared(cls) -> PowerShellResolver:
        """The process-wide resolver used when none is injected."""
        if cls._shared is None:
            cls._shared = cls()
        return cls._shared

    def set_probe(self, probe: ProbeFunc | None) -> None:
        """Substitute the probe function. ``None`` restores the real probe."""
        self._probe = probe or probe_windows_executable

    def reset(self) -> None:
        """Forget the cached executable and restore the real probe."""
        self._resolved = None
        self._pending = None
        self._probe = probe_windows_executable

    async def resolve(self) -> str:
        if self._resolved is not None:
            return self._resolved
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._resolve())
        pending = self._pending
        try:
            resolved = await asyncio.shield(pending)
        except BaseException:
            if self._pending is pending and pending.done():
                self._pending = None
            raise
        if self._pending is pending:
            self._resolved = resolved
        return resolved

    async def _resolve(self) -> str:
        candidates = get_windows_powershell_candidates(self._env)
        for candidate in candidates:
            if await self._probe(candidate, self._probe_timeout):
                logger.debug("Using PowerShell executable: {candidate}", candidate=candidate)
                return candidate

        fallback = get_fallback_windows_powershell_path()
        logger.warning(
            "Could not resolve PowerShell executable from candidates {candidates}. "
            "Falling back to {fallback}.",
            candidates=", ".join(candidates),
            fallback=fallback,
        )
        return fallback
