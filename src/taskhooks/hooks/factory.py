"""Build runners for a hook type and merge the results of sibling hooks."""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from pathlib import Path

from taskhooks.config import DEFAULT_PROBE_TIMEOUT_SECONDS, Config
from taskhooks.constant import VERSION
from taskhooks.hooks.cache import HookDiscoveryCache
from taskhooks.hooks.discovery import HookDiscovery, HookFileRef
from taskhooks.hooks.models import HookInput, HookOutput, HookRequest, combine_outputs
from taskhooks.hooks.platform import ExecutionStrategy
from taskhooks.hooks.process import HookProcess
from taskhooks.hooks.types import HookType
from taskhooks.hooks.workspace import StaticWorkspaceProvider, WorkspaceProvider
from taskhooks.utils.logging import logger
from taskhooks.utils.powershell import PowerShellResolver


class HookRunner(ABC):
    """Runs whatever hooks are configured for one hook type."""

    def __init__(self, hook_type: HookType) -> None:
        self.hook_type = hook_type

    @abstractmethod
    async def run(self, request: HookRequest) -> HookOutput: ...


class NoOpRunner(HookRunner):
    """Stands in when no hook file exists; always allows."""

    async def run(self, request: HookRequest) -> HookOutput:
        return HookOutput()


class StdioHookRunner(HookRunner):
    """Runs a single hook file."""

    def __init__(
        self,
        hook_type: HookType,
        ref: HookFileRef,
        process: HookProcess,
        workspace_provider: WorkspaceProvider,
        *,
        cline_version: str = VERSION,
    ) -> None:
        super().__init__(hook_type)
        self.ref = ref
        self._process = process
        self._workspace_provider = workspace_provider
        self._cline_version = cline_version

    async def run(self, request: HookRequest) -> HookOutput:
        roots = await self._workspace_provider.get_workspace_paths()
        hook_input = HookInput.from_request(
            request,
            self.hook_type,
            cline_version=self._cline_version,
            timestamp=str(int(time.time() * 1000)),
            workspace_roots=[str(root) for root in roots],
        )
        # Workspace hooks run from their own root, global hooks from the primary root.
        cwd: Path | None = self.ref.location.workspace_root
        if cwd is None and roots:
            cwd = roots[0]
        return await self._process.run(self.ref.path, hook_input, cwd=cwd)


class CombinedHookRunner(HookRunner):
    """Runs several hook files concurrently and merges their outputs.

    Every runner is allowed to finish. If any of them failed, the first
    failure (in runner order) is raised and no partial result is returned.
    """

    def __init__(self, hook_type: HookType, runners: list[HookRunner]) -> None:
        super().__init__(hook_type)
        self.runners = runners

    async def run(self, request: HookRequest) -> HookOutput:
        results = await asyncio.gather(
            *(runner.run(request) for runner in self.runners),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            for extra in failures[1:]:
                logger.warning(
                    "Additional {hook} hook failure: {error}",
                    hook=self.hook_type.value,
                    error=extra,
                )
            raise failures[0]
        return combine_outputs(r for r in results if isinstance(r, HookOutput))


class HookFactory:
    """Builds the runner for a hook type from the hooks currently on disk."""

    def __init__(
        self,
        workspace_provider: WorkspaceProvider | None = None,
        *,
        config: Config | None = None,
        strategy: ExecutionStrategy | None = None,
        discovery_cache: HookDiscoveryCache | None = None,
        process: HookProcess | None = None,
        powershell_resolver: PowerShellResolver | None = None,
        cline_version: str = VERSION,
    ) -> None:
        self.config = config or Config()
        self.workspace_provider = workspace_provider or StaticWorkspaceProvider([Path.cwd()])
        self.discovery_cache = discovery_cache or HookDiscoveryCache(
            HookDiscovery(
                self.workspace_provider,
                strategy=strategy,
                global_hooks_dir=self.config.global_hooks_dir,
            )
        )
        if powershell_resolver is None:
            if self.config.probe_timeout_seconds == DEFAULT_PROBE_TIMEOUT_SECONDS:
                powershell_resolver = PowerShellResolver.shared()
            else:
                powershell_resolver = PowerShellResolver(
                    probe_timeout=self.config.probe_timeout_seconds
                )
        self.powershell_resolver = powershell_resolver
        if process is None:
            process = HookProcess(
                timeout=self.config.timeout_seconds,
                max_output_bytes=self.config.max_output_bytes,
                resolve_executable=powershell_resolver.resolve,
            )
        self.process = process
        self._cline_version = cline_version

    async def create(self, hook_type: HookType | str) -> HookRunner:
        """Return a runner for `hook_type`.

        Raises:
            ValueError: If `hook_type` is not a known hook type.
        """
        hook_type = HookType(hook_type)
        if not self.config.enabled:
            return NoOpRunner(hook_type)

        refs = await self.discovery_cache.get(hook_type)
        if not refs:
            return NoOpRunner(hook_type)

        runners: list[HookRunner] = [
            StdioHookRunner(
                hook_type,
                ref,
                self.process,
                self.workspace_provider,
                cline_version=self._cline_version,
            )
            for ref in refs
        ]
        logger.debug(
            "Created {hook} runner over {paths}",
            hook=hook_type.value,
            paths=[str(ref.path) for ref in refs],
        )
        if len(runners) == 1:
            return runners[0]
        return CombinedHookRunner(hook_type, runners)
