"""Hook execution engine.

Hooks are user-supplied executables found in the global hooks directory and
in each workspace's ``.clinerules/hooks`` directory. They receive a JSON
request on stdin and may answer with JSON on stdout to cancel the operation
or add context.
"""

from taskhooks.hooks.cache import HookDiscoveryCache
from taskhooks.hooks.discovery import (
    HookDiscovery,
    HookFileRef,
    HookLocation,
    find_hook_in_hooks_dir,
    resolve_existing_hook_path,
    resolve_hooks_directory,
)
from taskhooks.hooks.display import build_hooks_display
from taskhooks.hooks.factory import (
    CombinedHookRunner,
    HookFactory,
    HookRunner,
    NoOpRunner,
    StdioHookRunner,
)
from taskhooks.hooks.models import HookInput, HookOutput, HookRequest, combine_outputs
from taskhooks.hooks.platform import (
    ExecutionStrategy,
    InterpreterScriptStrategy,
    LaunchConfig,
    NativeExecutableStrategy,
    get_hook_launch_config,
    select_strategy,
)
from taskhooks.hooks.process import HookProcess
from taskhooks.hooks.toggle import HooksToggles, refresh_hooks, toggle_hook
from taskhooks.hooks.types import VALID_HOOK_TYPES, HookType, is_valid_hook_type
from taskhooks.hooks.workspace import StaticWorkspaceProvider, WorkspaceProvider

__all__ = [
    # Types
    "HookType",
    "VALID_HOOK_TYPES",
    "is_valid_hook_type",
    # Models
    "HookRequest",
    "HookInput",
    "HookOutput",
    "combine_outputs",
    # Discovery
    "HookDiscovery",
    "HookDiscoveryCache",
    "HookFileRef",
    "HookLocation",
    "find_hook_in_hooks_dir",
    "resolve_existing_hook_path",
    "resolve_hooks_directory",
    "WorkspaceProvider",
    "StaticWorkspaceProvider",
    # Platform
    "ExecutionStrategy",
    "NativeExecutableStrategy",
    "InterpreterScriptStrategy",
    "LaunchConfig",
    "get_hook_launch_config",
    "select_strategy",
    # Execution
    "HookProcess",
    "HookFactory",
    "HookRunner",
    "NoOpRunner",
    "StdioHookRunner",
    "CombinedHookRunner",
    # Management
    "HooksToggles",
    "refresh_hooks",
    "toggle_hook",
    "build_hooks_display",
]
