from __future__ import annotations


class TaskHooksError(Exception):
    """Base exception class for taskhooks."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ConfigError(TaskHooksError, ValueError):
    """Configuration error."""

    pass


class HookExecutionError(TaskHooksError, RuntimeError):
    """A hook process could not be launched, timed out, or exited with a nonzero code."""

    def __init__(self, message: str, *, hook_name: str, exit_code: int | None = None):
        self.hook_name = hook_name
        self.exit_code = exit_code
        super().__init__(message)


class WorkspaceNotFoundError(TaskHooksError, LookupError):
    """No workspace root matches the requested workspace name."""

    pass


class HookNotFoundError(TaskHooksError, FileNotFoundError):
    """The hook file to operate on does not exist."""

    pass
