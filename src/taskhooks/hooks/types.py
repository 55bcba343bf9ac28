"""The closed set of lifecycle points a hook can attach to."""

from __future__ import annotations

from enum import Enum


class HookType(str, Enum):
    """Lifecycle points at which a hook can run.

    The value doubles as the hook's file name stem.
    """

    # Task lifecycle
    TASK_START = "TaskStart"
    TASK_RESUME = "TaskResume"
    TASK_CANCEL = "TaskCancel"
    TASK_COMPLETE = "TaskComplete"

    # Tool interception
    PRE_TOOL_USE = "PreToolUse"
    POST_TOOL_USE = "PostToolUse"

    # User input
    USER_PROMPT_SUBMIT = "UserPromptSubmit"

    # Context management
    PRE_COMPACT = "PreCompact"

    @property
    def payload_key(self) -> str:
        """Key of this hook type's payload in the request, e.g. ``preToolUse``."""
        return self.value[0].lower() + self.value[1:]

    def __str__(self) -> str:
        return self.value


VALID_HOOK_TYPES: tuple[HookType, ...] = tuple(HookType)


def is_valid_hook_type(hook_name: str) -> bool:
    """Check whether `hook_name` names a known hook type."""
    return hook_name in {t.value for t in HookType}
