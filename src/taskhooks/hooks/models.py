"""Wire models exchanged with hook processes over stdin/stdout."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel, to_snake

from taskhooks.hooks.types import HookType

MAX_CONTEXT_MODIFICATION_SIZE = 50_000
TRUNCATION_MARKER = "\n\n[... context truncated due to size limit ...]"

CONTEXT_SEPARATOR = "\n\n"
ERROR_SEPARATOR = "\n"


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class PreToolUseData(_WireModel):
    tool_name: str
    parameters: dict[str, Any] = Field(default_factory=dict)


class PostToolUseData(_WireModel):
    tool_name: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    result: str = ""
    success: bool
    execution_time_ms: int = 0


class TaskStartMetadata(_WireModel):
    task_id: str
    ulid: str
    initial_task: str = ""


class TaskStartData(_WireModel):
    task_metadata: TaskStartMetadata


class TaskResumeMetadata(_WireModel):
    task_id: str
    ulid: str


class PreviousState(_WireModel):
    """Snapshot of a resumed task. Every field travels as a string."""

    last_message_ts: str
    message_count: str
    conversation_history_deleted: str

    @field_validator("last_message_ts", "message_count", "conversation_history_deleted", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, int | float):
            return str(value)
        return value


class TaskResumeData(_WireModel):
    task_metadata: TaskResumeMetadata
    previous_state: PreviousState


class TaskCancelMetadata(_WireModel):
    task_id: str
    ulid: str
    completion_status: str = ""


class TaskCancelData(_WireModel):
    task_metadata: TaskCancelMetadata


class TaskCompleteMetadata(_WireModel):
    task_id: str
    ulid: str
    result: str = ""
    command: str = ""


class TaskCompleteData(_WireModel):
    task_metadata: TaskCompleteMetadata


class UserPromptSubmitData(_WireModel):
    prompt: str
    attachments: list[str] = Field(default_factory=list)


class PreCompactData(_WireModel):
    task_id: str
    ulid: str
    context_size: int = 0
    compaction_strategy: str = ""


_PAYLOAD_FIELDS: dict[HookType, str] = {t: to_snake(t.payload_key) for t in HookType}


class HookRequest(_WireModel):
    """What the caller supplies for a hook run: the task id plus one hook-specific payload."""

    task_id: str
    task_start: TaskStartData | None = None
    task_resume: TaskResumeData | None = None
    task_cancel: TaskCancelData | None = None
    task_complete: TaskCompleteData | None = None
    pre_tool_use: PreToolUseData | None = None
    post_tool_use: PostToolUseData | None = None
    user_prompt_submit: UserPromptSubmitData | None = None
    pre_compact: PreCompactData | None = None

    @model_validator(mode="after")
    def _single_payload(self) -> HookRequest:
        present = [name for name in _PAYLOAD_FIELDS.values() if getattr(self, name) is not None]
        if len(present) > 1:
            raise ValueError(f"Hook request carries more than one payload: {', '.join(present)}")
        return self

    @property
    def payload_type(self) -> HookType | None:
        """The hook type whose payload this request carries, if any."""
        for hook_type, name in _PAYLOAD_FIELDS.items():
            if getattr(self, name) is not None:
                return hook_type
        return None


class HookInput(HookRequest):
    """Full JSON document written to a hook's stdin."""

    cline_version: str
    hook_name: str
    timestamp: str
    workspace_roots: list[str] = Field(default_factory=list)

    @classmethod
    def from_request(
        cls,
        request: HookRequest,
        hook_type: HookType,
        *,
        cline_version: str,
        timestamp: str,
        workspace_roots: Iterable[str],
    ) -> HookInput:
        """Wrap a caller request in the common envelope.

        Raises:
            ValueError: If the request's payload belongs to another hook type.
        """
        payload_type = request.payload_type
        if payload_type is not None and payload_type != hook_type:
            raise ValueError(
                f"Hook request payload is for {payload_type.value}, "
                f"but is being run for {hook_type.value}"
            )
        return cls(
            **request.model_dump(exclude_none=True),
            cline_version=cline_version,
            hook_name=hook_type.value,
            timestamp=timestamp,
            workspace_roots=list(workspace_roots),
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class HookOutput(_WireModel):
    """A hook's verdict, parsed from its stdout."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    cancel: bool = False
    context_modification: str | None = None
    error_message: str | None = None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


def truncate_context(context: str, limit: int = MAX_CONTEXT_MODIFICATION_SIZE) -> str:
    """Cap `context` at `limit` characters, appending a marker when cut."""
    if len(context) <= limit:
        return context
    return context[:limit] + TRUNCATION_MARKER


def combine_outputs(outputs: Iterable[HookOutput]) -> HookOutput:
    """Reduce several hook outputs into one.

    Any cancel wins. Non-empty context and error strings from every
    output are kept, joined in the order given.
    """
    outputs = list(outputs)
    contexts = [o.context_modification for o in outputs if o.context_modification]
    errors = [o.error_message for o in outputs if o.error_message]
    return HookOutput(
        cancel=any(o.cancel for o in outputs),
        context_modification=CONTEXT_SEPARATOR.join(contexts) if contexts else None,
        error_message=ERROR_SEPARATOR.join(errors) if errors else None,
    )
