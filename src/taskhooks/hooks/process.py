"""Run a single hook file as a child process speaking JSON over stdio."""

from __future__ import annotations

import asyncio
import json
import os
import shlex
import signal
import time
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from taskhooks.config import DEFAULT_MAX_OUTPUT_BYTES, DEFAULT_TIMEOUT_SECONDS
from taskhooks.exception import HookExecutionError
from taskhooks.hooks.models import (
    MAX_CONTEXT_MODIFICATION_SIZE,
    HookInput,
    HookOutput,
    truncate_context,
)
from taskhooks.hooks.platform import LaunchConfig, ResolveExecutable, get_hook_launch_config
from taskhooks.utils.logging import logger

_READ_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Raw outcome of a finished hook process."""

    exit_code: int
    stdout: str
    stderr: str
    stdout_truncated: bool = False


class HookProcess:
    """Spawns one hook process per :meth:`run` call.

    The request is written to stdin as JSON and stdin is closed. On exit code 0
    stdout is parsed as a :class:`HookOutput`; unparsable output counts as
    ``{"cancel": false}``. Any other exit code, a spawn failure or a timeout
    raises :class:`HookExecutionError`.
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
        resolve_executable: ResolveExecutable | None = None,
    ) -> None:
        self.timeout = timeout
        self.max_output_bytes = max_output_bytes
        self._resolve_executable = resolve_executable

    async def run(
        self,
        hook_path: Path,
        hook_input: HookInput,
        *,
        cwd: Path | None = None,
    ) -> HookOutput:
        hook_name = hook_input.hook_name
        try:
            launch = await get_hook_launch_config(hook_path, self._resolve_executable)
        except Exception as e:
            raise HookExecutionError(
                f"Failed to prepare {hook_name} hook {hook_path}: {e}", hook_name=hook_name
            ) from e

        start_time = time.monotonic()
        result = await self._execute(launch, hook_name, hook_input.to_json().encode(), cwd)
        duration_ms = int((time.monotonic() - start_time) * 1000)
        logger.debug(
            "Hook {hook} ({path}) exited with code {code} in {duration}ms",
            hook=hook_name,
            path=hook_path,
            code=result.exit_code,
            duration=duration_ms,
        )
        if result.stderr:
            logger.debug("Hook {hook} stderr: {stderr}", hook=hook_name, stderr=result.stderr)

        if result.exit_code != 0:
            message = f"Hook {hook_name} exited with code {result.exit_code}"
            if result.stderr.strip():
                message += f": {result.stderr.strip()}"
            raise HookExecutionError(message, hook_name=hook_name, exit_code=result.exit_code)

        return self._parse_output(hook_name, result)

    async def _execute(
        self,
        launch: LaunchConfig,
        hook_name: str,
        request: bytes,
        cwd: Path | None,
    ) -> CommandResult:
        try:
            proc = await self._spawn(launch, cwd)
        except OSError as e:
            raise HookExecutionError(
                f"Failed to spawn {hook_name} hook: {e}", hook_name=hook_name
            ) from e

        assert proc.stdout is not None and proc.stderr is not None
        try:
            _, (stdout, stdout_truncated), (stderr, _), exit_code = await asyncio.wait_for(
                asyncio.gather(
                    self._feed_stdin(proc, request),
                    self._read_bounded(proc.stdout),
                    self._read_bounded(proc.stderr),
                    proc.wait(),
                ),
                timeout=self.timeout,
            )
        except TimeoutError:
            self._kill(proc, launch.detached)
            await proc.wait()
            raise HookExecutionError(
                f"Hook {hook_name} timed out after {self.timeout}s", hook_name=hook_name
            ) from None

        if stdout_truncated:
            logger.warning(
                "Hook {hook} output exceeded {limit} bytes and was truncated",
                hook=hook_name,
                limit=self.max_output_bytes,
            )
        return CommandResult(
            exit_code=exit_code,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            stdout_truncated=stdout_truncated,
        )

    @staticmethod
    async def _spawn(launch: LaunchConfig, cwd: Path | None) -> asyncio.subprocess.Process:
        if launch.shell:
            return await asyncio.create_subprocess_shell(
                shlex.join([launch.command, *launch.args]),
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                start_new_session=launch.detached,
            )
        return await asyncio.create_subprocess_exec(
            launch.command,
            *launch.args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            start_new_session=launch.detached,
        )

    @staticmethod
    async def _feed_stdin(proc: asyncio.subprocess.Process, data: bytes) -> None:
        assert proc.stdin is not None
        try:
            proc.stdin.write(data)
            await proc.stdin.drain()
        except (BrokenPipeError, ConnectionResetError):
            # The hook exited or closed stdin without reading the request.
            logger.debug("Hook process closed stdin before reading the request")
        finally:
            proc.stdin.close()

    async def _read_bounded(self, stream: asyncio.StreamReader) -> tuple[bytes, bool]:
        """Read `stream` to EOF, keeping at most `max_output_bytes`.

        Bytes past the limit are drained and dropped so the child never
        blocks on a full pipe.
        """
        chunks: list[bytes] = []
        size = 0
        truncated = False
        while chunk := await stream.read(_READ_CHUNK_SIZE):
            room = self.max_output_bytes - size
            if room <= 0:
                truncated = True
                continue
            if len(chunk) > room:
                chunk = chunk[:room]
                truncated = True
            chunks.append(chunk)
            size += len(chunk)
        return b"".join(chunks), truncated

    @staticmethod
    def _kill(proc: asyncio.subprocess.Process, detached: bool) -> None:
        try:
            if detached and os.name == "posix":
                os.killpg(proc.pid, signal.SIGKILL)
            else:
                proc.kill()
        except ProcessLookupError:
            pass

    @staticmethod
    def _parse_output(hook_name: str, result: CommandResult) -> HookOutput:
        """Parse stdout of a successful run. Never raises.

        Output that is not a JSON object counts as ``{"cancel": false}``. In a
        JSON object, fields of the wrong type are dropped one by one, so a
        valid ``cancel`` survives a malformed ``errorMessage``.
        """
        stdout = result.stdout.strip()
        if not stdout:
            return HookOutput()
        try:
            output = HookOutput.model_validate_json(stdout)
        except ValidationError as e:
            output = _salvage_output(hook_name, stdout, e)

        if output.context_modification is not None:
            context = truncate_context(output.context_modification)
            if context != output.context_modification:
                logger.warning(
                    "Hook {hook} context modification truncated to {limit} characters",
                    hook=hook_name,
                    limit=MAX_CONTEXT_MODIFICATION_SIZE,
                )
                output = output.model_copy(update={"context_modification": context})
        return output


def _salvage_output(hook_name: str, stdout: str, error: ValidationError) -> HookOutput:
    errors = error.errors(include_url=False)
    # An empty location means the document itself is unusable: bad JSON or not an object.
    if any(not err["loc"] for err in errors):
        logger.warning(
            "Hook {hook} printed malformed output, ignoring it: {error}",
            hook=hook_name,
            error=errors[0]["msg"],
        )
        return HookOutput()

    invalid = {err["loc"][0] for err in errors}
    logger.warning(
        "Hook {hook} output has invalid fields {fields}, ignoring them",
        hook=hook_name,
        fields=sorted(str(key) for key in invalid),
    )
    data = json.loads(stdout)
    return HookOutput.model_validate({k: v for k, v in data.items() if k not in invalid})
