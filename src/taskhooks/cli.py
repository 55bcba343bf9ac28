import asyncio
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import click
from pydantic import ValidationError

from taskhooks.constant import NAME, VERSION
from taskhooks.hooks.types import VALID_HOOK_TYPES

if TYPE_CHECKING:
    from taskhooks.config import Config

_LOG_LEVEL_OPTION = "--log-level"
_DEFAULT_LOG_LEVEL_KEY = "default"
CANCEL_EXIT_CODE = 3

_HOOK_TYPE_CHOICE = click.Choice([t.value for t in VALID_HOOK_TYPES])


@dataclass(slots=True)
class _CliState:
    workspaces: list[Path]
    config: "Config"


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(VERSION, prog_name=NAME)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Log debug information. Default: no.",
)
@click.option(
    "--log-level",
    "-L",
    "log_level_override",
    multiple=True,
    help=(
        "Override log level per module. Use `module=LEVEL` to target a specific module "
        "(e.g. `-L taskhooks.hooks.process=DEBUG`) or just `LEVEL` to change the default level."
    ),
)
@click.option(
    "--config-file",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file. Default: ~/.taskhooks/config.toml.",
)
@click.option(
    "--workspace",
    "-w",
    "workspaces",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
    multiple=True,
    help="Workspace root; repeat for multi-root workspaces. Default: current directory.",
)
@click.option(
    "--global-hooks-dir",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Global hooks directory. Default: ~/Documents/Cline/Hooks.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    debug: bool,
    log_level_override: tuple[str, ...],
    config_file: Path | None,
    workspaces: tuple[Path, ...],
    global_hooks_dir: Path | None,
):
    """Discover, toggle and run task lifecycle hooks."""
    from taskhooks.config import get_log_file, load_config
    from taskhooks.exception import ConfigError
    from taskhooks.utils.logging import configure_file_logging

    try:
        config = load_config(config_file)
    except ConfigError as exc:
        raise click.BadOptionUsage("--config-file", exc.message) from exc

    config_levels = dict(config.logging.levels)
    cli_levels = _parse_log_level_overrides(log_level_override)
    merged_levels = {**config_levels, **cli_levels}
    base_level = "TRACE" if debug else "INFO"
    try:
        configure_file_logging(
            get_log_file(),
            base_level=base_level,
            module_levels=merged_levels,
        )
    except ValueError as exc:
        raise click.BadOptionUsage(_LOG_LEVEL_OPTION, str(exc)) from exc

    ctx.obj = _CliState(
        workspaces=[w.absolute() for w in workspaces] or [Path.cwd()],
        config=(
            config.model_copy(update={"global_hooks_dir": global_hooks_dir})
            if global_hooks_dir is not None
            else config
        ),
    )


def _build_factory(state: _CliState):
    from taskhooks.hooks.factory import HookFactory
    from taskhooks.hooks.workspace import StaticWorkspaceProvider

    return HookFactory(StaticWorkspaceProvider(state.workspaces), config=state.config)


@cli.command("list")
@click.pass_obj
def list_hooks(state: _CliState):
    """List global and workspace hooks and whether they are enabled."""
    from taskhooks.hooks.display import build_hooks_display
    from taskhooks.hooks.toggle import refresh_hooks

    factory = _build_factory(state)
    toggles = asyncio.run(refresh_hooks(factory.discovery_cache.discovery))
    click.echo(build_hooks_display(toggles))


@cli.command("toggle")
@click.argument("hook_name", type=_HOOK_TYPE_CHOICE)
@click.option("--global", "is_global", is_flag=True, default=False, help="Toggle the global hook.")
@click.option(
    "--workspace-name",
    default=None,
    help="Base name of the workspace root holding the hook. Default: the first workspace.",
)
@click.option("--enable/--disable", "enabled", default=True, help="Enable or disable the hook.")
@click.pass_obj
def toggle(state: _CliState, hook_name: str, is_global: bool, workspace_name: str | None, enabled: bool):
    """Enable or disable a hook."""
    from taskhooks.exception import TaskHooksError
    from taskhooks.hooks.display import build_hooks_display
    from taskhooks.hooks.toggle import toggle_hook

    if is_global and workspace_name is not None:
        raise click.BadOptionUsage("--workspace-name", "Cannot be combined with --global")

    factory = _build_factory(state)
    try:
        toggles = asyncio.run(
            toggle_hook(
                factory.discovery_cache,
                hook_name,
                is_global=is_global,
                enabled=enabled,
                workspace_name=workspace_name,
            )
        )
    except TaskHooksError as exc:
        raise click.ClickException(exc.message) from exc
    if toggles.is_windows:
        click.echo("Hook enablement cannot be changed on Windows; the file was left as is.")
    click.echo(build_hooks_display(toggles))


@cli.command("run")
@click.argument("hook_name", type=_HOOK_TYPE_CHOICE)
@click.option(
    "--input",
    "input_file",
    type=click.File("r", encoding="utf-8"),
    default="-",
    help="JSON hook request. Default: read from stdin.",
)
@click.pass_obj
def run(state: _CliState, hook_name: str, input_file):
    """Run the hooks for HOOK_NAME and print the combined result as JSON.

    Exits with status 3 when a hook asks to cancel, leaving 1 for hook
    failures and 2 for usage errors.
    """
    from taskhooks.exception import TaskHooksError
    from taskhooks.hooks.models import HookRequest

    try:
        request = HookRequest.model_validate_json(input_file.read())
    except ValidationError as exc:
        raise click.BadParameter(str(exc), param_hint="--input") from exc

    factory = _build_factory(state)

    async def _run():
        runner = await factory.create(hook_name)
        return await runner.run(request)

    try:
        output = asyncio.run(_run())
    except (TaskHooksError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(output.to_json())
    if output.cancel:
        sys.exit(CANCEL_EXIT_CODE)


def _parse_log_level_overrides(values: tuple[str, ...]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for raw in values:
        entry = raw.strip()
        if not entry:
            raise click.BadOptionUsage(_LOG_LEVEL_OPTION, "Log level override cannot be empty")
        if "=" in entry:
            module, level = entry.split("=", 1)
            module = module.strip()
            if not module:
                raise click.BadOptionUsage(
                    _LOG_LEVEL_OPTION,
                    "Module name is required before '=' when using --log-level",
                )
        else:
            module = _DEFAULT_LOG_LEVEL_KEY
            level = entry
        level = level.strip()
        if not level:
            raise click.BadOptionUsage(_LOG_LEVEL_OPTION, "Log level cannot be empty")
        overrides[module] = level
    return overrides


def main():
    cli()


if __name__ == "__main__":
    main()
