"""Display and formatting utilities for hook listings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from taskhooks.hooks.types import VALID_HOOK_TYPES

if TYPE_CHECKING:
    from taskhooks.hooks.toggle import HookInfo, HooksToggles, WorkspaceHooks


def format_hook_info(hook: HookInfo) -> str:
    """Format a single hook for display."""
    state = "enabled" if hook.enabled else "disabled"
    return f"   • {hook.name} ({state})\n     {hook.absolute_path}"


def format_hook_list(hooks: list[HookInfo]) -> list[str]:
    if not hooks:
        return ["   (none)"]
    return [format_hook_info(hook) for hook in hooks]


def format_workspace_hooks(workspace: WorkspaceHooks) -> list[str]:
    lines = [f"🗂️  Workspace '{workspace.workspace_name}' ({workspace.hooks_dir}):"]
    lines.extend(format_hook_list(workspace.hooks))
    return lines


def format_management_instructions(is_windows: bool) -> list[str]:
    """Format instructions for adding and toggling hooks."""
    lines: list[str] = []
    lines.append("─" * 50)
    lines.append("")
    lines.append("📝 Hook files are named after the lifecycle event they handle:")
    lines.append("   " + ", ".join(t.value for t in VALID_HOOK_TYPES))
    lines.append("")
    if is_windows:
        lines.append("  # Windows: create <HookType>.ps1 in a hooks directory")
        lines.append("  # Hooks cannot be disabled here; delete the file instead.")
    else:
        lines.append("  # Create an executable <HookType> file in a hooks directory")
        lines.append("  chmod +x .clinerules/hooks/PreToolUse")
        lines.append("  # Disable or re-enable it with")
        lines.append("  taskhooks toggle PreToolUse --disable")
    return lines


def build_hooks_display(toggles: HooksToggles) -> str:
    """Build the complete hooks listing."""
    lines: list[str] = []
    lines.append("\n🪝 Task Hooks")
    lines.append("")

    lines.append(f"👤 Global hooks ({toggles.global_hooks_dir}):")
    lines.extend(format_hook_list(toggles.global_hooks))
    lines.append("")

    for workspace in toggles.workspace_hooks:
        lines.extend(format_workspace_hooks(workspace))
        lines.append("")

    lines.extend(format_management_instructions(toggles.is_windows))
    lines.append("")
    return "\n".join(lines)
