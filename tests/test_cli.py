from __future__ import annotations

import json
import stat
import sys
import textwrap
from pathlib import Path

import pytest
from click.testing import CliRunner

from taskhooks.cli import CANCEL_EXIT_CODE, cli

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="spawns POSIX hook scripts")


@pytest.fixture(autouse=True)
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data_dir = tmp_path / "data"
    monkeypatch.setenv("TASKHOOKS_SHARE_DIR", str(data_dir))
    return data_dir


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    (root / ".clinerules" / "hooks").mkdir(parents=True)
    return root


def _write_hook(path: Path, body: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        f"#!{sys.executable}\nimport json, sys\n" + textwrap.dedent(body), encoding="utf-8"
    )
    path.chmod(0o755)
    return path


def _invoke(workspace: Path, tmp_path: Path, *args: str, input: str | None = None):
    return CliRunner().invoke(
        cli,
        ["-w", str(workspace), "--global-hooks-dir", str(tmp_path / "global"), *args],
        input=input,
    )


def test_list_shows_hooks(workspace: Path, tmp_path: Path):
    _write_hook(workspace / ".clinerules" / "hooks" / "TaskStart", "print('{}')\n")

    result = _invoke(workspace, tmp_path, "list")

    assert result.exit_code == 0, result.output
    assert "🪝 Task Hooks" in result.output
    assert "Workspace 'project'" in result.output
    assert "TaskStart (enabled)" in result.output


def test_list_writes_log_file(workspace: Path, tmp_path: Path, data_dir: Path):
    result = _invoke(workspace, tmp_path, "list")
    assert result.exit_code == 0, result.output
    assert (data_dir / "logs" / "taskhooks.log").exists()


def test_toggle_disables_hook(workspace: Path, tmp_path: Path):
    hook = _write_hook(workspace / ".clinerules" / "hooks" / "PreToolUse", "print('{}')\n")

    result = _invoke(workspace, tmp_path, "toggle", "PreToolUse", "--disable")

    assert result.exit_code == 0, result.output
    assert stat.S_IMODE(hook.stat().st_mode) == 0o644
    assert "PreToolUse (disabled)" in result.output


def test_toggle_missing_hook_fails(workspace: Path, tmp_path: Path):
    result = _invoke(workspace, tmp_path, "toggle", "PreToolUse", "--global")
    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_toggle_rejects_unknown_hook_name(workspace: Path, tmp_path: Path):
    result = _invoke(workspace, tmp_path, "toggle", "SessionStart")
    assert result.exit_code == 2


def test_run_without_hooks_allows(workspace: Path, tmp_path: Path):
    result = _invoke(
        workspace,
        tmp_path,
        "run",
        "PreToolUse",
        input='{"taskId": "t", "preToolUse": {"toolName": "read_file"}}',
    )
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"cancel": False}


def test_run_cancel_exits_with_cancel_code(workspace: Path, tmp_path: Path):
    _write_hook(
        workspace / ".clinerules" / "hooks" / "PreToolUse",
        """
        data = json.load(sys.stdin)
        print(json.dumps({"cancel": True, "errorMessage": data["preToolUse"]["toolName"]}))
        """,
    )
    result = _invoke(
        workspace,
        tmp_path,
        "run",
        "PreToolUse",
        input='{"taskId": "t", "preToolUse": {"toolName": "rm_rf"}}',
    )
    assert result.exit_code == CANCEL_EXIT_CODE == 3
    assert json.loads(result.output) == {"cancel": True, "errorMessage": "rm_rf"}


def test_run_failing_hook_reports_error(workspace: Path, tmp_path: Path):
    _write_hook(workspace / ".clinerules" / "hooks" / "TaskStart", "sys.exit(4)\n")
    result = _invoke(workspace, tmp_path, "run", "TaskStart", input='{"taskId": "t"}')
    assert result.exit_code == 1
    assert "exited with code 4" in result.output


def test_run_rejects_invalid_request(workspace: Path, tmp_path: Path):
    result = _invoke(workspace, tmp_path, "run", "TaskStart", input="{not json")
    assert result.exit_code == 2


def test_invalid_config_file(workspace: Path, tmp_path: Path):
    config_file = tmp_path / "bad.toml"
    config_file.write_text("timeout_seconds = -1\n", encoding="utf-8")
    result = CliRunner().invoke(cli, ["--config-file", str(config_file), "list"])
    assert result.exit_code == 2
    assert "timeout_seconds" in result.output


def test_version_names_the_package():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert result.output.startswith("taskhooks, version ")
