"""Tests for the hook runner and print-hook-config commands."""

import json
import warnings
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
import yaml
from click.testing import CliRunner

from opencode_mem.cli import cli
from opencode_mem.cli.hooks import build_hook_config
from opencode_mem.hooks.events import HookResult

pytestmark = pytest.mark.unit


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def config_file(temp_dir: Path) -> str:
    path = temp_dir / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "data_dir": str(temp_dir),
                "logging": {"file": str(temp_dir / "logs" / "opencode-mem.log")},
            }
        )
    )
    return str(path)


class TestHookCommand:
    """opencode-mem hook PLATFORM EVENT."""

    def test_context_output_wrapped(self, runner: CliRunner, config_file: str) -> None:
        result_obj = HookResult(hook_event_name="UserPromptSubmit", additional_context="memory")
        with (
            patch("opencode_mem.cli.hooks.setup_logging"),
            patch(
                "opencode_mem.cli.hooks.HookHandlers.handle",
                new_callable=AsyncMock,
                return_value=result_obj,
            ) as mock_handle,
        ):
            result = runner.invoke(
                cli,
                ["--config", config_file, "hook", "opencode", "context"],
                input=json.dumps({"session_id": "s1", "cwd": "/work/proj"}),
            )

        assert result.exit_code == 0, result.output
        assert "<opencode-mem-context>" in result.output
        assert "memory" in result.output
        hook_name, hook_input = mock_handle.await_args.args
        assert hook_name == "context"
        assert hook_input.session_id == "s1"
        assert hook_input.cwd == "/work/proj"

    def test_silent_result(self, runner: CliRunner, config_file: str) -> None:
        with (
            patch("opencode_mem.cli.hooks.setup_logging"),
            patch(
                "opencode_mem.cli.hooks.HookHandlers.handle",
                new_callable=AsyncMock,
                return_value=HookResult(),
            ),
        ):
            result = runner.invoke(
                cli,
                ["--config", config_file, "hook", "opencode", "observation"],
                input="not json",
            )

        assert result.exit_code == 0
        assert result.output == ""

    def test_exit_code_propagated(self, runner: CliRunner, config_file: str) -> None:
        with (
            patch("opencode_mem.cli.hooks.setup_logging"),
            patch(
                "opencode_mem.cli.hooks.HookHandlers.handle",
                new_callable=AsyncMock,
                return_value=HookResult(exit_code=2),
            ),
        ):
            result = runner.invoke(
                cli, ["--config", config_file, "hook", "opencode", "summarize"], input="{}"
            )
        assert result.exit_code == 2

    def test_stdin_read_without_deprecation(self, runner: CliRunner, config_file: str) -> None:
        with (
            warnings.catch_warnings(record=True) as caught,
            patch("opencode_mem.cli.hooks.setup_logging"),
            patch(
                "opencode_mem.cli.hooks.HookHandlers.handle",
                new_callable=AsyncMock,
                return_value=HookResult(),
            ) as mock_handle,
        ):
            warnings.simplefilter("always")
            result = runner.invoke(
                cli,
                ["--config", config_file, "hook", "opencode", "observation"],
                input=json.dumps({"session_id": "s9", "tool_name": "Read"}),
            )

        assert result.exit_code == 0, result.output
        assert mock_handle.await_args.args[1].session_id == "s9"
        deprecations = [
            w
            for w in caught
            if issubclass(w.category, DeprecationWarning) and w.filename.endswith("hooks.py")
        ]
        assert deprecations == []

    def test_unknown_platform(self, runner: CliRunner, config_file: str) -> None:
        with patch("opencode_mem.cli.hooks.setup_logging"):
            result = runner.invoke(
                cli, ["--config", config_file, "hook", "vim", "context"], input="{}"
            )
        assert result.exit_code == 2
        assert "PLATFORM" in result.output

    def test_unknown_event(self, runner: CliRunner, config_file: str) -> None:
        result = runner.invoke(cli, ["--config", config_file, "hook", "opencode", "bogus"])
        assert result.exit_code == 2


class TestPrintHookConfig:
    """opencode-mem print-hook-config."""

    def test_default_output(self, runner: CliRunner, config_file: str) -> None:
        result = runner.invoke(cli, ["--config", config_file, "print-hook-config"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert set(data["hooks"]) == {"UserPromptSubmit", "PostToolUse", "Stop"}
        stop_hooks = data["hooks"]["Stop"][0]["hooks"]
        assert [h["command"] for h in stop_hooks] == [
            "opencode-mem hook opencode summarize",
            "opencode-mem hook opencode session-complete",
        ]
        assert [h["timeout"] for h in stop_hooks] == [120, 30]

    def test_unknown_platform(self, runner: CliRunner, config_file: str) -> None:
        result = runner.invoke(
            cli, ["--config", config_file, "print-hook-config", "--platform", "vim"]
        )
        assert result.exit_code == 2


class TestBuildHookConfig:
    def test_timeouts(self) -> None:
        hooks = build_hook_config()["hooks"]
        assert hooks["UserPromptSubmit"][0]["hooks"][0]["timeout"] == 60
        assert hooks["PostToolUse"][0]["hooks"][0]["timeout"] == 120
        assert hooks["PostToolUse"][0]["matcher"] == "*"

    def test_start_command_prepended(self) -> None:
        hooks = build_hook_config("claude-code", "uvx opencode-mem", "worker start")["hooks"]
        entries = hooks["UserPromptSubmit"][0]["hooks"]
        assert entries[0] == {"type": "command", "command": "worker start", "timeout": 60}
        assert entries[1]["command"] == "uvx opencode-mem hook claude-code session-init"
