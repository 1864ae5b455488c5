"""Tests for the worker-side hook handlers."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from opencode_mem.config.app import MemConfig
from opencode_mem.hooks.events import HookResult, NormalizedHookInput
from opencode_mem.hooks.handlers import HookHandlers, UnknownHookError, project_name
from opencode_mem.utils.worker_client import WorkerClient, WorkerUnavailableError

pytestmark = pytest.mark.unit


@pytest.fixture
def client() -> MagicMock:
    mock = MagicMock(spec=WorkerClient)
    mock.health = AsyncMock(return_value=True)
    mock.get_context = AsyncMock(return_value="  remembered  \n")
    mock.init_session = AsyncMock(return_value={"skipped": False})
    mock.record_observation = AsyncMock(return_value={"status": "queued"})
    mock.request_summary = AsyncMock(return_value={"status": "queued"})
    mock.complete_session = AsyncMock(return_value={"status": "ok"})
    return mock


@pytest.fixture
def handlers(client: MagicMock) -> HookHandlers:
    return HookHandlers(client, MemConfig(observation={"skip_tools": ["todowrite"]}))


def hook_input(**kwargs) -> NormalizedHookInput:
    kwargs.setdefault("session_id", "s1")
    kwargs.setdefault("cwd", "/work/my-project")
    return NormalizedHookInput(**kwargs)


class TestProjectName:
    def test_basename(self) -> None:
        assert project_name("/work/my-project") == "my-project"

    def test_missing(self) -> None:
        assert project_name(None) == "unknown"
        assert project_name("/") == "unknown"


class TestDispatch:
    """HookHandlers.handle."""

    def test_hook_names(self, handlers: HookHandlers) -> None:
        assert handlers.hook_names == [
            "context",
            "session-init",
            "observation",
            "summarize",
            "session-complete",
        ]

    @pytest.mark.asyncio
    async def test_unknown_hook_raises(self, handlers: HookHandlers) -> None:
        with pytest.raises(UnknownHookError):
            await handlers.handle("bogus", hook_input())

    @pytest.mark.asyncio
    async def test_unhealthy_worker_fails_open(self, handlers, client) -> None:
        client.health.return_value = False
        result = await handlers.handle("context", hook_input())
        assert result == HookResult()
        client.get_context.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_handler_error_fails_open(self, handlers, client) -> None:
        client.complete_session.side_effect = WorkerUnavailableError("down")
        result = await handlers.handle("session-complete", hook_input())
        assert result.exit_code == 0
        assert result.continue_ is True


class TestHandlers:
    """Individual handlers."""

    @pytest.mark.asyncio
    async def test_context_returns_stripped_text(self, handlers, client) -> None:
        result = await handlers.handle("context", hook_input())
        client.get_context.assert_awaited_once_with("my-project")
        assert result.additional_context == "remembered"
        assert result.hook_event_name == "UserPromptSubmit"

    @pytest.mark.asyncio
    async def test_session_init(self, handlers, client) -> None:
        client.init_session.return_value = {"skipped": True, "reason": "private"}
        result = await handlers.handle("session-init", hook_input(prompt="<private>x</private>"))
        client.init_session.assert_awaited_once_with("s1", "my-project", "<private>x</private>")
        assert result == HookResult()

    @pytest.mark.asyncio
    async def test_observation_forwarded(self, handlers, client) -> None:
        await handlers.handle(
            "observation",
            hook_input(tool_name="read", tool_input={"path": "a"}, tool_response={"output": "x"}),
        )
        client.record_observation.assert_awaited_once_with(
            "s1", "read", {"path": "a"}, {"output": "x"}, "/work/my-project"
        )

    @pytest.mark.asyncio
    async def test_observation_skip_tools(self, handlers, client) -> None:
        await handlers.handle("observation", hook_input(tool_name="todowrite"))
        await handlers.handle("observation", hook_input())
        client.record_observation.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_summarize_reads_transcript(self, handlers, client, temp_dir: Path) -> None:
        transcript = temp_dir / "t.jsonl"
        lines = [
            {"type": "user", "message": {"content": "do it"}},
            {"type": "assistant", "message": {"content": [{"type": "text", "text": "done"}]}},
        ]
        transcript.write_text("\n".join(json.dumps(line) for line in lines))

        await handlers.handle("summarize", hook_input(transcript_path=str(transcript)))

        client.request_summary.assert_awaited_once_with("s1", "done")

    @pytest.mark.asyncio
    async def test_summarize_without_transcript(self, handlers, client) -> None:
        await handlers.handle("summarize", hook_input())
        client.request_summary.assert_awaited_once_with("s1", "")

    @pytest.mark.asyncio
    async def test_session_complete(self, handlers, client) -> None:
        await handlers.handle("session-complete", hook_input())
        client.complete_session.assert_awaited_once_with("s1")
