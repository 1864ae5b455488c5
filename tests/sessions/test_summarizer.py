"""Tests for in-host session summarization."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from opencode_mem.config.app import SummaryConfig
from opencode_mem.hooks.events import ModelConfig
from opencode_mem.hooks.session_guard import InternalSessionGuard
from opencode_mem.sessions.summarizer import (
    DISABLED_TOOLS,
    HostSessionAPI,
    SessionSummarizer,
    SummarizationError,
    UpstreamUnavailableError,
)
from opencode_mem.sessions.summary import ParseStage, StructuredSummary
from opencode_mem.utils.worker_client import IngestResult, WorkerClient, WorkerUnavailableError

pytestmark = pytest.mark.unit

HISTORY = [
    {"info": {"role": "user"}, "parts": [{"type": "text", "text": "add a cache"}]},
    {"info": {"role": "assistant"}, "parts": [{"type": "text", "text": "added TTL cache"}]},
]


class FakeHost:
    """Records calls made against the host session API."""

    def __init__(
        self,
        messages: list[dict[str, Any]] | None = None,
        reply: str = '{"request": "add a cache", "completed": "added TTL cache"}',
        guard: InternalSessionGuard | None = None,
    ) -> None:
        self.messages = HISTORY if messages is None else messages
        self.reply = reply
        self.guard = guard
        self.created: list[str] = []
        self.deleted: list[str] = []
        self.prompts: list[dict[str, Any]] = []
        self.prompt_error: Exception | None = None
        self.delete_error: Exception | None = None
        self.internal_when_prompted: bool | None = None

    async def list_messages(self, session_id: str) -> list[dict[str, Any]]:
        return self.messages

    async def create_session(self, title: str) -> str:
        session_id = f"ephemeral-{len(self.created) + 1}"
        self.created.append(session_id)
        return session_id

    async def prompt(
        self,
        session_id: str,
        text: str,
        model: ModelConfig | None = None,
        tools: dict[str, bool] | None = None,
    ) -> str:
        if self.guard is not None:
            self.internal_when_prompted = self.guard.is_internal(session_id)
        self.prompts.append({"session_id": session_id, "text": text, "model": model, "tools": tools})
        if self.prompt_error is not None:
            raise self.prompt_error
        return self.reply

    async def delete_session(self, session_id: str) -> None:
        self.deleted.append(session_id)
        if self.delete_error is not None:
            raise self.delete_error


@pytest.fixture
def guard(clock) -> InternalSessionGuard:
    return InternalSessionGuard(clock=clock)


@pytest.fixture
def worker() -> MagicMock:
    client = MagicMock(spec=WorkerClient)
    client.ingest_summary = AsyncMock(return_value=IngestResult(status="stored", summary_id=7))
    return client


class TestSessionSummarizer:
    """Ephemeral-session summarization."""

    def test_fake_host_satisfies_protocol(self) -> None:
        assert isinstance(FakeHost(), HostSessionAPI)

    @pytest.mark.asyncio
    async def test_success_ingests_summary(self, guard, worker) -> None:
        host = FakeHost(guard=guard)
        summarizer = SessionSummarizer(host, worker, guard)

        outcome = await summarizer.summarize("s1")

        assert outcome.stage == ParseStage.STRUCTURED
        assert outcome.summary.request == "add a cache"
        assert outcome.ingest.summary_id == 7
        worker.ingest_summary.assert_awaited_once()
        session_id, summary = worker.ingest_summary.await_args.args
        assert session_id == "s1"
        assert isinstance(summary, StructuredSummary)

    @pytest.mark.asyncio
    async def test_ephemeral_session_marked_before_prompt(self, guard, worker) -> None:
        host = FakeHost(guard=guard)
        await SessionSummarizer(host, worker, guard).summarize("s1")
        assert host.internal_when_prompted is True
        assert guard.is_internal("ephemeral-1")

    @pytest.mark.asyncio
    async def test_prompt_sent_with_tools_disabled_and_model(self, guard, worker) -> None:
        host = FakeHost()
        model = ModelConfig(provider_id="anthropic", model_id="claude")
        await SessionSummarizer(host, worker, guard).summarize("s1", model)

        sent = host.prompts[0]
        assert sent["tools"] == DISABLED_TOOLS
        assert sent["model"] == model
        assert "[user]\nadd a cache" in sent["text"]

    @pytest.mark.asyncio
    async def test_ephemeral_session_always_deleted(self, guard, worker) -> None:
        host = FakeHost()
        host.prompt_error = RuntimeError("model overloaded")

        with pytest.raises(UpstreamUnavailableError):
            await SessionSummarizer(host, worker, guard).summarize("s1")

        assert host.deleted == ["ephemeral-1"]
        worker.ingest_summary.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_failure_swallowed(self, guard, worker) -> None:
        host = FakeHost()
        host.delete_error = RuntimeError("gone")
        outcome = await SessionSummarizer(host, worker, guard).summarize("s1")
        assert outcome.ingest.stored

    @pytest.mark.asyncio
    async def test_missing_host_api(self, guard, worker) -> None:
        with pytest.raises(UpstreamUnavailableError):
            await SessionSummarizer(None, worker, guard).summarize("s1")

    @pytest.mark.asyncio
    async def test_empty_transcript(self, guard, worker) -> None:
        host = FakeHost(messages=[])
        with pytest.raises(SummarizationError):
            await SessionSummarizer(host, worker, guard).summarize("s1")
        assert host.created == []

    @pytest.mark.asyncio
    async def test_ingest_failure_raises(self, guard, worker) -> None:
        worker.ingest_summary.side_effect = WorkerUnavailableError("down")
        with pytest.raises(SummarizationError):
            await SessionSummarizer(FakeHost(), worker, guard).summarize("s1")

    @pytest.mark.asyncio
    async def test_private_skip_is_success(self, guard, worker) -> None:
        worker.ingest_summary.return_value = IngestResult(status="skipped", reason="private")
        outcome = await SessionSummarizer(FakeHost(), worker, guard).summarize("s1")
        assert outcome.ingest.skipped

    @pytest.mark.asyncio
    async def test_unstructured_reply_lands_in_notes(self, guard, worker) -> None:
        host = FakeHost(reply="I could not produce JSON, sorry")
        outcome = await SessionSummarizer(host, worker, guard).summarize("s1")
        assert outcome.stage == ParseStage.FALLBACK
        assert outcome.summary.notes == "I could not produce JSON, sorry"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply", ["", "  \n\t "])
    async def test_empty_reply_raises(self, guard, worker, reply: str) -> None:
        host = FakeHost(reply=reply)
        with pytest.raises(SummarizationError, match="Empty summary reply"):
            await SessionSummarizer(host, worker, guard).summarize("s1")
        worker.ingest_summary.assert_not_awaited()
        assert host.deleted == host.created == ["ephemeral-1"]

    @pytest.mark.asyncio
    async def test_disabled(self, guard, worker) -> None:
        summarizer = SessionSummarizer(FakeHost(), worker, guard, SummaryConfig(enabled=False))
        with pytest.raises(SummarizationError):
            await summarizer.summarize("s1")
