"""
In-host session summarization.

Summarizes a finished session through the host's own session/LLM API:

1. Read the session's message history and build a transcript.
2. Open an ephemeral host session, marked internal before anything is sent so
   its own lifecycle events are ignored by the orchestrator.
3. Prompt it with every tool disabled. The ephemeral session can only answer
   with text; it cannot reach the memory worker or write files.
4. Delete it whatever happened.
5. Parse the reply and ingest it through the worker.

Any failure raises SummarizationError (or its subclass
UpstreamUnavailableError); the orchestrator falls back to the legacy
out-of-process summarizer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from opencode_mem.config.app import SummaryConfig
from opencode_mem.hooks.events import ModelConfig
from opencode_mem.hooks.session_guard import InternalSessionGuard
from opencode_mem.sessions.summary import (
    ParseStage,
    StructuredSummary,
    build_summary_prompt,
    parse_summary,
)
from opencode_mem.sessions.transcript import build_transcript
from opencode_mem.utils.worker_client import IngestResult, WorkerClient

logger = logging.getLogger(__name__)

# Tool permission map sent with the summarization prompt
DISABLED_TOOLS: dict[str, bool] = {"*": False}


class SummarizationError(Exception):
    """In-host summarization could not produce and ingest a summary."""


class UpstreamUnavailableError(SummarizationError):
    """The host session API is missing or failing."""


@runtime_checkable
class HostSessionAPI(Protocol):
    """The subset of the host's session API the summarizer needs."""

    async def list_messages(self, session_id: str) -> list[dict[str, Any]]: ...

    async def create_session(self, title: str) -> str: ...

    async def prompt(
        self,
        session_id: str,
        text: str,
        model: ModelConfig | None = None,
        tools: dict[str, bool] | None = None,
    ) -> str: ...

    async def delete_session(self, session_id: str) -> None: ...


@dataclass
class SummaryOutcome:
    summary: StructuredSummary
    stage: ParseStage
    ingest: IngestResult


class SessionSummarizer:
    """Runs the in-host summarization path for one session at a time."""

    def __init__(
        self,
        host: HostSessionAPI | None,
        worker_client: WorkerClient,
        guard: InternalSessionGuard,
        config: SummaryConfig | None = None,
    ) -> None:
        self.host = host
        self.worker_client = worker_client
        self.guard = guard
        self.config = config or SummaryConfig()

    async def summarize(self, session_id: str, model: ModelConfig | None = None) -> SummaryOutcome:
        """
        Summarize `session_id` and ingest the result.

        Args:
            session_id: Host session to summarize
            model: Model last selected in that session, reused for the summary

        Returns:
            SummaryOutcome with the parsed summary, parse stage and ingest verdict

        Raises:
            UpstreamUnavailableError: Host API missing or failing
            SummarizationError: Nothing to summarize, an empty reply, or ingest failed
        """
        if self.host is None:
            raise UpstreamUnavailableError("Host session API not available")
        if not self.config.enabled:
            raise SummarizationError("In-host summarization disabled")

        try:
            messages = await self.host.list_messages(session_id)
        except Exception as e:
            raise UpstreamUnavailableError(f"Failed to read messages for {session_id}: {e}") from e

        transcript = build_transcript(
            messages,
            max_messages=self.config.max_messages,
            max_chars=self.config.max_chars,
        )
        if not transcript:
            raise SummarizationError(f"No transcript text for session {session_id}")

        reply = await self._generate(self.host, build_summary_prompt(transcript), model)
        if not reply.strip():
            raise SummarizationError(f"Empty summary reply for session {session_id}")
        result = parse_summary(reply, max_notes_chars=self.config.fallback_notes_chars)
        logger.debug(f"Parsed summary for {session_id} via {result.stage.value}")

        try:
            ingest = await self.worker_client.ingest_summary(session_id, result.summary)
        except Exception as e:
            raise SummarizationError(f"Summary ingest failed for {session_id}: {e}") from e

        if ingest.skipped:
            logger.info(f"Summary for {session_id} skipped by worker: {ingest.reason}")
        return SummaryOutcome(summary=result.summary, stage=result.stage, ingest=ingest)

    async def _generate(self, host: HostSessionAPI, prompt: str, model: ModelConfig | None) -> str:
        try:
            ephemeral_id = await host.create_session(self.config.session_title)
        except Exception as e:
            raise UpstreamUnavailableError(f"Failed to create summarization session: {e}") from e

        self.guard.mark_internal(ephemeral_id)
        try:
            try:
                reply = await host.prompt(ephemeral_id, prompt, model=model, tools=DISABLED_TOOLS)
            except Exception as e:
                raise UpstreamUnavailableError(f"Summarization prompt failed: {e}") from e
        finally:
            try:
                await host.delete_session(ephemeral_id)
            except Exception as e:
                logger.warning(f"Failed to delete summarization session {ephemeral_id}: {e}")

        return reply or ""
