"""
Hook orchestrator.

Composes the hook state, the execution bridge and the in-host summarizer into
four lifecycle entry points. Each entry point is exception-isolated: whatever
goes wrong is logged and the host never sees an error.

    on_prompt_submit  -> context (inject), session-init
    on_tool_before    -> correlator.record
    on_tool_after     -> observation
    on_session_idle   -> in-host summary or legacy summarize, session-complete
"""

from __future__ import annotations

import logging
import os
import re
from typing import Any

from opencode_mem.adapters.opencode import CONTEXT_TAG
from opencode_mem.config.app import HookTimeoutsConfig, MemConfig
from opencode_mem.hooks.bridge import HookBridge, HookBridgeError, HookExecutionResult
from opencode_mem.hooks.cache import make_dedupe_key, tool_fingerprint
from opencode_mem.hooks.events import HookEvent, HookEventKind, ModelConfig
from opencode_mem.hooks.state import HookState
from opencode_mem.sessions.summarizer import SessionSummarizer

logger = logging.getLogger(__name__)

HOOK_SOURCE = "opencode-plugin"

CONTEXT_RE = re.compile(rf"<{CONTEXT_TAG}>(.*?)</{CONTEXT_TAG}>", re.DOTALL)


def build_prompt_text(parts: Any) -> str:
    """Join the text parts of a host prompt."""
    if not isinstance(parts, list):
        return ""
    return "\n".join(
        p["text"]
        for p in parts
        if isinstance(p, dict) and p.get("type") == "text" and isinstance(p.get("text"), str)
    )


def extract_output_text(output: Any) -> str:
    """Text of a tool result: `output`, else `title`, else ""."""
    if not isinstance(output, dict):
        return ""
    if isinstance(output.get("output"), str):
        return output["output"]
    if isinstance(output.get("title"), str):
        return output["title"]
    return ""


def unwrap_context(text: Any) -> str:
    """Text inside the context sentinel tags; the raw text if there are none."""
    if not isinstance(text, str):
        return ""
    match = CONTEXT_RE.search(text)
    if not match:
        return text
    return match.group(1).strip()


class HookOrchestrator:
    """Top-level lifecycle handlers for one host process."""

    def __init__(
        self,
        state: HookState,
        bridge: HookBridge,
        summarizer: SessionSummarizer | None = None,
        config: MemConfig | None = None,
        cwd: str | None = None,
        plugin_url: str = "",
    ) -> None:
        self.state = state
        self.bridge = bridge
        self.summarizer = summarizer
        self.config = config or MemConfig()
        self.cwd = cwd or os.getcwd()
        self.plugin_url = plugin_url

    @property
    def timeouts(self) -> HookTimeoutsConfig:
        return self.config.hook_timeouts

    def _payload(self, event: HookEvent, hook_event_name: str, **fields: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "session_id": event.session_id,
            "cwd": self.cwd,
            "hook_event_name": hook_event_name,
            "hook_source": HOOK_SOURCE,
            "plugin_url": self.plugin_url,
        }
        payload.update({k: v for k, v in fields.items() if v is not None})
        return payload

    async def _run_hook(
        self,
        hook_name: str,
        payload: dict[str, Any],
        timeout_ms: int,
    ) -> HookExecutionResult | None:
        """Run one worker hook; failures are logged and reported as None or a failed result."""
        try:
            result = await self.bridge.execute(hook_name, payload, timeout_ms)
        except HookBridgeError as e:
            logger.error(f"{hook_name} hook failed for {payload.get('session_id')}: {e}")
            return None

        if not result.ok:
            logger.error(
                f"{hook_name} hook exited with {result.exit_code} "
                f"for {payload.get('session_id')}: {result.stderr}"
            )
        return result

    # ==================== Entry points ====================

    async def on_prompt_submit(
        self,
        event: HookEvent,
        parts: list[dict[str, Any]] | None,
        model: ModelConfig | None = None,
    ) -> None:
        """
        Handle a submitted prompt.

        Injects worker context as a new leading text part of `parts` (mutated in
        place) and registers the prompt with the worker.
        """
        try:
            session_id = event.session_id
            if self.state.is_internal(session_id):
                return
            if model is not None:
                self.state.models.remember(session_id, model)

            prompt = build_prompt_text(parts)
            ident = event.message_id or prompt
            key = make_dedupe_key(HookEventKind.PROMPT_SUBMIT, session_id, ident)
            if not self.state.mark_seen(key):
                logger.debug(f"Duplicate prompt event skipped: {key}")
                return

            payload = self._payload(event, "UserPromptSubmit", prompt=prompt)

            result = await self._run_hook("context", payload, self.timeouts.context)
            if result is not None and result.ok and result.stdout and isinstance(parts, list):
                context_text = unwrap_context(result.stdout)
                if context_text:
                    parts.insert(0, {"type": "text", "text": context_text})

            await self._run_hook("session-init", payload, self.timeouts.session_init)
        except Exception as e:
            logger.error(f"Prompt submit handler failed for {event.session_id}: {e}", exc_info=True)

    async def on_tool_before(self, event: HookEvent, args: dict[str, Any] | None) -> None:
        """Park tool arguments until the matching post-execution event arrives."""
        try:
            if self.state.is_internal(event.session_id) or not event.call_id:
                return
            self.state.prune_all()
            self.state.correlator.record(event.session_id, event.call_id, args)
        except Exception as e:
            logger.error(f"Tool before handler failed for {event.session_id}: {e}", exc_info=True)

    async def on_tool_after(self, event: HookEvent, tool_name: str | None, output: Any) -> None:
        """Record a finished tool call as an observation."""
        try:
            session_id = event.session_id
            if self.state.is_internal(session_id) or output is None:
                return

            tool_name = tool_name or "unknown"
            metadata = output.get("metadata") if isinstance(output, dict) else None
            metadata = metadata if isinstance(metadata, dict) else {}
            fallback = metadata.get("args") if isinstance(metadata.get("args"), dict) else None

            tool_input = self.state.correlator.resolve(session_id, event.call_id, fallback)
            tool_response = {"output": extract_output_text(output), "metadata": metadata}

            ident = event.call_id or tool_fingerprint(tool_name, tool_input)
            key = make_dedupe_key(HookEventKind.TOOL_AFTER, session_id, ident)
            if not self.state.mark_seen(key):
                logger.debug(f"Duplicate tool event skipped: {key}")
                return

            payload = self._payload(
                event,
                "PostToolUse",
                tool_name=tool_name,
                tool_input=tool_input,
                tool_response=tool_response,
                tool_use_id=event.call_id or None,
            )
            try:
                await self._run_hook("observation", payload, self.timeouts.observation)
            finally:
                self.state.correlator.discard(session_id, event.call_id)
        except Exception as e:
            logger.error(f"Tool after handler failed for {event.session_id}: {e}", exc_info=True)

    async def on_session_idle(self, event: HookEvent) -> None:
        """Summarize and complete a session once it goes idle."""
        try:
            session_id = event.session_id
            if not session_id or self.state.is_internal(session_id):
                return

            async with self.state.stop_lock.hold(session_id) as acquired:
                if not acquired:
                    logger.debug(f"Stop for {session_id} debounced")
                    return

                payload = self._payload(event, "Stop")
                model = self.state.models.take(session_id)
                if not await self._summarize_in_host(session_id, model):
                    await self._run_hook("summarize", payload, self.timeouts.summarize)

                await self._run_hook("session-complete", payload, self.timeouts.session_complete)
        except Exception as e:
            logger.error(f"Session idle handler failed for {event.session_id}: {e}", exc_info=True)

    async def _summarize_in_host(self, session_id: str, model: ModelConfig | None) -> bool:
        """True when the in-host path produced and handed off a summary."""
        if self.summarizer is None:
            return False
        try:
            outcome = await self.summarizer.summarize(session_id, model)
        except Exception as e:
            logger.warning(f"In-host summary failed for {session_id}, using summarize hook: {e}")
            return False
        logger.info(f"Summary for {session_id}: {outcome.ingest.status} ({outcome.stage.value})")
        return True
