"""
Worker-side hook handlers.

These run inside the short-lived `opencode-mem hook <platform> <event>`
process the bridge spawns. Each handler receives the adapter-normalized input,
talks to the memory worker over HTTP and returns a HookResult for the adapter
to format.

Handlers fail open: an unreachable worker or a failing request is logged and
answered with a successful, silent result so the host is never blocked.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from opencode_mem.config.app import MemConfig
from opencode_mem.hooks.events import HookResult, NormalizedHookInput
from opencode_mem.sessions.transcript import extract_last_message
from opencode_mem.utils.worker_client import WorkerClient

logger = logging.getLogger(__name__)

Handler = Callable[[NormalizedHookInput], Awaitable[HookResult]]


class UnknownHookError(ValueError):
    """Raised when no handler is registered for a hook name."""


def project_name(cwd: str | None) -> str:
    """Project identifier the worker files memories under: the cwd basename."""
    if not cwd:
        return "unknown"
    return Path(cwd).name or "unknown"


class HookHandlers:
    """Dispatches hook names to handlers."""

    def __init__(self, client: WorkerClient, config: MemConfig | None = None) -> None:
        self.client = client
        self.config = config or MemConfig()
        self._handler_map: dict[str, Handler] = {
            "context": self._handle_context,
            "session-init": self._handle_session_init,
            "observation": self._handle_observation,
            "summarize": self._handle_summarize,
            "session-complete": self._handle_session_complete,
        }

    @property
    def hook_names(self) -> list[str]:
        return list(self._handler_map)

    async def handle(self, hook_name: str, hook_input: NormalizedHookInput) -> HookResult:
        """
        Run the handler for `hook_name`.

        Args:
            hook_name: One of hook_names
            hook_input: Adapter-normalized payload

        Returns:
            HookResult; always successful unless the handler itself reports otherwise

        Raises:
            UnknownHookError: If no handler is registered for hook_name
        """
        handler = self._handler_map.get(hook_name)
        if handler is None:
            raise UnknownHookError(f"Unknown hook: {hook_name}")

        if not await self.client.health():
            logger.warning(f"Worker not available, skipping {hook_name}")
            return HookResult()

        try:
            return await handler(hook_input)
        except Exception as e:
            # Fail-open
            logger.error(f"{hook_name} handler failed: {e}", exc_info=True)
            return HookResult()

    # ==================== HANDLERS ====================

    async def _handle_context(self, hook_input: NormalizedHookInput) -> HookResult:
        context = await self.client.get_context(project_name(hook_input.cwd))
        return HookResult(
            hook_event_name="UserPromptSubmit",
            additional_context=context.strip(),
        )

    async def _handle_session_init(self, hook_input: NormalizedHookInput) -> HookResult:
        data = await self.client.init_session(
            hook_input.session_id,
            project_name(hook_input.cwd),
            hook_input.prompt or "",
        )
        if data.get("skipped"):
            logger.info(f"Session {hook_input.session_id} init skipped: {data.get('reason')}")
        return HookResult()

    async def _handle_observation(self, hook_input: NormalizedHookInput) -> HookResult:
        tool_name = hook_input.tool_name
        if not tool_name:
            logger.debug("Observation without tool name ignored")
            return HookResult()
        if tool_name in self.config.observation.skip_tools:
            logger.debug(f"Skipping observation for {tool_name}")
            return HookResult()

        await self.client.record_observation(
            hook_input.session_id,
            tool_name,
            hook_input.tool_input,
            hook_input.tool_response,
            hook_input.cwd,
        )
        return HookResult()

    async def _handle_summarize(self, hook_input: NormalizedHookInput) -> HookResult:
        last_message = ""
        if hook_input.transcript_path:
            last_message = extract_last_message(hook_input.transcript_path, role="assistant")
        await self.client.request_summary(hook_input.session_id, last_message)
        return HookResult()

    async def _handle_session_complete(self, hook_input: NormalizedHookInput) -> HookResult:
        await self.client.complete_session(hook_input.session_id)
        return HookResult()
