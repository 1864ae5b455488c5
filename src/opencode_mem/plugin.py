"""
OpenCode host plugin.

Translates OpenCode plugin callbacks into orchestrator calls:

    chat.message         -> on_prompt_submit (may prepend a context part)
    tool.execute.before  -> on_tool_before
    tool.execute.after   -> on_tool_after
    event(session.idle)  -> on_session_idle

Callback arguments keep the host's `(input, output)` shapes; `output` is
mutated in place where the host expects it.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from opencode_mem.adapters import BaseAdapter, get_platform_adapter
from opencode_mem.config.app import MemConfig, load_config
from opencode_mem.hooks.bridge import HookBridge
from opencode_mem.hooks.events import ModelConfig
from opencode_mem.hooks.orchestrator import HookOrchestrator
from opencode_mem.hooks.state import HookState
from opencode_mem.sessions.summarizer import HostSessionAPI, SessionSummarizer
from opencode_mem.utils.worker_client import WorkerClient

logger = logging.getLogger(__name__)

PLUGIN_URL = Path(__file__).resolve().as_uri()


class OpenCodeMemPlugin:
    """Host-facing callbacks bound to one orchestrator."""

    def __init__(self, orchestrator: HookOrchestrator, adapter: BaseAdapter | None = None) -> None:
        self.orchestrator = orchestrator
        self.adapter = adapter or get_platform_adapter("opencode")

    @classmethod
    def create(
        cls,
        directory: str | None = None,
        host: HostSessionAPI | None = None,
        config: MemConfig | None = None,
        bridge: HookBridge | None = None,
    ) -> OpenCodeMemPlugin:
        """
        Wire a plugin with fresh state.

        Args:
            directory: Project directory the host runs in (default: process cwd)
            host: Host session API for in-host summarization; None forces the legacy path
            config: Loaded configuration (default: load_config())
            bridge: Hook bridge (default: spawn this package's hook runner)
        """
        config = config or load_config()
        cwd = directory or os.getcwd()
        state = HookState(
            ttl=config.cache.dedupe_ttl_seconds,
            stop_debounce=config.cache.stop_debounce_seconds,
        )
        worker = WorkerClient(
            host=config.worker.host,
            port=config.worker.port,
            timeout=config.worker.request_timeout,
        )
        summarizer = SessionSummarizer(host, worker, state.internal_sessions, config.summary)
        orchestrator = HookOrchestrator(
            state=state,
            bridge=bridge or HookBridge(command=config.worker_command, cwd=cwd),
            summarizer=summarizer,
            config=config,
            cwd=cwd,
            plugin_url=PLUGIN_URL,
        )
        return cls(orchestrator)

    def hooks(self) -> dict[str, Callable[..., Awaitable[None]]]:
        """Callbacks keyed by the host's hook names."""
        return {
            "chat.message": self.chat_message,
            "tool.execute.before": self.tool_execute_before,
            "tool.execute.after": self.tool_execute_after,
            "event": self.event,
        }

    def _native(self, hook_name: str, input: dict[str, Any] | None) -> dict[str, Any]:
        data = dict(input or {})
        data["hook_event_name"] = hook_name
        data["sessionID"] = data.get("sessionID") or "unknown"
        data.setdefault("directory", self.orchestrator.cwd)
        return data

    async def chat_message(
        self, input: dict[str, Any] | None, output: dict[str, Any] | None
    ) -> None:
        event = self.adapter.translate_to_hook_event(self._native("chat.message", input))
        parts = output.get("parts") if isinstance(output, dict) else None
        model = ModelConfig.from_host((input or {}).get("model"))
        await self.orchestrator.on_prompt_submit(event, parts, model)

    async def tool_execute_before(
        self, input: dict[str, Any] | None, output: dict[str, Any] | None
    ) -> None:
        event = self.adapter.translate_to_hook_event(self._native("tool.execute.before", input))
        args = output.get("args") if isinstance(output, dict) else None
        await self.orchestrator.on_tool_before(event, args if isinstance(args, dict) else {})

    async def tool_execute_after(
        self, input: dict[str, Any] | None, output: dict[str, Any] | None
    ) -> None:
        event = self.adapter.translate_to_hook_event(self._native("tool.execute.after", input))
        tool_name = (input or {}).get("tool") or "unknown"
        await self.orchestrator.on_tool_after(event, tool_name, output)

    async def event(self, payload: dict[str, Any] | None) -> None:
        """Generic host event bus; only `session.idle` is handled."""
        host_event = (payload or {}).get("event")
        if not isinstance(host_event, dict) or host_event.get("type") != "session.idle":
            return

        properties = host_event.get("properties") or {}
        session_id = properties.get("sessionID") if isinstance(properties, dict) else None
        if not session_id:
            return

        event = self.adapter.translate_to_hook_event(
            {
                "hook_event_name": "session.idle",
                "sessionID": session_id,
                "directory": self.orchestrator.cwd,
            }
        )
        await self.orchestrator.on_session_idle(event)
