"""Raw adapter for hook translation.

Accepts payloads that already use the canonical field names, in either
snake_case or camelCase, and returns handler results as a plain JSON object.
Used for scripting and for hosts without a dedicated adapter.
"""

from typing import Any

from opencode_mem.adapters.base import BaseAdapter, first_present
from opencode_mem.hooks.events import HookEventKind, HookResult, NormalizedHookInput


class RawAdapter(BaseAdapter):
    """Pass-through adapter for canonical payloads."""

    platform = "raw"

    EVENT_MAP: dict[str, HookEventKind] = {kind.value: kind for kind in HookEventKind}

    def normalize_input(self, raw: Any) -> NormalizedHookInput:
        r: dict[str, Any] = raw if isinstance(raw, dict) else {}

        return NormalizedHookInput(
            session_id=first_present(r.get("session_id"), r.get("sessionId"), "unknown"),
            cwd=first_present(r.get("cwd"), self.default_cwd()),
            prompt=r.get("prompt"),
            tool_name=first_present(r.get("tool_name"), r.get("toolName")),
            tool_input=first_present(r.get("tool_input"), r.get("toolInput")),
            tool_response=first_present(r.get("tool_response"), r.get("toolResponse")),
            transcript_path=first_present(r.get("transcript_path"), r.get("transcriptPath")),
            file_path=first_present(r.get("file_path"), r.get("filePath")),
            edits=r.get("edits"),
        )

    def format_output(self, result: HookResult) -> dict[str, Any]:
        output: dict[str, Any] = {
            "continue": result.continue_,
            "suppressOutput": result.suppress_output,
        }
        if result.has_context:
            output["hookEventName"] = result.hook_event_name
            output["additionalContext"] = result.additional_context or ""
        return output
