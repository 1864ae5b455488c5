"""Claude Code adapter for hook translation.

Claude Code runs hook commands with a JSON payload on stdin:
{
    "session_id": "abc123",
    "cwd": "/path/to/project",
    "hook_event_name": "PostToolUse",
    "transcript_path": "~/.claude/projects/.../abc123.jsonl",
    "tool_name": "Read",
    "tool_input": {"file_path": "README.md"},
    "tool_response": {...}
}

and parses stdout as JSON control data:
{
    "continue": true,
    "suppressOutput": true,
    "hookSpecificOutput": {
        "hookEventName": "UserPromptSubmit",
        "additionalContext": "..."
    }
}
"""

from typing import Any

from opencode_mem.adapters.base import BaseAdapter, first_present
from opencode_mem.hooks.events import HookEventKind, HookResult, NormalizedHookInput


class ClaudeCodeAdapter(BaseAdapter):
    """Adapter for Claude Code command hooks."""

    platform = "claude-code"

    EVENT_MAP: dict[str, HookEventKind] = {
        "UserPromptSubmit": HookEventKind.PROMPT_SUBMIT,
        "PreToolUse": HookEventKind.TOOL_BEFORE,
        "PostToolUse": HookEventKind.TOOL_AFTER,
        "Stop": HookEventKind.SESSION_IDLE,
    }

    def normalize_input(self, raw: Any) -> NormalizedHookInput:
        r: dict[str, Any] = raw if isinstance(raw, dict) else {}

        return NormalizedHookInput(
            session_id=first_present(r.get("session_id"), "unknown"),
            cwd=first_present(r.get("cwd"), self.default_cwd()),
            prompt=r.get("prompt"),
            tool_name=r.get("tool_name"),
            tool_input=r.get("tool_input"),
            tool_response=r.get("tool_response"),
            transcript_path=r.get("transcript_path"),
        )

    def format_output(self, result: HookResult) -> dict[str, Any]:
        if result.has_context:
            return {
                "hookSpecificOutput": {
                    "hookEventName": result.hook_event_name,
                    "additionalContext": result.additional_context or "",
                }
            }
        return {"continue": result.continue_, "suppressOutput": result.suppress_output}
