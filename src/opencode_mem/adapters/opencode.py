"""OpenCode adapter for hook translation.

OpenCode reaches the memory worker two ways, and this adapter normalizes both:

1. The in-process plugin (see opencode_mem.plugin), whose callbacks carry
   camelCase keys such as sessionID, callID and messageID.
2. Oh My OpenCode's `claude-code-hooks` bridge, which replays Claude-compatible
   payloads (session_id, tool_name, tool_input, ...) and in some environments
   Cursor-style shell/MCP payloads (command/output, result_json).

Output contract (OMO claude-code-hooks bridge):
- UserPromptSubmit stdout is injected into the prompt verbatim, not parsed.
- PostToolUse/Stop stdout is surfaced as a message unless it parses as JSON.
So the adapter stays silent unless there is context to inject, and wraps that
context in the sentinel tag pair the plugin unwraps.
"""

from typing import Any

from opencode_mem.adapters.base import BaseAdapter, first_present, nested_get, try_parse_json
from opencode_mem.hooks.events import HookEventKind, HookResult, NormalizedHookInput

CONTEXT_TAG = "opencode-mem-context"


def wrap_context(text: str) -> str:
    return f"<{CONTEXT_TAG}>\n{text}\n</{CONTEXT_TAG}>"


class OpenCodeAdapter(BaseAdapter):
    """Adapter for OpenCode and Oh My OpenCode."""

    platform = "opencode"

    EVENT_MAP: dict[str, HookEventKind] = {
        # Plugin callbacks
        "chat.message": HookEventKind.PROMPT_SUBMIT,
        "tool.execute.before": HookEventKind.TOOL_BEFORE,
        "tool.execute.after": HookEventKind.TOOL_AFTER,
        "session.idle": HookEventKind.SESSION_IDLE,
        # Claude-compatible names replayed by claude-code-hooks
        "UserPromptSubmit": HookEventKind.PROMPT_SUBMIT,
        "PreToolUse": HookEventKind.TOOL_BEFORE,
        "PostToolUse": HookEventKind.TOOL_AFTER,
        "Stop": HookEventKind.SESSION_IDLE,
        # Cursor-style execution hooks
        "afterShellExecution": HookEventKind.TOOL_AFTER,
        "afterMCPExecution": HookEventKind.TOOL_AFTER,
    }

    def normalize_input(self, raw: Any) -> NormalizedHookInput:
        r: dict[str, Any] = raw if isinstance(raw, dict) else {}
        hook_event = str(r.get("hook_event_name") or "")

        session_id = first_present(
            r.get("session_id"),
            r.get("conversation_id"),
            r.get("generation_id"),
            nested_get(r, "session", "id"),
            r.get("sessionID"),
            "unknown",
        )

        workspace_roots = r.get("workspace_roots")
        first_root = None
        if isinstance(workspace_roots, list) and workspace_roots:
            first_root = workspace_roots[0]
        cwd = first_present(r.get("cwd"), first_root, r.get("directory"), self.default_cwd())

        explicit_tool = first_present(r.get("tool_name"), r.get("tool"))
        is_shell = hook_event == "afterShellExecution" or bool(
            r.get("command") and not explicit_tool
        )
        is_mcp = hook_event == "afterMCPExecution" or bool(explicit_tool)

        tool_name = explicit_tool
        if tool_name is None and is_shell:
            tool_name = "Bash"

        tool_input = r.get("tool_input")
        if is_mcp:
            tool_input = try_parse_json(tool_input)
        if tool_input is None and r.get("args") is not None:
            tool_input = r.get("args")
        if tool_input is None and is_shell:
            tool_input = {"command": r.get("command")}

        tool_response = r.get("tool_response")
        if tool_response is None and is_mcp:
            tool_response = try_parse_json(r.get("result_json"))
        if tool_response is None and is_shell:
            tool_response = {"output": r.get("output")}

        return NormalizedHookInput(
            session_id=session_id,
            cwd=cwd,
            prompt=r.get("prompt"),
            tool_name=tool_name,
            tool_input=tool_input,
            tool_response=tool_response,
            transcript_path=r.get("transcript_path"),
            file_path=r.get("file_path"),
            edits=r.get("edits"),
        )

    def format_output(self, result: HookResult) -> str | None:
        if result.has_context:
            context = (result.additional_context or "").strip()
            if not context:
                return ""
            return wrap_context(context)

        # No stdout: anything printed would pollute tool output or the prompt
        return None
