"""Cursor adapter for hook translation.

Cursor Hook Types used for memory capture:
- beforeSubmitPrompt: prompt submission
- beforeShellExecution, beforeMCPExecution, beforeReadFile: pre-execution
- afterShellExecution, afterMCPExecution, afterFileEdit: post-execution
- stop: agent loop finished

Key Differences from Claude Code:
- Session id arrives as conversation_id (or generation_id)
- cwd is the first entry of workspace_roots
- Shell executions carry command/output instead of tool_name/tool_input
- MCP executions carry tool_input and result_json as JSON strings
- Responses are a small JSON object; context goes in additional_context

Documentation: https://cursor.com/docs/agent/hooks
"""

from typing import Any

from opencode_mem.adapters.base import BaseAdapter, first_present, try_parse_json
from opencode_mem.hooks.events import HookEventKind, HookResult, NormalizedHookInput


class CursorAdapter(BaseAdapter):
    """Adapter for Cursor agent hooks."""

    platform = "cursor"

    EVENT_MAP: dict[str, HookEventKind] = {
        "beforeSubmitPrompt": HookEventKind.PROMPT_SUBMIT,
        "preToolUse": HookEventKind.TOOL_BEFORE,
        "beforeShellExecution": HookEventKind.TOOL_BEFORE,
        "beforeMCPExecution": HookEventKind.TOOL_BEFORE,
        "beforeReadFile": HookEventKind.TOOL_BEFORE,
        "postToolUse": HookEventKind.TOOL_AFTER,
        "afterShellExecution": HookEventKind.TOOL_AFTER,
        "afterMCPExecution": HookEventKind.TOOL_AFTER,
        "afterFileEdit": HookEventKind.TOOL_AFTER,
        "stop": HookEventKind.SESSION_IDLE,
    }

    def normalize_input(self, raw: Any) -> NormalizedHookInput:
        r: dict[str, Any] = raw if isinstance(raw, dict) else {}
        hook_event = str(r.get("hook_event_name") or "")

        workspace_roots = r.get("workspace_roots")
        first_root = None
        if isinstance(workspace_roots, list) and workspace_roots:
            first_root = workspace_roots[0]

        is_shell = hook_event in ("beforeShellExecution", "afterShellExecution") or bool(
            r.get("command") and not r.get("tool_name")
        )
        is_mcp = hook_event in ("beforeMCPExecution", "afterMCPExecution") or bool(
            r.get("tool_name")
        )
        is_file_edit = hook_event == "afterFileEdit"

        tool_name = r.get("tool_name")
        tool_input: Any = None
        tool_response: Any = None

        if is_shell:
            tool_name = tool_name or "Bash"
            tool_input = {"command": r.get("command")}
            tool_response = {"output": r.get("output")}
        elif is_mcp:
            tool_input = try_parse_json(r.get("tool_input"))
            tool_response = try_parse_json(r.get("result_json"))
        elif is_file_edit:
            tool_name = "Edit"
            tool_input = {"file_path": r.get("file_path"), "edits": r.get("edits") or []}

        return NormalizedHookInput(
            session_id=first_present(r.get("conversation_id"), r.get("generation_id"), "unknown"),
            cwd=first_present(first_root, r.get("cwd"), self.default_cwd()),
            prompt=r.get("prompt"),
            tool_name=tool_name,
            tool_input=tool_input,
            tool_response=tool_response,
            file_path=r.get("file_path"),
            edits=r.get("edits"),
        )

    def format_output(self, result: HookResult) -> dict[str, Any]:
        output: dict[str, Any] = {"continue": result.continue_}
        if result.has_context and result.additional_context:
            output["additional_context"] = result.additional_context
        return output
