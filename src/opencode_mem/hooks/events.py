"""
Unified hook event models.

Every host platform's lifecycle callbacks are translated into these shapes
before any orchestration logic sees them:

- HookEventKind: the four lifecycle kinds the memory pipeline reacts to
- HookEvent: a transient, platform-tagged lifecycle notification
- NormalizedHookInput: the canonical payload produced by every platform adapter
- HookResult: what a worker-side handler returns, formatted back by the adapter
- ModelConfig: the model selection a host reported for a session
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class HookEventKind(str, Enum):
    """Lifecycle kinds the orchestrator handles."""

    PROMPT_SUBMIT = "prompt_submit"
    TOOL_BEFORE = "tool_before"
    TOOL_AFTER = "tool_after"
    SESSION_IDLE = "session_idle"


@dataclass
class HookEvent:
    """A lifecycle notification from a host platform. Never persisted."""

    kind: HookEventKind
    session_id: str
    platform: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    call_id: str | None = None
    message_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class NormalizedHookInput:
    """Canonical hook input consumed by all worker-side handlers."""

    session_id: str
    cwd: str
    prompt: str | None = None
    tool_name: str | None = None
    tool_input: Any = None
    tool_response: Any = None
    transcript_path: str | None = None
    file_path: str | None = None
    edits: list[Any] | None = None


@dataclass
class HookResult:
    """Result of a worker-side hook handler.

    `additional_context` is only set by handlers that want text injected into
    the model's prompt. Adapters decide how (or whether) it reaches stdout.
    """

    continue_: bool = True
    suppress_output: bool = True
    exit_code: int = 0
    hook_event_name: str | None = None
    additional_context: str | None = None

    @property
    def has_context(self) -> bool:
        return self.hook_event_name is not None


@dataclass(frozen=True)
class ModelConfig:
    """Model selection last seen for a session."""

    provider_id: str
    model_id: str

    @classmethod
    def from_host(cls, raw: Any) -> ModelConfig | None:
        """Build from a host `{"providerID": ..., "modelID": ...}` dict."""
        if not isinstance(raw, dict):
            return None
        provider_id = raw.get("providerID")
        model_id = raw.get("modelID")
        if not provider_id or not model_id:
            return None
        return cls(provider_id=str(provider_id), model_id=str(model_id))

    def to_host(self) -> dict[str, str]:
        return {"providerID": self.provider_id, "modelID": self.model_id}
