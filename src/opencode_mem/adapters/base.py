"""Base adapter for host platform hook translation.

Each platform adapter owns two pure mappings:

- normalize_input(): native hook payload -> NormalizedHookInput
- format_output(): HookResult -> whatever the platform reads from stdout

plus an EVENT_MAP from native hook names to HookEventKind, used by
translate_to_hook_event(). Unrecognized hook names raise instead of being
guessed at.
"""

from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from dataclasses import asdict
from datetime import UTC, datetime
from typing import Any, ClassVar

from opencode_mem.hooks.events import HookEvent, HookEventKind, HookResult, NormalizedHookInput


class UnsupportedHookEventError(ValueError):
    """Raised when a native hook name has no mapping for the platform."""


def first_present(*values: Any) -> Any:
    """Return the first value that is neither None nor an empty string."""
    for value in values:
        if value is None:
            continue
        if isinstance(value, str) and not value:
            continue
        return value
    return None


def try_parse_json(value: Any) -> Any:
    """Decode JSON strings; return anything else (or undecodable text) untouched."""
    if not isinstance(value, str):
        return value
    stripped = value.strip()
    if not stripped:
        return value
    try:
        return json.loads(stripped)
    except json.JSONDecodeError:
        return value


def nested_get(data: dict[str, Any], *path: str) -> Any:
    """Follow a chain of dict keys, returning None on the first miss."""
    current: Any = data
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


class BaseAdapter(ABC):
    """Translate between one host platform's hook format and the unified models."""

    platform: ClassVar[str]

    EVENT_MAP: ClassVar[dict[str, HookEventKind]] = {}

    @abstractmethod
    def normalize_input(self, raw: Any) -> NormalizedHookInput:
        """Map a native payload into the canonical hook input."""

    @abstractmethod
    def format_output(self, result: HookResult) -> dict[str, Any] | str | None:
        """Map a handler result into the platform's stdout contract.

        Returns a dict (emitted as JSON), a string (emitted literally) or None
        (emit nothing).
        """

    def event_kind(self, hook_name: str) -> HookEventKind:
        try:
            return self.EVENT_MAP[hook_name]
        except KeyError:
            raise UnsupportedHookEventError(
                f"{self.platform} adapter has no mapping for hook event {hook_name!r}"
            ) from None

    def translate_to_hook_event(self, native_event: dict[str, Any]) -> HookEvent:
        """Convert a native hook payload into a unified HookEvent.

        The hook name is read from `hook_event_name` (or `hook_type`).
        """
        hook_name = first_present(
            native_event.get("hook_event_name"),
            native_event.get("hook_type"),
        )
        kind = self.event_kind(str(hook_name or ""))
        normalized = self.normalize_input(native_event)

        return HookEvent(
            kind=kind,
            session_id=normalized.session_id,
            platform=self.platform,
            timestamp=datetime.now(UTC),
            call_id=first_present(
                native_event.get("tool_use_id"),
                native_event.get("callID"),
                native_event.get("call_id"),
            ),
            message_id=first_present(
                native_event.get("message_id"),
                native_event.get("messageID"),
            ),
            data=asdict(normalized),
        )

    @staticmethod
    def default_cwd() -> str:
        return os.getcwd()
