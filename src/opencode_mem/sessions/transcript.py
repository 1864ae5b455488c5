"""
Transcript assembly.

Two sources:
- Host message history (list of message dicts from the host session API),
  flattened into a role-tagged transcript for in-host summarization.
- Claude-style JSONL transcript files, from which the legacy summarizer reads
  the last assistant message.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Sequence
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_MAX_MESSAGES = 60
DEFAULT_MAX_CHARS = 30_000
TRUNCATION_MARKER = "\n\n[... transcript truncated ...]"

SYSTEM_REMINDER_RE = re.compile(r"<system-reminder>.*?</system-reminder>", re.DOTALL)


def _is_text_part(part: Any) -> bool:
    return isinstance(part, dict) and part.get("type") == "text" and isinstance(part.get("text"), str)


def message_role(message: dict[str, Any]) -> str:
    """Role of a host message; OpenCode nests it under `info`."""
    info = message.get("info")
    if isinstance(info, dict) and info.get("role"):
        return str(info["role"])
    return str(message.get("role") or "unknown")


def message_text_parts(message: dict[str, Any]) -> list[str]:
    """Text-bearing parts of a host message, skipping tool calls, files, etc."""
    parts = message.get("parts")
    if parts is None:
        parts = message.get("content")

    if isinstance(parts, str):
        return [parts]
    if not isinstance(parts, list):
        return []

    texts: list[str] = []
    for part in parts:
        if _is_text_part(part):
            texts.append(part["text"])
    return texts


def build_transcript(
    messages: Sequence[dict[str, Any]] | None,
    max_messages: int = DEFAULT_MAX_MESSAGES,
    max_chars: int = DEFAULT_MAX_CHARS,
) -> str:
    """
    Flatten recent host messages into a role-tagged transcript.

    Args:
        messages: Host message history, oldest first
        max_messages: Only the most recent N messages are used
        max_chars: Hard character limit; longer transcripts get a truncation marker

    Returns:
        Transcript text, or "" when there is no text-bearing history
    """
    if not messages:
        return ""

    blocks: list[str] = []
    for message in list(messages)[-max_messages:]:
        if not isinstance(message, dict):
            continue
        text = "\n".join(t.strip() for t in message_text_parts(message) if t.strip())
        if not text:
            continue
        blocks.append(f"[{message_role(message)}]\n{text}")

    transcript = "\n\n".join(blocks)
    if len(transcript) > max_chars:
        transcript = transcript[:max_chars] + TRUNCATION_MARKER
    return transcript


def _entry_text(entry: dict[str, Any]) -> str:
    message = entry.get("message")
    content: Any = message.get("content") if isinstance(message, dict) else entry.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "\n".join(block["text"] for block in content if _is_text_part(block))
    return ""


def extract_last_message(
    transcript_path: str | Path,
    role: str = "assistant",
    strip_system_reminders: bool = True,
) -> str:
    """
    Read the last message of `role` from a JSONL transcript file.

    Unreadable files and malformed lines are skipped; the result is "" when
    nothing matches.
    """
    path = Path(transcript_path).expanduser()
    if not path.is_file():
        logger.warning(f"Transcript not found: {path}")
        return ""

    last = ""
    try:
        with open(path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if not isinstance(entry, dict) or entry.get("type") != role:
                    continue
                text = _entry_text(entry)
                if text:
                    last = text
    except OSError as e:
        logger.warning(f"Failed to read transcript {path}: {e}")
        return ""

    if strip_system_reminders:
        last = SYSTEM_REMINDER_RE.sub("", last)
        last = re.sub(r"\n{3,}", "\n\n", last)
    return last.strip()
