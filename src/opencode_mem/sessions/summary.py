"""
Structured session summaries.

Builds the summarization prompt and recovers a StructuredSummary from model
output. Parsing runs as tagged stages, each a pure function sharing one
acceptance predicate (has_content):

    STRUCTURED  fenced or inline JSON object with known keys
    LABELED     "Label: value" sections mapped onto known keys
    FALLBACK    raw text into `notes`, never fails
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from opencode_mem.utils.json_helpers import extract_json_object, fenced_blocks, loads_value

logger = logging.getLogger(__name__)

SUMMARY_FIELDS: tuple[str, ...] = (
    "request",
    "investigated",
    "learned",
    "completed",
    "next_steps",
    "notes",
)

DEFAULT_FALLBACK_NOTES_CHARS = 4000


class StructuredSummary(BaseModel):
    """Six-field session summary. Fields are always strings, never null."""

    model_config = ConfigDict(extra="ignore")

    request: str = ""
    investigated: str = ""
    learned: str = ""
    completed: str = ""
    next_steps: str = ""
    notes: str = ""

    @field_validator(*SUMMARY_FIELDS, mode="before")
    @classmethod
    def coerce_to_text(cls, v: Any) -> str:
        if v is None:
            return ""
        if isinstance(v, str):
            return v.strip()
        if isinstance(v, list):
            return "\n".join(str(item).strip() for item in v if item is not None).strip()
        return str(v).strip()


def has_content(summary: StructuredSummary | None) -> bool:
    """Acceptance predicate shared by all parse stages."""
    if summary is None:
        return False
    return any(getattr(summary, name) for name in SUMMARY_FIELDS)


SUMMARY_PROMPT_TEMPLATE = """You are writing a memory record for a finished coding-assistant session.

Read the transcript below and reply with ONLY a JSON object with exactly these keys:

{{
  "request": "what the user asked for",
  "investigated": "what was explored or analyzed",
  "learned": "facts, findings and decisions worth remembering",
  "completed": "what was actually done",
  "next_steps": "open work for a future session",
  "notes": "anything else useful"
}}

Every value must be a string. Use "" when there is nothing to say.
Do not call tools. Do not write anything outside the JSON object.

<transcript>
{transcript}
</transcript>
"""


def build_summary_prompt(transcript: str) -> str:
    return SUMMARY_PROMPT_TEMPLATE.format(transcript=transcript)


class ParseStage(str, Enum):
    STRUCTURED = "structured"
    LABELED = "labeled"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ParseResult:
    """Summary plus the stage that produced it."""

    stage: ParseStage
    summary: StructuredSummary


def summary_from_mapping(data: dict[str, Any]) -> StructuredSummary:
    """Map only the known keys; anything else in `data` is ignored."""
    return StructuredSummary(**{k: data[k] for k in SUMMARY_FIELDS if k in data})


def _candidate_object(candidate: str) -> dict[str, Any] | None:
    ok, value = loads_value(candidate)
    if ok:
        # Arrays and scalars are rejected outright, not searched for nested objects
        return value if isinstance(value, dict) else None
    return extract_json_object(candidate)


def parse_structured(text: str) -> StructuredSummary | None:
    """Stage 1: fenced blocks first, then the whole text."""
    if not text:
        return None
    for candidate in [*fenced_blocks(text), text]:
        data = _candidate_object(candidate)
        if data is None:
            continue
        summary = summary_from_mapping(data)
        if has_content(summary):
            return summary
    return None


# Substring rules, checked in order against the lowercased label
LABEL_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("next step", "next_step", "follow-up", "follow up", "todo"), "next_steps"),
    (("investigat", "analysis", "analyzed", "explored", "research"), "investigated"),
    (("learn", "finding", "insight", "discover"), "learned"),
    (("complet", "accomplish", "done", "implemented"), "completed"),
    (("request", "goal", "objective"), "request"),
    (("note",), "notes"),
)

# A header label is at most three words, optionally behind bullets, quotes or bold
HEADER_RE = re.compile(
    r"^(?P<prefix>[\s\-*>#]*)"
    r"(?P<label>[A-Za-z][A-Za-z_-]*(?:[ \t]+[A-Za-z_-]+){0,2})"
    r"\s*\**\s*:\s*\**\s*(?P<value>.*)$"
)


def canonical_label(label: str) -> str | None:
    lowered = label.lower()
    for needles, key in LABEL_RULES:
        if any(needle in lowered for needle in needles):
            return key
    return None


def parse_labeled(text: str) -> StructuredSummary | None:
    """Stage 2: `Label: value` headers; following lines join the open section.

    A lone plain `Label: value` line reads like prose, so a single section is
    only accepted when its header carries markdown decoration.
    """
    if not text:
        return None

    sections: dict[str, list[str]] = {}
    decorated = False
    current: str | None = None
    for line in text.splitlines():
        match = HEADER_RE.match(line)
        key = canonical_label(match.group("label")) if match else None
        if match and key:
            current = key
            sections.setdefault(key, [])
            decorated = decorated or bool(match.group("prefix").strip())
            value = match.group("value").strip()
            if value:
                sections[key].append(value)
        elif current is not None and line.strip():
            sections[current].append(line.strip())

    if not sections or (len(sections) < 2 and not decorated):
        return None
    summary = StructuredSummary(**{k: "\n".join(v) for k, v in sections.items()})
    return summary if has_content(summary) else None


def fallback_summary(text: str, max_chars: int = DEFAULT_FALLBACK_NOTES_CHARS) -> StructuredSummary:
    """Stage 3: raw text into notes."""
    return StructuredSummary(notes=(text or "").strip()[:max_chars])


PARSE_STAGES: tuple[tuple[ParseStage, Callable[[str], StructuredSummary | None]], ...] = (
    (ParseStage.STRUCTURED, parse_structured),
    (ParseStage.LABELED, parse_labeled),
)


def parse_summary(text: str, max_notes_chars: int = DEFAULT_FALLBACK_NOTES_CHARS) -> ParseResult:
    """
    Recover a StructuredSummary from model output.

    Args:
        text: Raw model reply
        max_notes_chars: Truncation limit for the fallback stage

    Returns:
        ParseResult tagged with the first stage whose output was accepted
    """
    for stage, parse in PARSE_STAGES:
        summary = parse(text)
        if summary is not None and has_content(summary):
            return ParseResult(stage=stage, summary=summary)

    logger.debug("Summary reply had no structure, storing as notes")
    return ParseResult(stage=ParseStage.FALLBACK, summary=fallback_summary(text, max_notes_chars))
