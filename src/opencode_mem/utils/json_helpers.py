"""JSON extraction utilities for parsing model responses.

Model output often wraps JSON in markdown fences or surrounds it with
preamble text. These helpers pull candidate objects out of such text without
brittle brace-matching regexes.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

FENCE_RE = re.compile(r"```[A-Za-z0-9_+-]*[ \t]*\n?(.*?)```", re.DOTALL)


def fenced_blocks(text: str) -> list[str]:
    """
    Return the contents of every fenced code block, in order.

    Examples:
        >>> fenced_blocks('intro\\n```json\\n{"a": 1}\\n```')
        ['{"a": 1}\\n']
    """
    if not text:
        return []
    return [match.group(1) for match in FENCE_RE.finditer(text)]


def loads_value(text: str) -> tuple[bool, Any]:
    """Strictly decode `text` as a JSON document. Returns (ok, value)."""
    try:
        return True, json.loads(text.strip())
    except (json.JSONDecodeError, ValueError):
        return False, None


def extract_json_object(text: str) -> dict[str, Any] | None:
    """
    Find the first JSON object embedded in free text.

    Uses json.JSONDecoder.raw_decode() from each opening brace, which handles
    nested strings, escapes and trailing prose correctly.

    Args:
        text: Raw text that may contain a JSON object after some preamble.

    Returns:
        The first decodable object, or None.
    """
    if not text:
        return None

    decoder = json.JSONDecoder()
    position = text.find("{")
    while position != -1:
        try:
            value, _ = decoder.raw_decode(text, position)
        except json.JSONDecodeError:
            position = text.find("{", position + 1)
            continue
        if isinstance(value, dict):
            return value
        logger.debug(f"Embedded JSON at {position} is not an object: {type(value)}")
        position = text.find("{", position + 1)
    return None
