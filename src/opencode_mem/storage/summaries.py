"""
Summary storage boundary.

The worker's persistent store is an external collaborator; this module fixes
the contract the ingest routes rely on and ships an in-memory implementation
for tests and local runs.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from opencode_mem.sessions.summary import StructuredSummary

PRIVATE_BLOCK_RE = re.compile(r"<private>.*?</private>", re.DOTALL | re.IGNORECASE)


def strip_private(text: str | None) -> str:
    """Remove <private>...</private> blocks."""
    if not text:
        return ""
    return PRIVATE_BLOCK_RE.sub("", text).strip()


@dataclass
class StoredSummary:
    id: int
    content_session_id: str
    summary: StructuredSummary
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class SummaryStore(Protocol):
    """What the ingest and init routes need from the memory store."""

    def init_session(self, content_session_id: str, project: str, prompt: str) -> bool:
        """Record a prompt for a session. Returns True when that prompt makes it private."""
        ...

    def is_private(self, content_session_id: str) -> bool: ...

    def store_summary(self, content_session_id: str, summary: StructuredSummary) -> int: ...

    def get_summary_for_session(self, content_session_id: str) -> StoredSummary | None: ...


class InMemorySummaryStore:
    """Process-local SummaryStore."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._projects: dict[str, str] = {}
        self._private: set[str] = set()
        self._summaries: dict[str, StoredSummary] = {}
        self._next_id = 1

    def init_session(self, content_session_id: str, project: str, prompt: str) -> bool:
        with self._lock:
            self._projects.setdefault(content_session_id, project)
            # Privacy follows the latest prompt: all-private sets it, anything else clears it
            private = not strip_private(prompt)
            if private:
                self._private.add(content_session_id)
            else:
                self._private.discard(content_session_id)
            return private

    def is_private(self, content_session_id: str) -> bool:
        with self._lock:
            return content_session_id in self._private

    def store_summary(self, content_session_id: str, summary: StructuredSummary) -> int:
        with self._lock:
            summary_id = self._next_id
            self._next_id += 1
            self._summaries[content_session_id] = StoredSummary(
                id=summary_id,
                content_session_id=content_session_id,
                summary=summary,
            )
            return summary_id

    def get_summary_for_session(self, content_session_id: str) -> StoredSummary | None:
        with self._lock:
            return self._summaries.get(content_session_id)
