"""
Tool-call correlator.

Links a tool call's pre-execution arguments to its post-execution result.
Hosts only send the arguments on the "before" callback, so they are parked
here keyed by (session_id, call_id) until the matching "after" arrives.
"""

from __future__ import annotations

import time
from typing import Any

from opencode_mem.hooks.cache import DEFAULT_TTL_SECONDS, Clock, TTLCache


class ToolCallCorrelator:
    """Short-lived cache of tool arguments keyed by session and call id."""

    def __init__(self, ttl: float = DEFAULT_TTL_SECONDS, clock: Clock = time.monotonic) -> None:
        self._args: TTLCache[dict[str, Any]] = TTLCache(ttl=ttl, clock=clock)

    @staticmethod
    def _key(session_id: str, call_id: str) -> str:
        return f"{session_id}:{call_id}"

    def prune(self) -> int:
        return self._args.prune()

    def record(self, session_id: str, call_id: str, args: dict[str, Any] | None) -> None:
        """Park the arguments of a tool call that is about to execute."""
        self._args.set(self._key(session_id, call_id), dict(args or {}))

    def resolve(
        self,
        session_id: str,
        call_id: str | None,
        fallback: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Return the parked arguments, else `fallback`, else an empty dict.

        The fallback covers hosts that never emit a distinguishable
        pre-execution event and instead echo arguments on the result.
        """
        if call_id:
            cached = self._args.get(self._key(session_id, call_id))
            if cached is not None:
                return cached
        return dict(fallback or {})

    def discard(self, session_id: str, call_id: str | None) -> None:
        if call_id:
            self._args.discard(self._key(session_id, call_id))

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, tuple) or len(item) != 2:
            return False
        return self._key(*item) in self._args

    def __len__(self) -> int:
        return len(self._args)
