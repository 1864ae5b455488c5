"""
Orchestrator-owned hook state.

All process-wide caches live on one object that is handed to the orchestrator
by reference. Nothing here is a module-level global, so tests and multiple
plugin instances get independent state.
"""

from __future__ import annotations

import time

from opencode_mem.hooks.cache import DEFAULT_TTL_SECONDS, Clock, IdempotencyCache
from opencode_mem.hooks.correlator import ToolCallCorrelator
from opencode_mem.hooks.session_guard import (
    DEFAULT_STOP_DEBOUNCE_SECONDS,
    InternalSessionGuard,
    ModelSelectionCache,
    StopDebounceLock,
)


class HookState:
    """Dedupe set, correlator, internal-session guard, stop locks and model cache."""

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        stop_debounce: float = DEFAULT_STOP_DEBOUNCE_SECONDS,
        clock: Clock = time.monotonic,
    ) -> None:
        self.clock = clock
        self.seen = IdempotencyCache(ttl=ttl, clock=clock, before_check=self.prune_all)
        self.correlator = ToolCallCorrelator(ttl=ttl, clock=clock)
        self.internal_sessions = InternalSessionGuard(ttl=ttl, clock=clock)
        self.stop_lock = StopDebounceLock(quiet_interval=stop_debounce, ttl=ttl, clock=clock)
        self.models = ModelSelectionCache(ttl=ttl, clock=clock)

    def prune_all(self) -> int:
        """Sweep expired entries from every cache. Returns the number removed."""
        return (
            self.seen.prune()
            + self.correlator.prune()
            + self.internal_sessions.prune()
            + self.stop_lock.prune()
            + self.models.prune()
        )

    def mark_seen(self, key: str) -> bool:
        return self.seen.mark_seen(key)

    def is_internal(self, session_id: str | None) -> bool:
        return self.internal_sessions.is_internal(session_id)
