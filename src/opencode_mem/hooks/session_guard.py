"""
Per-session guards.

- InternalSessionGuard: hides sessions the system opened itself (ephemeral
  summarization sessions) so their own lifecycle events do not re-enter the
  pipeline.
- StopDebounceLock: serializes session-idle handling per session and enforces
  a quiet interval between accepted Stop events.
- ModelSelectionCache: remembers the model a host reported on prompt submit
  until the session's next completion.
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from opencode_mem.hooks.cache import DEFAULT_TTL_SECONDS, Clock, TTLCache
from opencode_mem.hooks.events import ModelConfig

DEFAULT_STOP_DEBOUNCE_SECONDS = 2.5


class InternalSessionGuard:
    """Registry of system-created session ids."""

    def __init__(self, ttl: float = DEFAULT_TTL_SECONDS, clock: Clock = time.monotonic) -> None:
        self._sessions: TTLCache[bool] = TTLCache(ttl=ttl, clock=clock)

    def prune(self) -> int:
        return self._sessions.prune()

    def mark_internal(self, session_id: str) -> None:
        self._sessions.set(session_id, True)

    def is_internal(self, session_id: str | None) -> bool:
        if not session_id:
            return False
        return session_id in self._sessions


class StopDebounceLock:
    """Mutual exclusion plus cooldown for session-idle events.

    A Stop proceeds only when no lock is held for the session and at least
    `quiet_interval` seconds have passed since the last accepted Stop.
    """

    def __init__(
        self,
        quiet_interval: float = DEFAULT_STOP_DEBOUNCE_SECONDS,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Clock = time.monotonic,
    ) -> None:
        self.quiet_interval = quiet_interval
        self._clock = clock
        self._locked: set[str] = set()
        self._last_stop: TTLCache[float] = TTLCache(ttl=ttl, clock=clock)

    def prune(self) -> int:
        return self._last_stop.prune()

    def is_locked(self, session_id: str) -> bool:
        return session_id in self._locked

    def try_acquire(self, session_id: str) -> bool:
        if session_id in self._locked:
            return False

        now = self._clock()
        last = self._last_stop.get(session_id)
        if last is not None and now - last < self.quiet_interval:
            return False

        self._locked.add(session_id)
        self._last_stop.set(session_id, now)
        return True

    def release(self, session_id: str) -> None:
        self._locked.discard(session_id)

    @asynccontextmanager
    async def hold(self, session_id: str) -> AsyncIterator[bool]:
        """Yield whether the lock was acquired; release it on every exit path."""
        acquired = self.try_acquire(session_id)
        try:
            yield acquired
        finally:
            if acquired:
                self.release(session_id)


class ModelSelectionCache:
    """Last-seen model selection per session."""

    def __init__(self, ttl: float = DEFAULT_TTL_SECONDS, clock: Clock = time.monotonic) -> None:
        self._models: TTLCache[ModelConfig] = TTLCache(ttl=ttl, clock=clock)

    def prune(self) -> int:
        return self._models.prune()

    def remember(self, session_id: str, model: ModelConfig) -> None:
        self._models.set(session_id, model)

    def take(self, session_id: str) -> ModelConfig | None:
        """Read and forget the session's model selection."""
        return self._models.pop(session_id)
