"""Tests for internal-session guard, stop debounce lock and model cache."""

from __future__ import annotations

import pytest

from opencode_mem.hooks.events import ModelConfig
from opencode_mem.hooks.session_guard import (
    InternalSessionGuard,
    ModelSelectionCache,
    StopDebounceLock,
)

pytestmark = pytest.mark.unit


class TestInternalSessionGuard:
    """System-created session registry."""

    def test_marked_session_is_internal(self, clock) -> None:
        guard = InternalSessionGuard(clock=clock)
        guard.mark_internal("ephemeral")
        assert guard.is_internal("ephemeral") is True
        assert guard.is_internal("user-session") is False

    def test_expires_after_ttl(self, clock) -> None:
        guard = InternalSessionGuard(ttl=300, clock=clock)
        guard.mark_internal("ephemeral")
        clock.advance(299)
        assert guard.is_internal("ephemeral") is True
        clock.advance(2)
        assert guard.is_internal("ephemeral") is False

    @pytest.mark.parametrize("session_id", [None, ""])
    def test_falsy_ids_never_internal(self, clock, session_id) -> None:
        guard = InternalSessionGuard(clock=clock)
        assert guard.is_internal(session_id) is False


class TestStopDebounceLock:
    """Mutual exclusion plus quiet interval."""

    def test_first_acquire_succeeds(self, clock) -> None:
        lock = StopDebounceLock(clock=clock)
        assert lock.try_acquire("s1") is True
        assert lock.is_locked("s1") is True

    def test_held_lock_rejects(self, clock) -> None:
        lock = StopDebounceLock(clock=clock)
        lock.try_acquire("s1")
        clock.advance(10)
        assert lock.try_acquire("s1") is False

    def test_quiet_interval_enforced_after_release(self, clock) -> None:
        lock = StopDebounceLock(quiet_interval=2.5, clock=clock)
        assert lock.try_acquire("s1") is True
        lock.release("s1")
        clock.advance(2.0)
        assert lock.try_acquire("s1") is False
        clock.advance(1.0)
        assert lock.try_acquire("s1") is True

    def test_sessions_independent(self, clock) -> None:
        lock = StopDebounceLock(clock=clock)
        assert lock.try_acquire("s1") is True
        assert lock.try_acquire("s2") is True

    @pytest.mark.asyncio
    async def test_hold_releases_on_exit(self, clock) -> None:
        lock = StopDebounceLock(clock=clock)
        async with lock.hold("s1") as acquired:
            assert acquired is True
            assert lock.is_locked("s1")
        assert not lock.is_locked("s1")

    @pytest.mark.asyncio
    async def test_hold_releases_on_error(self, clock) -> None:
        lock = StopDebounceLock(clock=clock)
        with pytest.raises(RuntimeError):
            async with lock.hold("s1"):
                raise RuntimeError("boom")
        assert not lock.is_locked("s1")

    @pytest.mark.asyncio
    async def test_hold_does_not_release_foreign_lock(self, clock) -> None:
        lock = StopDebounceLock(clock=clock)
        lock.try_acquire("s1")
        async with lock.hold("s1") as acquired:
            assert acquired is False
        assert lock.is_locked("s1")


class TestModelSelectionCache:
    """Last-seen model per session."""

    def test_take_pops(self, clock) -> None:
        models = ModelSelectionCache(clock=clock)
        model = ModelConfig(provider_id="anthropic", model_id="claude")
        models.remember("s1", model)
        assert models.take("s1") == model
        assert models.take("s1") is None

    def test_expires(self, clock) -> None:
        models = ModelSelectionCache(ttl=300, clock=clock)
        models.remember("s1", ModelConfig(provider_id="p", model_id="m"))
        clock.advance(301)
        assert models.take("s1") is None
