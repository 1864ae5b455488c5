"""
TTL caches and dedupe keys for hook idempotency.

Hosts re-deliver lifecycle events (retries, duplicate listeners, replays after
reconnect). `IdempotencyCache.mark_seen()` is the single gate that collapses
them. Expiry is lazy: entries older than the TTL are invisible to lookups and
swept on every touch, so there is no background timer to manage.
"""

from __future__ import annotations

import hashlib
import json
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from opencode_mem.hooks.events import HookEventKind

T = TypeVar("T")

Clock = Callable[[], float]

DEFAULT_TTL_SECONDS = 5 * 60


@dataclass
class CacheEntry(Generic[T]):
    """A cached value and the clock reading when it was stored."""

    value: T
    inserted_at: float


class TTLCache(Generic[T]):
    """Dict-like cache whose entries silently expire after `ttl` seconds."""

    def __init__(self, ttl: float = DEFAULT_TTL_SECONDS, clock: Clock = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}

    def _expired(self, entry: CacheEntry[T], now: float) -> bool:
        return now - entry.inserted_at > self.ttl

    def prune(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        now = self._clock()
        stale = [key for key, entry in self._entries.items() if self._expired(entry, now)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def set(self, key: str, value: T) -> None:
        self._entries[key] = CacheEntry(value=value, inserted_at=self._clock())

    def get(self, key: str, default: T | None = None) -> T | None:
        entry = self._entries.get(key)
        if entry is None:
            return default
        if self._expired(entry, self._clock()):
            del self._entries[key]
            return default
        return entry.value

    def pop(self, key: str, default: T | None = None) -> T | None:
        value = self.get(key, default)
        self._entries.pop(key, None)
        return value

    def discard(self, key: str) -> None:
        self._entries.pop(key, None)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        entry = self._entries.get(key)
        if entry is None:
            return False
        if self._expired(entry, self._clock()):
            del self._entries[key]
            return False
        return True

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))


class IdempotencyCache:
    """Remembers which dedupe keys were processed within the TTL window.

    `before_check` runs ahead of every lookup; the owning state object uses it
    to sweep this cache together with its siblings.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Clock = time.monotonic,
        before_check: Callable[[], object] | None = None,
    ) -> None:
        self._seen: TTLCache[bool] = TTLCache(ttl=ttl, clock=clock)
        self._before_check = before_check

    def prune(self) -> int:
        return self._seen.prune()

    def mark_seen(self, key: str) -> bool:
        """Return True the first time `key` is seen, False on repeats."""
        if self._before_check is not None:
            self._before_check()
        else:
            self._seen.prune()

        if key in self._seen:
            return False
        self._seen.set(key, True)
        return True

    def __len__(self) -> int:
        return len(self._seen)


def canonical_json(value: Any) -> str:
    """Serialize with sorted keys so equal arguments hash identically."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def tool_fingerprint(tool_name: str, args: Any) -> str:
    """Stable identifier for a tool call that carries no call id."""
    digest = hashlib.sha256(f"{tool_name}:{canonical_json(args)}".encode()).hexdigest()
    return f"{tool_name}:{digest[:16]}"


def make_dedupe_key(kind: HookEventKind | str, session_id: str, ident: str) -> str:
    """Build the dedupe key for one logical event occurrence."""
    kind_value = kind.value if isinstance(kind, HookEventKind) else kind
    return f"{kind_value}:{session_id}:{ident}"
