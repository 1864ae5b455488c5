"""
Platform adapters.

Exports one adapter per supported host platform and the registry used to
select them by identifier. Platforms with identical semantics share an
adapter instance through ADAPTER_ALIASES.
"""

from opencode_mem.adapters.base import BaseAdapter, UnsupportedHookEventError
from opencode_mem.adapters.claude_code import ClaudeCodeAdapter
from opencode_mem.adapters.cursor import CursorAdapter
from opencode_mem.adapters.opencode import CONTEXT_TAG, OpenCodeAdapter, wrap_context
from opencode_mem.adapters.raw import RawAdapter

__all__ = [
    "ADAPTER_ALIASES",
    "ADAPTER_REGISTRY",
    "BaseAdapter",
    "CONTEXT_TAG",
    "ClaudeCodeAdapter",
    "CursorAdapter",
    "OpenCodeAdapter",
    "RawAdapter",
    "UnknownPlatformError",
    "UnsupportedHookEventError",
    "get_platform_adapter",
    "wrap_context",
]


class UnknownPlatformError(ValueError):
    """Raised when no adapter is registered for a platform identifier."""


ADAPTER_REGISTRY: dict[str, BaseAdapter] = {
    "claude-code": ClaudeCodeAdapter(),
    "cursor": CursorAdapter(),
    "opencode": OpenCodeAdapter(),
    "raw": RawAdapter(),
}

ADAPTER_ALIASES: dict[str, str] = {
    "oh-my-opencode": "opencode",
}


def get_platform_adapter(platform: str) -> BaseAdapter:
    """
    Get the adapter for a platform identifier.

    Args:
        platform: Platform name (e.g., 'claude-code', 'opencode', 'oh-my-opencode')

    Returns:
        Shared adapter instance

    Raises:
        UnknownPlatformError: If the identifier is not registered
    """
    name = ADAPTER_ALIASES.get(platform, platform)
    try:
        return ADAPTER_REGISTRY[name]
    except KeyError:
        raise UnknownPlatformError(f"Unknown platform: {platform}") from None
