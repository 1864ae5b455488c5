"""
Hook handling for opencode-mem.

Submodules:
- events: canonical event model
- cache, correlator, session_guard, state: orchestrator-owned caches
- bridge: out-of-process hook execution
- orchestrator: host-side lifecycle entry points
- handlers: worker-side hook handlers
"""

from opencode_mem.hooks.events import (
    HookEvent,
    HookEventKind,
    HookResult,
    ModelConfig,
    NormalizedHookInput,
)

__all__ = [
    "HookEvent",
    "HookEventKind",
    "HookResult",
    "ModelConfig",
    "NormalizedHookInput",
]
