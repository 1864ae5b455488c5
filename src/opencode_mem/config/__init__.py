"""
Configuration package for opencode-mem.

Pydantic config models plus YAML loading with environment and CLI overrides.
"""

from opencode_mem.config.app import (
    CacheSettings,
    HookTimeoutsConfig,
    LoggingSettings,
    MemConfig,
    ObservationConfig,
    SummaryConfig,
    WorkerSettings,
    apply_cli_overrides,
    apply_env_overrides,
    load_config,
    save_config,
)

__all__ = [
    "CacheSettings",
    "HookTimeoutsConfig",
    "LoggingSettings",
    "MemConfig",
    "ObservationConfig",
    "SummaryConfig",
    "WorkerSettings",
    "apply_cli_overrides",
    "apply_env_overrides",
    "load_config",
    "save_config",
]
