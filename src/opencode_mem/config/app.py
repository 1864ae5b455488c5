"""
Configuration management for opencode-mem.

Provides YAML-based configuration with environment and CLI overrides,
configuration hierarchy (CLI > environment > YAML > Defaults), and validation.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_DATA_DIR = "~/.opencode-mem"
DEFAULT_CONFIG_FILE = f"{DEFAULT_DATA_DIR}/config.yaml"
LOG_FILE_NAME = "opencode-mem.log"

DEFAULT_SKIP_TOOLS = [
    "ListMcpResourcesTool",
    "SlashCommand",
    "Skill",
    "TodoWrite",
    "AskUserQuestion",
]


class WorkerSettings(BaseModel):
    """Memory worker network address."""

    host: str = Field(
        default="127.0.0.1",
        description="Host the memory worker listens on",
    )
    port: int = Field(
        default=37777,
        description="Port the memory worker listens on",
    )
    request_timeout: float = Field(
        default=5.0,
        description="Timeout in seconds for a single worker HTTP request",
    )

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port number is in valid range."""
        if not (1024 <= v <= 65535):
            raise ValueError("Port must be between 1024 and 65535")
        return v

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("request_timeout must be positive")
        return v

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"


class HookTimeoutsConfig(BaseModel):
    """Per-hook time budgets, in milliseconds, enforced by the hook bridge."""

    context: int = Field(default=10_000, description="Context injection hook")
    session_init: int = Field(default=20_000, description="Session init hook")
    observation: int = Field(default=30_000, description="Tool observation hook")
    summarize: int = Field(default=30_000, description="Legacy summarize hook")
    session_complete: int = Field(default=10_000, description="Session complete hook")

    @field_validator("context", "session_init", "observation", "summarize", "session_complete")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate value is positive."""
        if v <= 0:
            raise ValueError("Value must be positive")
        return v


class CacheSettings(BaseModel):
    """Time windows for the in-process hook caches."""

    dedupe_ttl_seconds: float = Field(
        default=300.0,
        description="How long dedupe keys, correlated tool args and internal sessions are kept",
    )
    stop_debounce_seconds: float = Field(
        default=2.5,
        description="Minimum quiet interval between two processed Stop events of a session",
    )

    @field_validator("dedupe_ttl_seconds")
    @classmethod
    def validate_ttl(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("dedupe_ttl_seconds must be positive")
        return v

    @field_validator("stop_debounce_seconds")
    @classmethod
    def validate_debounce(cls, v: float) -> float:
        if v < 0:
            raise ValueError("stop_debounce_seconds must not be negative")
        return v


class SummaryConfig(BaseModel):
    """In-host session summarization."""

    enabled: bool = Field(
        default=True,
        description="Summarize through the host session API before falling back to the legacy hook",
    )
    max_messages: int = Field(
        default=60,
        description="Most recent messages included in the transcript",
    )
    max_chars: int = Field(
        default=30_000,
        description="Hard character limit of the transcript",
    )
    fallback_notes_chars: int = Field(
        default=4000,
        description="Characters of unstructured model output kept in notes",
    )
    session_title: str = Field(
        default="opencode-mem summary",
        description="Title of the ephemeral summarization session",
    )

    @field_validator("max_messages", "max_chars", "fallback_notes_chars")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate value is positive."""
        if v <= 0:
            raise ValueError("Value must be positive")
        return v


class ObservationConfig(BaseModel):
    """Tool observation recording."""

    skip_tools: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SKIP_TOOLS),
        description="Tool names never recorded as observations",
    )

    @field_validator("skip_tools", mode="before")
    @classmethod
    def split_skip_tools(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [name.strip() for name in v.split(",") if name.strip()]
        return v


def default_log_file(data_dir: str = DEFAULT_DATA_DIR) -> str:
    return str(Path(data_dir) / "logs" / LOG_FILE_NAME)


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Log level",
    )
    file: str | None = Field(
        default=None,
        description="Log file path (default: <data_dir>/logs/opencode-mem.log)",
    )
    max_size_mb: int = Field(
        default=10,
        description="Maximum log file size in MB",
    )
    backup_count: int = Field(
        default=5,
        description="Number of backup log files to keep",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    @field_validator("max_size_mb", "backup_count")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate value is positive."""
        if v <= 0:
            raise ValueError("Value must be positive")
        return v


class MemConfig(BaseModel):
    """Top-level opencode-mem configuration."""

    data_dir: str = Field(
        default=DEFAULT_DATA_DIR,
        description="Directory for logs and local state",
    )
    worker_command: list[str] | None = Field(
        default=None,
        description="Command prefix used by the hook bridge (default: this package's hook runner)",
    )
    worker: WorkerSettings = Field(default_factory=WorkerSettings)
    hook_timeouts: HookTimeoutsConfig = Field(default_factory=HookTimeoutsConfig)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    summary: SummaryConfig = Field(default_factory=SummaryConfig)
    observation: ObservationConfig = Field(default_factory=ObservationConfig)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode="after")
    def resolve_log_file(self) -> "MemConfig":
        """Place the log file under data_dir unless one is configured."""
        if self.logging.file is None:
            self.logging.file = default_log_file(self.data_dir)
        return self


ENV_OVERRIDES: dict[str, str] = {
    "OPENCODE_MEM_WORKER_HOST": "worker.host",
    "OPENCODE_MEM_WORKER_PORT": "worker.port",
    "OPENCODE_MEM_DATA_DIR": "data_dir",
    "OPENCODE_MEM_LOG_LEVEL": "logging.level",
    "OPENCODE_MEM_SKIP_TOOLS": "observation.skip_tools",
}


def load_yaml(config_file: str) -> dict[str, Any]:
    """
    Load YAML or JSON configuration file.

    Args:
        config_file: Path to YAML or JSON configuration file

    Returns:
        Dictionary with parsed YAML/JSON content

    Raises:
        ValueError: If YAML/JSON is invalid or file format is wrong
    """
    config_path = Path(config_file).expanduser()

    if not config_path.exists():
        return {}

    file_ext = config_path.suffix.lower()
    if file_ext not in [".yaml", ".yml", ".json"]:
        raise ValueError(
            f"Config file must have .yaml, .yml, or .json extension, got: {file_ext}\n"
            f"File: {config_path}"
        )

    try:
        with open(config_path) as f:
            content = f.read()

        if file_ext == ".json":
            return json.loads(content) if content.strip() else {}

        data = yaml.safe_load(content)
        return data if data is not None else {}

    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}") from e
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}") from e


def apply_cli_overrides(
    config_dict: dict[str, Any],
    cli_overrides: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Apply overrides keyed by dotted paths (e.g. "worker.port") to a config dict.

    Args:
        config_dict: Configuration dictionary
        cli_overrides: Dictionary of overrides

    Returns:
        Configuration dictionary with overrides applied
    """
    if cli_overrides is None:
        return config_dict

    for key, value in cli_overrides.items():
        if "." in key:
            parts = key.split(".")
            current = config_dict
            for part in parts[:-1]:
                if not isinstance(current.get(part), dict):
                    current[part] = {}
                current = current[part]
            current[parts[-1]] = value
        else:
            config_dict[key] = value

    return config_dict


def apply_env_overrides(
    config_dict: dict[str, Any],
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Apply OPENCODE_MEM_* environment variables on top of file values."""
    env = os.environ if environ is None else environ
    overrides = {path: env[name] for name, path in ENV_OVERRIDES.items() if env.get(name)}
    return apply_cli_overrides(config_dict, overrides)


def generate_default_config(config_file: str) -> None:
    """
    Generate default configuration file from Pydantic model defaults.

    Args:
        config_file: Path where to create the config file
    """
    config_path = Path(config_file).expanduser()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    default_config = MemConfig().model_dump(mode="python", exclude_none=True)

    with open(config_path, "w") as f:
        yaml.safe_dump(default_config, f, default_flow_style=False, sort_keys=False)

    config_path.chmod(0o600)


def load_config(
    config_file: str | None = None,
    cli_overrides: dict[str, Any] | None = None,
    create_default: bool = False,
    environ: Mapping[str, str] | None = None,
) -> MemConfig:
    """
    Load configuration with hierarchy: CLI > environment > YAML > Defaults.

    Args:
        config_file: Path to YAML config file (default: ~/.opencode-mem/config.yaml)
        cli_overrides: Dictionary of dotted-key overrides
        create_default: Create default config file if it doesn't exist
        environ: Environment mapping (default: os.environ)

    Returns:
        Validated MemConfig instance

    Raises:
        ValueError: If configuration is invalid
    """
    if config_file is None:
        config_file = DEFAULT_CONFIG_FILE

    config_path = Path(config_file).expanduser()

    if create_default and not config_path.exists():
        generate_default_config(config_file)

    config_dict = load_yaml(config_file)
    config_dict = apply_env_overrides(config_dict, environ)
    config_dict = apply_cli_overrides(config_dict, cli_overrides)

    try:
        return MemConfig(**config_dict)
    except Exception as e:
        raise ValueError(
            f"Configuration validation failed: {e}\n"
            f"Please check your configuration file at {config_file}"
        ) from e


def save_config(config: MemConfig, config_file: str | None = None) -> None:
    """
    Save configuration to YAML file.

    Raises:
        OSError: If file operations fail
    """
    if config_file is None:
        config_file = DEFAULT_CONFIG_FILE

    config_path = Path(config_file).expanduser()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = config.model_dump(mode="python", exclude_none=True)

    with open(config_path, "w") as f:
        yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)

    config_path.chmod(0o600)
