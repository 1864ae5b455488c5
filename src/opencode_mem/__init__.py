"""opencode-mem: persistent cross-session memory for AI coding-assistant sessions."""

__version__ = "0.1.0"
