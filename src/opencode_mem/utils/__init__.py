"""Utility modules for opencode-mem."""
