"""Pytest configuration and shared fixtures for opencode-mem tests."""

import tempfile
from collections.abc import Iterator
from pathlib import Path

import pytest

from opencode_mem.config.app import MemConfig
from opencode_mem.hooks.state import HookState


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def hook_state(clock: FakeClock) -> HookState:
    """Hook state driven by the fake clock."""
    return HookState(clock=clock)


@pytest.fixture
def mem_config(temp_dir: Path) -> MemConfig:
    """Default config with logs redirected into the temp dir."""
    return MemConfig(
        data_dir=str(temp_dir),
        logging={"file": str(temp_dir / "logs" / "opencode-mem.log")},
    )
