"""
Hook execution bridge.

Runs one worker-side hook in a child process: the JSON payload goes to the
child's stdin, stdout/stderr are collected, and a hard timeout bounds how long
the host's event loop can be held up.

Two failure tiers:
- A non-zero exit is returned in HookExecutionResult. Callers log it and move on.
- Spawn failure (HookSpawnError) and timeout (HookTimeoutError) are raised.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


class HookBridgeError(Exception):
    """Base class for bridge failures that are raised rather than returned."""


class HookSpawnError(HookBridgeError):
    """The worker process could not be started."""


class HookTimeoutError(HookBridgeError):
    """The worker process exceeded its time budget and was killed."""

    def __init__(self, event_name: str, timeout_ms: int, returncode: int | None = None) -> None:
        super().__init__(f"opencode-mem hook timeout ({event_name}, {timeout_ms}ms)")
        self.event_name = event_name
        self.timeout_ms = timeout_ms
        self.returncode = returncode


@dataclass
class HookExecutionResult:
    """Outcome of a worker process that ran to completion."""

    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def default_worker_command(platform: str = "opencode") -> list[str]:
    """Command prefix that runs this package's hook runner for a platform."""
    return [sys.executable, "-m", "opencode_mem", "hook", platform]


class HookBridge:
    """Spawns the worker-side hook runner for individual events."""

    def __init__(
        self,
        command: Sequence[str] | None = None,
        env: Mapping[str, str] | None = None,
        cwd: str | None = None,
    ) -> None:
        """
        Args:
            command: Command prefix; the event name is appended as the last argument.
                Defaults to `python -m opencode_mem hook opencode`.
            env: Environment for the child (defaults to the current environment).
            cwd: Working directory for the child.
        """
        self.command = list(command) if command else default_worker_command()
        self.env = dict(env) if env is not None else None
        self.cwd = cwd

    async def execute(
        self,
        event_name: str,
        payload: dict[str, Any],
        timeout_ms: int,
    ) -> HookExecutionResult:
        """
        Run the hook for `event_name` with `payload` on stdin.

        Args:
            event_name: Worker hook name (e.g. "context", "observation")
            payload: JSON-serializable wire payload
            timeout_ms: Hard time budget in milliseconds

        Returns:
            HookExecutionResult with exit code and trimmed output streams

        Raises:
            HookSpawnError: If the process could not be started
            HookTimeoutError: If the process was killed for exceeding timeout_ms
        """
        cmd = [*self.command, event_name]
        data = json.dumps(payload, default=str).encode("utf-8")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self.env if self.env is not None else os.environ.copy(),
                cwd=self.cwd,
            )
        except OSError as e:
            raise HookSpawnError(f"Failed to spawn hook worker for {event_name}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(input=data),
                timeout=timeout_ms / 1000,
            )
        except TimeoutError as err:
            # wait_for cancelled communicate(); output that arrives later is dropped
            if process.returncode is None:
                process.kill()
            await process.wait()
            logger.warning(f"Hook {event_name} killed after {timeout_ms}ms")
            raise HookTimeoutError(event_name, timeout_ms, process.returncode) from err

        exit_code = process.returncode if process.returncode is not None else 1
        return HookExecutionResult(
            exit_code=exit_code,
            stdout=stdout.decode("utf-8", errors="replace").strip() if stdout else "",
            stderr=stderr.decode("utf-8", errors="replace").strip() if stderr else "",
        )
