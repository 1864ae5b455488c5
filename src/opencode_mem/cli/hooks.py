"""Hook runner and host hook configuration commands."""

import asyncio
import json
import logging
import shlex
import sys
from typing import Any

import click

from opencode_mem.adapters import UnknownPlatformError, get_platform_adapter
from opencode_mem.config.app import MemConfig
from opencode_mem.hooks.handlers import HookHandlers
from opencode_mem.utils.logging import setup_logging
from opencode_mem.utils.worker_client import WorkerClient

logger = logging.getLogger(__name__)

HOOK_NAMES = ["context", "session-init", "observation", "summarize", "session-complete"]


def _read_payload(text: str) -> dict[str, Any]:
    if not text.strip():
        return {}
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"Hook payload is not JSON, using empty payload: {e}")
        return {}
    return payload if isinstance(payload, dict) else {}


@click.command("hook")
@click.argument("platform")
@click.argument("event", type=click.Choice(HOOK_NAMES))
@click.pass_context
def hook(ctx: click.Context, platform: str, event: str) -> None:
    """Run one worker-side hook: JSON payload on stdin, platform output on stdout."""
    config: MemConfig = ctx.obj["config"]
    setup_logging(config.logging)

    try:
        adapter = get_platform_adapter(platform)
    except UnknownPlatformError as e:
        raise click.BadParameter(str(e), param_hint="PLATFORM") from e

    raw = _read_payload(sys.stdin.read())
    hook_input = adapter.normalize_input(raw)

    client = WorkerClient(
        host=config.worker.host,
        port=config.worker.port,
        timeout=config.worker.request_timeout,
    )
    handlers = HookHandlers(client, config)
    result = asyncio.run(handlers.handle(event, hook_input))

    output = adapter.format_output(result)
    if isinstance(output, dict):
        click.echo(json.dumps(output))
    elif output:
        click.echo(output)

    ctx.exit(result.exit_code)


def build_hook_config(
    platform: str = "opencode",
    command_prefix: str = "opencode-mem",
    start_command: str | None = None,
) -> dict[str, Any]:
    """Claude-compatible hooks block wiring the hook runner into a host."""

    def command(event: str, timeout: int) -> dict[str, Any]:
        return {
            "type": "command",
            "command": f"{command_prefix} hook {shlex.quote(platform)} {event}",
            "timeout": timeout,
        }

    def group(*hooks: dict[str, Any]) -> list[dict[str, Any]]:
        entries = list(hooks)
        if start_command:
            entries.insert(0, {"type": "command", "command": start_command, "timeout": 60})
        return [{"matcher": "*", "hooks": entries}]

    return {
        "hooks": {
            "UserPromptSubmit": group(command("session-init", 60)),
            "PostToolUse": group(command("observation", 120)),
            "Stop": group(command("summarize", 120), command("session-complete", 30)),
        }
    }


@click.command("print-hook-config")
@click.option(
    "--platform", default="opencode", show_default=True, help="Platform adapter the hooks run with"
)
@click.option(
    "--command-prefix",
    default="opencode-mem",
    show_default=True,
    help="Command that invokes this CLI",
)
@click.option(
    "--start-command", default=None, help="Command that starts the worker before each hook group"
)
def print_hook_config(platform: str, command_prefix: str, start_command: str | None) -> None:
    """Print the hooks JSON for Claude-compatible hook bridges."""
    try:
        get_platform_adapter(platform)
    except UnknownPlatformError as e:
        raise click.BadParameter(str(e), param_hint="--platform") from e

    config = build_hook_config(platform, command_prefix, start_command)
    click.echo(json.dumps(config, indent=2))
