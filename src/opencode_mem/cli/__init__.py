"""
opencode-mem CLI entry point.
"""

import click

from opencode_mem.config.app import load_config

from .hooks import hook, print_hook_config


@click.group()
@click.option(
    "--config",
    type=click.Path(exists=True),
    help="Path to custom configuration file",
)
@click.pass_context
def cli(ctx: click.Context, config: str | None) -> None:
    """opencode-mem - persistent memory for AI coding-assistant sessions."""
    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config)


cli.add_command(hook)
cli.add_command(print_hook_config)
