"""Configuration CLI commands for bencanon.

Adds commands:
- config show
"""

from __future__ import annotations

import json

import click

from bencanon.config.config import ConfigManager


@click.group()
def config():
    """Configuration commands."""


@config.command("show")
@click.option(
    "--format",
    "format_",
    type=click.Choice(["toml", "json"]),
    default="toml",
)
@click.option(
    "--key",
    type=str,
    default=None,
    help="Show specific key path (e.g. encoder.max_depth)",
)
@click.pass_context
def show_config(ctx: click.Context, format_: str, key: str | None):
    """Show the effective configuration."""
    cm: ConfigManager = (ctx.obj or {}).get("config_manager") or ConfigManager()
    data = cm.config.model_dump(mode="json", exclude_none=True)

    if key:
        ref = data
        try:
            for part in key.split("."):
                ref = ref[part]
        except (KeyError, TypeError) as e:
            msg = f"Key not found: {key}"
            raise click.ClickException(msg) from e
        click.echo(json.dumps(ref, indent=2))
        return

    if format_ == "json":
        click.echo(json.dumps(data, indent=2))
    else:
        click.echo(cm.export())
