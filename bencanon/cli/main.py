"""Command line interface for bencanon.

Provides commands:
- encode: JSON document to canonical bencode
- depth: nesting depth of a JSON document
- config show
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping
from typing import IO, Any

import click
from rich.console import Console
from rich.markup import escape

from bencanon.cli.config_commands import config as config_group
from bencanon.config.config import init_config
from bencanon.core.encoder import Encoder
from bencanon.models import MAX_CONFIGURABLE_DEPTH, LogLevel
from bencanon.utils.exceptions import BencodeEncodeError, ConfigurationError
from bencanon.utils.logging_config import get_logger

logger = get_logger(__name__)

VERBOSITY_LEVELS = {
    0: None,
    1: LogLevel.INFO,
    2: LogLevel.DEBUG,
}


def from_json(value: Any, bytes_prefix: str) -> Any:
    """Convert a parsed JSON document into encodable values.

    Strings starting with ``bytes_prefix`` carry base64 and become raw bytes,
    both as values and as dictionary keys. Everything else is passed through
    and left to the encoder to accept or reject.
    """
    if isinstance(value, str):
        if value.startswith(bytes_prefix):
            payload = value[len(bytes_prefix) :]
            try:
                return base64.b64decode(payload, validate=True)
            except binascii.Error as e:
                msg = f"Invalid base64 after {bytes_prefix!r}: {payload!r}"
                raise click.BadParameter(msg) from e
        return value
    if isinstance(value, list):
        return [from_json(item, bytes_prefix) for item in value]
    if isinstance(value, dict):
        return {
            from_json(key, bytes_prefix): from_json(item, bytes_prefix)
            for key, item in value.items()
        }
    return value


def json_depth(value: Any) -> int:
    """Return how many list/dict levels a JSON document nests."""
    if isinstance(value, Mapping):
        return 1 + max((json_depth(v) for v in value.values()), default=0)
    if isinstance(value, list):
        return 1 + max((json_depth(v) for v in value), default=0)
    return 0


def _load_json(source: IO[str]) -> Any:
    try:
        return json.load(source)
    except json.JSONDecodeError as e:
        msg = f"Input is not valid JSON: {e}"
        raise click.BadParameter(msg, param_hint="INPUT") from e


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    help="Configuration file path",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (-v: info, -vv: debug)",
)
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: int) -> None:
    """Bencanon - canonical bencode encoder."""
    ctx.ensure_object(dict)
    console = Console(stderr=True)
    ctx.obj["console"] = console

    try:
        config_manager = init_config(config)
    except ConfigurationError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]", highlight=False)
        raise click.Abort from e

    level = VERBOSITY_LEVELS.get(min(verbose, 2))
    if level is not None:
        config_manager.config.observability.log_level = level
    config_manager.setup_logging()
    ctx.obj["config_manager"] = config_manager


@cli.command("encode")
@click.argument("source", metavar="INPUT", type=click.File("r"), default="-")
@click.option(
    "--output",
    "-o",
    type=click.File("wb"),
    default=None,
    help="Write bencode to this file instead of stdout",
)
@click.option("--hex", "as_hex", is_flag=True, help="Print the output as hex")
@click.option(
    "--max-depth",
    type=click.IntRange(0, MAX_CONFIGURABLE_DEPTH),
    default=None,
    help="Nesting ceiling (default: from configuration)",
)
@click.option(
    "--bytes-prefix",
    type=str,
    default=None,
    help="Marker for base64 strings holding raw bytes (default: base64:)",
)
@click.pass_context
def encode_cmd(
    ctx: click.Context,
    source: IO[str],
    output: IO[bytes] | None,
    as_hex: bool,
    max_depth: int | None,
    bytes_prefix: str | None,
) -> None:
    """Encode a JSON document (file or stdin) as canonical bencode."""
    console: Console = ctx.obj["console"]
    encoder_config = ctx.obj["config_manager"].config.encoder

    document = from_json(_load_json(source), bytes_prefix or encoder_config.bytes_prefix)

    encoder = Encoder.from_config(encoder_config)
    if max_depth is not None:
        encoder.with_max_depth(max_depth)
    try:
        encoder.emit(document)
        data = encoder.get_output()
    except BencodeEncodeError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]", highlight=False)
        raise click.Abort from e

    logger.info("Encoded document to %d bytes", len(data))
    if as_hex:
        data = data.hex().encode("ascii") + b"\n"
    if output is not None:
        output.write(data)
    else:
        click.echo(data, nl=False)


@cli.command("depth")
@click.argument("source", metavar="INPUT", type=click.File("r"), default="-")
def depth_cmd(source: IO[str]) -> None:
    """Print how many list/dict levels a JSON document nests."""
    click.echo(json_depth(_load_json(source)))


cli.add_command(config_group)


def main() -> None:
    """Entry point for the ``bencanon`` console script."""
    cli(obj={})


if __name__ == "__main__":
    main()
