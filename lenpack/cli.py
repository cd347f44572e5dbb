"""Command-line inspector for lenpack data."""

from __future__ import annotations

import json
import logging
import sys
from typing import TYPE_CHECKING

import click
import structlog
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from lenpack.codec import DEFAULT_BOUNDS, BoundsConfig, ParseError, iter_decode
from lenpack.codec.values import Array, Binary, Null, Object, children

if TYPE_CHECKING:
    from lenpack.codec.values import Value

PREVIEW_BYTES = 32


def setup_logging(debug: bool) -> None:
    """Send structlog output to stderr, hiding debug events unless asked for."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if debug else logging.WARNING),
        # resolve sys.stderr per logger so redirected streams are honored
        logger_factory=lambda *args: structlog.PrintLogger(sys.stderr),
    )


def _load_config(limits_file: str | None, max_depth: int | None) -> BoundsConfig:
    config = DEFAULT_BOUNDS
    if limits_file:
        with open(limits_file, encoding="utf-8") as f:
            try:
                config = BoundsConfig.from_json(f.read())
            except ValueError as e:
                raise click.BadParameter(str(e), param_hint="--limits") from e
    if max_depth is not None:
        try:
            config = BoundsConfig.from_dict({**config.to_dict(), "max_nesting_depth": max_depth})
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--max-depth") from e
    return config


def _read_input(input_file: str) -> bytes:
    with open(input_file, "rb") as f:
        return f.read()


def _label(value: Value) -> str:
    name = escape(repr(value.name))
    if isinstance(value, (Object, Array)):
        return f"[bold]{value.type_code}[/bold] {name} ({len(value)})"
    if isinstance(value, Null):
        return f"[bold]{value.type_code}[/bold] {name}"
    if isinstance(value, Binary):
        preview = value.value[:PREVIEW_BYTES].hex()
        more = "..." if len(value.value) > PREVIEW_BYTES else ""
        return f"[bold]{value.type_code}[/bold] {name} = {len(value.value)} bytes {preview}{more}"
    return f"[bold]{value.type_code}[/bold] {name} = {escape(repr(value.value))}"


def render_tree(value: Value) -> Tree:
    """Build a rich Tree for a value without recursing on the Python stack."""
    root = Tree(_label(value))
    pending = [(root, value)]
    while pending:
        node, current = pending.pop()
        for child in children(current):
            pending.append((node.add(_label(child)), child))
    return root


@click.group()
@click.option("--debug", is_flag=True, default=False, help="Show debug logging on stderr")
def cli(debug: bool) -> None:
    """Lenpack data inspector."""
    setup_logging(debug)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input file")
@click.option("--limits", "limits_file", default=None, help="JSON file with decoder limits")
@click.option("--max-depth", type=int, default=None, help="Override max_nesting_depth")
def inspect(input_file: str, limits_file: str | None, max_depth: int | None) -> None:
    """Decode every value in a file and print it as a tree."""
    config = _load_config(limits_file, max_depth)
    console = Console()
    try:
        for value in iter_decode(_read_input(input_file), config):
            console.print(render_tree(value))
    except ParseError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input file")
@click.option("--limits", "limits_file", default=None, help="JSON file with decoder limits")
@click.option("--max-depth", type=int, default=None, help="Override max_nesting_depth")
def check(input_file: str, limits_file: str | None, max_depth: int | None) -> None:
    """Validate a file, reporting the first error and its offset."""
    config = _load_config(limits_file, max_depth)
    try:
        count = sum(1 for _ in iter_decode(_read_input(input_file), config))
    except ParseError as e:
        print(f"{e.kind} at offset {e.offset}")
        sys.exit(1)
    print(f"OK ({count} values)")


@cli.command()
@click.option("--limits", "limits_file", default=None, help="JSON file with decoder limits")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def limits(limits_file: str | None, output_json: bool) -> None:
    """Display the effective decoder limits."""
    config = _load_config(limits_file, None)

    if output_json:
        print(json.dumps(config.to_dict(), indent=2))
        return

    console = Console()
    console.print("[bold cyan]Limits[/bold cyan]")
    table = Table(show_header=False, box=None, padding=(0, 2, 0, 2))
    table.add_column("Option", style="dim")
    table.add_column("Value", style="yellow", justify="right")
    for option, value in config.to_dict().items():
        table.add_row(option, str(value))
    console.print(table)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
