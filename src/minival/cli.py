"""CLI interface for minival using Typer framework."""

import asyncio
import json as jsonlib
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from minival import __description__, __version__
from minival.config import NamingPolicy, load_config
from minival.errors import MinivalError
from minival.loading import build_instance, load_target
from minival.validation import MiniValidator, ValidationOutcome

app = typer.Typer(
    name="minival",
    help=__description__,
    add_completion=False,
    rich_markup_mode="rich"
)

console = Console()

_LOG_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def version_callback(value: bool) -> None:
    """Show version information and exit."""
    if value:
        console.print(f"minival version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-V", callback=version_callback, help="Show version and exit")
    ] = False,
) -> None:
    """minival - Recursive validation of annotated Python object graphs."""


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=_LOG_LEVELS.get(level, logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_target_or_exit(target: str) -> type:
    try:
        return load_target(target)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)


def _output_table(outcome: ValidationOutcome, label: str) -> None:
    if outcome.is_valid:
        console.print(f"[green]✓[/green] {label} is valid")
        return

    console.print(f"[red]✗[/red] {label} has errors")
    table = Table(show_header=True, header_style="bold")
    table.add_column("Key", style="cyan")
    table.add_column("Message")
    for key, messages in outcome.errors.items():
        for message in messages:
            table.add_row(escape(key) if key else "[dim](object)[/dim]", escape(message))
    console.print(table)


@app.command()
def validate(
    target: Annotated[
        str,
        typer.Argument(help="Class to build, as 'package.module:ClassName'")
    ],
    data: Annotated[
        Path,
        typer.Argument(help="JSON file with an object (constructor arguments) or a list of objects")
    ],
    no_recurse: Annotated[
        bool,
        typer.Option("--no-recurse", help="Only check members of the top-level object")
    ] = False,
    max_depth: Annotated[
        Optional[int],
        typer.Option("--max-depth", help="Maximum recursion depth (default: config or 32)")
    ] = None,
    naming: Annotated[
        Optional[NamingPolicy],
        typer.Option("--naming", "-n", help="Naming policy applied to error keys")
    ] = None,
    sync: Annotated[
        bool,
        typer.Option("--sync", help="Use the synchronous entry point (fails on async validators)")
    ] = False,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: table, json (default: table)")
    ] = "table",
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .minival.json)")
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
) -> None:
    """Validate objects loaded from a JSON file."""
    valid_formats = ["table", "json"]
    if format not in valid_formats:
        console.print(f"[red]Error:[/red] Invalid format '{format}'. Must be one of: {', '.join(valid_formats)}")
        raise typer.Exit(2)

    try:
        minival_config = load_config(config)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    _setup_logging("debug" if verbose else minival_config.logging.level)
    logger = logging.getLogger("minival.cli")

    changes = {}
    if max_depth is not None:
        changes["max_depth"] = max_depth
    if naming is not None:
        changes["naming_policy"] = naming
    options = minival_config.validation.with_changes(**changes)

    cls = _load_target_or_exit(target)

    if not data.exists():
        console.print(f"[red]Error:[/red] Data file not found: {data}")
        raise typer.Exit(2)
    try:
        with open(data, encoding="utf-8") as f:
            payload = jsonlib.load(f)
    except jsonlib.JSONDecodeError as e:
        console.print(f"[red]Error:[/red] Invalid JSON in {data}: {e}")
        raise typer.Exit(2)

    try:
        instance = build_instance(cls, payload)
    except (TypeError, ValueError) as e:
        console.print(f"[red]Error:[/red] Cannot build {cls.__name__} from {data}: {e}")
        raise typer.Exit(2)

    logger.debug(f"Validating {type(instance).__name__} built from {data}")
    validator = MiniValidator(options)
    try:
        if sync:
            outcome = validator.try_validate(instance, recurse=not no_recurse)
        else:
            outcome = asyncio.run(validator.try_validate_async(instance, recurse=not no_recurse))
    except MinivalError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    if format == "json":
        print(jsonlib.dumps(outcome.to_dict(), indent=2))
    else:
        _output_table(outcome, cls.__name__ if not isinstance(instance, list) else f"list[{cls.__name__}]")

    if not outcome.is_valid:
        raise typer.Exit(1)


@app.command()
def inspect(
    target: Annotated[
        str,
        typer.Argument(help="Class to describe, as 'package.module:ClassName'")
    ],
    no_recurse: Annotated[
        bool,
        typer.Option("--no-recurse", help="Report as if recursion were disabled")
    ] = False,
) -> None:
    """Show which members of a class are validated or walked into."""
    cls = _load_target_or_exit(target)
    validator = MiniValidator()
    descriptor = validator.describe(cls)

    console.print(f"[bold]{cls.__module__}.{cls.__qualname__}[/bold]")
    console.print(f"  requires validation: {validator.requires_validation(cls, recurse=not no_recurse)}")
    console.print(f"  requires async:      {descriptor.requires_async}")
    kinds = [
        kind for kind, enabled in (
            ("sync", descriptor.is_validatable),
            ("async", descriptor.is_async_validatable),
        )
        if enabled
    ]
    console.print(f"  object-level:        {', '.join(kinds) or 'none'}")

    if not descriptor.fields:
        console.print("[dim]No members to validate[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Member", style="cyan")
    table.add_column("Rules")
    table.add_column("Recurse")
    table.add_column("Elements")
    for field in descriptor.fields:
        table.add_row(
            field.name,
            ", ".join(rule.name for rule in field.rules) or "-",
            "yes" if field.recurse else "no",
            getattr(field.element_type, "__name__", "-") if field.is_enumerable else "-",
        )
    console.print(table)


if __name__ == "__main__":
    app()
