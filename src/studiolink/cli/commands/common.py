"""
Helpers shared by CLI commands.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, NoReturn, Sequence

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from studiolink.core.config import AppConfig, ConfigError, load_app_config
from studiolink.core.logging import json_dumps, setup_logging
from studiolink.core.orchestrator import ItemExecutionError, run_batch
from studiolink.core.runs import StudioError
from studiolink.core.transport import TransportError

console = Console()
err_console = Console(stderr=True)


@dataclass
class CliState:
    """Global options collected by the main callback."""

    config_path: Path | None = None
    log_level: str | None = None


def load_config(ctx: typer.Context) -> AppConfig:
    """Load configuration and set up logging for a command."""
    state: CliState = ctx.obj or CliState()

    try:
        config = load_app_config(state.config_path)
    except ConfigError as e:
        err_console.print(f"[red]Error loading config:[/red] {e}")
        if e.details:
            err_console.print(f"[dim]{e.details}[/dim]")
        raise typer.Exit(1)

    setup_logging(
        level=state.log_level or config.logging.level,
        log_file=config.logging.file,
        json_format=config.logging.json_format,
        rich_console=config.logging.rich_console,
    )

    if not config.api.api_key:
        err_console.print(
            "[yellow]No API key configured.[/yellow] "
            "Set [cyan]STUDIOLINK_API_KEY[/cyan] or api.api_key in the config file."
        )
        raise typer.Exit(1)

    return config


def read_schema(value: str | None) -> str | None:
    """Schema option value; "@path" reads the schema from a file."""
    if value and value.startswith("@"):
        path = Path(value[1:])
        if not path.exists():
            err_console.print(f"[red]Schema file not found:[/red] {path}")
            raise typer.Exit(1)
        return path.read_text(encoding="utf-8")
    return value


def emit(records: Any, output: Path | None) -> None:
    """Print results as JSON, or write them to a file."""
    text = json_dumps(records)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding="utf-8")
        console.print(f"[green]Saved results to[/green] {output}")
    else:
        console.print_json(text)


def fail(message: str, error: Exception) -> NoReturn:
    err_console.print(f"[red]{message}:[/red] {escape(str(error))}")
    raise typer.Exit(1)


def run_items(
    config: AppConfig,
    items: Sequence[Mapping[str, Any]],
    continue_on_fail: bool | None = None,
) -> list[dict[str, Any]]:
    """Run items through a driver built from config, reporting errors."""
    try:
        return asyncio.run(run_batch(items, config, continue_on_fail=continue_on_fail))
    except ItemExecutionError as e:
        label = f"Item {e.item_index} failed" if len(items) > 1 else "Failed"
        fail(label, e)
    except (StudioError, TransportError, ValidationError) as e:
        fail("Failed", e)
