"""
Batch command - run a file of items through the invocation driver.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer
import yaml
from rich.markup import escape
from rich.table import Table

from .common import emit, err_console, load_config, run_items


def _load_items(path: Path) -> list[dict[str, Any]]:
    """Load items from a JSON or YAML file.

    Accepts a list of items, or a mapping with an "items" list.
    """
    if not path.exists():
        err_console.print(f"[red]Batch file not found:[/red] {path}")
        raise typer.Exit(1)

    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as e:
        err_console.print(f"[red]Cannot parse {path}:[/red] {e}")
        raise typer.Exit(1)

    if isinstance(data, dict):
        data = data.get("items")

    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        err_console.print(f"[red]{path} must contain a list of item mappings[/red]")
        raise typer.Exit(1)

    return data


def batch(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="JSON or YAML file with a list of items"),
    continue_on_fail: Optional[bool] = typer.Option(
        None,
        "--continue-on-fail/--abort-on-fail",
        help="Record per-item errors instead of aborting (default from config)",
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Save results to JSON file"),
) -> None:
    """Run a batch of items sequentially.

    Each item names a resource (scraper, crawler, browserAgent, search)
    and its parameters:

        - resource: scraper
          url: https://example.com
        - resource: search
          query: weather in London
          limit: 5
    """
    config = load_config(ctx)
    items = _load_items(path)

    if not items:
        err_console.print("[dim]No items to run.[/dim]")
        return

    err_console.print(f"[bold]Running {len(items)} item(s)[/bold]")
    records = run_items(config, items, continue_on_fail=continue_on_fail)

    _show_summary(items, records)
    emit(records, output)


def _show_summary(items: list[dict[str, Any]], records: list[dict[str, Any]]) -> None:
    """Show a per-item outcome table."""
    table = Table(title="Batch Summary", show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column("Resource", style="cyan")
    table.add_column("Outcome")

    for index, (item, record) in enumerate(zip(items, records)):
        if "error" in record:
            outcome = f"[red]{escape(str(record['error']))}[/red]"
        else:
            outcome = f"[green]{record.get('status') or 'done'}[/green]"
        table.add_row(str(index), str(item.get("resource", "scraper")), outcome)

    err_console.print(table)
