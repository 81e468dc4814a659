"""
studiolink CLI - Main entry point.

Runs Oxylabs AI Studio scrape, crawl, browser-agent and search
operations from the terminal, singly or in batches.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.traceback import install as install_rich_traceback

from studiolink import __app_name__, __version__

from .commands.common import CliState, load_config

# Load environment variables from .env (if present)
load_dotenv()

install_rich_traceback(show_locals=False, width=120)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name=__app_name__,
    help="Run Oxylabs AI Studio extraction jobs from the terminal",
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]{__app_name__}[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to app.yaml (default: configs/app.yaml if present)",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Override the configured log level",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """studiolink - AI Studio scrape/crawl/browse/search adapter."""
    ctx.obj = CliState(config_path=config, log_level=log_level)


# =============================================================================
# Register command modules
# =============================================================================

from .commands import batch, operations  # noqa: E402

app.command("scrape")(operations.scrape)
app.command("crawl")(operations.crawl)
app.command("browse")(operations.browse)
app.command("search")(operations.search)
app.command("batch")(batch.batch)


# =============================================================================
# Init Command
# =============================================================================


@app.command()
def init(
    path: Path = typer.Option(
        Path("configs/app.yaml"),
        "--path",
        "-p",
        help="Where to write the configuration",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Write a default configuration file."""
    from studiolink.core.config import default_config_text

    if path.exists() and not force:
        err_console.print(f"[yellow]{path} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(default_config_text(), encoding="utf-8")

    console.print(Panel.fit(
        f"[bold green]Wrote {path}[/bold green]\n\n"
        "Next steps:\n"
        "  1. Set your key: [yellow]export STUDIOLINK_API_KEY=...[/yellow]\n"
        "  2. Test it: [yellow]studiolink check[/yellow]\n"
        "  3. Run a scrape: [yellow]studiolink scrape https://example.com[/yellow]",
        title="[bold]Initialization Complete[/bold]",
        border_style="green",
    ))


# =============================================================================
# Check Command
# =============================================================================


@app.command()
def check(ctx: typer.Context) -> None:
    """Verify the API key and URL against the service status endpoint."""
    from studiolink.core.transport import HttpxTransport, TransportError

    config = load_config(ctx)

    async def _check() -> object:
        async with HttpxTransport(
            api_url=config.api.api_url,
            api_key=config.api.api_key,
            timeout=config.api.request_timeout_seconds,
        ) as transport:
            return await transport.check()

    try:
        body = asyncio.run(_check())
    except TransportError as e:
        err_console.print(f"[red]Credential check failed:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]OK[/green] {config.api.api_url} responded: {body}")


# =============================================================================
# Entry Point
# =============================================================================


def run() -> None:
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    run()
