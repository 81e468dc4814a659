"""
Single-operation commands: scrape, crawl, browse, search.

Each command builds one item and runs it through the invocation driver,
so the CLI and batch runs share the same parameter handling.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from studiolink.core.config import OutputFormat

from .common import emit, load_config, read_schema, run_items


def _formatted_item(
    resource: str,
    url: str,
    output_format: OutputFormat,
    schema: str | None,
    **extra: object,
) -> dict[str, object]:
    item: dict[str, object] = {
        "resource": resource,
        "url": url,
        "output_format": output_format.value,
        **extra,
    }
    if output_format is OutputFormat.JSON:
        item["schema"] = read_schema(schema)
    return item


def scrape(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="URL to scrape"),
    output_format: OutputFormat = typer.Option(
        OutputFormat.MARKDOWN, "--format", "-f", help="Output format"
    ),
    schema: Optional[str] = typer.Option(
        None, "--schema", "-s", help="OpenAPI schema as JSON text, or @file"
    ),
    render_js: bool = typer.Option(False, "--render-js", help="Render JavaScript first"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Save result to JSON file"),
) -> None:
    """Extract content from a single page.

    Examples:
        studiolink scrape https://example.com
        studiolink scrape https://example.com -f json -s @schema.json
    """
    config = load_config(ctx)
    item = _formatted_item("scraper", url, output_format, schema, render_javascript=render_js)
    records = run_items(config, [item])
    emit(records[0], output)


def crawl(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Starting URL for the crawl"),
    prompt: str = typer.Option("", "--prompt", "-p", help="What to extract from crawled pages"),
    output_format: OutputFormat = typer.Option(
        OutputFormat.MARKDOWN, "--format", "-f", help="Output format per URL"
    ),
    schema: Optional[str] = typer.Option(
        None, "--schema", "-s", help="OpenAPI schema as JSON text, or @file"
    ),
    max_pages: int = typer.Option(25, "--max-pages", "-n", help="Maximum results (service max is 50)"),
    render_js: bool = typer.Option(False, "--render-js", help="Render JavaScript first"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Save result to JSON file"),
) -> None:
    """Crawl a site and extract content from matching pages.

    Examples:
        studiolink crawl https://example.com -p "Find all pricing pages"
    """
    config = load_config(ctx)
    item = _formatted_item(
        "crawler",
        url,
        output_format,
        schema,
        prompt=prompt,
        max_pages=max_pages,
        render_javascript=render_js,
    )
    records = run_items(config, [item])
    emit(records[0], output)


def browse(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="URL the browser agent starts at"),
    prompt: str = typer.Option("", "--prompt", "-p", help="Actions for the browser agent"),
    output_format: OutputFormat = typer.Option(
        OutputFormat.MARKDOWN, "--format", "-f", help="Output format"
    ),
    schema: Optional[str] = typer.Option(
        None, "--schema", "-s", help="OpenAPI schema as JSON text, or @file"
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Save result to JSON file"),
) -> None:
    """Run the browser agent against a page.

    Examples:
        studiolink browse https://example.com -p "Open the first product" -f screenshot
    """
    config = load_config(ctx)
    item = _formatted_item("browserAgent", url, output_format, schema, prompt=prompt)
    records = run_items(config, [item])
    emit(records[0], output)


def search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help='Search query, e.g. "weather in London"'),
    limit: int = typer.Option(10, "--limit", "-l", help="Maximum results (service max is 50)"),
    return_content: bool = typer.Option(
        True, "--content/--no-content", help="Return markdown content of each result"
    ),
    render_js: bool = typer.Option(False, "--render-js", help="Render JavaScript on result pages"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Save result to JSON file"),
) -> None:
    """Search the web.

    Examples:
        studiolink search "weather in London" --limit 5 --no-content
    """
    config = load_config(ctx)
    item = {
        "resource": "search",
        "query": query,
        "limit": limit,
        "return_content": return_content,
        "render_javascript": render_js,
    }
    records = run_items(config, [item])
    emit(records[0], output)
