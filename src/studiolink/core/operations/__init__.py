"""Operation adapters and their options."""

from .adapters import (
    ADAPTERS,
    BrowseAdapter,
    CrawlAdapter,
    OperationAdapter,
    ScrapeAdapter,
    SearchAdapter,
    create_adapter,
)
from .options import (
    BrowseOptions,
    CrawlOptions,
    OperationOptions,
    ScrapeOptions,
    SearchOptions,
    coerce_schema,
)

__all__ = [
    # Adapters
    "OperationAdapter",
    "ScrapeAdapter",
    "CrawlAdapter",
    "BrowseAdapter",
    "SearchAdapter",
    "ADAPTERS",
    "create_adapter",
    # Options
    "OperationOptions",
    "ScrapeOptions",
    "CrawlOptions",
    "BrowseOptions",
    "SearchOptions",
    "coerce_schema",
]
