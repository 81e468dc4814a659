"""
Invocation driver.

Runs a batch of input items through the operation adapters, one item at
a time, and produces one output record per item.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from studiolink.core.config.models import AppConfig, Family, OutputFormat, PollingConfig
from studiolink.core.logging import get_contextual_logger, get_logger
from studiolink.core.operations import (
    BrowseOptions,
    CrawlOptions,
    OperationAdapter,
    OperationOptions,
    ScrapeOptions,
    SearchOptions,
    create_adapter,
)
from studiolink.core.operations.options import DEFAULT_MAX_PAGES, DEFAULT_SEARCH_LIMIT
from studiolink.core.runs.client import ClockFunc, SleepFunc
from studiolink.core.runs.errors import StudioError
from studiolink.core.transport import HttpxTransport, Transport


# Host resource names
RESOURCE_FAMILIES: dict[str, Family] = {
    "scraper": Family.SCRAPE,
    "crawler": Family.CRAWL,
    "browserAgent": Family.BROWSE,
    "search": Family.SEARCH,
}

DEFAULT_RESOURCE = "scraper"

logger = get_logger("driver")


class UnknownResourceError(StudioError):
    """Item names a resource no adapter handles."""

    def __init__(self, resource: Any):
        super().__init__(f"Unknown resource: {resource}")
        self.resource = resource


class ItemExecutionError(StudioError):
    """A batch item failed and the batch was aborted."""

    def __init__(self, message: str, item_index: int, cause: Exception):
        super().__init__(
            message,
            family=getattr(cause, "family", None),
            run_id=getattr(cause, "run_id", None),
        )
        self.item_index = item_index
        self.cause = cause


# =============================================================================
# Parameter Resolution
# =============================================================================


def _param(params: Mapping[str, Any], key: str, default: Any = None) -> Any:
    """Read a parameter, treating an explicit None as absent."""
    value = params.get(key)
    return default if value is None else value


def _schema_param(params: Mapping[str, Any], output_format: Any) -> Any:
    if isinstance(output_format, OutputFormat):
        output_format = output_format.value
    if output_format != OutputFormat.JSON.value:
        return None
    return _param(params, "schema", {})


def resolve_options(params: Mapping[str, Any]) -> tuple[Family, OperationOptions]:
    """Resolve an item's resource and options.

    Args:
        params: Item parameters, including "resource"

    Returns:
        Tuple of (family, validated options)

    Raises:
        UnknownResourceError: Unrecognized resource name
        pydantic.ValidationError: Invalid or missing parameters
    """
    resource = _param(params, "resource", DEFAULT_RESOURCE)
    family = RESOURCE_FAMILIES.get(resource)
    if family is None:
        raise UnknownResourceError(resource)

    if family is Family.SEARCH:
        return family, SearchOptions(
            query=params.get("query"),
            limit=_param(params, "limit", DEFAULT_SEARCH_LIMIT),
            return_content=_param(params, "return_content", True),
            render_javascript=_param(params, "render_javascript", False),
        )

    output_format = _param(params, "output_format", OutputFormat.MARKDOWN.value)
    common = {
        "url": params.get("url"),
        "output_format": output_format,
        "openapi_schema": _schema_param(params, output_format),
    }

    if family is Family.SCRAPE:
        return family, ScrapeOptions(
            **common,
            render_html=_param(params, "render_javascript", False),
        )
    if family is Family.CRAWL:
        return family, CrawlOptions(
            **common,
            crawl_prompt=_param(params, "prompt", ""),
            max_pages=_param(params, "max_pages", DEFAULT_MAX_PAGES),
            render_html=_param(params, "render_javascript", False),
        )
    return family, BrowseOptions(
        **common,
        browse_prompt=_param(params, "prompt", ""),
    )


# =============================================================================
# Driver
# =============================================================================


@dataclass
class BatchStats:
    """Statistics for one batch invocation."""

    items_total: int = 0
    items_succeeded: int = 0
    items_failed: int = 0

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    @property
    def duration_seconds(self) -> float | None:
        if self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None


class InvocationDriver:
    """Runs batch items sequentially through the adapters.

    Items never overlap: each completes its whole submit/poll/fetch
    cycle before the next starts. All adapters share one transport.
    """

    def __init__(
        self,
        transport: Transport,
        polling: PollingConfig | None = None,
        *,
        continue_on_fail: bool = False,
        sleep: SleepFunc = asyncio.sleep,
        clock: ClockFunc = time.monotonic,
    ) -> None:
        """Initialize the driver.

        Args:
            transport: Authenticated transport shared by all items
            polling: Per-family polling budgets
            continue_on_fail: Record per-item errors instead of aborting
            sleep: Wait function used between polls
            clock: Monotonic clock used for the polling budget
        """
        self.transport = transport
        self.polling = polling or PollingConfig()
        self.continue_on_fail = continue_on_fail
        self.adapters: dict[Family, OperationAdapter] = {
            family: create_adapter(family, transport, sleep=sleep, clock=clock)
            for family in Family
        }
        self.stats = BatchStats()

    @classmethod
    def from_config(cls, config: AppConfig) -> "InvocationDriver":
        """Build a driver with an httpx transport from app configuration."""
        transport = HttpxTransport(
            api_url=config.api.api_url,
            api_key=config.api.api_key,
            timeout=config.api.request_timeout_seconds,
        )
        return cls(
            transport,
            config.polling,
            continue_on_fail=config.continue_on_fail,
        )

    async def execute(self, items: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
        """Run every item and return one record per item.

        Raises:
            ItemExecutionError: First failing item, unless continue_on_fail
        """
        stats = BatchStats(items_total=len(items))
        self.stats = stats
        records: list[dict[str, Any]] = []

        try:
            for index, item in enumerate(items):
                log = get_contextual_logger("driver", item_index=index)
                try:
                    record = await self.execute_item(item)
                except Exception as e:
                    stats.items_failed += 1

                    if not self.continue_on_fail:
                        log.error(f"Item failed, aborting batch: {e}")
                        raise ItemExecutionError(str(e), item_index=index, cause=e) from e

                    log.warning(f"Item failed: {e}")
                    records.append({"error": str(e)})
                    continue

                stats.items_succeeded += 1
                log.info("Item completed")
                records.append(record)
        finally:
            stats.finished_at = datetime.now(timezone.utc)
            logger.info(
                f"Batch finished: {stats.items_succeeded}/{stats.items_total} succeeded, "
                f"{stats.items_failed} failed in {stats.duration_seconds:.2f}s"
            )

        return records

    async def execute_item(self, item: Mapping[str, Any]) -> dict[str, Any]:
        """Run a single item to completion and return its record."""
        family, options = resolve_options(item)
        budget = self.polling.for_family(family)

        result = await self.adapters[family].run(
            options,
            timeout=budget.timeout_seconds,
            poll_interval=budget.poll_interval_seconds,
        )
        return result.to_record()

    async def close(self) -> None:
        await self.transport.close()

    async def __aenter__(self) -> "InvocationDriver":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def run_batch(
    items: Sequence[Mapping[str, Any]],
    config: AppConfig | None = None,
    *,
    continue_on_fail: bool | None = None,
) -> list[dict[str, Any]]:
    """Convenience function to run a batch with a fresh driver.

    Args:
        items: Item parameter mappings
        config: Application configuration (defaults if None)
        continue_on_fail: Override the configured error policy

    Returns:
        One output record per item
    """
    config = config or AppConfig()
    async with InvocationDriver.from_config(config) as driver:
        if continue_on_fail is not None:
            driver.continue_on_fail = continue_on_fail
        return await driver.execute(items)
