"""
Operation adapters.

Thin per-family specializations: validate options, build the payload
and hand it to a RunClient with the family's polling budget.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, ClassVar, Mapping

from studiolink.core.config.models import Family
from studiolink.core.runs import BROWSE, CRAWL, SCRAPE, SEARCH, FamilySpec, RunClient, RunResult
from studiolink.core.runs.client import ClockFunc, SleepFunc
from studiolink.core.transport.base import Transport

from .options import (
    BrowseOptions,
    CrawlOptions,
    OperationOptions,
    ScrapeOptions,
    SearchOptions,
)


DEFAULT_POLL_INTERVAL = 5.0


class OperationAdapter:
    """Base adapter shared by all families."""

    family: ClassVar[FamilySpec]
    options_model: ClassVar[type[OperationOptions]]
    default_timeout: ClassVar[float]

    def __init__(
        self,
        transport: Transport,
        *,
        sleep: SleepFunc = asyncio.sleep,
        clock: ClockFunc = time.monotonic,
    ):
        self.client = RunClient(transport, self.family, sleep=sleep, clock=clock)

    def build_options(self, options: OperationOptions | Mapping[str, Any]) -> OperationOptions:
        """Validate raw options into the family's model."""
        if isinstance(options, self.options_model):
            return options
        if isinstance(options, OperationOptions):
            raise TypeError(
                f"{type(self).__name__} expects {self.options_model.__name__}, "
                f"got {type(options).__name__}"
            )
        return self.options_model.model_validate(dict(options))

    async def run(
        self,
        options: OperationOptions | Mapping[str, Any],
        timeout: float | None = None,
        poll_interval: float | None = None,
    ) -> RunResult:
        """Run the operation to completion.

        Args:
            options: Options model or a mapping of its fields
            timeout: Wall-clock budget in seconds (family default if None)
            poll_interval: Seconds between status checks

        Returns:
            Normalized RunResult
        """
        payload = self.build_options(options).to_payload()
        return await self.client.run_to_completion(
            payload,
            timeout=self.default_timeout if timeout is None else timeout,
            poll_interval=DEFAULT_POLL_INTERVAL if poll_interval is None else poll_interval,
        )


class ScrapeAdapter(OperationAdapter):
    family = SCRAPE
    options_model = ScrapeOptions
    default_timeout = 60.0


class CrawlAdapter(OperationAdapter):
    family = CRAWL
    options_model = CrawlOptions
    default_timeout = 240.0


class BrowseAdapter(OperationAdapter):
    family = BROWSE
    options_model = BrowseOptions
    default_timeout = 120.0


class SearchAdapter(OperationAdapter):
    family = SEARCH
    options_model = SearchOptions
    default_timeout = 120.0


ADAPTERS: dict[Family, type[OperationAdapter]] = {
    Family.SCRAPE: ScrapeAdapter,
    Family.CRAWL: CrawlAdapter,
    Family.BROWSE: BrowseAdapter,
    Family.SEARCH: SearchAdapter,
}


def create_adapter(
    family: Family | str,
    transport: Transport,
    **kwargs: Any,
) -> OperationAdapter:
    """Instantiate the adapter for a family."""
    return ADAPTERS[Family(family)](transport, **kwargs)
