from __future__ import annotations

import asyncio
import logging

import pytest
from pydantic import ValidationError

from conftest import FakeClock, FakeTransport
from studiolink.core.config import AppConfig, FamilyPolling, PollingConfig
from studiolink.core.operations import CrawlOptions, ScrapeOptions, SearchOptions
from studiolink.core.orchestrator import (
    InvocationDriver,
    ItemExecutionError,
    UnknownResourceError,
    resolve_options,
    run_batch,
)
from studiolink.core.runs import PollTimeout, RemoteRunFailure
from studiolink.core.transport import HttpxTransport


SCRAPE_OK = {
    ("POST", "/scrape"): [{"run_id": "r1"}],
    ("GET", "/scrape/run"): [{"status": "completed"}],
    ("GET", "/scrape/run/data"): [{"status": "completed", "data": {"md": "hi"}, "message": "done"}],
}

SEARCH_OK = {
    ("POST", "/search/run"): [{"run_id": "s1"}],
    ("GET", "/search/run/data"): [{"status": "completed", "data": [{"url": "https://a"}]}],
}

CRAWL_FAILED = {
    ("POST", "/extract/run"): [{"run_id": "c1"}],
    ("GET", "/extract/run/steps"): [{"run": {"status": "failed", "error": "blocked"}}],
}


def _driver(responses, clock: FakeClock, **kwargs) -> tuple[InvocationDriver, FakeTransport]:
    transport = FakeTransport(responses)
    driver = InvocationDriver(transport, sleep=clock.sleep, clock=clock, **kwargs)
    return driver, transport


# =============================================================================
# Parameter resolution
# =============================================================================


def test_resolve_defaults_to_scraper() -> None:
    family, options = resolve_options({"url": "https://a"})
    assert family.value == "scrape"
    assert options == ScrapeOptions(url="https://a")


def test_resolve_crawler_parameters() -> None:
    _, options = resolve_options({
        "resource": "crawler",
        "url": "https://a",
        "prompt": "find docs",
        "output_format": "json",
        "schema": "not json{",
        "max_pages": 75,
        "render_javascript": True,
    })
    assert isinstance(options, CrawlOptions)
    assert options.crawl_prompt == "find docs"
    assert options.openapi_schema == {}
    assert options.max_pages == 75
    assert options.render_html is True


def test_resolve_ignores_schema_for_non_json_formats() -> None:
    _, options = resolve_options({
        "resource": "browserAgent",
        "url": "https://a",
        "output_format": "html",
        "schema": {"type": "object"},
    })
    assert options.openapi_schema is None


def test_resolve_search_defaults() -> None:
    _, options = resolve_options({"resource": "search", "query": "weather", "limit": None})
    assert options == SearchOptions(query="weather", limit=10, return_content=True, render_javascript=False)


def test_resolve_unknown_resource() -> None:
    with pytest.raises(UnknownResourceError):
        resolve_options({"resource": "spider", "url": "https://a"})


def test_resolve_missing_url() -> None:
    with pytest.raises(ValidationError):
        resolve_options({"resource": "scraper"})


# =============================================================================
# Execution
# =============================================================================


def test_execute_returns_one_record_per_item(clock: FakeClock) -> None:
    driver, transport = _driver({**SCRAPE_OK, **SEARCH_OK}, clock)

    records = asyncio.run(driver.execute([
        {"resource": "scraper", "url": "https://a"},
        {"resource": "search", "query": "weather"},
    ]))

    assert records == [
        {"status": "completed", "data": {"md": "hi"}, "message": "done"},
        {"status": "completed", "data": [{"url": "https://a"}], "message": None},
    ]
    assert driver.stats.items_succeeded == 2
    # Items run strictly in order
    assert [call.path for call in transport.calls] == [
        "/scrape", "/scrape/run", "/scrape/run/data", "/search/run", "/search/run/data",
    ]


def test_continue_on_fail_records_error_and_proceeds(clock: FakeClock) -> None:
    driver, _ = _driver({**CRAWL_FAILED, **SCRAPE_OK}, clock, continue_on_fail=True)

    records = asyncio.run(driver.execute([
        {"resource": "crawler", "url": "https://a"},
        {"resource": "nope"},
        {"resource": "scraper", "url": "https://a"},
    ]))

    assert records[0] == {"error": "Crawling failed: blocked"}
    assert records[1] == {"error": "Unknown resource: nope"}
    assert records[2]["data"] == {"md": "hi"}
    assert driver.stats.items_failed == 2
    assert driver.stats.items_succeeded == 1


def test_abort_surfaces_first_error_with_item_index(clock: FakeClock) -> None:
    driver, transport = _driver({**SCRAPE_OK, **CRAWL_FAILED}, clock)

    with pytest.raises(ItemExecutionError) as exc_info:
        asyncio.run(driver.execute([
            {"resource": "scraper", "url": "https://a"},
            {"resource": "crawler", "url": "https://a"},
            {"resource": "scraper", "url": "https://b"},
        ]))

    error = exc_info.value
    assert error.item_index == 1
    assert isinstance(error.cause, RemoteRunFailure)
    assert error.family == "crawl"
    assert error.run_id == "c1"
    # Third item never ran
    assert len(transport.calls_to("/scrape")) == 1
    assert driver.stats.finished_at is not None
    assert driver.stats.duration_seconds >= 0


def test_driver_applies_configured_budget(clock: FakeClock) -> None:
    polling = PollingConfig(search=FamilyPolling(timeout_seconds=30, poll_interval_seconds=10))
    driver, transport = _driver({
        ("POST", "/search/run"): [{"run_id": "s1"}],
        ("GET", "/search/run/data"): [{"status": "processing"}],
    }, clock, polling=polling)

    with pytest.raises(ItemExecutionError) as exc_info:
        asyncio.run(driver.execute([{"resource": "search", "query": "q"}]))

    assert isinstance(exc_info.value.cause, PollTimeout)
    assert exc_info.value.cause.timeout == 30
    assert clock.sleeps == [10, 10, 10]


def test_large_limits_reach_the_wire_unchanged(clock: FakeClock) -> None:
    driver, transport = _driver({
        **SEARCH_OK,
        ("POST", "/extract/run"): [{"run_id": "c1"}],
        ("GET", "/extract/run/steps"): [{"run": {"status": "completed"}}],
        ("GET", "/extract/run/data"): [{"data": []}],
    }, clock)

    asyncio.run(driver.execute([
        {"resource": "crawler", "url": "https://a", "max_pages": 500},
        {"resource": "search", "query": "q", "limit": 99},
    ]))

    assert transport.calls_to("/extract/run")[0].json_body["return_sources_limit"] == 500
    assert transport.calls_to("/search/run")[0].json_body["limit"] == 99


def test_from_config_builds_httpx_transport() -> None:
    config = AppConfig.model_validate({
        "api": {"api_key": "k", "api_url": "https://example.test/"},
        "continue_on_fail": True,
    })

    driver = InvocationDriver.from_config(config)

    assert isinstance(driver.transport, HttpxTransport)
    assert driver.transport.api_url == "https://example.test"
    assert driver.transport.default_headers["x-api-key"] == "k"
    assert driver.continue_on_fail is True


def test_context_manager_closes_transport(clock: FakeClock) -> None:
    driver, transport = _driver({}, clock)

    async def _run() -> None:
        async with driver:
            pass

    asyncio.run(_run())
    assert transport.closed


def test_run_batch_builds_driver_from_config_and_overrides_policy(
    clock: FakeClock,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    transport = FakeTransport({**CRAWL_FAILED, **SCRAPE_OK})
    built: list[InvocationDriver] = []

    def from_config(config: AppConfig) -> InvocationDriver:
        driver = InvocationDriver(
            transport,
            config.polling,
            continue_on_fail=config.continue_on_fail,
            sleep=clock.sleep,
            clock=clock,
        )
        built.append(driver)
        return driver

    monkeypatch.setattr(InvocationDriver, "from_config", staticmethod(from_config))

    with caplog.at_level(logging.INFO, logger="studiolink"):
        records = asyncio.run(run_batch(
            [{"resource": "crawler", "url": "https://a"}, {"url": "https://a"}],
            AppConfig(),
            continue_on_fail=True,
        ))

    assert records[0] == {"error": "Crawling failed: blocked"}
    assert records[1]["data"] == {"md": "hi"}
    assert built[0].continue_on_fail is True
    assert transport.closed
    assert "Batch finished: 1/2 succeeded, 1 failed" in caplog.text
