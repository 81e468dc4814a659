from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from conftest import FakeClock, FakeTransport
from studiolink import __version__
from studiolink.cli.main import app
from studiolink.core.orchestrator import InvocationDriver


runner = CliRunner()


@pytest.fixture
def fake_api(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, clock: FakeClock):
    """Route the CLI's driver to a scripted transport."""
    monkeypatch.chdir(tmp_path)
    transport = FakeTransport({
        ("POST", "/scrape"): [{"run_id": "r1"}],
        ("GET", "/scrape/run"): [{"status": "completed"}],
        ("GET", "/scrape/run/data"): [{"status": "completed", "data": {"md": "hi"}}],
        ("POST", "/search/run"): [{"run_id": "s1"}],
        ("GET", "/search/run/data"): [{"status": "failed", "message": "bad query"}],
    })

    def from_config(config):
        return InvocationDriver(
            transport,
            config.polling,
            continue_on_fail=config.continue_on_fail,
            sleep=clock.sleep,
            clock=clock,
        )

    monkeypatch.setattr(InvocationDriver, "from_config", staticmethod(from_config))
    return transport


def test_version() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_init_writes_config(tmp_path: Path) -> None:
    path = tmp_path / "configs" / "app.yaml"

    result = runner.invoke(app, ["init", "--path", str(path)])

    assert result.exit_code == 0
    assert "STUDIOLINK_API_KEY" in path.read_text(encoding="utf-8")

    again = runner.invoke(app, ["init", "--path", str(path)])
    assert again.exit_code == 1


def test_scrape_writes_record(fake_api: FakeTransport, tmp_path: Path) -> None:
    output = tmp_path / "out.json"

    result = runner.invoke(app, ["scrape", "https://a", "-f", "json", "-s", "not json{", "-o", str(output)])

    assert result.exit_code == 0, result.output
    assert json.loads(output.read_text(encoding="utf-8")) == {
        "status": "completed",
        "data": {"md": "hi"},
        "message": None,
    }
    assert fake_api.calls[0].json_body == {
        "url": "https://a",
        "output_format": "json",
        "render_html": False,
        "openapi_schema": {},
    }


def test_search_failure_exits_nonzero(fake_api: FakeTransport) -> None:
    result = runner.invoke(app, ["search", "weather"])

    assert result.exit_code == 1
    assert "bad query" in result.output


def test_batch_continue_on_fail(fake_api: FakeTransport, tmp_path: Path) -> None:
    batch_file = tmp_path / "items.yaml"
    batch_file.write_text(
        "- resource: search\n"
        "  query: weather\n"
        "- resource: scraper\n"
        "  url: https://a\n",
        encoding="utf-8",
    )
    output = tmp_path / "results.json"

    result = runner.invoke(app, ["batch", str(batch_file), "--continue-on-fail", "-o", str(output)])

    assert result.exit_code == 0, result.output
    records = json.loads(output.read_text(encoding="utf-8"))
    assert records[0] == {"error": "Search failed: bad query"}
    assert records[1]["data"] == {"md": "hi"}


def test_batch_abort_reports_item_index(fake_api: FakeTransport, tmp_path: Path) -> None:
    batch_file = tmp_path / "items.json"
    batch_file.write_text(json.dumps([
        {"resource": "scraper", "url": "https://a"},
        {"resource": "search", "query": "weather"},
    ]), encoding="utf-8")

    result = runner.invoke(app, ["batch", str(batch_file)])

    assert result.exit_code == 1
    assert "Item 1 failed" in result.output


def test_missing_api_key_exits(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("STUDIOLINK_API_KEY")

    result = runner.invoke(app, ["scrape", "https://a"])

    assert result.exit_code == 1
    assert "No API key" in result.output
