"""Tests for configuration, request building and the command line entry point."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from catalog_harvest import cli
from catalog_harvest.config import HarvestConfig
from catalog_harvest.errors import StatusError
from catalog_harvest.fetcher import FetchOutcome
from catalog_harvest.models import SearchResultsPayload
from catalog_harvest.request_builder import build_request


def test_build_request():
    """Test the URL and headers for a results page."""
    request = build_request(12)

    assert request.page_id == 12
    assert request.url == (
        "https://librivox.org/search/get_results?search_category=title&search_page=12"
    )
    assert request.headers == {"X-Requested-With": "XMLHttpRequest"}


def test_build_request_is_repeatable():
    """Test that rebuilding a request for the same page gives an equal descriptor."""
    assert build_request(5) == build_request(5)


def test_build_request_rejects_invalid_page():
    """Test that page numbers start at one."""
    with pytest.raises(ValueError):
        build_request(0)


def test_config_defaults():
    """Test default run settings."""
    config = HarvestConfig()

    assert config.page_count == 824
    assert config.retry_budget == 3
    assert config.timeout == 20.0
    assert config.workers >= 1


@pytest.mark.parametrize(
    "field, value",
    [("page_count", -1), ("workers", 0), ("retry_budget", 0), ("timeout", 0)],
)
def test_config_rejects_invalid_values(field, value):
    """Test that out-of-range settings are rejected."""
    with pytest.raises(ValidationError):
        HarvestConfig(**{field: value})


def test_parse_config_maps_flags():
    """Test that command line flags map onto the config."""
    config, args = cli.parse_config([
        "--pages", "10",
        "--workers", "2",
        "--retries", "5",
        "--timeout", "1.5",
        "--category", "author",
        "--sort",
    ])

    assert config.page_count == 10
    assert config.workers == 2
    assert config.retry_budget == 5
    assert config.timeout == 1.5
    assert config.search_category == "author"
    assert config.sort_links is True
    assert args.verbose is False


def test_parse_config_invalid_value_exits():
    """Test that invalid flag values are reported as usage errors."""
    with pytest.raises(SystemExit):
        cli.parse_config(["--retries", "0"])


class FakePageFetcher:
    """Stands in for PageFetcher: page 2 always fails, others succeed."""

    def __init__(self, timeout):
        self.timeout = timeout

    def fetch(self, request):
        if request.page_id == 2:
            return FetchOutcome.failure(StatusError("status 500: Internal Server Error", 500))
        fragment = (
            f'<li class="catalog-result"><a class="book-cover" '
            f'href="/book/{request.page_id}"></a></li>'
        )
        return FetchOutcome.success(SearchResultsPayload(results=fragment))

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        pass


def test_main_writes_links_and_errors(tmp_path, monkeypatch):
    """Test a full run writing both output files."""
    monkeypatch.setattr(cli, "PageFetcher", FakePageFetcher)
    output = tmp_path / "output.txt"
    errors = tmp_path / "errors.json"

    code = cli.main([
        "--pages", "3",
        "--workers", "2",
        "--retries", "2",
        "--output", str(output),
        "--errors", str(errors),
        "--sort",
    ])

    assert code == 0
    assert output.read_text(encoding="utf-8") == "/book/1\n/book/3"
    assert json.loads(errors.read_text()) == {"status 500: Internal Server Error": 2}


def test_main_skips_errors_file_when_clean(tmp_path, monkeypatch):
    """Test that no failure summary is written when nothing failed."""
    monkeypatch.setattr(cli, "PageFetcher", FakePageFetcher)
    errors = tmp_path / "errors.json"

    code = cli.main([
        "--pages", "1",
        "--output", str(tmp_path / "output.txt"),
        "--errors", str(errors),
    ])

    assert code == 0
    assert not errors.exists()


def test_main_reports_write_failure(tmp_path, monkeypatch):
    """Test that an unwritable output path gives exit code 1."""
    monkeypatch.setattr(cli, "PageFetcher", FakePageFetcher)
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    code = cli.main([
        "--pages", "1",
        "--output", str(Path(blocker) / "output.txt"),
    ])

    assert code == 1
