from datetime import datetime, timedelta, timezone
from io import StringIO

import pytest
from rich.console import Console

from fetchguard.domain.models.cache import CacheEntry
from fetchguard.domain.models.http import HttpResponse
from fetchguard.infrastructure.cli.display import ConsoleDisplay


@pytest.fixture
def output():
    return StringIO()


@pytest.fixture
def console_display(output: StringIO):
    """ConsoleDisplay writing plain text into a buffer."""
    return ConsoleDisplay(console=Console(file=output, width=120, color_system=None))


def test_display_output(console_display: ConsoleDisplay, output: StringIO):
    console_display.display_output("Request: GET https://example.com")
    assert "Request: GET https://example.com" in output.getvalue()


def test_display_error(console_display: ConsoleDisplay, output: StringIO):
    console_display.display_error("Something went wrong")
    assert "Error" in output.getvalue()
    assert "Something went wrong" in output.getvalue()


def test_display_warning(console_display: ConsoleDisplay, output: StringIO):
    console_display.display_warning("Continuing without cache...")
    assert "Warning: Continuing without cache..." in output.getvalue()


def test_display_response(console_display: ConsoleDisplay, output: StringIO):
    response = HttpResponse(status_code=200, body=b"<html>Example Domain</html>", url="https://example.com")
    console_display.display_response(response, 0.25)
    text = output.getvalue()
    assert "200" in text
    assert "250.0ms" in text
    assert "Example Domain" in text


def test_display_cached_entry(console_display: ConsoleDisplay, output: StringIO):
    cached_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
    entry = CacheEntry(status_code=304, cached_at=cached_at, expires_at=cached_at + timedelta(minutes=5))
    console_display.display_cached_entry(entry)
    assert "304" in output.getvalue()
    assert "2024-01-01T00:05:00+00:00" in output.getvalue()


def test_display_stats(console_display: ConsoleDisplay, output: StringIO):
    console_display.display_stats({"requests": 7, "url": "https://example.com"})
    assert "requests" in output.getvalue()
    assert "7" in output.getvalue()
