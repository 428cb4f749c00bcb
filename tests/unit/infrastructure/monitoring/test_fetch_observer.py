import logging
from unittest.mock import MagicMock

import pytest

from fetchguard.domain.events.fetch_events import FetchFailed, RequestStarted, ResponseReceived
from fetchguard.domain.interfaces.fetch_observer import FetchObserver
from fetchguard.domain.interfaces.user_interface import UserInterface
from fetchguard.domain.models.http import HttpResponse
from fetchguard.infrastructure.monitoring.fetch_observer import (
    CompositeFetchObserver,
    ConsoleFetchObserver,
    LoggingFetchObserver,
    format_latency,
)

URL = "https://example.com"


@pytest.fixture
def response_event():
    return ResponseReceived(
        url=URL,
        attempt=1,
        response=HttpResponse(status_code=200, url=URL),
        latency_seconds=0.1234,
    )


@pytest.mark.parametrize("seconds, expected", [(0.1234, "123.4ms"), (1.5, "1.500s")])
def test_format_latency(seconds, expected):
    assert format_latency(seconds) == expected


def test_console_observer_prints_request_and_response(response_event):
    ui = MagicMock(spec=UserInterface)
    observer = ConsoleFetchObserver(ui)

    observer.on_request(RequestStarted(url=URL, attempt=1))
    observer.on_response(response_event)

    assert ui.display_output.call_args_list[0].args[0] == f"Request: GET {URL}"
    assert ui.display_output.call_args_list[1].args[0] == "Response: 200 (latency: 123.4ms)"


def test_logging_observer_logs_failures(caplog):
    with caplog.at_level(logging.ERROR):
        LoggingFetchObserver().on_failure(FetchFailed(
            url=URL, error_type="TransportError", error_message="refused", attempts=4
        ))
    assert "failed after 4 attempt(s)" in caplog.text


def test_composite_isolates_failing_observers(response_event):
    broken = MagicMock(spec=FetchObserver)
    broken.on_response.side_effect = RuntimeError("boom")
    healthy = MagicMock(spec=FetchObserver)

    CompositeFetchObserver([broken, healthy]).on_response(response_event)

    healthy.on_response.assert_called_once_with(response_event)
