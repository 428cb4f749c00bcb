import os
import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typer.testing import CliRunner

import httpx

from fetchguard.infrastructure.cli.display import ConsoleDisplay
from fetchguard.infrastructure.config import settings
from fetchguard.infrastructure.store.disk_store import DiskKeyValueStore


class FakeClock:
    """Manually advanced UTC clock for cache expiry tests."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def disk_store(tmp_path: Path):
    """A real diskcache-backed store in a temporary directory."""
    store = DiskKeyValueStore(tmp_path / "store")
    yield store
    store._cache.close()


@pytest.fixture
def mock_console_display(mocker):
    """Mocks the ConsoleDisplay to capture output easily."""
    mock = mocker.MagicMock(spec=ConsoleDisplay)
    mocker.patch('fetchguard.main.ConsoleDisplay', return_value=mock)
    return mock


@pytest.fixture
def http_calls():
    """Requests seen by the mock HTTP transport."""
    return []


@pytest.fixture
def mock_http(mocker, http_calls):
    """Routes the CLI's HttpxTransport through an httpx.MockTransport.

    Every GET returns 200 with a small HTML body; set ``responder`` on the
    returned namespace to change the behaviour.
    """
    from fetchguard.infrastructure.http.httpx_transport import HttpxTransport

    class Routes:
        responder = staticmethod(lambda request: httpx.Response(
            200, headers={"Content-Type": "text/html"}, content=b"<html>Example Domain</html>"
        ))

    def handler(request: httpx.Request) -> httpx.Response:
        http_calls.append(request)
        return Routes.responder(request)

    mocker.patch(
        'fetchguard.main.HttpxTransport',
        side_effect=lambda: HttpxTransport(transport=httpx.MockTransport(handler)),
    )
    return Routes


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path: Path):
    """Keeps tests independent of the user's config file, .env and environment."""
    monkeypatch.setattr(settings, 'DEFAULT_CONFIG_FILE', tmp_path / "no-config.yaml")
    monkeypatch.setattr(settings, 'find_dotenv_path', lambda: None)
    for name in list(os.environ):
        if name.startswith(settings.ENV_PREFIX) and name != "FETCHGUARD_TEST_REDIS_URL":
            monkeypatch.delenv(name)
    settings.reset_configuration()
    settings.clear_test_config()
    yield
    settings.reset_configuration()
    settings.clear_test_config()
