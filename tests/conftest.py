import logging

import httpx
import pytest
from typer.testing import CliRunner

from pexcli.infrastructure.api.pexels_client import PexelsClient
from pexcli.infrastructure.config import settings
from pexcli.infrastructure.config.settings import ClientConfig
from pexcli.infrastructure.resilience.api_retry import ApiRetryService

TEST_HOST = "https://api.test"
TEST_TOKEN = "test-token-1234"


class SleepRecorder:
    """Async stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.calls = []

    async def __call__(self, delay):
        self.calls.append(delay)


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Points the config file at a temp dir and clears token env vars."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for var in ("PEXELS_TOKEN", "PEXELS_API_KEY", "PEXELS_HOST", "PEXELS_LOCALE", "NO_COLOR"):
        monkeypatch.delenv(var, raising=False)
    # No stray .env from the developer's checkout
    monkeypatch.chdir(tmp_path)
    settings.reset_configuration()
    settings.clear_test_config()
    root_handlers = logging.getLogger().handlers[:]
    yield
    settings.reset_configuration()
    settings.clear_test_config()
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if handler not in root_handlers:
            root.removeHandler(handler)


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def client_config():
    return ClientConfig(token=TEST_TOKEN, token_source="env", host=TEST_HOST, timeout_secs=5.0)


@pytest.fixture
def make_client(sleep_recorder):
    """Builds a PexelsClient whose requests are answered by `handler`."""
    def _make(handler, config):
        retry = ApiRetryService(
            max_retries=config.max_retries,
            retry_after=config.retry_after,
            secrets=(config.token,),
            sleep=sleep_recorder,
        )
        return PexelsClient(config, retry_service=retry, transport=httpx.MockTransport(handler))
    return _make


@pytest.fixture
def photo():
    """A photo resource shaped like the upstream API's."""
    return {
        "id": 2014422,
        "width": 3024,
        "height": 3024,
        "url": "https://www.pexels.com/photo/brown-rocks-during-golden-hour-2014422/",
        "photographer": "Joey Farina",
        "photographer_url": "https://www.pexels.com/@joey",
        "photographer_id": 680589,
        "avg_color": "#978E82",
        "src": {
            "original": "https://images.pexels.com/photos/2014422/pexels-photo-2014422.jpeg",
            "large": "https://images.pexels.com/photos/2014422/pexels-photo-2014422.jpeg?h=650",
            "medium": "https://images.pexels.com/photos/2014422/pexels-photo-2014422.jpeg?h=350",
            "tiny": "https://images.pexels.com/photos/2014422/pexels-photo-2014422.jpeg?h=200",
        },
        "liked": False,
        "alt": "Brown Rocks During Golden Hour",
    }
