# tests/conftest.py
from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from reqpipe.alerts import AlertPresenter
from reqpipe.client import HttpClient
from reqpipe.config import ClientSettings
from reqpipe.notifier import ErrorAlertNotifier
from reqpipe.storage import InMemoryKeyValueStore

BASE_URL = "https://api.example.com"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings() -> ClientSettings:
    """Settings isolated from any .env file in the working directory."""
    return ClientSettings(_env_file=None, base_url=BASE_URL)


@pytest.fixture
def presenter():
    """Records alerts instead of showing them."""
    return MagicMock(spec=AlertPresenter)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifier(presenter, clock) -> ErrorAlertNotifier:
    return ErrorAlertNotifier(presenter, window_seconds=3.0, clock=clock)


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest_asyncio.fixture
async def client(settings, store, notifier):
    """HttpClient using the real httpx transport (intercepted by httpx_mock)."""
    http_client = HttpClient(settings, storage=store, notifier=notifier)
    yield http_client
    await http_client.aclose()
