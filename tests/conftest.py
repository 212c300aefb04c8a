# tests/conftest.py
from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from membertracker_client.main import MemberTrackerClient
from membertracker_client.settings import Settings

BASE_URL = "http://api.test/api"


class FakeClock:
    """Manually advanced clock injected as the session time source."""

    def __init__(self):
        self.now = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += timedelta(milliseconds=ms)


class RecordingSleep:
    """Stands in for asyncio.sleep in the retry policy; records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_settings(**overrides) -> Settings:
    values = {
        "api_base_url": BASE_URL,
        "api_timeout_ms": 30000,
        "api_retry_attempts": 3,
        "api_retry_delay_ms": 1000,
        "session_idle_timeout_ms": 60 * 60 * 1000,
        "session_check_interval_ms": 30000,
        "debug_mode": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
async def client(test_settings, clock, sleep):
    """A wired client that has not run its start-up auth check yet."""
    mt_client = MemberTrackerClient(settings=test_settings, clock=clock, sleep=sleep)
    yield mt_client
    await mt_client.aclose()
