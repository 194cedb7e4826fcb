"""Shared fixtures for socialcal_export tests."""

from collections.abc import AsyncIterator, Generator
from datetime import datetime, timezone
from typing import Any, Callable

import pytest

from socialcal_export.core.http_client import close_all_clients
from socialcal_export.core.timezone_utils import TEST_TIME_ENV_VAR


@pytest.fixture
def fixed_now() -> datetime:
    """Deterministic export-time "now" (naive local)."""
    return datetime(2025, 3, 10, 9, 30)


@pytest.fixture
def local_from_utc() -> Callable[..., datetime]:
    """Naive local wall time for a UTC instant, as the coercion layer produces it."""

    def _convert(*args: int) -> datetime:
        return datetime(*args, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)

    return _convert


@pytest.fixture
def sequential_uids() -> Callable[[datetime], str]:
    """UID factory producing gen-1, gen-2, ... so generated ids are predictable."""
    counter = {"n": 0}

    def _factory(_now: datetime) -> str:
        counter["n"] += 1
        return f"gen-{counter['n']}"

    return _factory


@pytest.fixture
def timed_event() -> dict[str, Any]:
    """A complete stored event with an explicit end."""
    return {
        "id": "evt-1",
        "userId": "user-1",
        "title": "Launch post",
        "description": "Publish the spring campaign",
        "startDate": "2025-03-12T10:00:00",
        "endDate": "2025-03-12T11:30:00",
        "allDay": False,
        "createdAt": "2025-03-01T08:00:00",
        "updatedAt": "2025-03-02T08:00:00",
        "source": "manual",
    }


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Keep the test-time override and logging env vars out of every test."""
    monkeypatch.delenv(TEST_TIME_ENV_VAR, raising=False)
    monkeypatch.delenv("SOCIALCAL_DEBUG", raising=False)
    monkeypatch.delenv("SOCIALCAL_LOG_LEVEL", raising=False)
    yield


@pytest.fixture
async def shared_http_clients() -> AsyncIterator[None]:
    """Close shared httpx clients created during a test."""
    yield
    await close_all_clients()
