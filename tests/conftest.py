import os
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

# Ensure we default to memory backend and header identity for tests
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")
os.environ.setdefault("ENABLE_BASIC_AUTH", "false")

from focus_api.db import SQLiteRepository  # noqa: E402
from focus_api.main import app  # noqa: E402
from focus_api.repositories import InMemoryRepository, get_repository  # noqa: E402
from focus_api.timers import TimerRegistry, get_timer_registry  # noqa: E402

TEST_FOCUS_SECONDS = 60
TEST_BREAK_SECONDS = 30


class FakeClock:
    """Settable local clock shared by stores and the aggregator."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 10, 9, 0, 0))


@pytest.fixture(params=["memory", "sqlite"])
def repo(request, tmp_path, clock):
    """Each store backend, fresh per test."""
    if request.param == "sqlite":
        return SQLiteRepository(str(tmp_path / "focus.db"), now=clock)
    return InMemoryRepository(now=clock)


@pytest.fixture()
def client():
    """
    TestClient wired to a fresh in-memory store and a short-cycle timer registry.
    """
    store = InMemoryRepository()
    timers = TimerRegistry(focus_seconds=TEST_FOCUS_SECONDS, break_seconds=TEST_BREAK_SECONDS)
    app.dependency_overrides[get_repository] = lambda: store
    app.dependency_overrides[get_timer_registry] = lambda: timers
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def alice() -> dict:
    return {"X-Owner-Id": "alice"}


@pytest.fixture()
def bob() -> dict:
    return {"X-Owner-Id": "bob"}
