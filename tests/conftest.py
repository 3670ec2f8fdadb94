"""Pytest fixtures for Veridis tests."""

from datetime import datetime, timedelta, timezone

import pytest

from veridis.authz.service import AuthzService
from veridis.authz.store import AuthzStore
from veridis.config import VeridisConfig
from veridis.core import VeridisCore
from veridis.state import EventStore

GOD_ID = "g1"


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    """Clock fixed at 2026-01-15T12:00:00Z."""
    return FakeClock(datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def store_path(tmp_path):
    """Path of the authz store inside a not-yet-existing directory."""
    return tmp_path / "state" / "authz.json"


@pytest.fixture
def authz_store(store_path):
    return AuthzStore(store_path)


@pytest.fixture
def authz(authz_store, clock):
    """AuthzService with GOD_ID as the only privileged id."""
    return AuthzService(authz_store, privileged_ids={GOD_ID}, clock=clock)


@pytest.fixture
def event_store(clock):
    return EventStore(clock=clock)


@pytest.fixture
def core(store_path, clock):
    config = VeridisConfig(god_external_ids=frozenset({GOD_ID}), authz_store_path=store_path, max_events=20)
    return VeridisCore(config, clock=clock).boot()
