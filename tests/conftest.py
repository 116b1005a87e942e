"""Pytest configuration for Rendezvous."""
import os

import pytest

from rendezvous.base.clock import ManualClock
from rendezvous.base.config import set_config
from rendezvous.events.coordinator import EventCoordinator


def pytest_configure():
    # Keep the developer's shell settings out of config tests.
    for name in list(os.environ):
        if name.startswith("RENDEZVOUS_"):
            del os.environ[name]


@pytest.fixture(autouse=True)
def _forget_global_config():
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def clock():
    return ManualClock(start=10_000)


@pytest.fixture
def events(clock):
    return EventCoordinator(clock=clock)
