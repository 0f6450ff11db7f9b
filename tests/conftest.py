"""
Shared fixtures for throttlekit tests.
"""

import pytest

from throttlekit.store import InMemoryStore


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1200.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Clock starting at the beginning of a 60 second window."""
    return FakeClock()


@pytest.fixture
def store(clock):
    """In-memory store sharing the test clock."""
    return InMemoryStore(clock=clock)
