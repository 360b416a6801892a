from __future__ import annotations

import pytest

from tests.tripwire.support.fakes import FakeClock, FakeLogger, RecordingListener


@pytest.fixture
def fake_logger() -> FakeLogger:
    """Provide a fresh structured logger test double per test."""
    return FakeLogger()


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a manually driven clock starting at zero."""
    return FakeClock()


@pytest.fixture
def listener() -> RecordingListener:
    """Provide a listener that records breaker events."""
    return RecordingListener()
