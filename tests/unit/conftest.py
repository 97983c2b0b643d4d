"""Unit test fixtures. No cloud credentials or network required."""

from __future__ import annotations

import logging

import pytest

from batch_ocr.orchestration.waiter import PollingWaiter
from tests.unit.fakes import FakeClock, InMemoryObjectStore


@pytest.fixture
def store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_waiter(clock: FakeClock):
    """Build a PollingWaiter driven by the fake clock."""

    def _make(invoker) -> PollingWaiter:  # type: ignore[no-untyped-def]
        return PollingWaiter(invoker, sleep=clock.sleep, clock=clock)

    return _make


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """setup_logging() replaces root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
