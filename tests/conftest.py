# tests/conftest.py
"""Global pytest fixtures for the facade test-suite."""

from __future__ import annotations

import signal
from types import FrameType
from typing import Callable, Generator

import pytest

from r2facade import R2Bucket

from tests.helpers import TEST_BUCKET, InMemoryBucketProvider

DEFAULT_TEST_TIMEOUT_SECONDS = 10.0


def _build_timeout_handler(
    timeout_seconds: float,
) -> Callable[[int, FrameType | None], None]:
    """Create SIGALRM handler that fails the test when timeout is reached."""

    def _handle_timeout(signum: int, frame: FrameType | None) -> None:
        pytest.fail(f"Test exceeded {timeout_seconds:.0f}s timeout", pytrace=True)

    return _handle_timeout


@pytest.fixture(autouse=True)
def per_test_timeout() -> Generator[None, None, None]:
    """Fail any test that runs longer than the default timeout."""
    if not hasattr(signal, "SIGALRM") or not hasattr(signal, "setitimer"):
        yield
        return

    handler = _build_timeout_handler(DEFAULT_TEST_TIMEOUT_SECONDS)
    previous_handler = signal.getsignal(signal.SIGALRM)
    signal.signal(signal.SIGALRM, handler)
    signal.setitimer(signal.ITIMER_REAL, DEFAULT_TEST_TIMEOUT_SECONDS)
    try:
        yield
    finally:
        signal.setitimer(signal.ITIMER_REAL, 0.0)
        signal.signal(signal.SIGALRM, previous_handler)


@pytest.fixture
def provider() -> InMemoryBucketProvider:
    """Empty in-memory provider with small minimum part size."""
    return InMemoryBucketProvider()


@pytest.fixture
def bucket(provider: InMemoryBucketProvider) -> R2Bucket:
    """Facade over the ``provider`` fixture."""
    return R2Bucket(provider, bucket_name=TEST_BUCKET)
