# tests/helpers/__init__.py
"""Shared test utilities for the facade test suite.

Usage:
    >>> from tests.helpers import expect_success, expect_failure
    >>> from tests.helpers import InMemoryBucketProvider, failure
    >>>
    >>> provider = InMemoryBucketProvider()
    >>> provider.fail_next("put", failure("slow down", status=429))
    >>> error = expect_failure(await R2Bucket(provider).put("a", b"x"))
"""

from __future__ import annotations

from tests.helpers.constants import (
    FIXED_TIME,
    SMALL_PART_SIZE,
    TEST_ACCOUNT_ID,
    TEST_BUCKET,
    TEST_ENDPOINT,
    TEST_KEY,
)
from tests.helpers.factories import failure, make_config, make_object
from tests.helpers.fakes import (
    FakeFailure,
    FakeStreamingBody,
    InMemoryBucketProvider,
    InMemoryKV,
    ScriptedS3Client,
    client_error,
)
from tests.helpers.result_utils import expect_failure, expect_success


__all__ = [
    # Constants
    "FIXED_TIME",
    "SMALL_PART_SIZE",
    "TEST_ACCOUNT_ID",
    "TEST_BUCKET",
    "TEST_ENDPOINT",
    "TEST_KEY",
    # Factories
    "failure",
    "make_config",
    "make_object",
    # Fakes
    "FakeFailure",
    "FakeStreamingBody",
    "InMemoryBucketProvider",
    "InMemoryKV",
    "ScriptedS3Client",
    "client_error",
    # Result helpers
    "expect_failure",
    "expect_success",
]
