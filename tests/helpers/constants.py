# tests/helpers/constants.py
"""Constants shared across facade tests."""

from __future__ import annotations

from datetime import datetime, timezone

TEST_BUCKET = "test-bucket"
TEST_KEY = "docs/readme.txt"
TEST_ENDPOINT = "https://0123456789abcdef.r2.cloudflarestorage.com"
TEST_ACCOUNT_ID = "0123456789abcdef"

# Small enough for in-memory multipart tests; real R2 requires 5 MiB.
SMALL_PART_SIZE = 4

FIXED_TIME = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

MESSAGE_NO_SUCH_UPLOAD = "The specified multipart upload does not exist."
MESSAGE_TOO_SMALL = "Your proposed upload is smaller than the minimum allowed object size."
MESSAGE_INVALID_PART = "One or more of the specified parts could not be found."
