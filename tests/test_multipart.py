# tests/test_multipart.py
"""Tests for multipart upload sessions."""

from __future__ import annotations

import pytest

from r2facade import MultipartOptions, R2Bucket, R2HTTPMetadata, R2UploadedPart
from r2facade.errors import R2MultipartError, R2ObjectTooSmallError
from r2facade.multipart import (
    MAX_PART_NUMBER,
    MultipartSession,
    duplicate_part_numbers,
    is_valid_part_number,
)
from r2facade.operation import Operation
from r2facade.result import Success, partition_results

from tests.helpers import (
    SMALL_PART_SIZE,
    InMemoryBucketProvider,
    expect_failure,
    expect_success,
    failure,
)


async def _start(bucket: R2Bucket, key: str = "video.mp4") -> MultipartSession:
    return expect_success(await bucket.create_multipart_upload(key))


@pytest.mark.asyncio
async def test_upload_parts_and_complete(bucket: R2Bucket) -> None:
    session = await _start(bucket)
    first = expect_success(await session.upload_part(1, b"aaaa"))
    second = expect_success(await session.upload_part(2, b"bb"))

    obj = expect_success(await session.complete([second, first]))

    assert obj.key == "video.mp4"
    assert obj.size == 6
    body = expect_success(await bucket.get("video.mp4"))
    assert getattr(body, "body") == b"aaaabb"


@pytest.mark.asyncio
async def test_session_metadata_is_applied(bucket: R2Bucket) -> None:
    created = await bucket.create_multipart_upload(
        "page.html",
        MultipartOptions(http_metadata=R2HTTPMetadata(content_type="text/html")),
    )
    session = expect_success(created)
    part = expect_success(await session.upload_part(1, "<html></html>"))
    obj = expect_success(await session.complete([part]))
    assert obj.http_metadata == R2HTTPMetadata(content_type="text/html")


@pytest.mark.asyncio
async def test_session_exposes_key_and_upload_id(bucket: R2Bucket) -> None:
    session = await _start(bucket, "a.bin")
    assert session.key == "a.bin"
    assert session.upload_id
    assert "a.bin" in repr(session)


@pytest.mark.asyncio
@pytest.mark.parametrize("part_number", [0, -1, MAX_PART_NUMBER + 1])
async def test_out_of_range_part_number_is_rejected_locally(
    bucket: R2Bucket, provider: InMemoryBucketProvider, part_number: int
) -> None:
    session = await _start(bucket)
    error = expect_failure(await session.upload_part(part_number, b"data"))
    assert isinstance(error, R2MultipartError)
    assert error.operation is Operation.upload_part
    assert error.part_number == part_number
    assert error.upload_id == session.upload_id
    assert "upload_part" not in provider.calls


@pytest.mark.asyncio
async def test_complete_with_no_parts_is_rejected(
    bucket: R2Bucket, provider: InMemoryBucketProvider
) -> None:
    session = await _start(bucket)
    error = expect_failure(await session.complete([]))
    assert error == R2MultipartError(
        operation=Operation.complete_multipart_upload,
        key="video.mp4",
        reason="At least one uploaded part is required",
        upload_id=session.upload_id,
    )
    assert "complete" not in provider.calls


@pytest.mark.asyncio
async def test_complete_with_duplicate_parts_is_rejected(
    bucket: R2Bucket, provider: InMemoryBucketProvider
) -> None:
    session = await _start(bucket)
    one = expect_success(await session.upload_part(1, b"aaaa"))
    two = expect_success(await session.upload_part(2, b"bbbb"))
    error = expect_failure(await session.complete([one, two, two]))
    assert isinstance(error, R2MultipartError)
    assert error.reason == "Duplicate part numbers: 2"
    assert error.part_number == 2
    assert "complete" not in provider.calls


@pytest.mark.asyncio
async def test_complete_with_omitted_part_is_rejected_by_provider(bucket: R2Bucket) -> None:
    session = await _start(bucket)
    one = expect_success(await session.upload_part(1, b"aaaa"))
    expect_success(await session.upload_part(2, b"bbbb"))
    error = expect_failure(await session.complete([one]))
    assert isinstance(error, R2MultipartError)
    assert error.operation is Operation.complete_multipart_upload
    assert error.upload_id == session.upload_id


@pytest.mark.asyncio
async def test_undersized_middle_part_is_too_small(bucket: R2Bucket) -> None:
    session = await _start(bucket)
    small = expect_success(await session.upload_part(1, b"a" * (SMALL_PART_SIZE - 1)))
    last = expect_success(await session.upload_part(2, b"b"))
    error = expect_failure(await session.complete([small, last]))
    assert isinstance(error, R2ObjectTooSmallError)
    assert error.key == "video.mp4"


@pytest.mark.asyncio
async def test_abort_then_upload_fails(bucket: R2Bucket) -> None:
    session = await _start(bucket)
    assert await session.abort() == Success(None)
    error = expect_failure(await session.upload_part(1, b"data"))
    assert isinstance(error, R2MultipartError)
    assert error.part_number == 1


@pytest.mark.asyncio
async def test_resume_and_complete(bucket: R2Bucket) -> None:
    original = await _start(bucket, "big.bin")
    part = expect_success(await original.upload_part(1, b"data"))

    resumed = expect_success(bucket.resume_multipart_upload("big.bin", original.upload_id))
    obj = expect_success(await resumed.complete([part]))
    assert obj.size == 4


@pytest.mark.asyncio
async def test_resume_unknown_upload_fails_on_first_use(bucket: R2Bucket) -> None:
    session = expect_success(bucket.resume_multipart_upload("big.bin", "no-such-upload"))
    error = expect_failure(await session.upload_part(1, b"data"))
    assert error == R2MultipartError(
        operation=Operation.upload_part,
        key="big.bin",
        reason="The specified multipart upload does not exist.",
        upload_id="no-such-upload",
        part_number=1,
    )


def test_resume_failure_is_classified(
    bucket: R2Bucket, provider: InMemoryBucketProvider
) -> None:
    provider.fail_next("resume_multipart_upload", failure("NoSuchUpload", status=404))
    error = expect_failure(bucket.resume_multipart_upload("big.bin", "x"))
    assert isinstance(error, R2MultipartError)
    assert error.operation is Operation.resume_multipart_upload
    assert error.upload_id == "x"


@pytest.mark.asyncio
async def test_create_failure_is_classified(
    bucket: R2Bucket, provider: InMemoryBucketProvider
) -> None:
    provider.fail_next("create_multipart_upload", failure("denied", status=403))
    error = expect_failure(await bucket.create_multipart_upload("a"))
    assert error.operation is Operation.create_multipart_upload


@pytest.mark.asyncio
async def test_part_results_can_be_partitioned(bucket: R2Bucket) -> None:
    session = await _start(bucket)
    results = [
        await session.upload_part(1, b"aaaa"),
        await session.upload_part(0, b"bad"),
        await session.upload_part(2, b"b"),
    ]
    parts, errors = partition_results(results)
    assert [part.part_number for part in parts] == [1, 2]
    assert len(errors) == 1


def test_part_number_bounds() -> None:
    assert is_valid_part_number(1)
    assert is_valid_part_number(MAX_PART_NUMBER)
    assert not is_valid_part_number(0)
    assert not is_valid_part_number(True)
    assert not is_valid_part_number(1.0)


def test_duplicate_part_numbers_sorted() -> None:
    parts = [R2UploadedPart(n, "e") for n in (3, 1, 3, 2, 1)]
    assert duplicate_part_numbers(parts) == [1, 3]
