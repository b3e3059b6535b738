"""Multipart upload session.

Lifecycle::

    created/resumed --upload_part*--> complete -> finished object
                                   \\-> abort  -> parts discarded

The session holds only the key and the provider-issued upload id. Which parts
were uploaded is tracked by the provider; using a session after complete or
abort is rejected there and reported as ``R2MultipartError``.
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Sequence

from .adapter import attempt
from .classify import classify
from .errors import R2BucketError, R2MultipartError
from .models import PutValue, R2Object, R2UploadedPart
from .operation import Operation
from .result import Failure, Result

if TYPE_CHECKING:
    from .protocols import MultipartUploadProtocol


MIN_PART_NUMBER = 1
MAX_PART_NUMBER = 10_000


def is_valid_part_number(part_number: object) -> bool:
    """Part numbers are integers in [1, 10000]."""
    return (
        isinstance(part_number, int)
        and not isinstance(part_number, bool)
        and MIN_PART_NUMBER <= part_number <= MAX_PART_NUMBER
    )


def duplicate_part_numbers(parts: Sequence[R2UploadedPart]) -> list[int]:
    """Part numbers that appear more than once, ascending."""
    counts = Counter(part.part_number for part in parts)
    return sorted(number for number, count in counts.items() if count > 1)


class MultipartSession:
    """Handle on one in-progress multipart upload.

    Every method returns a Result; failures are attributed to the session's key
    and upload id.

    Example:
        ```python
        session = (await bucket.create_multipart_upload("video.mp4")).unwrap()
        parts = []
        for number, chunk in enumerate(chunks, start=1):
            match await session.upload_part(number, chunk):
                case Success(part):
                    parts.append(part)
                case Failure(error):
                    await session.abort()
                    raise UploadFailed(error.message)
        finished = await session.complete(parts)
        ```
    """

    def __init__(self, upload: MultipartUploadProtocol, bucket_name: str | None = None) -> None:
        self._upload = upload
        self._key = upload.key
        self._upload_id = upload.upload_id
        self._bucket_name = bucket_name

    @property
    def key(self) -> str:
        return self._key

    @property
    def upload_id(self) -> str:
        return self._upload_id

    def __repr__(self) -> str:
        return f"MultipartSession(key={self._key!r}, upload_id={self._upload_id!r})"

    def _reject(
        self, operation: Operation, reason: str, part_number: int | None = None
    ) -> Failure[R2BucketError]:
        return Failure(
            R2MultipartError(
                operation=operation,
                key=self._key,
                reason=reason,
                upload_id=self._upload_id,
                part_number=part_number,
            )
        )

    def _classify(
        self, exc: Exception, operation: Operation, part_number: int | None = None
    ) -> R2BucketError:
        return classify(
            exc,
            operation,
            self._key,
            upload_id=self._upload_id,
            part_number=part_number,
            bucket_name=self._bucket_name,
        )

    async def upload_part(
        self, part_number: int, value: PutValue
    ) -> Result[R2UploadedPart, R2BucketError]:
        """Upload one part.

        Part size is not checked here: only the provider knows which part ends
        up last, so an undersized part comes back as ``R2ObjectTooSmallError``.

        Args:
            part_number: Integer in [1, 10000]
            value: Part content

        Returns:
            Success(R2UploadedPart) to pass to ``complete``, or Failure
        """
        if not is_valid_part_number(part_number):
            return self._reject(
                Operation.upload_part,
                f"Part number must be an integer between {MIN_PART_NUMBER} and "
                f"{MAX_PART_NUMBER}, got {part_number!r}",
                part_number if isinstance(part_number, int) else None,
            )
        return await attempt(
            lambda: self._upload.upload_part(part_number, value),
            lambda exc: self._classify(exc, Operation.upload_part, part_number),
        )

    async def complete(
        self, uploaded_parts: Sequence[R2UploadedPart]
    ) -> Result[R2Object, R2BucketError]:
        """Assemble the uploaded parts into the final object.

        ``uploaded_parts`` must hold every uploaded part exactly once, in any
        order. Empty and duplicate-bearing lists are rejected without calling
        the provider; omissions are rejected by the provider.
        """
        if len(uploaded_parts) == 0:
            return self._reject(
                Operation.complete_multipart_upload, "At least one uploaded part is required"
            )
        duplicates = duplicate_part_numbers(uploaded_parts)
        if duplicates:
            listed = ", ".join(str(number) for number in duplicates)
            return self._reject(
                Operation.complete_multipart_upload,
                f"Duplicate part numbers: {listed}",
                duplicates[0],
            )
        return await attempt(
            lambda: self._upload.complete(uploaded_parts),
            lambda exc: self._classify(exc, Operation.complete_multipart_upload),
        )

    async def abort(self) -> Result[None, R2BucketError]:
        """Discard all uploaded parts.

        Whether aborting twice succeeds depends on the provider.
        """
        return await attempt(
            lambda: self._upload.abort(),
            lambda exc: self._classify(exc, Operation.abort_multipart_upload),
        )


__all__ = [
    "MAX_PART_NUMBER",
    "MIN_PART_NUMBER",
    "MultipartSession",
    "duplicate_part_numbers",
    "is_valid_part_number",
]
