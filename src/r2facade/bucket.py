"""Result-returning facade over a raw bucket provider.

``R2Bucket`` wraps a ``BucketProviderProtocol`` and makes its outcomes
explicit. Every provider call ends in one of three cases:

- ``Success(value)`` when the provider produced a value;
- ``Success(None)`` for the domain-expected "nothing there" outcomes of
  head/get/put (object not found, precondition not met);
- ``Failure(R2BucketError)`` when the provider raised, classified by
  ``classify``.

The facade never retries, queues or throttles: rate-limit and concurrency
errors are reported so the caller can decide.

Example:
    ```python
    bucket = R2Bucket(provider, bucket_name="assets")

    match await bucket.get("logo.png"):
        case Success(None):
            return not_found()
        case Success(obj):
            return serve(obj)
        case Failure(R2RateLimitError(key=key)):
            logger.info(f"Throttled on {key}")
        case Failure(error):
            logger.error(error.message)
    ```
"""

from __future__ import annotations

from typing import Sequence

from .adapter import attempt, attempt_sync
from .classify import classify
from .errors import R2BucketError
from .models import (
    GetOptions,
    ListOptions,
    MultipartOptions,
    PutOptions,
    PutValue,
    R2Object,
    R2ObjectBody,
    R2Objects,
)
from .multipart import MultipartSession
from .operation import Operation
from .protocols import BucketProviderProtocol
from .result import Result


def first_key(keys: str | Sequence[str]) -> str | None:
    """Key a delete failure is attributed to: the key, or the first of many."""
    if isinstance(keys, str):
        return keys
    return keys[0] if len(keys) > 0 else None


class R2Bucket:
    """Typed, Result-returning view of a bucket provider.

    Args:
        provider: Raw provider implementing ``BucketProviderProtocol``
        bucket_name: Bucket name, used only to attribute bucket-not-found errors
    """

    def __init__(self, provider: BucketProviderProtocol, bucket_name: str | None = None) -> None:
        self._provider = provider
        self.bucket_name = bucket_name

    async def head(self, key: str) -> Result[R2Object | None, R2BucketError]:
        """Fetch object metadata; ``Success(None)`` if the object does not exist."""
        return await attempt(
            lambda: self._provider.head(key),
            lambda exc: classify(exc, Operation.head, key, bucket_name=self.bucket_name),
        )

    async def get(
        self, key: str, options: GetOptions | None = None
    ) -> Result[R2ObjectBody | R2Object | None, R2BucketError]:
        """Fetch an object.

        Returns:
            Success(R2ObjectBody) with the content,
            Success(R2Object) when ``options.only_if`` did not hold and the
            provider reports metadata without a body,
            Success(None) when the object does not exist or the precondition
            failed without metadata,
            Failure(R2BucketError) for every failure.
        """
        return await attempt(
            lambda: self._provider.get(key, options),
            lambda exc: classify(exc, Operation.get, key, bucket_name=self.bucket_name),
        )

    async def put(
        self, key: str, value: PutValue, options: PutOptions | None = None
    ) -> Result[R2Object | None, R2BucketError]:
        """Store an object; ``Success(None)`` if ``options.only_if`` did not hold."""
        algorithms = options.checksum_algorithms() if options is not None else ()
        algorithm = ",".join(algorithms) if algorithms else None
        return await attempt(
            lambda: self._provider.put(key, value, options),
            lambda exc: classify(
                exc, Operation.put, key, algorithm=algorithm, bucket_name=self.bucket_name
            ),
        )

    async def delete(self, keys: str | Sequence[str]) -> Result[None, R2BucketError]:
        """Delete one key or a batch of keys.

        A batch failure is attributed to the first key only: the provider
        reports one failure for the whole batch.
        """
        attributed = first_key(keys)
        return await attempt(
            lambda: self._provider.delete(keys),
            lambda exc: classify(
                exc, Operation.delete, attributed, bucket_name=self.bucket_name
            ),
        )

    async def list(self, options: ListOptions | None = None) -> Result[R2Objects, R2BucketError]:
        """List one page of objects."""
        limit = options.limit if options is not None else None
        return await attempt(
            lambda: self._provider.list(options),
            lambda exc: classify(exc, Operation.list, limit=limit, bucket_name=self.bucket_name),
        )

    async def create_multipart_upload(
        self, key: str, options: MultipartOptions | None = None
    ) -> Result[MultipartSession, R2BucketError]:
        """Start a multipart upload and return its session."""
        created = await attempt(
            lambda: self._provider.create_multipart_upload(key, options),
            lambda exc: classify(
                exc, Operation.create_multipart_upload, key, bucket_name=self.bucket_name
            ),
        )
        return created.map(lambda upload: MultipartSession(upload, bucket_name=self.bucket_name))

    def resume_multipart_upload(
        self, key: str, upload_id: str
    ) -> Result[MultipartSession, R2BucketError]:
        """Reattach to an upload started earlier.

        No request is made; an upload id that is unknown or belongs to another
        key is reported by the first session call as ``R2MultipartError``.
        """
        resumed = attempt_sync(
            lambda: self._provider.resume_multipart_upload(key, upload_id),
            lambda exc: classify(
                exc,
                Operation.resume_multipart_upload,
                key,
                upload_id=upload_id,
                bucket_name=self.bucket_name,
            ),
        )
        return resumed.map(lambda upload: MultipartSession(upload, bucket_name=self.bucket_name))


__all__ = ["R2Bucket", "first_key"]
