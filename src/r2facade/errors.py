"""R2 bucket error ADTs.

Every failure observed by the facade is reported as exactly one of the frozen
dataclasses below, joined in the ``R2BucketError`` union. Each variant carries
the ``Operation`` that failed, the object key where one applies, and a
``message`` property derived only from its fields, so two errors built from the
same fields always render the same text.

Type Safety:
    - All error types are frozen dataclasses (immutable)
    - Literal ``kind`` discriminators enable exhaustive pattern matching
    - ``R2BucketError`` is a closed union; callers match on it with ``case``
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, TypeGuard

from .operation import Operation


# Minimum size of every multipart part except the last one.
MIN_PART_SIZE_BYTES = 5 * 1024 * 1024

# Bounds accepted by the provider for ``list(limit=...)``.
MAX_LIST_LIMIT = 1000


@dataclass(frozen=True)
class R2RateLimitError:
    """Writes to a single key exceeded one per second.

    Attributes:
        operation: Operation that was throttled
        key: Object key being written
        retry_after: Optional retry hint in milliseconds
    """

    operation: Operation
    key: str
    retry_after: int | None = None
    kind: Literal["R2RateLimitError"] = "R2RateLimitError"

    @property
    def message(self) -> str:
        retry_msg = f" Retry after {self.retry_after}ms." if self.retry_after is not None else ""
        return f'R2 rate limit exceeded for key "{self.key}" during {self.operation}.{retry_msg}'


@dataclass(frozen=True)
class R2ConcurrencyError:
    """Bucket or key is locked under concurrent load."""

    operation: Operation
    reason: str
    key: str | None = None
    kind: Literal["R2ConcurrencyError"] = "R2ConcurrencyError"

    @property
    def message(self) -> str:
        key_msg = f' for key "{self.key}"' if self.key else ""
        return f"R2 concurrency limit exceeded{key_msg} during {self.operation}: {self.reason}"


@dataclass(frozen=True)
class R2ObjectTooLargeError:
    """Payload exceeds the object (or part) size ceiling."""

    operation: Operation
    key: str
    size_bytes: int | None = None
    limit: int | None = None
    kind: Literal["R2ObjectTooLargeError"] = "R2ObjectTooLargeError"

    @property
    def message(self) -> str:
        size_msg = f" ({self.size_bytes} bytes)" if self.size_bytes is not None else ""
        limit_msg = f" Maximum size is {self.limit} bytes." if self.limit is not None else ""
        return (
            f'R2 object too large for key "{self.key}"{size_msg} during {self.operation}.'
            f"{limit_msg}"
        )


@dataclass(frozen=True)
class R2ObjectTooSmallError:
    """A multipart part other than the last one is under the minimum size."""

    operation: Operation
    key: str
    size_bytes: int | None = None
    part_number: int | None = None
    kind: Literal["R2ObjectTooSmallError"] = "R2ObjectTooSmallError"

    @property
    def message(self) -> str:
        part_msg = f" (part: {self.part_number})" if self.part_number is not None else ""
        size_msg = f" ({self.size_bytes} bytes)" if self.size_bytes is not None else ""
        return (
            f'R2 object too small for key "{self.key}"{part_msg}{size_msg} during '
            f"{self.operation}. Parts other than the last must be at least "
            f"{MIN_PART_SIZE_BYTES} bytes."
        )


@dataclass(frozen=True)
class R2InvalidKeyError:
    """Key is empty, longer than 1024 bytes, or otherwise malformed."""

    operation: Operation
    key: str
    reason: str
    kind: Literal["R2InvalidKeyError"] = "R2InvalidKeyError"

    @property
    def message(self) -> str:
        return f'Invalid R2 key "{self.key}" during {self.operation}: {self.reason}'


@dataclass(frozen=True)
class R2InvalidRangeError:
    """Requested byte range cannot be satisfied."""

    operation: Operation
    key: str
    reason: str
    kind: Literal["R2InvalidRangeError"] = "R2InvalidRangeError"

    @property
    def message(self) -> str:
        return f'Invalid R2 range for key "{self.key}" during {self.operation}: {self.reason}'


@dataclass(frozen=True)
class R2MetadataError:
    """Combined HTTP and custom metadata exceed 8192 bytes."""

    operation: Operation
    key: str
    reason: str
    size_bytes: int | None = None
    kind: Literal["R2MetadataError"] = "R2MetadataError"

    @property
    def message(self) -> str:
        size_msg = f" ({self.size_bytes} bytes)" if self.size_bytes is not None else ""
        return (
            f'Invalid R2 metadata for key "{self.key}"{size_msg} during '
            f"{self.operation}: {self.reason}"
        )


@dataclass(frozen=True)
class R2PreconditionFailedError:
    """Conditional check did not hold.

    head/get/put never produce this error: a failed precondition there is
    reported as ``Success(None)``.
    """

    operation: Operation
    key: str
    condition: str
    kind: Literal["R2PreconditionFailedError"] = "R2PreconditionFailedError"

    @property
    def message(self) -> str:
        return (
            f'R2 precondition failed for key "{self.key}" during '
            f"{self.operation}: {self.condition}"
        )


@dataclass(frozen=True)
class R2MultipartError:
    """Invalid part number or order, unknown upload id, or assembly failure."""

    operation: Operation
    reason: str
    key: str | None = None
    upload_id: str | None = None
    part_number: int | None = None
    kind: Literal["R2MultipartError"] = "R2MultipartError"

    @property
    def message(self) -> str:
        key_msg = f' for key "{self.key}"' if self.key else ""
        upload_msg = f" (uploadId: {self.upload_id})" if self.upload_id else ""
        part_msg = f" (part: {self.part_number})" if self.part_number is not None else ""
        return (
            f"R2 multipart upload error{key_msg}{upload_msg}{part_msg} during "
            f"{self.operation}: {self.reason}"
        )


@dataclass(frozen=True)
class R2BucketNotFoundError:
    """Target bucket does not exist."""

    operation: Operation
    bucket_name: str | None = None
    kind: Literal["R2BucketNotFoundError"] = "R2BucketNotFoundError"

    @property
    def message(self) -> str:
        name_msg = f' "{self.bucket_name}"' if self.bucket_name else ""
        return f"R2 bucket{name_msg} not found during {self.operation}"


@dataclass(frozen=True)
class R2NotEnabledError:
    """R2 is not provisioned for the account."""

    operation: Operation
    kind: Literal["R2NotEnabledError"] = "R2NotEnabledError"

    @property
    def message(self) -> str:
        return (
            f"R2 not enabled on account during {self.operation}. "
            "Please enable through the Cloudflare Dashboard."
        )


@dataclass(frozen=True)
class R2AuthorizationError:
    """Credentials or permissions were rejected."""

    operation: Operation
    reason: str
    kind: Literal["R2AuthorizationError"] = "R2AuthorizationError"

    @property
    def message(self) -> str:
        return f"R2 authorization failed during {self.operation}: {self.reason}"


@dataclass(frozen=True)
class R2BadDigestError:
    """Client-supplied checksum does not match the uploaded content."""

    operation: Operation
    key: str
    reason: str
    algorithm: str | None = None
    kind: Literal["R2BadDigestError"] = "R2BadDigestError"

    @property
    def message(self) -> str:
        algorithm_msg = f" ({self.algorithm})" if self.algorithm else ""
        return (
            f'R2 checksum mismatch{algorithm_msg} for key "{self.key}" during '
            f"{self.operation}: {self.reason}"
        )


@dataclass(frozen=True)
class R2InvalidMaxKeysError:
    """Listing page size is outside [1, 1000]."""

    operation: Operation
    limit: int | None = None
    kind: Literal["R2InvalidMaxKeysError"] = "R2InvalidMaxKeysError"

    @property
    def message(self) -> str:
        limit_msg = f" {self.limit}" if self.limit is not None else ""
        return (
            f"Invalid R2 list limit{limit_msg} during {self.operation}. "
            f"Limit must be between 1 and {MAX_LIST_LIMIT}."
        )


@dataclass(frozen=True)
class R2InvalidArgumentError:
    """Malformed argument the taxonomy has no narrower variant for."""

    operation: Operation
    reason: str
    key: str | None = None
    kind: Literal["R2InvalidArgumentError"] = "R2InvalidArgumentError"

    @property
    def message(self) -> str:
        key_msg = f' for key "{self.key}"' if self.key else ""
        return f"Invalid R2 argument{key_msg} during {self.operation}: {self.reason}"


@dataclass(frozen=True)
class R2InternalError:
    """Provider-side fault (HTTP 500)."""

    operation: Operation
    reason: str
    key: str | None = None
    kind: Literal["R2InternalError"] = "R2InternalError"

    @property
    def message(self) -> str:
        key_msg = f' for key "{self.key}"' if self.key else ""
        return f"R2 internal error{key_msg} during {self.operation}: {self.reason}"


@dataclass(frozen=True)
class R2NetworkError:
    """Connectivity failure, timeout, or any failure nothing else matched.

    ``cause`` keeps the original failure for diagnostics. Its shape depends on
    the provider, so it takes no part in equality and should not drive control
    flow.
    """

    operation: Operation
    reason: str
    key: str | None = None
    cause: object | None = field(default=None, compare=False)
    kind: Literal["R2NetworkError"] = "R2NetworkError"

    @property
    def message(self) -> str:
        key_msg = f' for key "{self.key}"' if self.key else ""
        return f"R2 network error{key_msg} during {self.operation}: {self.reason}"


# Union type for all bucket errors - enables exhaustive pattern matching
R2BucketError = (
    R2RateLimitError
    | R2ConcurrencyError
    | R2ObjectTooLargeError
    | R2ObjectTooSmallError
    | R2InvalidKeyError
    | R2InvalidRangeError
    | R2MetadataError
    | R2PreconditionFailedError
    | R2MultipartError
    | R2BucketNotFoundError
    | R2NotEnabledError
    | R2AuthorizationError
    | R2BadDigestError
    | R2InvalidMaxKeysError
    | R2InvalidArgumentError
    | R2InternalError
    | R2NetworkError
)

_ERROR_TYPES: tuple[type, ...] = (
    R2RateLimitError,
    R2ConcurrencyError,
    R2ObjectTooLargeError,
    R2ObjectTooSmallError,
    R2InvalidKeyError,
    R2InvalidRangeError,
    R2MetadataError,
    R2PreconditionFailedError,
    R2MultipartError,
    R2BucketNotFoundError,
    R2NotEnabledError,
    R2AuthorizationError,
    R2BadDigestError,
    R2InvalidMaxKeysError,
    R2InvalidArgumentError,
    R2InternalError,
    R2NetworkError,
)


def is_r2_bucket_error(value: object) -> TypeGuard[R2BucketError]:
    """Return True if value is one of the R2BucketError variants."""
    return isinstance(value, _ERROR_TYPES)


def error_key(error: R2BucketError) -> str | None:
    """Object key the error is attributed to, if the variant carries one."""
    match error:
        case (
            R2BucketNotFoundError()
            | R2NotEnabledError()
            | R2AuthorizationError()
            | R2InvalidMaxKeysError()
        ):
            return None
        case _:
            return error.key


def is_retryable(error: R2BucketError) -> bool:
    """Whether a caller may reasonably retry the operation with backoff.

    The facade itself never retries; this only encodes which variants describe
    transient provider admission or transport conditions.
    """
    match error:
        case R2RateLimitError() | R2ConcurrencyError() | R2InternalError() | R2NetworkError():
            return True
        case _:
            return False


__all__ = [
    "MIN_PART_SIZE_BYTES",
    "MAX_LIST_LIMIT",
    "R2RateLimitError",
    "R2ConcurrencyError",
    "R2ObjectTooLargeError",
    "R2ObjectTooSmallError",
    "R2InvalidKeyError",
    "R2InvalidRangeError",
    "R2MetadataError",
    "R2PreconditionFailedError",
    "R2MultipartError",
    "R2BucketNotFoundError",
    "R2NotEnabledError",
    "R2AuthorizationError",
    "R2BadDigestError",
    "R2InvalidMaxKeysError",
    "R2InvalidArgumentError",
    "R2InternalError",
    "R2NetworkError",
    "R2BucketError",
    "is_r2_bucket_error",
    "error_key",
    "is_retryable",
]
