"""Classification of raw provider failures into R2BucketError variants.

``classify`` is a pure, total function: any object the provider raises, plus
the operation and key being attempted, maps to exactly one error variant. The
decision runs in fixed priority order and the first match wins:

1. Provider error code (numeric, R2-specific), looked up in ``R2ErrorCode``.
2. HTTP status: 429, 412, 416, 401/403 and 500 map directly; 400 is refined
   by message keywords and otherwise becomes ``R2InvalidArgumentError``.
3. Message keywords, scanned case-insensitively in ``KEYWORD_RULES`` order.
4. ``R2NetworkError`` carrying the raw failure as its cause.

A ``TransportFailure`` carries neither code nor status and goes straight to
rule 4: its message is never scanned for keywords, and the wrapped exception
becomes the cause.

Codes are more specific than statuses and message text is the least stable
signal, so a later rule never overrides an earlier match.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable

from .errors import (
    R2AuthorizationError,
    R2BadDigestError,
    R2BucketError,
    R2BucketNotFoundError,
    R2ConcurrencyError,
    R2InternalError,
    R2InvalidArgumentError,
    R2InvalidKeyError,
    R2InvalidMaxKeysError,
    R2InvalidRangeError,
    R2MetadataError,
    R2MultipartError,
    R2NetworkError,
    R2NotEnabledError,
    R2ObjectTooLargeError,
    R2ObjectTooSmallError,
    R2PreconditionFailedError,
    R2RateLimitError,
)
from .operation import Operation


UNKNOWN_FAILURE_MESSAGE = "Unknown error"


class R2ErrorCode(IntEnum):
    """Numeric error codes reported by R2 alongside the HTTP status."""

    INVALID_ARGUMENT = 10005
    NO_SUCH_BUCKET = 10006
    ENTITY_TOO_SMALL = 10009
    ENTITY_TOO_LARGE = 10011
    METADATA_TOO_LARGE = 10012
    INVALID_OBJECT_NAME = 10020
    INVALID_MAX_KEYS = 10022
    NO_SUCH_UPLOAD = 10024
    INVALID_PART = 10025
    PRECONDITION_FAILED = 10031
    BAD_DIGEST = 10037
    INVALID_RANGE = 10039
    NOT_ENTITLED = 10042
    BAD_UPLOAD = 10048
    TOO_MANY_REQUESTS = 10058


@dataclass(frozen=True)
class ProviderFailure:
    """Normalised view of an opaque provider failure.

    Attributes:
        status: HTTP status code, if the failure carried an integer one
        code: Provider error code, if the failure carried an integer one
        message: Failure message, never empty
        retry_after: Retry hint in milliseconds, if the provider sent one
    """

    status: int | None
    code: int | None
    message: str
    retry_after: int | None = None

    @classmethod
    def from_raw(cls, raw: object) -> ProviderFailure:
        """Read ``status``, ``code`` and ``message`` from any object.

        Exceptions and plain objects are read through attributes, mappings
        through keys. Fields that are missing or not integers are dropped.
        """
        return cls(
            status=_int_field(raw, "status"),
            code=_int_field(raw, "code"),
            message=_message_of(raw),
            retry_after=_int_field(raw, "retry_after", "retryAfter"),
        )


class TransportFailure(Exception):
    """Connectivity failure raised by a provider: no response was received.

    Attributes:
        message: Description of the failure, free of request details
        cause: The exception raised by the transport
    """

    def __init__(self, message: str, *, cause: BaseException) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


def _lookup(raw: object, name: str) -> object:
    try:
        if isinstance(raw, Mapping):
            return raw.get(name)
        return getattr(raw, name, None)
    except Exception:
        return None


def _int_field(raw: object, *names: str) -> int | None:
    for name in names:
        value = _lookup(raw, name)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _safe_str(raw: object) -> str:
    try:
        return str(raw)
    except Exception:
        return type(raw).__name__


def _message_of(raw: object) -> str:
    if raw is None:
        return UNKNOWN_FAILURE_MESSAGE
    message = _lookup(raw, "message")
    if isinstance(message, str) and message:
        return message
    if isinstance(raw, Mapping):
        return UNKNOWN_FAILURE_MESSAGE
    text = _safe_str(raw)
    return text if text else type(raw).__name__


@dataclass(frozen=True)
class _Attempt:
    """What was being attempted when the failure happened."""

    operation: Operation
    key: str | None
    message: str
    raw: object
    retry_after: int | None = None
    upload_id: str | None = None
    part_number: int | None = None
    limit: int | None = None
    algorithm: str | None = None
    bucket_name: str | None = None

    @property
    def required_key(self) -> str:
        return self.key if self.key is not None else ""


# --------------------------------------------------------------------------- #
# Variant builders                                                            #
# --------------------------------------------------------------------------- #


def _rate_limit(a: _Attempt) -> R2BucketError:
    return R2RateLimitError(operation=a.operation, key=a.required_key, retry_after=a.retry_after)


def _concurrency(a: _Attempt) -> R2BucketError:
    return R2ConcurrencyError(operation=a.operation, key=a.key, reason=a.message)


def _too_large(a: _Attempt) -> R2BucketError:
    return R2ObjectTooLargeError(operation=a.operation, key=a.required_key)


def _too_small(a: _Attempt) -> R2BucketError:
    return R2ObjectTooSmallError(
        operation=a.operation, key=a.required_key, part_number=a.part_number
    )


def _invalid_key(a: _Attempt) -> R2BucketError:
    return R2InvalidKeyError(operation=a.operation, key=a.required_key, reason=a.message)


def _invalid_range(a: _Attempt) -> R2BucketError:
    return R2InvalidRangeError(operation=a.operation, key=a.required_key, reason=a.message)


def _metadata(a: _Attempt) -> R2BucketError:
    return R2MetadataError(operation=a.operation, key=a.required_key, reason=a.message)


def _precondition(a: _Attempt) -> R2BucketError:
    return R2PreconditionFailedError(
        operation=a.operation, key=a.required_key, condition=a.message
    )


def _multipart(a: _Attempt) -> R2BucketError:
    return R2MultipartError(
        operation=a.operation,
        key=a.key,
        reason=a.message,
        upload_id=a.upload_id,
        part_number=a.part_number,
    )


def _bucket_not_found(a: _Attempt) -> R2BucketError:
    return R2BucketNotFoundError(operation=a.operation, bucket_name=a.bucket_name)


def _not_enabled(a: _Attempt) -> R2BucketError:
    return R2NotEnabledError(operation=a.operation)


def _authorization(a: _Attempt) -> R2BucketError:
    return R2AuthorizationError(operation=a.operation, reason=a.message)


def _bad_digest(a: _Attempt) -> R2BucketError:
    return R2BadDigestError(
        operation=a.operation, key=a.required_key, reason=a.message, algorithm=a.algorithm
    )


def _invalid_max_keys(a: _Attempt) -> R2BucketError:
    return R2InvalidMaxKeysError(operation=a.operation, limit=a.limit)


def _invalid_argument(a: _Attempt) -> R2BucketError:
    return R2InvalidArgumentError(operation=a.operation, key=a.key, reason=a.message)


def _internal(a: _Attempt) -> R2BucketError:
    return R2InternalError(operation=a.operation, key=a.key, reason=a.message)


def _network(a: _Attempt) -> R2BucketError:
    return R2NetworkError(operation=a.operation, key=a.key, reason=a.message, cause=a.raw)


_Builder = Callable[[_Attempt], R2BucketError]


# --------------------------------------------------------------------------- #
# Rule tables                                                                 #
# --------------------------------------------------------------------------- #

CODE_RULES: dict[R2ErrorCode, _Builder] = {
    R2ErrorCode.TOO_MANY_REQUESTS: _rate_limit,
    R2ErrorCode.ENTITY_TOO_LARGE: _too_large,
    R2ErrorCode.ENTITY_TOO_SMALL: _too_small,
    R2ErrorCode.METADATA_TOO_LARGE: _metadata,
    R2ErrorCode.INVALID_OBJECT_NAME: _invalid_key,
    R2ErrorCode.INVALID_MAX_KEYS: _invalid_max_keys,
    R2ErrorCode.NO_SUCH_UPLOAD: _multipart,
    R2ErrorCode.INVALID_PART: _multipart,
    R2ErrorCode.INVALID_ARGUMENT: _invalid_argument,
    R2ErrorCode.PRECONDITION_FAILED: _precondition,
    R2ErrorCode.BAD_DIGEST: _bad_digest,
    R2ErrorCode.INVALID_RANGE: _invalid_range,
    R2ErrorCode.BAD_UPLOAD: _multipart,
    R2ErrorCode.NO_SUCH_BUCKET: _bucket_not_found,
    R2ErrorCode.NOT_ENTITLED: _not_enabled,
}

STATUS_RULES: dict[int, _Builder] = {
    429: _rate_limit,
    412: _precondition,
    416: _invalid_range,
    401: _authorization,
    403: _authorization,
    500: _internal,
}


@dataclass(frozen=True)
class KeywordRule:
    """Message keyword rule.

    Matches when the lowercased message contains every ``all_of`` keyword and
    at least one ``any_of`` keyword.
    """

    name: str
    any_of: tuple[str, ...]
    build: _Builder
    all_of: tuple[str, ...] = ()

    def matches(self, lowered: str) -> bool:
        return all(word in lowered for word in self.all_of) and any(
            word in lowered for word in self.any_of
        )


# Order matters: messages often mention several topics ("invalid key for
# multipart upload") and the first listed rule wins.
KEYWORD_RULES: tuple[KeywordRule, ...] = (
    KeywordRule("invalid_key", all_of=("key",), any_of=("empty", "invalid"), build=_invalid_key),
    KeywordRule("metadata", any_of=("metadata",), build=_metadata),
    KeywordRule(
        "multipart",
        any_of=("multipart", "part", "upload", "nosuchupload", "invalidpart"),
        build=_multipart,
    ),
    KeywordRule("bad_digest", any_of=("digest", "checksum"), build=_bad_digest),
    KeywordRule("too_large", any_of=("too large", "exceeds"), build=_too_large),
    KeywordRule("too_small", any_of=("too small",), build=_too_small),
    KeywordRule(
        "concurrency", any_of=("toomuchconcurrency", "concurrency"), build=_concurrency
    ),
    KeywordRule("bucket_not_found", any_of=("nosuchbucket",), build=_bucket_not_found),
    KeywordRule("not_enabled", any_of=("please enable", "not entitled"), build=_not_enabled),
)


def _by_code(code: int | None, attempt: _Attempt) -> R2BucketError | None:
    if code is None:
        return None
    try:
        known = R2ErrorCode(code)
    except ValueError:
        return None
    return CODE_RULES[known](attempt)


def _by_keyword(attempt: _Attempt) -> R2BucketError | None:
    lowered = attempt.message.lower()
    rule = next((rule for rule in KEYWORD_RULES if rule.matches(lowered)), None)
    return rule.build(attempt) if rule is not None else None


def classify(
    raw: object,
    operation: Operation | str,
    key: str | None = None,
    *,
    upload_id: str | None = None,
    part_number: int | None = None,
    limit: int | None = None,
    algorithm: str | None = None,
    bucket_name: str | None = None,
) -> R2BucketError:
    """Classify a raw provider failure into exactly one R2BucketError.

    Args:
        raw: Whatever the provider raised or rejected with
        operation: Operation being attempted
        key: Object key being attempted, if any
        upload_id: Multipart upload id, attached to multipart errors
        part_number: Part number, attached to multipart and too-small errors
        limit: Requested listing limit, attached to invalid-max-keys errors
        algorithm: Checksum algorithm supplied, attached to bad-digest errors
        bucket_name: Bucket name, attached to bucket-not-found errors

    Returns:
        The first variant matched by code, status, message keyword, or the
        ``R2NetworkError`` fallback.

    Example:
        >>> classify({"code": 10020, "message": "Invalid key"}, Operation.put, "")
        R2InvalidKeyError(operation=<Operation.put: 'put'>, key='', reason='Invalid key', ...)
    """
    failure = ProviderFailure.from_raw(raw)
    attempt = _Attempt(
        operation=Operation(operation),
        key=key,
        message=failure.message,
        raw=raw,
        retry_after=failure.retry_after,
        upload_id=upload_id,
        part_number=part_number,
        limit=limit,
        algorithm=algorithm,
        bucket_name=bucket_name,
    )

    by_code = _by_code(failure.code, attempt)
    if by_code is not None:
        return by_code

    match failure.status:
        case int(status) if status in STATUS_RULES:
            return STATUS_RULES[status](attempt)
        case 400:
            by_keyword = _by_keyword(attempt)
            return by_keyword if by_keyword is not None else _invalid_argument(attempt)
        case _ if isinstance(raw, TransportFailure):
            return R2NetworkError(
                operation=attempt.operation, key=key, reason=raw.message, cause=raw.cause
            )
        case _:
            by_keyword = _by_keyword(attempt)
            return by_keyword if by_keyword is not None else _network(attempt)


__all__ = [
    "CODE_RULES",
    "KEYWORD_RULES",
    "KeywordRule",
    "ProviderFailure",
    "R2ErrorCode",
    "STATUS_RULES",
    "TransportFailure",
    "UNKNOWN_FAILURE_MESSAGE",
    "classify",
]
