"""
Typed, Result-returning facade over Cloudflare R2 object storage.

Every bucket operation returns ``Success`` or ``Failure``; raw provider
failures are classified into the ``R2BucketError`` variants and never
raised. The provider may be the aioboto3-backed ``S3BucketProvider`` (see
``open_bucket``) or any object implementing ``BucketProviderProtocol``.
"""

from __future__ import annotations

from .bucket import R2Bucket
from .classify import ProviderFailure, R2ErrorCode, TransportFailure, classify
from .config import R2Config
from .env import CloudflareEnv, is_kv_namespace, make_env
from .errors import (
    MAX_LIST_LIMIT,
    MIN_PART_SIZE_BYTES,
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
    error_key,
    is_r2_bucket_error,
    is_retryable,
)
from .kv import KVListResult, KVNamespace, KVNamespaceError
from .models import (
    GetOptions,
    ListOptions,
    MultipartOptions,
    PutOptions,
    R2Checksums,
    R2Conditional,
    R2HTTPMetadata,
    R2Object,
    R2ObjectBody,
    R2Objects,
    R2Range,
    R2UploadedPart,
)
from .multipart import MultipartSession
from .operation import Operation
from .protocols import BucketProviderProtocol, KVNamespaceProtocol, MultipartUploadProtocol
from .result import Failure, Result, Success
from .s3_provider import R2Connection, S3BucketProvider, S3ProviderFailure, open_bucket


__all__ = [
    # Result
    "Failure",
    "Result",
    "Success",
    # Facade
    "MultipartSession",
    "Operation",
    "R2Bucket",
    "classify",
    "ProviderFailure",
    "R2ErrorCode",
    "TransportFailure",
    # Errors
    "MAX_LIST_LIMIT",
    "MIN_PART_SIZE_BYTES",
    "R2AuthorizationError",
    "R2BadDigestError",
    "R2BucketError",
    "R2BucketNotFoundError",
    "R2ConcurrencyError",
    "R2InternalError",
    "R2InvalidArgumentError",
    "R2InvalidKeyError",
    "R2InvalidMaxKeysError",
    "R2InvalidRangeError",
    "R2MetadataError",
    "R2MultipartError",
    "R2NetworkError",
    "R2NotEnabledError",
    "R2ObjectTooLargeError",
    "R2ObjectTooSmallError",
    "R2PreconditionFailedError",
    "R2RateLimitError",
    "error_key",
    "is_r2_bucket_error",
    "is_retryable",
    # Models
    "GetOptions",
    "ListOptions",
    "MultipartOptions",
    "PutOptions",
    "R2Checksums",
    "R2Conditional",
    "R2HTTPMetadata",
    "R2Object",
    "R2ObjectBody",
    "R2Objects",
    "R2Range",
    "R2UploadedPart",
    # Providers
    "BucketProviderProtocol",
    "MultipartUploadProtocol",
    "R2Connection",
    "R2Config",
    "S3BucketProvider",
    "S3ProviderFailure",
    "open_bucket",
    # Key-value
    "CloudflareEnv",
    "KVListResult",
    "KVNamespace",
    "KVNamespaceError",
    "KVNamespaceProtocol",
    "is_kv_namespace",
    "make_env",
]
