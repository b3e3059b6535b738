"""Bucket provider over R2's S3-compatible API, using aioboto3.

``S3BucketProvider`` follows the provider convention of ``protocols``: it
returns ``None`` for objects that do not exist and for preconditions that
do not hold, and raises otherwise. botocore ``ClientError``s are translated
into ``S3ProviderFailure`` carrying the HTTP status and the R2 numeric error
code, so ``classify`` can recognise them by code. Transport errors
(``BotoCoreError``) become ``TransportFailure``: botocore puts the request
URL, with its key and upload id, into the message, and the facade reports
them as ``R2NetworkError`` without reading it.

Example:
    ```python
    config = R2Config.from_env("assets").unwrap()
    async with open_bucket(config) as bucket:
        match await bucket.head("logo.png"):
            case Success(None):
                print("missing")
            case Success(obj):
                print(obj.size)
            case Failure(error):
                print(error.message)
    ```
"""

from __future__ import annotations

import base64
import hashlib
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from types import TracebackType
from typing import Sequence

import aioboto3
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    HTTPClientError,
    ReadTimeoutError,
)
from botocore.exceptions import ConnectionError as BotocoreConnectionError

from .bucket import R2Bucket
from .classify import R2ErrorCode, TransportFailure
from .config import R2Config
from .errors import MAX_LIST_LIMIT
from .models import (
    GetOptions,
    ListOptions,
    MultipartOptions,
    PutOptions,
    PutValue,
    R2Checksums,
    R2Conditional,
    R2HTTPMetadata,
    R2Object,
    R2ObjectBody,
    R2Objects,
    R2Range,
    R2UploadedPart,
    value_to_bytes,
)
from .protocols import S3ClientProtocol, StreamingBodyProtocol


logger = logging.getLogger(__name__)

DELETE_BATCH_SIZE = 1000

# S3 error code names mapped to the numeric codes R2 reports natively.
S3_ERROR_CODES: dict[str, R2ErrorCode] = {
    "InvalidArgument": R2ErrorCode.INVALID_ARGUMENT,
    "NoSuchBucket": R2ErrorCode.NO_SUCH_BUCKET,
    "EntityTooSmall": R2ErrorCode.ENTITY_TOO_SMALL,
    "EntityTooLarge": R2ErrorCode.ENTITY_TOO_LARGE,
    "MetadataTooLarge": R2ErrorCode.METADATA_TOO_LARGE,
    "InvalidObjectName": R2ErrorCode.INVALID_OBJECT_NAME,
    "KeyTooLongError": R2ErrorCode.INVALID_OBJECT_NAME,
    "InvalidMaxKeys": R2ErrorCode.INVALID_MAX_KEYS,
    "NoSuchUpload": R2ErrorCode.NO_SUCH_UPLOAD,
    "InvalidPart": R2ErrorCode.INVALID_PART,
    "InvalidPartOrder": R2ErrorCode.INVALID_PART,
    "PreconditionFailed": R2ErrorCode.PRECONDITION_FAILED,
    "BadDigest": R2ErrorCode.BAD_DIGEST,
    "InvalidDigest": R2ErrorCode.BAD_DIGEST,
    "InvalidRange": R2ErrorCode.INVALID_RANGE,
    "NotEntitled": R2ErrorCode.NOT_ENTITLED,
    "BadUpload": R2ErrorCode.BAD_UPLOAD,
    "TooManyRequests": R2ErrorCode.TOO_MANY_REQUESTS,
    "SlowDown": R2ErrorCode.TOO_MANY_REQUESTS,
}

# Statuses for per-key errors reported in a delete_objects response body.
S3_ERROR_STATUSES: dict[str, int] = {
    "AccessDenied": 403,
    "InternalError": 500,
    "SlowDown": 503,
}

NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "404"})
CONDITION_NOT_MET_CODES = frozenset({"PreconditionFailed", "412", "NotModified", "304"})


class S3ProviderFailure(Exception):
    """A failed S3 call, with the fields ``classify`` reads.

    Attributes:
        status: HTTP status of the response, if any
        code: R2 numeric error code, if the S3 error name is a known one
        message: Error message from the response
        error_name: S3 error code name as returned (e.g. ``"NoSuchBucket"``)
        retry_after: ``Retry-After`` hint in milliseconds, if sent
    """

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        code: int | None = None,
        error_name: str | None = None,
        retry_after: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.error_name = error_name
        self.retry_after = retry_after

    @classmethod
    def from_client_error(cls, error: ClientError) -> S3ProviderFailure:
        details = error.response.get("Error", {})
        metadata = error.response.get("ResponseMetadata", {})
        name = str(details.get("Code", ""))
        message = str(details.get("Message") or name or "Unknown error")
        status = metadata.get("HTTPStatusCode")
        headers = metadata.get("HTTPHeaders", {})
        code = S3_ERROR_CODES.get(name)
        return cls(
            message,
            status=status if isinstance(status, int) else None,
            code=int(code) if code is not None else None,
            error_name=name or None,
            retry_after=_retry_after_ms(headers.get("retry-after")),
        )

    def __repr__(self) -> str:
        return (
            f"S3ProviderFailure(status={self.status!r}, code={self.code!r}, "
            f"error_name={self.error_name!r}, message={self.message!r})"
        )


def _retry_after_ms(value: object) -> int | None:
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip()) * 1000
    return None


def transport_failure(error: BotoCoreError) -> TransportFailure:
    """Wrap a botocore error that came without an S3 error response."""
    name = type(error).__name__
    if isinstance(error, (ConnectTimeoutError, ReadTimeoutError)):
        return TransportFailure(f"Request to the storage endpoint timed out ({name})", cause=error)
    if isinstance(error, (BotocoreConnectionError, HTTPClientError)):
        return TransportFailure(f"Connection to the storage endpoint failed ({name})", cause=error)
    return TransportFailure(name, cause=error)


def _error_name(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


# ---------------------------------------------------------------------------
# Response narrowing
# ---------------------------------------------------------------------------


def _field(response: object, name: str) -> object:
    return response.get(name) if isinstance(response, Mapping) else None


def _str(response: object, name: str) -> str | None:
    value = _field(response, name)
    return value if isinstance(value, str) else None


def _int(response: object, name: str) -> int | None:
    value = _field(response, name)
    return value if isinstance(value, int) and not isinstance(value, bool) else None


def _datetime(response: object, name: str) -> datetime | None:
    value = _field(response, name)
    return value if isinstance(value, datetime) else None


def _entries(response: object, name: str) -> list[Mapping[str, object]]:
    value = _field(response, name)
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, Mapping)]


def _strip_etag(etag: str | None) -> str:
    return (etag or "").strip('"')


def _b64_digest(response: object, name: str) -> bytes | None:
    value = _str(response, name)
    if value is None:
        return None
    try:
        return base64.b64decode(value, validate=True)
    except ValueError:
        return None


def _checksums(response: object, etag: str) -> R2Checksums:
    # A plain (non-multipart) ETag is the hex MD5 of the content.
    md5: bytes | None = None
    if len(etag) == 32:
        try:
            md5 = bytes.fromhex(etag)
        except ValueError:
            md5 = None
    return R2Checksums(
        md5=md5,
        sha1=_b64_digest(response, "ChecksumSHA1"),
        sha256=_b64_digest(response, "ChecksumSHA256"),
    )


def _http_metadata(response: object) -> R2HTTPMetadata:
    return R2HTTPMetadata(
        content_type=_str(response, "ContentType"),
        content_language=_str(response, "ContentLanguage"),
        content_disposition=_str(response, "ContentDisposition"),
        content_encoding=_str(response, "ContentEncoding"),
        cache_control=_str(response, "CacheControl"),
        cache_expiry=_datetime(response, "Expires"),
    )


def _custom_metadata(response: object) -> dict[str, str]:
    value = _field(response, "Metadata")
    if not isinstance(value, Mapping):
        return {}
    return {str(name): str(item) for name, item in value.items()}


def _total_size(response: object) -> int:
    """Full object size, also for ranged reads (``Content-Range: bytes a-b/total``)."""
    content_range = _str(response, "ContentRange")
    if content_range is not None and "/" in content_range:
        total = content_range.rsplit("/", 1)[1]
        if total.isdigit():
            return int(total)
    return _int(response, "ContentLength") or 0


def _object_from_response(
    key: str,
    response: object,
    object_range: R2Range | None = None,
    body: bytes | None = None,
) -> R2Object:
    """Build object metadata from a response; with ``body``, an ``R2ObjectBody``."""
    etag = _strip_etag(_str(response, "ETag"))
    obj = R2Object(
        key=key,
        version=_str(response, "VersionId") or etag,
        size=_total_size(response),
        etag=etag,
        http_etag=f'"{etag}"',
        uploaded=_datetime(response, "LastModified") or datetime.now(timezone.utc),
        checksums=_checksums(response, etag),
        http_metadata=_http_metadata(response),
        custom_metadata=_custom_metadata(response),
        range=object_range,
    )
    if body is None:
        return obj
    return R2ObjectBody(
        key=obj.key,
        version=obj.version,
        size=obj.size,
        etag=obj.etag,
        http_etag=obj.http_etag,
        uploaded=obj.uploaded,
        checksums=obj.checksums,
        http_metadata=obj.http_metadata,
        custom_metadata=obj.custom_metadata,
        range=obj.range,
        body=body,
    )


# ---------------------------------------------------------------------------
# Request building
# ---------------------------------------------------------------------------


def range_header(object_range: R2Range) -> str:
    """Render an ``R2Range`` as an HTTP ``Range`` header value."""
    match object_range:
        case R2Range(suffix=int(suffix)) if suffix > 0:
            return f"bytes=-{suffix}"
        case R2Range(offset=offset, length=int(length)) if length > 0 and (offset or 0) >= 0:
            start = offset or 0
            return f"bytes={start}-{start + length - 1}"
        case R2Range(offset=int(offset), length=None, suffix=None) if offset >= 0:
            return f"bytes={offset}-"
        case _:
            raise S3ProviderFailure(
                f"Invalid range: {object_range!r}",
                status=416,
                code=int(R2ErrorCode.INVALID_RANGE),
                error_name="InvalidRange",
            )


def _conditional_params(only_if: R2Conditional | None, *, for_write: bool) -> dict[str, object]:
    if only_if is None:
        return {}
    if for_write and (only_if.uploaded_before is not None or only_if.uploaded_after is not None):
        raise S3ProviderFailure(
            "Upload-time preconditions are not supported for writes over the S3 API",
            status=400,
            code=int(R2ErrorCode.INVALID_ARGUMENT),
            error_name="InvalidArgument",
        )
    params: dict[str, object] = {}
    if only_if.etag_matches is not None:
        params["IfMatch"] = only_if.etag_matches
    if only_if.etag_does_not_match is not None:
        params["IfNoneMatch"] = only_if.etag_does_not_match
    if only_if.uploaded_before is not None:
        params["IfUnmodifiedSince"] = only_if.uploaded_before
    if only_if.uploaded_after is not None:
        params["IfModifiedSince"] = only_if.uploaded_after
    return params


def _http_metadata_params(metadata: R2HTTPMetadata | None) -> dict[str, object]:
    if metadata is None:
        return {}
    candidates: dict[str, object | None] = {
        "ContentType": metadata.content_type,
        "ContentLanguage": metadata.content_language,
        "ContentDisposition": metadata.content_disposition,
        "ContentEncoding": metadata.content_encoding,
        "CacheControl": metadata.cache_control,
        "Expires": metadata.cache_expiry,
    }
    return {name: value for name, value in candidates.items() if value is not None}


def _metadata_params(
    http_metadata: R2HTTPMetadata | None, custom_metadata: Mapping[str, str] | None
) -> dict[str, object]:
    params = _http_metadata_params(http_metadata)
    if custom_metadata:
        params["Metadata"] = dict(custom_metadata)
    return params


def _digest(algorithm: str, value: bytes | str) -> bytes:
    if isinstance(value, bytes):
        return value
    try:
        return bytes.fromhex(value)
    except ValueError:
        raise S3ProviderFailure(
            f"The {algorithm} checksum is not valid hex",
            status=400,
            code=int(R2ErrorCode.BAD_DIGEST),
            error_name="InvalidDigest",
        ) from None


def checksum_params(options: PutOptions, body: bytes) -> tuple[dict[str, object], R2Checksums]:
    """Request parameters for the supplied checksums.

    MD5, SHA-1 and SHA-256 are sent for the server to verify. The S3 API has
    no SHA-384/SHA-512 headers, so those are verified here before sending.
    """
    md5 = _digest("md5", options.md5) if options.md5 is not None else None
    sha1 = _digest("sha1", options.sha1) if options.sha1 is not None else None
    sha256 = _digest("sha256", options.sha256) if options.sha256 is not None else None
    sha384 = _digest("sha384", options.sha384) if options.sha384 is not None else None
    sha512 = _digest("sha512", options.sha512) if options.sha512 is not None else None

    for algorithm, expected in (("sha384", sha384), ("sha512", sha512)):
        if expected is not None and hashlib.new(algorithm, body).digest() != expected:
            raise S3ProviderFailure(
                f"The {algorithm} checksum you specified did not match what we received.",
                status=400,
                code=int(R2ErrorCode.BAD_DIGEST),
                error_name="BadDigest",
            )

    params: dict[str, object] = {}
    if md5 is not None:
        params["ContentMD5"] = base64.b64encode(md5).decode("ascii")
    if sha1 is not None:
        params["ChecksumSHA1"] = base64.b64encode(sha1).decode("ascii")
    if sha256 is not None:
        params["ChecksumSHA256"] = base64.b64encode(sha256).decode("ascii")
    return params, R2Checksums(md5=md5, sha1=sha1, sha256=sha256, sha384=sha384, sha512=sha512)


def _validate_limit(limit: int | None) -> None:
    if limit is not None and not 1 <= limit <= MAX_LIST_LIMIT:
        raise S3ProviderFailure(
            f"MaxKeys params must be positive integer <= {MAX_LIST_LIMIT}.",
            status=400,
            code=int(R2ErrorCode.INVALID_MAX_KEYS),
            error_name="InvalidMaxKeys",
        )


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


class S3MultipartUpload:
    """Provider handle on one multipart upload, addressed by key and upload id."""

    def __init__(self, client: S3ClientProtocol, bucket_name: str, key: str, upload_id: str):
        self._client = client
        self._bucket_name = bucket_name
        self._key = key
        self._upload_id = upload_id

    @property
    def key(self) -> str:
        return self._key

    @property
    def upload_id(self) -> str:
        return self._upload_id

    def _params(self) -> dict[str, object]:
        return {"Bucket": self._bucket_name, "Key": self._key, "UploadId": self._upload_id}

    async def upload_part(self, part_number: int, value: PutValue) -> R2UploadedPart:
        try:
            response = await self._client.upload_part(
                **self._params(), PartNumber=part_number, Body=value_to_bytes(value)
            )
        except ClientError as e:
            raise S3ProviderFailure.from_client_error(e) from e
        except BotoCoreError as e:
            raise transport_failure(e) from e
        return R2UploadedPart(part_number=part_number, etag=_strip_etag(_str(response, "ETag")))

    async def uploaded_part_sizes(self) -> dict[int, int]:
        """Part number to size for every part the provider holds, across all pages."""
        sizes: dict[int, int] = {}
        marker: int | None = None
        while True:
            params = self._params()
            if marker is not None:
                params["PartNumberMarker"] = marker
            try:
                response = await self._client.list_parts(**params)
            except ClientError as e:
                raise S3ProviderFailure.from_client_error(e) from e
            except BotoCoreError as e:
                raise transport_failure(e) from e
            for part in _entries(response, "Parts"):
                number = _int(part, "PartNumber")
                if number is not None:
                    sizes[number] = _int(part, "Size") or 0
            marker = _int(response, "NextPartNumberMarker")
            if _field(response, "IsTruncated") is not True or marker is None:
                return sizes

    async def complete(self, uploaded_parts: Sequence[R2UploadedPart]) -> R2Object:
        sizes = await self.uploaded_part_sizes()
        listed = {part.part_number for part in uploaded_parts}
        missing = sorted(set(sizes) - listed)
        if missing:
            numbers = ", ".join(str(number) for number in missing)
            raise S3ProviderFailure(
                f"Uploaded parts missing from completion: {numbers}",
                status=400,
                code=int(R2ErrorCode.INVALID_PART),
                error_name="InvalidPart",
            )
        ordered = sorted(uploaded_parts, key=lambda part: part.part_number)
        try:
            response = await self._client.complete_multipart_upload(
                **self._params(),
                MultipartUpload={
                    "Parts": [
                        {"PartNumber": part.part_number, "ETag": part.etag} for part in ordered
                    ]
                },
            )
        except ClientError as e:
            raise S3ProviderFailure.from_client_error(e) from e
        except BotoCoreError as e:
            raise transport_failure(e) from e
        etag = _strip_etag(_str(response, "ETag"))
        return R2Object(
            key=self._key,
            version=_str(response, "VersionId") or etag,
            size=sum(sizes.get(part.part_number, 0) for part in ordered),
            etag=etag,
            http_etag=f'"{etag}"',
            uploaded=datetime.now(timezone.utc),
        )

    async def abort(self) -> None:
        try:
            await self._client.abort_multipart_upload(**self._params())
        except ClientError as e:
            raise S3ProviderFailure.from_client_error(e) from e
        except BotoCoreError as e:
            raise transport_failure(e) from e


class S3BucketProvider:
    """``BucketProviderProtocol`` implementation over an aioboto3 S3 client.

    Args:
        client: Open aioboto3 S3 client
        bucket_name: Bucket every call is made against
    """

    def __init__(self, client: S3ClientProtocol, bucket_name: str) -> None:
        self._client = client
        self.bucket_name = bucket_name

    async def head(self, key: str) -> R2Object | None:
        """Object metadata, or ``None`` when the key does not exist.

        HeadObject responses have no body, so S3 reports a missing bucket with
        the same bare ``404`` as a missing key; both come back as ``None``.
        ``get`` and ``list`` tell the two apart.
        """
        try:
            response = await self._client.head_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if _error_name(e) in NOT_FOUND_CODES:
                return None
            raise S3ProviderFailure.from_client_error(e) from e
        except BotoCoreError as e:
            raise transport_failure(e) from e
        return _object_from_response(key, response)

    async def get(self, key: str, options: GetOptions | None = None) -> R2Object | None:
        """Object with its body read eagerly.

        ``only_if.seconds_granularity`` has no effect: the ``If-Modified-Since``
        and ``If-Unmodified-Since`` headers are always compared to the second.
        """
        options = options or GetOptions()
        params: dict[str, object] = {"Bucket": self.bucket_name, "Key": key}
        params.update(_conditional_params(options.only_if, for_write=False))
        if options.range is not None:
            params["Range"] = range_header(options.range)
        try:
            response = await self._client.get_object(**params)
        except ClientError as e:
            name = _error_name(e)
            if name in NOT_FOUND_CODES:
                return None
            if options.only_if is not None and name in CONDITION_NOT_MET_CODES:
                return None
            raise S3ProviderFailure.from_client_error(e) from e
        except BotoCoreError as e:
            raise transport_failure(e) from e

        body = _field(response, "Body")
        if not isinstance(body, StreamingBodyProtocol):
            raise S3ProviderFailure(
                f"Expected streaming body with read() method, got {type(body).__name__}",
                error_name="InvalidResponse",
            )
        try:
            data = await body.read()
        except BotoCoreError as e:
            raise transport_failure(e) from e
        return _object_from_response(key, response, options.range, data)

    async def put(
        self, key: str, value: PutValue, options: PutOptions | None = None
    ) -> R2Object | None:
        options = options or PutOptions()
        body = value_to_bytes(value)
        checksums, digests = checksum_params(options, body)
        params: dict[str, object] = {"Bucket": self.bucket_name, "Key": key, "Body": body}
        params.update(_conditional_params(options.only_if, for_write=True))
        params.update(_metadata_params(options.http_metadata, options.custom_metadata))
        params.update(checksums)
        try:
            response = await self._client.put_object(**params)
        except ClientError as e:
            if options.only_if is not None and _error_name(e) in CONDITION_NOT_MET_CODES:
                return None
            raise S3ProviderFailure.from_client_error(e) from e
        except BotoCoreError as e:
            raise transport_failure(e) from e
        etag = _strip_etag(_str(response, "ETag"))
        return R2Object(
            key=key,
            version=_str(response, "VersionId") or etag,
            size=len(body),
            etag=etag,
            http_etag=f'"{etag}"',
            uploaded=datetime.now(timezone.utc),
            checksums=digests,
            http_metadata=options.http_metadata or R2HTTPMetadata(),
            custom_metadata=dict(options.custom_metadata or {}),
        )

    async def delete(self, keys: str | Sequence[str]) -> None:
        if isinstance(keys, str):
            try:
                await self._client.delete_object(Bucket=self.bucket_name, Key=keys)
            except ClientError as e:
                raise S3ProviderFailure.from_client_error(e) from e
            except BotoCoreError as e:
                raise transport_failure(e) from e
            return

        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            batch = keys[start : start + DELETE_BATCH_SIZE]
            try:
                response = await self._client.delete_objects(
                    Bucket=self.bucket_name,
                    Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
                )
            except ClientError as e:
                raise S3ProviderFailure.from_client_error(e) from e
            except BotoCoreError as e:
                raise transport_failure(e) from e
            errors = _entries(response, "Errors")
            if errors:
                first = errors[0]
                name = _str(first, "Code") or ""
                code = S3_ERROR_CODES.get(name)
                raise S3ProviderFailure(
                    f"{_str(first, 'Key')}: {_str(first, 'Message') or name}",
                    status=S3_ERROR_STATUSES.get(name),
                    code=int(code) if code is not None else None,
                    error_name=name or None,
                )

    async def list(self, options: ListOptions | None = None) -> R2Objects:
        """List one page.

        ``include`` is accepted but has no effect: S3 listings carry no
        per-object HTTP or custom metadata.
        """
        options = options or ListOptions()
        _validate_limit(options.limit)
        candidates: dict[str, object | None] = {
            "MaxKeys": options.limit,
            "Prefix": options.prefix,
            "ContinuationToken": options.cursor,
            "Delimiter": options.delimiter,
            "StartAfter": options.start_after,
        }
        params: dict[str, object] = {"Bucket": self.bucket_name}
        params.update({name: value for name, value in candidates.items() if value is not None})
        try:
            response = await self._client.list_objects_v2(**params)
        except ClientError as e:
            raise S3ProviderFailure.from_client_error(e) from e
        except BotoCoreError as e:
            raise transport_failure(e) from e

        objects = tuple(
            _object_from_response(key, {**entry, "ContentLength": _int(entry, "Size")})
            for entry in _entries(response, "Contents")
            if (key := _str(entry, "Key")) is not None
        )
        prefixes = tuple(
            prefix
            for entry in _entries(response, "CommonPrefixes")
            if (prefix := _str(entry, "Prefix")) is not None
        )
        truncated = _field(response, "IsTruncated") is True
        return R2Objects(
            objects=objects,
            truncated=truncated,
            cursor=_str(response, "NextContinuationToken") if truncated else None,
            delimited_prefixes=prefixes,
        )

    async def create_multipart_upload(
        self, key: str, options: MultipartOptions | None = None
    ) -> S3MultipartUpload:
        options = options or MultipartOptions()
        params: dict[str, object] = {"Bucket": self.bucket_name, "Key": key}
        params.update(_metadata_params(options.http_metadata, options.custom_metadata))
        try:
            response = await self._client.create_multipart_upload(**params)
        except ClientError as e:
            raise S3ProviderFailure.from_client_error(e) from e
        except BotoCoreError as e:
            raise transport_failure(e) from e
        upload_id = _str(response, "UploadId")
        if not upload_id:
            raise S3ProviderFailure("No UploadId in response", error_name="InvalidResponse")
        return S3MultipartUpload(self._client, self.bucket_name, key, upload_id)

    def resume_multipart_upload(self, key: str, upload_id: str) -> S3MultipartUpload:
        if not upload_id:
            raise S3ProviderFailure(
                "Upload id must not be empty",
                status=400,
                code=int(R2ErrorCode.NO_SUCH_UPLOAD),
                error_name="NoSuchUpload",
            )
        return S3MultipartUpload(self._client, self.bucket_name, key, upload_id)


# ---------------------------------------------------------------------------
# Connection lifecycle
# ---------------------------------------------------------------------------


class R2Connection:
    """Async context manager owning an aioboto3 session and S3 client.

    Entering yields an ``R2Bucket`` over an ``S3BucketProvider``; leaving
    closes the client.
    """

    def __init__(self, config: R2Config) -> None:
        self.config = config
        self._client_context: object | None = None

    async def __aenter__(self) -> R2Bucket:
        session = aioboto3.Session(
            aws_access_key_id=self.config.access_key_id,
            aws_secret_access_key=self.config.secret_access_key,
            region_name=self.config.region_name,
        )
        client_context = session.client(
            "s3",
            endpoint_url=self.config.endpoint_url,
            config=self.config.boto_config(),
        )
        client: S3ClientProtocol = await client_context.__aenter__()
        self._client_context = client_context
        logger.info(
            f"Opened S3 client for bucket {self.config.bucket_name!r} at {self.config.endpoint_url}"
        )
        provider = S3BucketProvider(client, self.config.bucket_name)
        return R2Bucket(provider, bucket_name=self.config.bucket_name)

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        client_context = self._client_context
        self._client_context = None
        if client_context is not None and hasattr(client_context, "__aexit__"):
            await client_context.__aexit__(exc_type, exc_val, exc_tb)
            logger.info(f"Closed S3 client for bucket {self.config.bucket_name!r}")


def open_bucket(config: R2Config) -> R2Connection:
    """Open a connection; use as ``async with open_bucket(config) as bucket``."""
    return R2Connection(config)


__all__ = [
    "CONDITION_NOT_MET_CODES",
    "DELETE_BATCH_SIZE",
    "NOT_FOUND_CODES",
    "R2Connection",
    "S3BucketProvider",
    "S3MultipartUpload",
    "S3ProviderFailure",
    "S3_ERROR_CODES",
    "S3_ERROR_STATUSES",
    "checksum_params",
    "transport_failure",
    "open_bucket",
    "range_header",
]
