# tests/helpers/fakes.py
"""In-memory providers and a scripted S3 client for facade tests.

``InMemoryBucketProvider`` follows the provider convention the facade
expects: it returns ``None`` for missing objects and unmet preconditions and
raises ``FakeFailure`` (carrying ``status``/``code``/``message``) the way R2
reports errors. Any method can be made to fail once with ``fail_next``.
"""

from __future__ import annotations

import hashlib
import uuid
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from botocore.exceptions import ClientError

from r2facade.models import (
    GetOptions,
    ListOptions,
    MultipartOptions,
    PutOptions,
    PutValue,
    R2Conditional,
    R2Object,
    R2ObjectBody,
    R2Objects,
    R2Range,
    R2UploadedPart,
    value_to_bytes,
)

from tests.helpers.constants import (
    FIXED_TIME,
    MESSAGE_INVALID_PART,
    MESSAGE_NO_SUCH_UPLOAD,
    MESSAGE_TOO_SMALL,
    SMALL_PART_SIZE,
)


class FakeFailure(Exception):
    """Raised by the fakes; shaped like a provider error."""

    def __init__(
        self,
        message: str = "",
        *,
        status: int | None = None,
        code: int | None = None,
        retry_after: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.retry_after = retry_after


def _md5_hex(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


def with_body(obj: R2Object, body: bytes, object_range: R2Range | None = None) -> R2ObjectBody:
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
        range=object_range,
        body=body,
    )


def condition_holds(condition: R2Conditional, existing: R2Object | None) -> bool:
    if condition.etag_matches is not None:
        if existing is None:
            return False
        if condition.etag_matches not in ("*", existing.etag, existing.http_etag):
            return False
    if condition.etag_does_not_match is not None and existing is not None:
        if condition.etag_does_not_match in ("*", existing.etag, existing.http_etag):
            return False
    if condition.uploaded_before is not None:
        if existing is None or existing.uploaded >= condition.uploaded_before:
            return False
    if condition.uploaded_after is not None:
        if existing is None or existing.uploaded <= condition.uploaded_after:
            return False
    return True


def slice_range(body: bytes, object_range: R2Range) -> bytes:
    if object_range.suffix is not None:
        return body[-object_range.suffix :]
    start = object_range.offset or 0
    if object_range.length is None:
        return body[start:]
    return body[start : start + object_range.length]


@dataclass
class _Stored:
    obj: R2Object
    body: bytes


@dataclass
class _Upload:
    key: str
    options: MultipartOptions
    parts: dict[int, tuple[str, bytes]] = field(default_factory=dict)


class InMemoryMultipartUpload:
    def __init__(self, provider: InMemoryBucketProvider, key: str, upload_id: str) -> None:
        self._provider = provider
        self._key = key
        self._upload_id = upload_id

    @property
    def key(self) -> str:
        return self._key

    @property
    def upload_id(self) -> str:
        return self._upload_id

    async def upload_part(self, part_number: int, value: PutValue) -> R2UploadedPart:
        self._provider.record("upload_part")
        upload = self._provider.upload_for(self._key, self._upload_id)
        data = value_to_bytes(value)
        etag = _md5_hex(data)
        upload.parts[part_number] = (etag, data)
        return R2UploadedPart(part_number=part_number, etag=etag)

    async def complete(self, uploaded_parts: Sequence[R2UploadedPart]) -> R2Object:
        self._provider.record("complete")
        upload = self._provider.upload_for(self._key, self._upload_id)
        listed = {part.part_number: part.etag for part in uploaded_parts}
        if set(listed) != set(upload.parts) or any(
            upload.parts[number][0] != etag for number, etag in listed.items()
        ):
            raise FakeFailure(MESSAGE_INVALID_PART, status=400, code=10025)
        ordered = sorted(listed)
        for number in ordered[:-1]:
            if len(upload.parts[number][1]) < self._provider.min_part_size:
                raise FakeFailure(MESSAGE_TOO_SMALL, status=400, code=10009)
        body = b"".join(upload.parts[number][1] for number in ordered)
        del self._provider.uploads[self._upload_id]
        return self._provider.store(
            self._key,
            body,
            etag=f"{_md5_hex(body)}-{len(ordered)}",
            options=PutOptions(
                http_metadata=upload.options.http_metadata,
                custom_metadata=upload.options.custom_metadata,
            ),
        )

    async def abort(self) -> None:
        self._provider.record("abort")
        self._provider.upload_for(self._key, self._upload_id)
        del self._provider.uploads[self._upload_id]


class InMemoryBucketProvider:
    """Dictionary-backed bucket provider."""

    def __init__(self, min_part_size: int = SMALL_PART_SIZE) -> None:
        self.min_part_size = min_part_size
        self.objects: dict[str, _Stored] = {}
        self.uploads: dict[str, _Upload] = {}
        self.failures: dict[str, BaseException] = {}
        self.calls: list[str] = []

    def fail_next(self, method: str, failure: BaseException) -> None:
        """Make the next call to ``method`` raise ``failure``."""
        self.failures[method] = failure

    def record(self, method: str) -> None:
        self.calls.append(method)
        failure = self.failures.pop(method, None)
        if failure is not None:
            raise failure

    def upload_for(self, key: str, upload_id: str) -> _Upload:
        upload = self.uploads.get(upload_id)
        if upload is None or upload.key != key:
            raise FakeFailure(MESSAGE_NO_SUCH_UPLOAD, status=404, code=10024)
        return upload

    def store(
        self, key: str, body: bytes, *, etag: str | None = None, options: PutOptions | None = None
    ) -> R2Object:
        options = options or PutOptions()
        etag = etag or _md5_hex(body)
        obj = R2Object(
            key=key,
            version=uuid.uuid4().hex,
            size=len(body),
            etag=etag,
            http_etag=f'"{etag}"',
            uploaded=FIXED_TIME,
            http_metadata=options.http_metadata,
            custom_metadata=dict(options.custom_metadata or {}),
        )
        self.objects[key] = _Stored(obj=obj, body=body)
        return obj

    async def head(self, key: str) -> R2Object | None:
        self.record("head")
        stored = self.objects.get(key)
        return stored.obj if stored is not None else None

    async def get(self, key: str, options: GetOptions | None = None) -> R2Object | None:
        self.record("get")
        options = options or GetOptions()
        stored = self.objects.get(key)
        if stored is None:
            return None
        if options.only_if is not None and not condition_holds(options.only_if, stored.obj):
            return stored.obj
        if options.range is not None:
            return with_body(stored.obj, slice_range(stored.body, options.range), options.range)
        return with_body(stored.obj, stored.body)

    async def put(
        self, key: str, value: PutValue, options: PutOptions | None = None
    ) -> R2Object | None:
        self.record("put")
        options = options or PutOptions()
        existing = self.objects.get(key)
        if options.only_if is not None and not condition_holds(
            options.only_if, existing.obj if existing is not None else None
        ):
            return None
        body = value_to_bytes(value)
        if isinstance(options.sha256, str) and hashlib.sha256(body).hexdigest() != options.sha256:
            raise FakeFailure(
                "The SHA-256 checksum you specified did not match what we received.",
                status=400,
                code=10037,
            )
        return self.store(key, body, options=options)

    async def delete(self, keys: str | Sequence[str]) -> None:
        self.record("delete")
        for key in [keys] if isinstance(keys, str) else keys:
            self.objects.pop(key, None)

    async def list(self, options: ListOptions | None = None) -> R2Objects:
        self.record("list")
        options = options or ListOptions()
        limit = options.limit if options.limit is not None else 1000
        if not 1 <= limit <= 1000:
            raise FakeFailure(
                "MaxKeys params must be positive integer <= 1000.", status=400, code=10022
            )
        prefix = options.prefix or ""
        after = options.cursor or options.start_after or ""
        keys = sorted(key for key in self.objects if key.startswith(prefix) and key > after)

        objects: list[R2Object] = []
        prefixes: list[str] = []
        last_key: str | None = None
        for key in keys:
            if len(objects) + len(prefixes) == limit:
                return R2Objects(
                    objects=tuple(objects),
                    truncated=True,
                    cursor=last_key,
                    delimited_prefixes=tuple(prefixes),
                )
            last_key = key
            if options.delimiter and options.delimiter in key[len(prefix) :]:
                rest = key[len(prefix) :]
                group = prefix + rest[: rest.index(options.delimiter) + len(options.delimiter)]
                if group not in prefixes:
                    prefixes.append(group)
                continue
            objects.append(self.objects[key].obj)
        return R2Objects(
            objects=tuple(objects), truncated=False, delimited_prefixes=tuple(prefixes)
        )

    async def create_multipart_upload(
        self, key: str, options: MultipartOptions | None = None
    ) -> InMemoryMultipartUpload:
        self.record("create_multipart_upload")
        upload_id = uuid.uuid4().hex
        self.uploads[upload_id] = _Upload(key=key, options=options or MultipartOptions())
        return InMemoryMultipartUpload(self, key, upload_id)

    def resume_multipart_upload(self, key: str, upload_id: str) -> InMemoryMultipartUpload:
        self.record("resume_multipart_upload")
        return InMemoryMultipartUpload(self, key, upload_id)


# ---------------------------------------------------------------------------
# Key-value namespace
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FakeKVKey:
    name: str


@dataclass(frozen=True)
class FakeKVPage:
    keys: tuple[FakeKVKey, ...]
    list_complete: bool
    cursor: str | None = None


class InMemoryKV:
    """Dictionary-backed KV namespace binding."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.metadata: dict[str, dict[str, str] | None] = {}
        self.ttls: dict[str, int | None] = {}
        self.failures: dict[str, BaseException] = {}

    def _check(self, method: str) -> None:
        failure = self.failures.pop(method, None)
        if failure is not None:
            raise failure

    async def get(self, key: str) -> str | None:
        self._check("get")
        return self.values.get(key)

    async def put(
        self,
        key: str,
        value: str,
        *,
        expiration_ttl: int | None = None,
        metadata: dict[str, str] | None = None,
    ) -> None:
        self._check("put")
        self.values[key] = value
        self.ttls[key] = expiration_ttl
        self.metadata[key] = metadata

    async def list(
        self,
        *,
        prefix: str | None = None,
        limit: int | None = None,
        cursor: str | None = None,
    ) -> FakeKVPage:
        self._check("list")
        names = sorted(name for name in self.values if name.startswith(prefix or ""))
        start = int(cursor) if cursor else 0
        end = start + (limit or 1000)
        page = names[start:end]
        complete = end >= len(names)
        return FakeKVPage(
            keys=tuple(FakeKVKey(name) for name in page),
            list_complete=complete,
            cursor=None if complete else str(end),
        )

    async def delete(self, key: str) -> None:
        self._check("delete")
        self.values.pop(key, None)


# ---------------------------------------------------------------------------
# Scripted aioboto3 client
# ---------------------------------------------------------------------------


def client_error(
    code: str,
    message: str = "",
    status: int = 400,
    operation: str = "GetObject",
    headers: Mapping[str, str] | None = None,
) -> ClientError:
    """A botocore ClientError as the S3 client raises it."""
    return ClientError(
        {
            "Error": {"Code": code, "Message": message},
            "ResponseMetadata": {"HTTPStatusCode": status, "HTTPHeaders": dict(headers or {})},
        },
        operation,
    )


class FakeStreamingBody:
    def __init__(self, data: bytes) -> None:
        self._data = data

    async def read(self) -> bytes:
        return self._data


class ScriptedS3Client:
    """Async S3 client returning queued responses and recording every call.

    Queue a response (a dict) or an exception with ``respond``; unqueued
    calls return an empty dict.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, object]]] = []
        self._queued: dict[str, list[object]] = {}

    def respond(self, method: str, *responses: object) -> None:
        self._queued.setdefault(method, []).extend(responses)

    def calls_to(self, method: str) -> list[dict[str, object]]:
        return [kwargs for name, kwargs in self.calls if name == method]

    async def _call(self, method: str, kwargs: dict[str, object]) -> object:
        self.calls.append((method, kwargs))
        queued = self._queued.get(method)
        response: object = queued.pop(0) if queued else {}
        if isinstance(response, BaseException):
            raise response
        return response

    async def head_object(self, **kwargs: object) -> object:
        return await self._call("head_object", kwargs)

    async def get_object(self, **kwargs: object) -> object:
        return await self._call("get_object", kwargs)

    async def put_object(self, **kwargs: object) -> object:
        return await self._call("put_object", kwargs)

    async def delete_object(self, **kwargs: object) -> object:
        return await self._call("delete_object", kwargs)

    async def delete_objects(self, **kwargs: object) -> object:
        return await self._call("delete_objects", kwargs)

    async def list_objects_v2(self, **kwargs: object) -> object:
        return await self._call("list_objects_v2", kwargs)

    async def create_multipart_upload(self, **kwargs: object) -> object:
        return await self._call("create_multipart_upload", kwargs)

    async def upload_part(self, **kwargs: object) -> object:
        return await self._call("upload_part", kwargs)

    async def list_parts(self, **kwargs: object) -> object:
        return await self._call("list_parts", kwargs)

    async def complete_multipart_upload(self, **kwargs: object) -> object:
        return await self._call("complete_multipart_upload", kwargs)

    async def abort_multipart_upload(self, **kwargs: object) -> object:
        return await self._call("abort_multipart_upload", kwargs)
