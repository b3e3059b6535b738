"""
Protocol definitions for the providers the facade sits on.

A provider is any object with these methods: the aioboto3-backed
``S3BucketProvider``, an adapter over a Workers binding, or an in-memory fake
in tests. Provider methods follow one convention:

- return a value on success;
- return ``None`` where the provider has nothing to give back (object not
  found, precondition not met);
- raise on failure. The raised object may carry ``status``, ``code`` and
  ``message``; the facade classifies it and never lets it escape.
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from .models import (
    GetOptions,
    ListOptions,
    MultipartOptions,
    PutOptions,
    PutValue,
    R2Object,
    R2ObjectBody,
    R2Objects,
    R2UploadedPart,
)


# ---------------------------------------------------------------------------
# Bucket provider protocols
# ---------------------------------------------------------------------------


class MultipartUploadProtocol(Protocol):
    """Provider handle for one in-progress multipart upload."""

    @property
    def key(self) -> str: ...

    @property
    def upload_id(self) -> str: ...

    async def upload_part(self, part_number: int, value: PutValue) -> R2UploadedPart: ...
    async def complete(self, uploaded_parts: Sequence[R2UploadedPart]) -> R2Object: ...
    async def abort(self) -> None: ...


class BucketProviderProtocol(Protocol):
    """Raw object-storage provider."""

    async def head(self, key: str) -> R2Object | None: ...
    async def get(
        self, key: str, options: GetOptions | None = None
    ) -> R2ObjectBody | R2Object | None: ...
    async def put(
        self, key: str, value: PutValue, options: PutOptions | None = None
    ) -> R2Object | None: ...
    async def delete(self, keys: str | Sequence[str]) -> None: ...
    async def list(self, options: ListOptions | None = None) -> R2Objects: ...
    async def create_multipart_upload(
        self, key: str, options: MultipartOptions | None = None
    ) -> MultipartUploadProtocol: ...
    def resume_multipart_upload(self, key: str, upload_id: str) -> MultipartUploadProtocol: ...


# ---------------------------------------------------------------------------
# S3 client protocols (aioboto3)
# ---------------------------------------------------------------------------


@runtime_checkable
class StreamingBodyProtocol(Protocol):
    """Body of a get_object response."""

    async def read(self) -> bytes: ...


class S3ClientProtocol(Protocol):
    """The subset of the aioboto3 S3 client the S3 provider calls.

    Responses are plain dicts; they are typed as ``object`` and narrowed at
    the point of use.
    """

    async def head_object(self, **kwargs: object) -> object: ...
    async def get_object(self, **kwargs: object) -> object: ...
    async def put_object(self, **kwargs: object) -> object: ...
    async def delete_object(self, **kwargs: object) -> object: ...
    async def delete_objects(self, **kwargs: object) -> object: ...
    async def list_objects_v2(self, **kwargs: object) -> object: ...
    async def create_multipart_upload(self, **kwargs: object) -> object: ...
    async def upload_part(self, **kwargs: object) -> object: ...
    async def list_parts(self, **kwargs: object) -> object: ...
    async def complete_multipart_upload(self, **kwargs: object) -> object: ...
    async def abort_multipart_upload(self, **kwargs: object) -> object: ...


# ---------------------------------------------------------------------------
# Key-value provider protocol
# ---------------------------------------------------------------------------


class KVListKey(Protocol):
    @property
    def name(self) -> str: ...


class KVListResultProtocol(Protocol):
    @property
    def keys(self) -> Sequence[KVListKey]: ...

    @property
    def list_complete(self) -> bool: ...

    @property
    def cursor(self) -> str | None: ...


class KVNamespaceProtocol(Protocol):
    """Raw key-value namespace: string keys, optional string values."""

    async def get(self, key: str) -> str | None: ...
    async def put(
        self,
        key: str,
        value: str,
        *,
        expiration_ttl: int | None = None,
        metadata: dict[str, str] | None = None,
    ) -> None: ...
    async def list(
        self,
        *,
        prefix: str | None = None,
        limit: int | None = None,
        cursor: str | None = None,
    ) -> KVListResultProtocol: ...
    async def delete(self, key: str) -> None: ...


__all__ = [
    "MultipartUploadProtocol",
    "BucketProviderProtocol",
    "KVListKey",
    "KVListResultProtocol",
    "KVNamespaceProtocol",
    "S3ClientProtocol",
    "StreamingBodyProtocol",
]
