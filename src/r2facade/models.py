"""Object, listing and option models exchanged with the bucket provider."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Mapping, Sequence


@dataclass(frozen=True)
class R2Range:
    """Byte range for a ranged read.

    Either ``offset`` (optionally with ``length``) or ``suffix`` is given.
    """

    offset: int | None = None
    length: int | None = None
    suffix: int | None = None


@dataclass(frozen=True)
class R2Conditional:
    """Precondition attached to a read or write.

    When it does not hold, get and put report no value instead of an error.

    ``seconds_granularity`` asks the provider to compare upload times to the
    second. It is passed through untouched; over the S3 API it has no effect
    because HTTP date headers carry whole seconds only.
    """

    etag_matches: str | None = None
    etag_does_not_match: str | None = None
    uploaded_before: datetime | None = None
    uploaded_after: datetime | None = None
    seconds_granularity: bool = False


@dataclass(frozen=True)
class R2HTTPMetadata:
    content_type: str | None = None
    content_language: str | None = None
    content_disposition: str | None = None
    content_encoding: str | None = None
    cache_control: str | None = None
    cache_expiry: datetime | None = None


@dataclass(frozen=True)
class R2Checksums:
    """Checksums the provider holds for an object, as raw digests."""

    md5: bytes | None = None
    sha1: bytes | None = None
    sha256: bytes | None = None
    sha384: bytes | None = None
    sha512: bytes | None = None


@dataclass(frozen=True)
class R2Object:
    """Metadata of a stored object."""

    key: str
    version: str
    size: int
    etag: str
    http_etag: str
    uploaded: datetime
    checksums: R2Checksums = field(default_factory=R2Checksums)
    http_metadata: R2HTTPMetadata | None = None
    custom_metadata: Mapping[str, str] | None = None
    range: R2Range | None = None


@dataclass(frozen=True)
class R2ObjectBody(R2Object):
    """Stored object together with its content."""

    body: bytes = b""

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding)

    def json(self) -> object:
        return json.loads(self.body)


@dataclass(frozen=True)
class R2Objects:
    """One page of a listing."""

    objects: tuple[R2Object, ...]
    truncated: bool
    cursor: str | None = None
    delimited_prefixes: tuple[str, ...] = ()


@dataclass(frozen=True)
class R2UploadedPart:
    """Confirmation of one uploaded multipart part."""

    part_number: int
    etag: str


@dataclass(frozen=True)
class GetOptions:
    only_if: R2Conditional | None = None
    range: R2Range | None = None


@dataclass(frozen=True)
class PutOptions:
    """Options for put.

    Checksums may be given as raw digests or hex strings; the provider
    rejects the write if the content does not match.
    """

    only_if: R2Conditional | None = None
    http_metadata: R2HTTPMetadata | None = None
    custom_metadata: Mapping[str, str] | None = None
    md5: bytes | str | None = None
    sha1: bytes | str | None = None
    sha256: bytes | str | None = None
    sha384: bytes | str | None = None
    sha512: bytes | str | None = None

    def checksum_algorithms(self) -> tuple[str, ...]:
        """Names of the checksums that were supplied, in a fixed order."""
        supplied = (
            ("md5", self.md5),
            ("sha1", self.sha1),
            ("sha256", self.sha256),
            ("sha384", self.sha384),
            ("sha512", self.sha512),
        )
        return tuple(name for name, value in supplied if value is not None)


@dataclass(frozen=True)
class ListOptions:
    limit: int | None = None
    prefix: str | None = None
    cursor: str | None = None
    delimiter: str | None = None
    start_after: str | None = None
    include: Sequence[Literal["httpMetadata", "customMetadata"]] | None = None


@dataclass(frozen=True)
class MultipartOptions:
    http_metadata: R2HTTPMetadata | None = None
    custom_metadata: Mapping[str, str] | None = None


# Raw values accepted for put and upload_part.
PutValue = bytes | bytearray | memoryview | str


def value_to_bytes(value: PutValue) -> bytes:
    """Encode a put/upload value as bytes (str is UTF-8 encoded)."""
    match value:
        case str():
            return value.encode("utf-8")
        case bytes():
            return value
        case _:
            return bytes(value)


__all__ = [
    "R2Range",
    "R2Conditional",
    "R2HTTPMetadata",
    "R2Checksums",
    "R2Object",
    "R2ObjectBody",
    "R2Objects",
    "R2UploadedPart",
    "GetOptions",
    "PutOptions",
    "ListOptions",
    "MultipartOptions",
    "PutValue",
    "value_to_bytes",
]
