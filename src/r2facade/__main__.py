"""Command-line access to an R2 bucket through the Result-returning facade.

Usage:
    python -m r2facade [--bucket NAME] [--verbose] head <key>
    python -m r2facade get <key> [--output FILE] [--offset N] [--length N] [--suffix N]
                               [--if-match ETAG] [--if-none-match ETAG]
    python -m r2facade put <key> <file> [--content-type TYPE] [--if-match ETAG]
                               [--if-none-match ETAG] [--sha256 HEX]
    python -m r2facade delete <key> [<key> ...]
    python -m r2facade list [--prefix P] [--limit N] [--cursor C] [--delimiter D]
    python -m r2facade upload <key> <file> [--part-size BYTES]

Connection settings come from the environment (``R2_ACCOUNT_ID`` or
``R2_ENDPOINT_URL``, ``R2_ACCESS_KEY_ID``, ``R2_SECRET_ACCESS_KEY``,
``R2_BUCKET_NAME``).

Exit codes:
    0: Success
    1: Object not found, or precondition not met
    2: Classified failure, invalid configuration, unreadable or unwritable
       local file, or an S3 client that cannot be opened

Examples:
    # Object metadata as JSON
    python -m r2facade --bucket assets head logo.png

    # Create only if absent
    python -m r2facade put config.json ./config.json --if-none-match '*'

    # Multipart upload in 16 MiB parts
    python -m r2facade upload video.mp4 ./video.mp4 --part-size 16777216
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import BinaryIO, Iterator, Never, NoReturn, Sequence

from botocore.exceptions import BotoCoreError

from .bucket import R2Bucket
from .config import R2Config
from .errors import (
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
)
from .models import (
    GetOptions,
    ListOptions,
    PutOptions,
    R2Conditional,
    R2HTTPMetadata,
    R2Object,
    R2ObjectBody,
    R2Range,
    R2UploadedPart,
)
from .result import Failure, Success
from .s3_provider import open_bucket


EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_ERROR = 2

DEFAULT_PART_SIZE = 8 * 1024 * 1024


def assert_never(value: Never) -> Never:
    """Exhaustiveness check for ``match`` statements; never reached at runtime."""
    raise AssertionError(f"Unhandled case: {value!r}")


def error_hint(error: R2BucketError) -> str:
    """Suggested next step for each failure kind."""
    match error:
        case R2RateLimitError(retry_after=int(retry_after)):
            return f"Retry after {retry_after} ms."
        case R2RateLimitError() | R2ConcurrencyError():
            return "Retry later with fewer concurrent requests."
        case R2ObjectTooLargeError():
            return "Use a multipart upload for large objects."
        case R2ObjectTooSmallError():
            return f"Use parts of at least {MIN_PART_SIZE_BYTES} bytes except the last."
        case R2InvalidKeyError() | R2InvalidRangeError() | R2InvalidMaxKeysError():
            return "Check the command arguments."
        case R2MetadataError():
            return "Reduce the size of the object's metadata."
        case R2PreconditionFailedError():
            return "The object changed; fetch it again before writing."
        case R2MultipartError():
            return "Start a new multipart upload if this one was completed or aborted."
        case R2BucketNotFoundError():
            return "Check --bucket or R2_BUCKET_NAME."
        case R2NotEnabledError():
            return "Enable R2 in the Cloudflare dashboard."
        case R2AuthorizationError():
            return "Check R2_ACCESS_KEY_ID and R2_SECRET_ACCESS_KEY."
        case R2BadDigestError():
            return "The content does not match the checksum given."
        case R2InvalidArgumentError():
            return "The request was rejected as invalid."
        case R2InternalError() | R2NetworkError():
            return "Retry the command."
        case _:
            assert_never(error)


def report_failure(error: R2BucketError) -> int:
    print(f"✗ {error.message}", file=sys.stderr)
    print(f"  {error_hint(error)}", file=sys.stderr)
    return EXIT_ERROR


def report_local_failure(message: str) -> int:
    print(f"✗ {message}", file=sys.stderr)
    return EXIT_ERROR


def object_summary(obj: R2Object) -> dict[str, object]:
    """JSON-ready view of object metadata."""
    http_metadata = obj.http_metadata or R2HTTPMetadata()
    return {
        "key": obj.key,
        "size": obj.size,
        "etag": obj.etag,
        "version": obj.version,
        "uploaded": obj.uploaded.isoformat(),
        "content_type": http_metadata.content_type,
        "custom_metadata": dict(obj.custom_metadata or {}),
    }


def conditional(if_match: str | None, if_none_match: str | None) -> R2Conditional | None:
    if if_match is None and if_none_match is None:
        return None
    return R2Conditional(etag_matches=if_match, etag_does_not_match=if_none_match)


def read_parts(stream: BinaryIO, part_size: int) -> Iterator[bytes]:
    """Consecutive chunks of ``part_size`` bytes; an empty stream yields one empty part."""
    chunk = stream.read(part_size)
    yield chunk
    while chunk := stream.read(part_size):
        yield chunk


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def cmd_head(bucket: R2Bucket, key: str) -> int:
    match await bucket.head(key):
        case Success(None):
            print(f"Not found: {key}", file=sys.stderr)
            return EXIT_NOT_FOUND
        case Success(obj):
            print(json.dumps(object_summary(obj), indent=2))
            return EXIT_OK
        case Failure(error):
            return report_failure(error)


async def cmd_get(
    bucket: R2Bucket,
    key: str,
    output: str,
    object_range: R2Range | None = None,
    only_if: R2Conditional | None = None,
) -> int:
    match await bucket.get(key, GetOptions(only_if=only_if, range=object_range)):
        case Success(R2ObjectBody(body=body)):
            if output == "-":
                sys.stdout.buffer.write(body)
                sys.stdout.buffer.flush()
            else:
                try:
                    Path(output).write_bytes(body)
                except OSError as e:
                    return report_local_failure(f"Cannot write {output}: {e.strerror or e}")
            return EXIT_OK
        case Success(R2Object()):
            print(f"Precondition not met: {key}", file=sys.stderr)
            return EXIT_NOT_FOUND
        case Success(None):
            print(f"Not found or precondition not met: {key}", file=sys.stderr)
            return EXIT_NOT_FOUND
        case Failure(error):
            return report_failure(error)


async def cmd_put(bucket: R2Bucket, key: str, path: str, options: PutOptions) -> int:
    try:
        body = Path(path).read_bytes()
    except OSError as e:
        return report_local_failure(f"Cannot read {path}: {e.strerror or e}")
    match await bucket.put(key, body, options):
        case Success(None):
            print(f"Precondition not met: {key}", file=sys.stderr)
            return EXIT_NOT_FOUND
        case Success(obj):
            print(json.dumps(object_summary(obj), indent=2))
            return EXIT_OK
        case Failure(error):
            return report_failure(error)


async def cmd_delete(bucket: R2Bucket, keys: Sequence[str]) -> int:
    match await bucket.delete(keys[0] if len(keys) == 1 else list(keys)):
        case Success(_):
            print(f"✓ Deleted {len(keys)} key(s)")
            return EXIT_OK
        case Failure(error):
            return report_failure(error)


async def cmd_list(bucket: R2Bucket, options: ListOptions) -> int:
    match await bucket.list(options):
        case Success(page):
            print(
                json.dumps(
                    {
                        "objects": [object_summary(obj) for obj in page.objects],
                        "delimited_prefixes": list(page.delimited_prefixes),
                        "truncated": page.truncated,
                        "cursor": page.cursor,
                    },
                    indent=2,
                )
            )
            return EXIT_OK
        case Failure(error):
            return report_failure(error)


async def cmd_upload(bucket: R2Bucket, key: str, path: str, part_size: int) -> int:
    """Upload a file part by part; the upload is aborted if any part fails."""
    try:
        stream = open(path, "rb")
    except OSError as e:
        return report_local_failure(f"Cannot read {path}: {e.strerror or e}")

    with stream:
        created = await bucket.create_multipart_upload(key)
        if isinstance(created, Failure):
            return report_failure(created.error)
        session = created.value

        parts: list[R2UploadedPart] = []
        for part_number, chunk in enumerate(read_parts(stream, part_size), start=1):
            match await session.upload_part(part_number, chunk):
                case Success(part):
                    parts.append(part)
                case Failure(error):
                    await session.abort()
                    return report_failure(error)

    match await session.complete(parts):
        case Success(obj):
            print(f"✓ Uploaded {key} in {len(parts)} part(s) ({obj.size} bytes)")
            return EXIT_OK
        case Failure(error):
            await session.abort()
            return report_failure(error)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m r2facade",
        description="R2 bucket operations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--bucket", default=None, help="Bucket name (default: $R2_BUCKET_NAME)")
    parser.add_argument("--verbose", "-v", action="count", default=0, help="Log more")
    subparsers = parser.add_subparsers(dest="command", required=True)

    head_parser = subparsers.add_parser("head", help="Show object metadata")
    head_parser.add_argument("key")

    get_parser = subparsers.add_parser("get", help="Download an object")
    get_parser.add_argument("key")
    get_parser.add_argument("--output", "-o", default="-", help="File to write (default: stdout)")
    get_parser.add_argument("--offset", type=int, default=None)
    get_parser.add_argument("--length", type=int, default=None)
    get_parser.add_argument("--suffix", type=int, default=None, help="Read the last N bytes")
    get_parser.add_argument("--if-match", default=None)
    get_parser.add_argument("--if-none-match", default=None)

    put_parser = subparsers.add_parser("put", help="Upload a file as one object")
    put_parser.add_argument("key")
    put_parser.add_argument("file")
    put_parser.add_argument("--content-type", default=None)
    put_parser.add_argument("--if-match", default=None)
    put_parser.add_argument("--if-none-match", default=None)
    put_parser.add_argument("--sha256", default=None, help="Expected SHA-256 (hex)")

    delete_parser = subparsers.add_parser("delete", help="Delete one or more objects")
    delete_parser.add_argument("keys", nargs="+")

    list_parser = subparsers.add_parser("list", help="List one page of objects")
    list_parser.add_argument("--prefix", default=None)
    list_parser.add_argument("--limit", type=int, default=None)
    list_parser.add_argument("--cursor", default=None)
    list_parser.add_argument("--delimiter", default=None)

    upload_parser = subparsers.add_parser("upload", help="Upload a file as a multipart upload")
    upload_parser.add_argument("key")
    upload_parser.add_argument("file")
    upload_parser.add_argument(
        "--part-size",
        type=int,
        default=DEFAULT_PART_SIZE,
        help=f"Part size in bytes (default: {DEFAULT_PART_SIZE})",
    )
    return parser


async def dispatch(args: argparse.Namespace, bucket: R2Bucket) -> int:
    """Run the parsed command against an open bucket."""
    match args.command:
        case "head":
            return await cmd_head(bucket, args.key)
        case "get":
            object_range = (
                R2Range(offset=args.offset, length=args.length, suffix=args.suffix)
                if args.offset is not None or args.length is not None or args.suffix is not None
                else None
            )
            return await cmd_get(
                bucket,
                args.key,
                args.output,
                object_range,
                conditional(args.if_match, args.if_none_match),
            )
        case "put":
            options = PutOptions(
                only_if=conditional(args.if_match, args.if_none_match),
                http_metadata=(
                    R2HTTPMetadata(content_type=args.content_type)
                    if args.content_type is not None
                    else None
                ),
                sha256=args.sha256,
            )
            return await cmd_put(bucket, args.key, args.file, options)
        case "delete":
            return await cmd_delete(bucket, args.keys)
        case "list":
            return await cmd_list(
                bucket,
                ListOptions(
                    limit=args.limit,
                    prefix=args.prefix,
                    cursor=args.cursor,
                    delimiter=args.delimiter,
                ),
            )
        case "upload":
            return await cmd_upload(bucket, args.key, args.file, args.part_size)
        case _:
            raise ValueError(f"Unknown command: {args.command}")


async def run(args: argparse.Namespace) -> int:
    match R2Config.from_env(args.bucket):
        case Failure(validation_error):
            print("✗ Invalid R2 configuration:", file=sys.stderr)
            for issue in validation_error.errors():
                location = ".".join(str(part) for part in issue["loc"]) or "config"
                print(f"  {location}: {issue['msg']}", file=sys.stderr)
            return EXIT_ERROR
        case Success(config):
            try:
                async with open_bucket(config) as bucket:
                    return await dispatch(args, bucket)
            except (BotoCoreError, ValueError) as e:
                # Client construction: bad endpoint URL, missing credentials.
                return report_local_failure(f"Cannot open S3 client: {e}")


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING if verbosity == 0 else logging.INFO if verbosity == 1 else logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def main(argv: Sequence[str] | None = None) -> NoReturn:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
