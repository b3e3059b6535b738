"""Closed set of bucket operations that can fail."""

from __future__ import annotations

from enum import Enum


class Operation(str, Enum):
    """Bucket operation attached to every classified error.

    Values match the operation names of the Workers R2 binding so they can be
    logged and compared against provider diagnostics verbatim.
    """

    head = "head"
    get = "get"
    put = "put"
    delete = "delete"
    list = "list"
    create_multipart_upload = "createMultipartUpload"
    resume_multipart_upload = "resumeMultipartUpload"
    upload_part = "uploadPart"
    complete_multipart_upload = "completeMultipartUpload"
    abort_multipart_upload = "abortMultipartUpload"

    def __str__(self) -> str:
        return self.value

    @property
    def is_multipart(self) -> bool:
        """True for operations that act on a multipart upload."""
        return self in _MULTIPART_OPERATIONS


_MULTIPART_OPERATIONS = frozenset(
    {
        Operation.create_multipart_upload,
        Operation.resume_multipart_upload,
        Operation.upload_part,
        Operation.complete_multipart_upload,
        Operation.abort_multipart_upload,
    }
)


__all__ = ["Operation"]
