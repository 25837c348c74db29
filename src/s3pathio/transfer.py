"""Single object store calls shared by the whole-object helpers and the
buffered handles.

Each call that can be repeated safely runs under the retry policy of the
path's config. Aborting a multipart upload is best effort: a failure is
logged, never raised, so it cannot mask the error that triggered it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from s3pathio import metrics
from s3pathio.client import CompletedPart, ObjectHead
from s3pathio.retry import retrying

if TYPE_CHECKING:
    from s3pathio.path import S3Path

logger = logging.getLogger(__name__)


@retrying("head_object")
def head(path: S3Path) -> ObjectHead:
    return path.config.client.head_object(path.bucket, path.key)


@retrying("put_object")
def put(path: S3Path, data: bytes) -> str:
    etag = path.config.client.put_object(path.bucket, path.key, data)
    metrics.record_upload(len(data))
    return etag


@retrying("create_multipart_upload")
def create_upload(path: S3Path) -> str:
    upload_id = path.config.client.create_multipart_upload(path.bucket, path.key)
    logger.info(
        "Created multipart upload for %s",
        path,
        extra={"bucket": path.bucket, "key": path.key, "upload_id": upload_id},
    )
    return upload_id


@retrying("upload_part")
def upload_part(path: S3Path, upload_id: str, part_number: int, data: bytes) -> CompletedPart:
    etag = path.config.client.upload_part(path.bucket, path.key, upload_id, part_number, data)
    metrics.record_upload(len(data))
    logger.debug(
        "Uploaded part %d (%d bytes) of %s",
        part_number,
        len(data),
        path,
        extra={"upload_id": upload_id, "part_number": part_number},
    )
    return CompletedPart(part_number=part_number, etag=etag)


@retrying("complete_multipart_upload")
def complete_upload(path: S3Path, upload_id: str, parts: Sequence[CompletedPart]) -> str:
    etag = path.config.client.complete_multipart_upload(path.bucket, path.key, upload_id, list(parts))
    logger.debug(
        "Completed multipart upload of %s in %d parts",
        path,
        len(parts),
        extra={"bucket": path.bucket, "key": path.key, "upload_id": upload_id},
    )
    return etag


def abort_upload(path: S3Path, upload_id: str) -> None:
    """Abort a multipart upload, logging instead of raising on failure."""
    try:
        path.config.client.abort_multipart_upload(path.bucket, path.key, upload_id)
    except Exception:
        logger.warning(
            "Failed to abort multipart upload %s for %s",
            upload_id,
            path,
            exc_info=True,
            extra={"bucket": path.bucket, "key": path.key, "upload_id": upload_id},
        )
        return
    logger.info(
        "Aborted multipart upload of %s",
        path,
        extra={"bucket": path.bucket, "key": path.key, "upload_id": upload_id},
    )


def fetch(path: S3Path, byte_range: tuple[int, int] | None = None) -> bytes:
    """Fetch the object, or an inclusive byte range of it. Not retried."""
    data = path.config.client.get_object(path.bucket, path.key, byte_range)
    metrics.record_operation("get_object", "ok")
    metrics.record_download(len(data))
    return data
