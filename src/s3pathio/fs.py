"""Filesystem-like operations on S3Path values.

Existence checks, metadata, deletion, directory markers, whole-object
reads and writes, and copies between the store and the local filesystem.
Whole-object writes of at least one part size fan the parts out over a
thread pool.
"""

from __future__ import annotations

import enum
import logging
import math
import os
import shutil
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from s3pathio import metrics, transfer
from s3pathio.buffers import ReadBuffer, WriteBuffer
from s3pathio.client import CompletedPart, ObjectHead
from s3pathio.errors import NotADirectory, NotFound
from s3pathio.path import S3Path, is_s3_uri

logger = logging.getLogger(__name__)

Location = Union[S3Path, str, "os.PathLike[str]"]

# Chunk size when streaming between the store and local files.
_COPY_CHUNK_SIZE = 1024 * 1024


class ProbeStatus(enum.Enum):
    EXISTS = "exists"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class Probe:
    """Outcome of an existence probe.

    ``head`` is set when the object exists, ``error`` when the probe itself
    failed (after retries) for a reason other than absence.
    """

    status: ProbeStatus
    head: ObjectHead | None = None
    error: BaseException | None = None

    def __bool__(self) -> bool:
        return self.status is ProbeStatus.EXISTS


def probe(path: S3Path) -> Probe:
    """HEAD the object, distinguishing absence from failure."""
    try:
        head = transfer.head(path)
    except NotFound:
        return Probe(ProbeStatus.NOT_FOUND)
    except Exception as exc:
        logger.debug("Probe of %s failed: %s", path, exc, extra={"bucket": path.bucket, "key": path.key})
        return Probe(ProbeStatus.ERROR, error=exc)
    return Probe(ProbeStatus.EXISTS, head=head)


def exists(path: S3Path) -> bool:
    """Return whether an object is stored under exactly this key.

    Raises:
        Exception: The probe failure, when the store could not answer.
    """
    result = probe(path)
    if result.status is ProbeStatus.ERROR:
        assert result.error is not None
        raise result.error
    return result.status is ProbeStatus.EXISTS


def is_file(path: S3Path) -> bool:
    if path.is_dir_key:
        return False
    return exists(path)


def is_dir(path: S3Path) -> bool:
    """Return whether a directory marker exists for this directory key."""
    if not path.is_dir_key:
        return False
    return exists(path)


def stat(path: S3Path) -> ObjectHead:
    """Return object metadata.

    Raises:
        NotFound: If no object is stored under the key.
    """
    return transfer.head(path)


def remove(path: S3Path) -> None:
    logger.debug("Deleting %s", path, extra={"bucket": path.bucket, "key": path.key})
    path.config.client.delete_object(path.bucket, path.key)
    metrics.record_operation("delete_object", "ok")


def mkpath(path: S3Path) -> None:
    """Create a zero-byte directory marker.

    Raises:
        NotADirectory: If the key does not end with '/'.
    """
    if not path.is_dir_key:
        raise NotADirectory(path)
    transfer.put(path, b"")


def read_bytes(path: S3Path) -> bytes:
    """Fetch the whole object in one request."""
    return transfer.fetch(path)


def read_text(path: S3Path, encoding: str = "utf-8") -> str:
    return read_bytes(path).decode(encoding)


def write_bytes(path: S3Path, data: bytes, part_size: int | None = None) -> None:
    """Store ``data`` under the path, replacing any existing object.

    Payloads smaller than the part size go up in a single put. Larger ones
    are split into ``ceil(len / part_size)`` parts uploaded concurrently,
    at most ``max_concurrency`` at a time, then assembled in part order by
    one completion call. If any part fails the upload is aborted and the
    failure propagates.

    Args:
        path: Destination.
        data: The full payload.
        part_size: Part size in bytes; the config's part size when omitted.
    """
    part_size = part_size or path.config.part_size
    data = bytes(data)

    if len(data) < part_size:
        transfer.put(path, data)
        return

    num_parts = math.ceil(len(data) / part_size)
    upload_id = transfer.create_upload(path)
    logger.debug("Uploading %d bytes to %s in %d parts", len(data), path, num_parts)

    try:
        parts: list[CompletedPart] = []
        workers = min(path.config.max_concurrency, num_parts)
        pool = ThreadPoolExecutor(max_workers=workers)
        try:
            futures = []
            for i in range(num_parts):
                chunk = data[i * part_size : (i + 1) * part_size]
                futures.append(pool.submit(transfer.upload_part, path, upload_id, i + 1, chunk))

            for f in as_completed(futures):
                parts.append(f.result())
        except BaseException:
            # Parts still queued are dropped; only those already running finish.
            pool.shutdown(wait=True, cancel_futures=True)
            raise
        pool.shutdown(wait=True)

        parts.sort(key=lambda p: p.part_number)
        transfer.complete_upload(path, upload_id, parts)
    except BaseException:
        transfer.abort_upload(path, upload_id)
        raise


def write_text(path: S3Path, text: str, encoding: str = "utf-8", part_size: int | None = None) -> None:
    write_bytes(path, text.encode(encoding), part_size=part_size)


def _as_location(value: Any) -> S3Path | str:
    if isinstance(value, S3Path):
        return value
    if is_s3_uri(value):
        return S3Path.parse(value)
    return os.fspath(value)


def _download(source: S3Path, target: Path) -> None:
    # Stream into a sibling temp file and rename, so a failed copy never
    # leaves a partial file at the target.
    tmp = target.with_name(f"{target.name}.tmp.{uuid.uuid4().hex[:8]}")
    try:
        with ReadBuffer(source) as reader, open(tmp, "wb") as f:
            shutil.copyfileobj(reader, f, _COPY_CHUNK_SIZE)
        os.replace(tmp, target)
    except BaseException:
        try:
            tmp.unlink(missing_ok=True)
        except OSError:
            logger.warning("Failed to remove temp file %s", tmp, exc_info=True)
        raise


def copy(src: Location, dst: Location) -> None:
    """Copy one object or file to another location.

    Either side may be an S3Path (or ``s3://`` text) or a local filesystem
    path. Store-to-store copies on the same client happen server side;
    everything else streams through a read or write handle.

    Raises:
        NotFound: If the source object does not exist.
        FileNotFoundError: If the local source file does not exist.
    """
    source = _as_location(src)
    target = _as_location(dst)

    if isinstance(source, S3Path) and isinstance(target, S3Path):
        if source.config.client is target.config.client:
            target.config.retry_policy.call(
                "copy_object",
                target.config.client.copy_object,
                source.bucket,
                source.key,
                target.bucket,
                target.key,
            )
            return
        with ReadBuffer(source) as reader, WriteBuffer(target) as writer:
            shutil.copyfileobj(reader, writer, _COPY_CHUNK_SIZE)
        return

    if isinstance(source, S3Path):
        _download(source, Path(target))
        return

    if isinstance(target, S3Path):
        with open(source, "rb") as f, WriteBuffer(target) as writer:
            shutil.copyfileobj(f, writer, _COPY_CHUNK_SIZE)
        return

    shutil.copyfile(source, target)


__all__ = [
    "Probe",
    "ProbeStatus",
    "copy",
    "exists",
    "is_dir",
    "is_file",
    "mkpath",
    "probe",
    "read_bytes",
    "read_text",
    "remove",
    "stat",
    "write_bytes",
    "write_text",
]
