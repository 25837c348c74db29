"""In-memory object store client for s3pathio.

Implements the ObjectStoreClient protocol using Python dictionaries.
Objects are stored keyed by (bucket, key); multipart parts are staged
per upload id until the upload is completed or aborted.

Useful for tests and for running code against a throwaway store. Data is
lost when the client is garbage collected. Every call is recorded in
``calls`` so tests can count round trips.
"""

import hashlib
import logging
import threading
import uuid
from typing import Any, Sequence

from s3pathio.client import CompletedPart, ListingPage, ObjectHead
from s3pathio.errors import InvalidPart, NoSuchUpload, NotFound

logger = logging.getLogger(__name__)


class MemoryObjectStoreClient:
    """Object store client that holds all objects in memory.

    Attributes:
        page_size: Upper bound on entries returned per listing page, on top
            of the caller's ``max_keys``. Lets tests force pagination.
        calls: Recorded ``(operation, arguments)`` tuples, in call order.
    """

    def __init__(self, page_size: int = 1000) -> None:
        self.page_size = page_size
        self.calls: list[tuple[str, dict[str, Any]]] = []

        # Object storage: (bucket, key) -> (data, etag)
        self._objects: dict[tuple[str, str], tuple[bytes, str]] = {}
        # Upload registry: upload_id -> (bucket, key)
        self._uploads: dict[str, tuple[str, str]] = {}
        # Part storage: (upload_id, part_number) -> (data, etag)
        self._parts: dict[tuple[str, int], tuple[bytes, str]] = {}
        # Part uploads run on worker threads during bulk writes.
        self._lock = threading.Lock()

    def _record(self, operation: str, **arguments: Any) -> None:
        with self._lock:
            self.calls.append((operation, arguments))

    def call_count(self, operation: str) -> int:
        """Return how many times ``operation`` has been called."""
        return sum(1 for name, _ in self.calls if name == operation)

    @property
    def pending_uploads(self) -> dict[str, tuple[str, str]]:
        """Multipart uploads that were neither completed nor aborted."""
        return dict(self._uploads)

    def _require_upload(self, upload_id: str, bucket: str, key: str) -> None:
        if self._uploads.get(upload_id) != (bucket, key):
            raise NoSuchUpload(upload_id)

    # -- Objects ---------------------------------------------------------------

    def head_object(self, bucket: str, key: str) -> ObjectHead:
        self._record("head_object", bucket=bucket, key=key)
        entry = self._objects.get((bucket, key))
        if entry is None:
            raise NotFound(bucket, key)
        data, etag = entry
        return ObjectHead(size=len(data), etag=etag, content_type="application/octet-stream")

    def get_object(
        self, bucket: str, key: str, byte_range: tuple[int, int] | None = None
    ) -> bytes:
        self._record("get_object", bucket=bucket, key=key, byte_range=byte_range)
        entry = self._objects.get((bucket, key))
        if entry is None:
            raise NotFound(bucket, key)
        data, _ = entry
        if byte_range is None:
            return data
        start, end = byte_range
        return data[start : end + 1]

    def put_object(self, bucket: str, key: str, data: bytes) -> str:
        self._record("put_object", bucket=bucket, key=key, size=len(data))
        data = bytes(data)
        etag = hashlib.md5(data).hexdigest()
        with self._lock:
            self._objects[(bucket, key)] = (data, etag)
        return etag

    def delete_object(self, bucket: str, key: str) -> None:
        self._record("delete_object", bucket=bucket, key=key)
        with self._lock:
            self._objects.pop((bucket, key), None)

    def copy_object(self, src_bucket: str, src_key: str, dst_bucket: str, dst_key: str) -> str:
        self._record(
            "copy_object",
            src_bucket=src_bucket,
            src_key=src_key,
            dst_bucket=dst_bucket,
            dst_key=dst_key,
        )
        entry = self._objects.get((src_bucket, src_key))
        if entry is None:
            raise NotFound(src_bucket, src_key)
        with self._lock:
            self._objects[(dst_bucket, dst_key)] = entry
        return entry[1]

    # -- Multipart -------------------------------------------------------------

    def create_multipart_upload(self, bucket: str, key: str) -> str:
        self._record("create_multipart_upload", bucket=bucket, key=key)
        upload_id = uuid.uuid4().hex
        with self._lock:
            self._uploads[upload_id] = (bucket, key)
        return upload_id

    def upload_part(
        self, bucket: str, key: str, upload_id: str, part_number: int, data: bytes
    ) -> str:
        self._record(
            "upload_part",
            bucket=bucket,
            key=key,
            upload_id=upload_id,
            part_number=part_number,
            size=len(data),
        )
        self._require_upload(upload_id, bucket, key)
        data = bytes(data)
        etag = hashlib.md5(data).hexdigest()
        with self._lock:
            self._parts[(upload_id, part_number)] = (data, etag)
        return etag

    def complete_multipart_upload(
        self, bucket: str, key: str, upload_id: str, parts: Sequence[CompletedPart]
    ) -> str:
        """Assemble staged parts, in manifest order, into the final object.

        Raises:
            NoSuchUpload: If the upload id is unknown for this bucket/key.
            InvalidPart: If the manifest is empty, not ascending, or names a
                part/ETag that was never uploaded.
        """
        self._record(
            "complete_multipart_upload",
            bucket=bucket,
            key=key,
            upload_id=upload_id,
            parts=[(p.part_number, p.etag) for p in parts],
        )
        self._require_upload(upload_id, bucket, key)
        if not parts:
            raise InvalidPart("The manifest must name at least one part.")

        chunks: list[bytes] = []
        md5s: list[bytes] = []
        previous = 0
        for part in parts:
            if part.part_number <= previous:
                raise InvalidPart("The list of parts was not in ascending order.")
            previous = part.part_number
            staged = self._parts.get((upload_id, part.part_number))
            if staged is None or staged[1] != part.etag:
                raise InvalidPart()
            chunks.append(staged[0])
            md5s.append(bytes.fromhex(staged[1]))

        data = b"".join(chunks)
        # Same shape as S3's multipart ETag: md5 of part md5s, dash, part count.
        etag = f"{hashlib.md5(b''.join(md5s)).hexdigest()}-{len(parts)}"

        with self._lock:
            self._objects[(bucket, key)] = (data, etag)
            self._drop_upload(upload_id)
        return etag

    def abort_multipart_upload(self, bucket: str, key: str, upload_id: str) -> None:
        self._record("abort_multipart_upload", bucket=bucket, key=key, upload_id=upload_id)
        self._require_upload(upload_id, bucket, key)
        with self._lock:
            self._drop_upload(upload_id)

    def _drop_upload(self, upload_id: str) -> None:
        """Forget an upload and its staged parts. Caller holds the lock."""
        self._uploads.pop(upload_id, None)
        for part_key in [pk for pk in self._parts if pk[0] == upload_id]:
            del self._parts[part_key]

    # -- Listing ---------------------------------------------------------------

    def _entries(self, bucket: str, prefix: str, delimiter: str) -> list[tuple[str, bool]]:
        """Return sorted, unique listing entries as (name, is_common_prefix).

        Keys sharing a common prefix collapse into one entry; since the
        prefix sorts immediately before its members, the result stays
        sorted and continuation tokens can be plain "last entry" markers.
        """
        keys = sorted(k for (b, k) in self._objects if b == bucket and k.startswith(prefix))

        entries: list[tuple[str, bool]] = []
        seen_prefixes: set[str] = set()
        for key in keys:
            if delimiter:
                suffix = key[len(prefix) :]
                delim_pos = suffix.find(delimiter)
                if delim_pos >= 0:
                    cp = prefix + suffix[: delim_pos + len(delimiter)]
                    if cp not in seen_prefixes:
                        seen_prefixes.add(cp)
                        entries.append((cp, True))
                    continue
            entries.append((key, False))
        return entries

    def list_objects_v2(
        self,
        bucket: str,
        prefix: str = "",
        delimiter: str = "",
        continuation_token: str | None = None,
        max_keys: int = 1000,
    ) -> ListingPage:
        self._record(
            "list_objects_v2",
            bucket=bucket,
            prefix=prefix,
            delimiter=delimiter,
            continuation_token=continuation_token,
        )
        limit = min(max_keys, self.page_size)
        if limit <= 0:
            return ListingPage()

        with self._lock:
            entries = self._entries(bucket, prefix, delimiter)

        if continuation_token:
            entries = [e for e in entries if e[0] > continuation_token]

        page = entries[:limit]
        next_token = page[-1][0] if len(entries) > limit else None

        return ListingPage(
            common_prefixes=[name for name, is_prefix in page if is_prefix],
            keys=[name for name, is_prefix in page if not is_prefix],
            continuation_token=next_token,
        )
