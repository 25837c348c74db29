"""Object store client protocol and data types for s3pathio."""

from dataclasses import dataclass, field
from typing import Protocol, Sequence


@dataclass(frozen=True, slots=True)
class ObjectHead:
    """Metadata returned by a HEAD object request."""

    size: int
    etag: str | None = None
    content_type: str | None = None


@dataclass(frozen=True, slots=True)
class CompletedPart:
    """A part of a multipart upload that the store has acknowledged."""

    part_number: int
    etag: str


@dataclass(frozen=True, slots=True)
class ListingPage:
    """One page of a delimiter-based listing.

    Attributes:
        common_prefixes: Virtual directories (full keys ending in the delimiter).
        keys: Object keys on this page.
        continuation_token: Cursor for the next page, or None on the last page.
    """

    common_prefixes: list[str] = field(default_factory=list)
    keys: list[str] = field(default_factory=list)
    continuation_token: str | None = None


class ObjectStoreClient(Protocol):
    """Protocol defining the blocking object store interface.

    All backends (boto3 against AWS S3 or a compatible service, the
    in-memory store) implement these calls. A missing object is reported
    by raising ``NotFound``; every other failure propagates unchanged so
    the retry layer can decide what to do with it.
    """

    def head_object(self, bucket: str, key: str) -> ObjectHead:
        """Fetch object metadata.

        Raises:
            NotFound: If the object does not exist.
        """
        ...

    def get_object(
        self, bucket: str, key: str, byte_range: tuple[int, int] | None = None
    ) -> bytes:
        """Fetch object bytes.

        Args:
            bucket: The bucket name.
            key: The object key.
            byte_range: Optional inclusive (start, end) byte offsets.

        Raises:
            NotFound: If the object does not exist.
        """
        ...

    def put_object(self, bucket: str, key: str, data: bytes) -> str:
        """Store an object in a single request and return its ETag."""
        ...

    def delete_object(self, bucket: str, key: str) -> None:
        """Delete an object. Deleting a missing key is not an error."""
        ...

    def create_multipart_upload(self, bucket: str, key: str) -> str:
        """Start a multipart upload and return its upload id."""
        ...

    def upload_part(
        self, bucket: str, key: str, upload_id: str, part_number: int, data: bytes
    ) -> str:
        """Upload one part (numbered from 1) and return its ETag."""
        ...

    def complete_multipart_upload(
        self, bucket: str, key: str, upload_id: str, parts: Sequence[CompletedPart]
    ) -> str:
        """Assemble the uploaded parts, in the given order, into the final object."""
        ...

    def abort_multipart_upload(self, bucket: str, key: str, upload_id: str) -> None:
        """Discard a multipart upload and every part uploaded to it."""
        ...

    def copy_object(self, src_bucket: str, src_key: str, dst_bucket: str, dst_key: str) -> str:
        """Server-side copy of one object to another location."""
        ...

    def list_objects_v2(
        self,
        bucket: str,
        prefix: str = "",
        delimiter: str = "",
        continuation_token: str | None = None,
        max_keys: int = 1000,
    ) -> ListingPage:
        """Return one page of keys and common prefixes under ``prefix``."""
        ...
