"""Typed ``s3://bucket/key`` paths.

An ``S3Path`` is an immutable (bucket, key, config) value. Keys never start
with ``/``; a key ending in ``/`` names a directory marker, anything else a
file-like object. Path arithmetic (basename, dirname, join, split_dir)
works on the key with posix segment rules and always carries the original
config along.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from s3pathio.context import StoreConfig, default_config
from s3pathio.errors import InvalidPath

if TYPE_CHECKING:
    from s3pathio.buffers import ReadBuffer, WriteBuffer
    from s3pathio.client import ObjectHead
    from s3pathio.fs import Probe

SCHEME = "s3://"
DELIMITER = "/"


@dataclass(frozen=True, repr=False)
class S3Path:
    """A bucket and a key within it, bound to a StoreConfig.

    Attributes:
        bucket: The bucket name.
        key: The object key, possibly empty (bucket root).
        config: The store config used for every call made through this path.
            Defaults to the process-wide default at construction time.
    """

    bucket: str
    key: str = ""
    config: StoreConfig = field(default=None)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if not self.bucket or DELIMITER in self.bucket:
            raise InvalidPath(f"{SCHEME}{self.bucket}/{self.key}", "bucket name is empty or contains '/'")
        if self.key.startswith(DELIMITER):
            raise InvalidPath(f"{SCHEME}{self.bucket}/{self.key}", "key must not start with '/'")
        if self.config is None:
            object.__setattr__(self, "config", default_config())

    # -- Parsing ---------------------------------------------------------------

    @classmethod
    def parse(cls, uri: str, config: StoreConfig | None = None) -> S3Path:
        """Parse ``s3://bucket/key`` text into a path.

        Args:
            uri: The URI text. ``s3://bucket/`` is the bucket root.
            config: Store config for the new path; the default when omitted.

        Raises:
            InvalidPath: If the scheme is missing or no '/' separates the
                bucket from the key.
        """
        if not isinstance(uri, str) or not uri.startswith(SCHEME):
            raise InvalidPath(str(uri), f"expected the {SCHEME} scheme")
        rest = uri[len(SCHEME) :]
        if DELIMITER not in rest:
            raise InvalidPath(uri, "missing '/' between bucket and key")
        bucket, key = rest.split(DELIMITER, 1)
        return cls(bucket, key, config)

    @classmethod
    def try_parse(cls, uri: str | None, config: StoreConfig | None = None) -> S3Path | None:
        """Like ``parse`` but returns None for text that is not a valid URI.

        The default config is resolved before parsing, so a broken
        environment config still raises rather than reading as a bad URI.
        """
        if uri is None:
            return None
        if config is None:
            config = default_config()
        try:
            return cls.parse(uri, config)
        except InvalidPath:
            return None

    # -- Text forms ------------------------------------------------------------

    @property
    def uri(self) -> str:
        return f"{SCHEME}{self.bucket}/{self.key}"

    def __str__(self) -> str:
        return self.uri

    def __repr__(self) -> str:
        return f"S3Path({self.uri!r})"

    # -- Path arithmetic -------------------------------------------------------

    @property
    def is_dir_key(self) -> bool:
        """True when the key follows the directory-marker convention."""
        return self.key.endswith(DELIMITER)

    @property
    def basename(self) -> str:
        """Last key segment; empty for directory keys."""
        return posixpath.basename(self.key)

    name = basename

    @property
    def dirname(self) -> S3Path:
        """The directory containing this key (itself, for a directory key)."""
        parent = posixpath.dirname(self.key)
        return S3Path(self.bucket, parent + DELIMITER if parent else "", self.config)

    parent = dirname

    def joinpath(self, *segments: str) -> S3Path:
        return join(self, *segments)

    def __truediv__(self, segment: str) -> S3Path:
        return join(self, segment)

    def split_dir(self) -> tuple[S3Path, str]:
        """Split into (parent directory, last segment).

        A directory key keeps its trailing slash on the last segment, so
        ``s3://b/dir/sub/`` splits into (``s3://b/dir/``, ``"sub/"``) and
        repeated splitting walks up one directory at a time. The parent
        key, when non-empty, always ends with '/'.
        """
        stripped = self.key[:-1] if self.is_dir_key else self.key
        idx = stripped.rfind(DELIMITER)
        parent_key = stripped[: idx + 1]
        last = stripped[idx + 1 :]
        if self.is_dir_key:
            last += DELIMITER
        return S3Path(self.bucket, parent_key, self.config), last

    def with_config(self, config: StoreConfig) -> S3Path:
        return S3Path(self.bucket, self.key, config)

    # -- Store operations ------------------------------------------------------

    def probe(self) -> Probe:
        from s3pathio import fs

        return fs.probe(self)

    def exists(self) -> bool:
        from s3pathio import fs

        return fs.exists(self)

    def is_file(self) -> bool:
        from s3pathio import fs

        return fs.is_file(self)

    def is_dir(self) -> bool:
        from s3pathio import fs

        return fs.is_dir(self)

    def stat(self) -> ObjectHead:
        from s3pathio import fs

        return fs.stat(self)

    def remove(self) -> None:
        from s3pathio import fs

        fs.remove(self)

    def mkpath(self) -> None:
        from s3pathio import fs

        fs.mkpath(self)

    def read_bytes(self) -> bytes:
        from s3pathio import fs

        return fs.read_bytes(self)

    def read_text(self, encoding: str = "utf-8") -> str:
        from s3pathio import fs

        return fs.read_text(self, encoding=encoding)

    def write_bytes(self, data: bytes, part_size: int | None = None) -> None:
        from s3pathio import fs

        fs.write_bytes(self, data, part_size=part_size)

    def write_text(self, text: str, encoding: str = "utf-8", part_size: int | None = None) -> None:
        from s3pathio import fs

        fs.write_text(self, text, encoding=encoding, part_size=part_size)

    def copy_to(self, dst: Any) -> None:
        from s3pathio import fs

        fs.copy(self, dst)

    def list_dir(self, *, join: bool = False, sort: bool = True) -> list[Any]:
        from s3pathio import listing

        return listing.list_dir(self, join=join, sort=sort)

    def open(self, mode: str = "rb", *, buffer_size: int | None = None) -> ReadBuffer | WriteBuffer:
        from s3pathio import buffers

        return buffers.open_path(self, mode, buffer_size=buffer_size)


def join(path: S3Path, *segments: str) -> S3Path:
    """Append key segments to a path, posix style.

    Raises:
        TypeError: If the first argument is not an S3Path.
    """
    if not isinstance(path, S3Path):
        raise TypeError(f"First argument should be an S3Path, got {type(path).__name__}")
    return S3Path(path.bucket, posixpath.join(path.key, *segments), path.config)


def split_dir(path: S3Path) -> tuple[S3Path, str]:
    return path.split_dir()


def is_s3_uri(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(SCHEME)


__all__ = ["DELIMITER", "S3Path", "SCHEME", "is_s3_uri", "join", "split_dir"]
