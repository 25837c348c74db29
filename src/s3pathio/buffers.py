"""Buffered binary handles over single objects.

``WriteBuffer`` accumulates writes locally and only talks to the store when
its buffer overflows or it is closed: a small object goes up as one put, a
large one as a multipart upload whose parts are sent as the buffer fills.

``ReadBuffer`` learns the object size once, then serves reads from a cached
window of the object, fetching a new ranged window whenever the position
leaves the cached one.

Both follow the ``io.BufferedIOBase`` protocol so they can be handed to
code that expects a binary file object.
"""

from __future__ import annotations

import enum
import io
import logging
from types import TracebackType
from typing import TYPE_CHECKING

from s3pathio import transfer
from s3pathio.bytebuffer import BoundedByteBuffer
from s3pathio.client import CompletedPart
from s3pathio.errors import (
    EndOfStream,
    HandleClosed,
    InvalidMode,
    NotReadable,
    NotWritable,
    UploadFailed,
    ValidationError,
)

if TYPE_CHECKING:
    from s3pathio.path import S3Path

logger = logging.getLogger(__name__)

READ_MODES = ("r", "rb")
WRITE_MODES = ("w", "wb")


class WriteState(enum.Enum):
    ACCUMULATING = "accumulating"
    MULTIPART_ACTIVE = "multipart_active"
    CLOSED = "closed"


class WriteBuffer(io.BufferedIOBase):
    """Write handle that switches from single put to multipart on overflow.

    Attributes:
        path: Destination object.
        capacity: Local buffer size, which is also the size of every part
            but the last.
        upload_id: Multipart upload id, set once the first part is sent.
        completed_parts: Parts acknowledged by the store, in upload order.
        bytes_written: Total bytes accepted by ``write``.
        failure: The error from the first failed part upload, if any. Once
            set, the handle refuses further writes and ``close()`` aborts.
    """

    # A handle whose __init__ failed reads as closed, so IOBase.__del__
    # never tries to finalize it.
    _state = WriteState.CLOSED

    def __init__(self, path: S3Path, buffer_size: int | None = None) -> None:
        super().__init__()
        self.path = path
        self.capacity = buffer_size or path.config.part_size
        self.upload_id: str | None = None
        self.completed_parts: list[CompletedPart] = []
        self.bytes_written = 0
        self.failure: BaseException | None = None
        self._buffer = BoundedByteBuffer(self.capacity)
        self._state = WriteState.ACCUMULATING

    @property
    def state(self) -> WriteState:
        return self._state

    @property
    def next_part_number(self) -> int:
        return len(self.completed_parts) + 1

    @property
    def closed(self) -> bool:
        return self._state is WriteState.CLOSED

    @property
    def buffered(self) -> int:
        """Bytes held locally and not yet sent."""
        return len(self._buffer)

    def readable(self) -> bool:
        return False

    def writable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def tell(self) -> int:
        return self.bytes_written

    @property
    def position(self) -> int:
        return self.bytes_written

    def read(self, size: int | None = -1) -> bytes:
        raise NotReadable(self.path)

    def read1(self, size: int = -1) -> bytes:
        raise NotReadable(self.path)

    def readinto(self, b: bytearray | memoryview) -> int:  # type: ignore[override]
        raise NotReadable(self.path)

    def write(self, data: bytes | bytearray | memoryview) -> int:  # type: ignore[override]
        """Buffer ``data``, sending full parts as the buffer overflows.

        If the data does not fit in the free room, the fitting slice fills
        the buffer and the whole buffer is sent as a part; further full
        chunks of ``capacity`` bytes are sent directly, and the remainder
        (at most ``capacity`` bytes) stays buffered.

        Returns:
            ``len(data)``.

        Raises:
            HandleClosed: If the handle was closed or aborted.
            UploadFailed: If an earlier part upload failed.
        """
        if self.closed:
            raise HandleClosed(self.path)
        self._check_healthy()

        view = memoryview(data).cast("B")
        n = len(view)

        if n <= self._buffer.remaining:
            self._buffer.append(view)
        else:
            room = self._buffer.remaining
            self._buffer.append(view[:room])
            self._send_part(self._buffer.drain())

            offset = room
            while n - offset > self.capacity:
                self._send_part(view[offset : offset + self.capacity].tobytes())
                offset += self.capacity
            self._buffer.append(view[offset:])

        self.bytes_written += n
        return n

    def flush(self) -> None:
        """Send the buffered bytes as the next part.

        Starts the multipart upload if none is active yet. A no-op when the
        buffer is empty or the handle is closed.
        """
        if self.closed or not len(self._buffer):
            return
        self._check_healthy()
        self._send_part(self._buffer.drain())

    def _check_healthy(self) -> None:
        if self.failure is not None:
            raise UploadFailed(self.path) from self.failure

    def _send_part(self, data: bytes) -> None:
        try:
            if self.upload_id is None:
                self.upload_id = transfer.create_upload(self.path)
                self._state = WriteState.MULTIPART_ACTIVE
            part = transfer.upload_part(self.path, self.upload_id, self.next_part_number, data)
        except BaseException as e:
            # The drained bytes are gone, so the upload can no longer complete.
            self.failure = e
            raise
        self.completed_parts.append(part)

    def close(self) -> None:
        """Finalize the object.

        A handle that never sent a part stores its buffer with one put;
        otherwise the remaining bytes become the last part and the upload
        is completed. If finalizing fails, an active upload is aborted
        before the error propagates. Closing again does nothing.

        Raises:
            UploadFailed: If an earlier part upload failed. The upload is
                aborted and nothing is stored.
        """
        if self.closed:
            return
        try:
            self._check_healthy()
            if self._state is WriteState.ACCUMULATING:
                transfer.put(self.path, self._buffer.drain())
            else:
                if len(self._buffer):
                    self._send_part(self._buffer.drain())
                assert self.upload_id is not None
                transfer.complete_upload(self.path, self.upload_id, self.completed_parts)
        except BaseException:
            if self.upload_id is not None:
                transfer.abort_upload(self.path, self.upload_id)
            raise
        finally:
            self._state = WriteState.CLOSED
            super().close()

    def abort(self) -> None:
        """Discard buffered bytes and abort any active multipart upload.

        Nothing is stored under the key. The handle is closed afterwards.
        """
        if self.closed:
            return
        self._buffer.reset()
        if self.upload_id is not None:
            transfer.abort_upload(self.path, self.upload_id)
        self._state = WriteState.CLOSED
        super().close()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            logger.debug("Aborting write to %s after %s", self.path, exc_type.__name__)
            self.abort()
        else:
            self.close()

    def __repr__(self) -> str:
        return f"WriteBuffer({self.path!r}, state={self._state.value}, written={self.bytes_written})"


class ReadBuffer(io.BufferedIOBase):
    """Seekable read handle serving reads from a cached byte window.

    Attributes:
        path: Source object.
        object_size: Object size, learned by a HEAD request at open.
        window_capacity: Maximum bytes fetched per window.
    """

    def __init__(self, path: S3Path, buffer_size: int | None = None) -> None:
        super().__init__()
        self.path = path
        self.window_capacity = buffer_size or path.config.read_window_size
        self.object_size = transfer.head(path).size
        self._position = 0
        self._window = b""
        self._window_start = 0

    def readable(self) -> bool:
        return True

    def writable(self) -> bool:
        return False

    def seekable(self) -> bool:
        return True

    @property
    def position(self) -> int:
        return self._position

    def tell(self) -> int:
        self._check_open()
        return self._position

    def eof(self) -> bool:
        return self._position >= self.object_size

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """Move the position without fetching anything.

        Raises:
            ValidationError: If the target lies outside [0, object_size].
        """
        self._check_open()
        if whence == io.SEEK_SET:
            target = offset
        elif whence == io.SEEK_CUR:
            target = self._position + offset
        elif whence == io.SEEK_END:
            target = self.object_size + offset
        else:
            raise ValidationError(f"Invalid whence {whence}")

        if not 0 <= target <= self.object_size:
            raise ValidationError(f"Seek position {target} outside [0, {self.object_size}] for {self.path}")
        self._position = target
        return target

    def _check_open(self) -> None:
        if self.closed:
            raise HandleClosed(self.path)

    def _in_window(self, pos: int) -> bool:
        return self._window_start <= pos < self._window_start + len(self._window)

    def _fill_window(self) -> None:
        start = self._position
        end = min(start + self.window_capacity, self.object_size) - 1
        data = transfer.fetch(self.path, (start, end))
        if not data:
            raise EndOfStream(end - start + 1, 0)
        self._window = data
        self._window_start = start

    def peek(self, size: int = 0) -> bytes:
        """Return buffered bytes from the position on, without advancing."""
        self._check_open()
        if self.eof():
            return b""
        if not self._in_window(self._position):
            self._fill_window()
        return self._window[self._position - self._window_start :]

    def read(self, size: int | None = -1) -> bytes:
        """Read up to ``size`` bytes; everything left when ``size`` is negative.

        Returns ``b""`` at end of stream. Requests larger than the window
        are fetched with one ranged call and leave the window untouched.
        """
        self._check_open()
        available = self.object_size - self._position
        if size is None or size < 0 or size > available:
            size = available
        if size <= 0:
            return b""

        if size > self.window_capacity:
            data = transfer.fetch(self.path, (self._position, self._position + size - 1))
            self._position += len(data)
            return data

        out = bytearray()
        while len(out) < size:
            if not self._in_window(self._position):
                self._fill_window()
            offset = self._position - self._window_start
            chunk = self._window[offset : offset + size - len(out)]
            out += chunk
            self._position += len(chunk)
        return bytes(out)

    def read1(self, size: int = -1) -> bytes:
        return self.read(size)

    def readinto(self, b: bytearray | memoryview) -> int:  # type: ignore[override]
        view = memoryview(b).cast("B")
        data = self.read(len(view))
        view[: len(data)] = data
        return len(data)

    def read_exact(self, n: int) -> bytes:
        """Read exactly ``n`` bytes.

        Raises:
            EndOfStream: If fewer than ``n`` bytes remain.
        """
        self._check_open()
        available = self.object_size - self._position
        if n > available:
            raise EndOfStream(n, available)
        return self.read(n)

    def write(self, data: bytes) -> int:  # type: ignore[override]
        raise NotWritable(self.path)

    def close(self) -> None:
        self._window = b""
        super().close()

    def __repr__(self) -> str:
        return f"ReadBuffer({self.path!r}, position={self._position}, size={self.object_size})"


def open_path(path: S3Path, mode: str = "rb", *, buffer_size: int | None = None) -> ReadBuffer | WriteBuffer:
    """Open a buffered handle on ``path``.

    Args:
        path: The object to read or write.
        mode: ``"r"``/``"rb"`` to read, ``"w"``/``"wb"`` to write. Handles
            are always binary.
        buffer_size: Window size for reads, part size for writes. Defaults
            come from the path's config.

    Raises:
        InvalidMode: For any other mode.
        NotFound: When opening a missing object for reading.
    """
    if mode in READ_MODES:
        return ReadBuffer(path, buffer_size)
    if mode in WRITE_MODES:
        return WriteBuffer(path, buffer_size)
    raise InvalidMode(mode)
