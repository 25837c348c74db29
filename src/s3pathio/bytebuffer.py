"""Fixed-capacity byte accumulator used by WriteBuffer."""


class BoundedByteBuffer:
    """A bytearray that never grows past ``capacity``.

    Attributes:
        capacity: Maximum number of bytes held at once.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._data = bytearray()

    def __len__(self) -> int:
        return len(self._data)

    @property
    def remaining(self) -> int:
        """Free room before the buffer is full."""
        return self.capacity - len(self._data)

    def is_full(self) -> bool:
        return len(self._data) >= self.capacity

    def append(self, data: bytes | memoryview) -> None:
        """Append bytes.

        Raises:
            OverflowError: If ``data`` does not fit in the remaining room.
        """
        if len(data) > self.remaining:
            raise OverflowError(
                f"cannot append {len(data)} bytes, only {self.remaining} of {self.capacity} free"
            )
        self._data += data

    def drain(self) -> bytes:
        """Return the buffered bytes and empty the buffer."""
        data = bytes(self._data)
        self._data.clear()
        return data

    def reset(self) -> None:
        """Discard the buffered bytes."""
        self._data.clear()
