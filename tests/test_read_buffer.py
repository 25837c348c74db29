"""Tests for ReadBuffer: windowed ranged reads, seeking and end of stream."""

import io
import math
import os

import pytest

from s3pathio.buffers import ReadBuffer, open_path
from s3pathio.errors import EndOfStream, HandleClosed, NotFound, NotWritable, ValidationError
from s3pathio.path import S3Path

BUCKET = "test-bucket"
CONTENT = bytes(range(100))


@pytest.fixture
def obj(store) -> S3Path:
    """A 100-byte object, read through a 10-byte window."""
    store.put_object(BUCKET, "object", CONTENT)
    return S3Path(BUCKET, "object")


def _ranges(store) -> list[tuple[int, int] | None]:
    return [args["byte_range"] for op, args in store.calls if op == "get_object"]


class TestOpen:
    """Tests for opening a read handle."""

    def test_learns_size_with_one_head(self, store, obj):
        with ReadBuffer(obj, buffer_size=10) as reader:
            assert reader.object_size == 100
            assert reader.tell() == 0
        assert store.call_count("head_object") == 1
        assert store.call_count("get_object") == 0

    def test_missing_object(self, store):
        with pytest.raises(NotFound):
            ReadBuffer(S3Path(BUCKET, "missing"))

    def test_open_modes(self, obj):
        for mode in ("r", "rb"):
            with open_path(obj, mode) as reader:
                assert isinstance(reader, ReadBuffer)
                assert reader.readable()
                assert not reader.writable()


class TestWindowing:
    """Reads inside the cached window cost no requests."""

    def test_reads_inside_window(self, store, obj):
        with ReadBuffer(obj, buffer_size=10) as reader:
            assert reader.read(4) == CONTENT[0:4]
            assert reader.read(4) == CONTENT[4:8]
            assert store.call_count("get_object") == 1
            assert reader.read(4) == CONTENT[8:12]
            assert store.call_count("get_object") == 2
        assert _ranges(store) == [(0, 9), (10, 19)]

    def test_byte_by_byte_fetches_each_window_once(self, store):
        data = os.urandom(1024)
        store.put_object(BUCKET, "random", data)

        chunks = []
        with ReadBuffer(S3Path(BUCKET, "random"), buffer_size=100) as reader:
            while not reader.eof():
                chunks.append(reader.read(1))

        assert b"".join(chunks) == data
        assert store.call_count("get_object") <= math.ceil(1024 / 100)

    def test_seek_does_not_fetch(self, store, obj):
        with ReadBuffer(obj, buffer_size=10) as reader:
            reader.seek(50)
            assert store.call_count("get_object") == 0
            assert reader.read(1) == CONTENT[50:51]
        assert _ranges(store) == [(50, 59)]

    def test_seek_back_into_window(self, store, obj):
        with ReadBuffer(obj, buffer_size=10) as reader:
            reader.read(8)
            reader.seek(2)
            assert reader.read(3) == CONTENT[2:5]
        assert store.call_count("get_object") == 1

    def test_window_clipped_at_end(self, store, obj):
        with ReadBuffer(obj, buffer_size=10) as reader:
            reader.seek(95)
            assert reader.read(10) == CONTENT[95:]
        assert _ranges(store) == [(95, 99)]

    def test_large_read_is_one_request(self, store, obj):
        with ReadBuffer(obj, buffer_size=10) as reader:
            assert reader.read(25) == CONTENT[:25]
            assert _ranges(store) == [(0, 24)]
            assert reader.read(1) == CONTENT[25:26]
        assert _ranges(store) == [(0, 24), (25, 34)]

    def test_read_all(self, obj):
        with ReadBuffer(obj, buffer_size=10) as reader:
            reader.seek(10)
            assert reader.read() == CONTENT[10:]

    def test_readinto(self, obj):
        buf = bytearray(6)
        with ReadBuffer(obj, buffer_size=10) as reader:
            assert reader.readinto(buf) == 6
        assert bytes(buf) == CONTENT[:6]


class TestEndOfStream:
    """Tests for eof(), read_exact() and reads at the end."""

    def test_eof(self, obj):
        with ReadBuffer(obj, buffer_size=10) as reader:
            assert not reader.eof()
            reader.read(100)
            assert reader.eof()
            assert reader.read() == b""
            assert reader.read(5) == b""

    def test_read_exact(self, obj):
        with ReadBuffer(obj, buffer_size=10) as reader:
            reader.seek(90)
            assert reader.read_exact(10) == CONTENT[90:]

    def test_read_exact_past_end(self, store, obj):
        with ReadBuffer(obj, buffer_size=10) as reader:
            reader.seek(95)
            with pytest.raises(EndOfStream) as exc_info:
                reader.read_exact(6)
            assert exc_info.value.requested == 6
            assert exc_info.value.available == 5
            assert reader.tell() == 95
        assert store.call_count("get_object") == 0

    def test_empty_object(self, store):
        store.put_object(BUCKET, "empty", b"")
        with ReadBuffer(S3Path(BUCKET, "empty")) as reader:
            assert reader.eof()
            assert reader.read() == b""
        assert store.call_count("get_object") == 0


class TestSeek:
    """Tests for seek() and tell()."""

    def test_whence(self, obj):
        with ReadBuffer(obj, buffer_size=10) as reader:
            assert reader.seek(10) == 10
            assert reader.seek(5, io.SEEK_CUR) == 15
            assert reader.seek(-10, io.SEEK_END) == 90
            assert reader.seek(0, io.SEEK_END) == 100
            assert reader.eof()

    @pytest.mark.parametrize("target", [-1, 101])
    def test_out_of_bounds(self, obj, target):
        with ReadBuffer(obj, buffer_size=10) as reader:
            with pytest.raises(ValidationError):
                reader.seek(target)
            assert reader.tell() == 0


class TestLines:
    """Line-oriented access through the io protocol."""

    def test_iteration(self, store):
        store.put_object(BUCKET, "lines.txt", b"a\nbb\nccc\ndddd")
        with ReadBuffer(S3Path(BUCKET, "lines.txt"), buffer_size=4) as reader:
            assert list(reader) == [b"a\n", b"bb\n", b"ccc\n", b"dddd"]

    def test_text_wrapper(self, store):
        store.put_object(BUCKET, "text.txt", "héllo\nwörld\n".encode())
        with ReadBuffer(S3Path(BUCKET, "text.txt"), buffer_size=3) as reader:
            text = io.TextIOWrapper(reader, encoding="utf-8")
            assert text.read() == "héllo\nwörld\n"


class TestState:
    """Closed and write-side errors."""

    def test_read_after_close(self, obj):
        reader = ReadBuffer(obj)
        reader.close()
        assert reader.closed
        with pytest.raises(HandleClosed):
            reader.read(1)

    def test_write_on_read_handle(self, obj):
        with ReadBuffer(obj) as reader:
            with pytest.raises(NotWritable):
                reader.write(b"x")
