"""Tests for directory listing across paginated responses."""

import pytest

from s3pathio.client import ListingPage
from s3pathio.errors import NotADirectory
from s3pathio.listing import iter_pages, list_dir
from s3pathio.path import S3Path
from s3pathio.storage.memory import MemoryObjectStoreClient

BUCKET = "test-bucket"


class _ScriptedClient:
    """Returns canned listing pages in order and records the tokens sent."""

    def __init__(self, pages: list[ListingPage]) -> None:
        self.pages = list(pages)
        self.tokens: list[str | None] = []

    def list_objects_v2(self, bucket, prefix="", delimiter="", continuation_token=None, max_keys=1000):
        self.tokens.append(continuation_token)
        return self.pages.pop(0)


class TestListDir:
    """Tests for list_dir()."""

    def test_empty_directory_marker_is_skipped(self, store):
        directory = S3Path(BUCKET, "directory/")
        directory.mkpath()
        assert list_dir(directory) == []

    def test_ten_files(self, store):
        directory = S3Path(BUCKET, "directory/")
        directory.mkpath()
        for i in range(1, 11):
            (directory / f"file_{i}").write_text(f"This is file {i}")

        names = list_dir(directory)
        assert len(names) == 10
        assert all(isinstance(name, str) for name in names)
        assert names == sorted(names)

        paths = list_dir(directory, join=True)
        assert len(paths) == 10
        assert all(isinstance(p, S3Path) for p in paths)
        assert all(p.dirname == directory for p in paths)
        assert [p.basename for p in paths] == names

    def test_immediate_children_only(self, store):
        for key in ("dir/a.txt", "dir/sub/b.txt", "dir/sub/deeper/c.txt", "dirt.txt", "other/x"):
            store.put_object(BUCKET, key, b"x")

        assert list_dir(S3Path(BUCKET, "dir/")) == ["a.txt", "sub/"]

    def test_bucket_root(self, store):
        for key in ("a.txt", "dir/b.txt", "dir/c.txt"):
            store.put_object(BUCKET, key, b"x")

        assert list_dir(S3Path(BUCKET, "")) == ["a.txt", "dir/"]

    def test_slash_entries_discarded(self, store):
        store.put_object(BUCKET, "dir//odd", b"x")
        store.put_object(BUCKET, "dir/ok", b"x")
        assert list_dir(S3Path(BUCKET, "dir/")) == ["ok"]

    def test_complete_across_pages(self, make_config):
        client = MemoryObjectStoreClient(page_size=3)
        config = make_config(client)
        directory = S3Path(BUCKET, "dir/", config)
        for i in range(10):
            client.put_object(BUCKET, f"dir/file_{i:02d}", b"x")
        for i in range(2):
            client.put_object(BUCKET, f"dir/sub_{i}/nested", b"x")

        names = list_dir(directory)

        assert names == [f"file_{i:02d}" for i in range(10)] + ["sub_0/", "sub_1/"]
        assert client.call_count("list_objects_v2") == 4

    def test_duplicates_merged(self, make_config):
        client = _ScriptedClient(
            [
                ListingPage(common_prefixes=["d/sub/"], keys=["d/a"], continuation_token="t1"),
                ListingPage(common_prefixes=["d/sub/"], keys=["d/b"], continuation_token=None),
            ]
        )
        names = list_dir(S3Path(BUCKET, "d/", make_config(client)))

        assert names == ["a", "b", "sub/"]
        assert client.tokens == [None, "t1"]

    def test_unsorted(self, make_config):
        client = _ScriptedClient([ListingPage(keys=["d/z", "d/a", "d/m"])])
        names = list_dir(S3Path(BUCKET, "d/", make_config(client)), sort=False)
        assert names == ["z", "a", "m"]

    def test_not_a_directory(self, store):
        with pytest.raises(NotADirectory):
            list_dir(S3Path(BUCKET, "dir/file.txt"))
        assert store.call_count("list_objects_v2") == 0

    def test_path_method(self, store):
        store.put_object(BUCKET, "dir/a", b"x")
        assert S3Path(BUCKET, "dir/").list_dir(join=True) == [S3Path(BUCKET, "dir/a")]


class TestIterPages:
    """Tests for iter_pages()."""

    def test_yields_every_page(self, make_config):
        client = MemoryObjectStoreClient(page_size=2)
        for i in range(5):
            client.put_object(BUCKET, f"p/{i}", b"x")

        pages = list(iter_pages(S3Path(BUCKET, "p/", make_config(client))))

        assert [len(page.keys) for page in pages] == [2, 2, 1]
        assert pages[-1].continuation_token is None

    def test_request_shape(self, store):
        list(iter_pages(S3Path(BUCKET, "p/")))
        op, args = store.calls[-1]
        assert op == "list_objects_v2"
        assert args["prefix"] == "p/"
        assert args["delimiter"] == "/"
        assert args["continuation_token"] is None
