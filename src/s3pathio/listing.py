"""Directory listings over delimiter-based, paginated object listings.

A "directory" is any key prefix ending in '/'. Listing it asks the store
for keys and common prefixes directly below that prefix, page by page, and
returns their names relative to the directory.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from s3pathio import metrics
from s3pathio.client import ListingPage
from s3pathio.errors import NotADirectory
from s3pathio.path import DELIMITER, S3Path, join as join_path

logger = logging.getLogger(__name__)


def _check_dir(path: S3Path) -> None:
    if path.key and not path.is_dir_key:
        raise NotADirectory(path)


def iter_pages(path: S3Path, max_keys: int = 1000) -> Iterator[ListingPage]:
    """Yield every listing page directly below a directory path.

    Pages are requested lazily, each with the continuation token of the one
    before, until the store stops returning a token. Listing calls are not
    retried.

    Raises:
        NotADirectory: If the key is neither empty nor ends with '/'.
    """
    _check_dir(path)
    client = path.config.client
    token: str | None = None
    pages = 0

    while True:
        page = client.list_objects_v2(
            path.bucket,
            prefix=path.key,
            delimiter=DELIMITER,
            continuation_token=token,
            max_keys=max_keys,
        )
        metrics.record_operation("list_objects_v2", "ok")
        pages += 1
        yield page
        token = page.continuation_token
        if not token:
            break

    logger.debug("Listed %s in %d page(s)", path, pages, extra={"bucket": path.bucket, "key": path.key})


def list_dir(path: S3Path, *, join: bool = False, sort: bool = True) -> list[str] | list[S3Path]:
    """List the immediate children of a directory path.

    Both sub-directories (common prefixes, returned with their trailing
    '/') and objects are included, relative to the directory. The marker
    object of the directory itself and bare '/' entries are skipped.

    Args:
        path: A directory path (empty key or key ending in '/').
        join: Return child S3Paths instead of relative names.
        sort: Sort the names lexicographically.

    Raises:
        NotADirectory: If the key is neither empty nor ends with '/'.
    """
    prefix_length = len(path.key)
    names: list[str] = []
    seen: set[str] = set()

    for page in iter_pages(path):
        for full_key in (*page.common_prefixes, *page.keys):
            name = full_key[prefix_length:]
            if not name or name == DELIMITER or name in seen:
                continue
            seen.add(name)
            names.append(name)

    if sort:
        names.sort()

    if join:
        return [join_path(path, name) for name in names]
    return list(names)
