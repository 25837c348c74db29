"""Prometheus metrics definitions for s3pathio.

All metrics use the ``s3pathio_`` prefix.  Collectors are only created when
``init_metrics()`` is called; until then the module-level references stay
``None`` and the ``record_*`` helpers do nothing, so importing the package
never touches the global prometheus registry.
"""

from __future__ import annotations

from prometheus_client import Counter

_initialized: bool = False

# ---------------------------------------------------------------------------
# Object store call counter  (labels: operation, status)
# ---------------------------------------------------------------------------
operations_total: Counter | None = None

# ---------------------------------------------------------------------------
# Retry counter  (labels: operation)
# ---------------------------------------------------------------------------
retries_total: Counter | None = None

# ---------------------------------------------------------------------------
# Byte counters
# ---------------------------------------------------------------------------
bytes_uploaded_total: Counter | None = None
bytes_downloaded_total: Counter | None = None


def init_metrics() -> None:
    """Create and register all Prometheus metrics.

    Safe to call more than once; only the first call registers collectors.
    """
    global _initialized
    global operations_total, retries_total
    global bytes_uploaded_total, bytes_downloaded_total

    if _initialized:
        return

    operations_total = Counter(
        "s3pathio_operations_total",
        "Total object store calls by operation and outcome",
        ["operation", "status"],
    )

    retries_total = Counter(
        "s3pathio_retries_total",
        "Total retried object store calls by operation",
        ["operation"],
    )

    bytes_uploaded_total = Counter(
        "s3pathio_bytes_uploaded_total",
        "Total bytes sent to the object store",
    )

    bytes_downloaded_total = Counter(
        "s3pathio_bytes_downloaded_total",
        "Total bytes received from the object store",
    )

    _initialized = True


def record_operation(operation: str, status: str) -> None:
    if operations_total is not None:
        operations_total.labels(operation=operation, status=status).inc()


def record_retry(operation: str) -> None:
    if retries_total is not None:
        retries_total.labels(operation=operation).inc()


def record_upload(size: int) -> None:
    if bytes_uploaded_total is not None:
        bytes_uploaded_total.inc(size)


def record_download(size: int) -> None:
    if bytes_downloaded_total is not None:
        bytes_downloaded_total.inc(size)
