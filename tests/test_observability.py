"""Tests for structured logging and Prometheus metrics."""

import json
import logging

from prometheus_client import REGISTRY

from s3pathio import metrics
from s3pathio.logging_config import JSONFormatter, configure_logging
from s3pathio.path import S3Path
from s3pathio.retry import RetryPolicy

BUCKET = "test-bucket"


def _record(msg: str = "hello %s", args=("world",), **extra) -> logging.LogRecord:
    record = logging.LogRecord("s3pathio.test", logging.WARNING, __file__, 1, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_basic_fields(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "s3pathio.test"
        assert entry["message"] == "hello world"
        assert "timestamp" in entry

    def test_extra_fields(self):
        line = JSONFormatter().format(
            _record(operation="upload_part", bucket="b", key="k", upload_id="u1", part_number=3)
        )
        entry = json.loads(line)
        assert entry["operation"] == "upload_part"
        assert entry["bucket"] == "b"
        assert entry["key"] == "k"
        assert entry["upload_id"] == "u1"
        assert entry["part_number"] == 3

    def test_single_line(self):
        assert "\n" not in JSONFormatter().format(_record("multi\nline", ()))


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_json_handler(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging(level="DEBUG", fmt="json")
            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JSONFormatter)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)


class TestRetryLogging:
    """Retries are logged with the operation and attempt."""

    def test_warning_per_retry(self, caplog):
        calls = iter([ConnectionError("reset"), "ok"])

        def flaky():
            result = next(calls)
            if isinstance(result, Exception):
                raise result
            return result

        policy = RetryPolicy(jitter=False, sleep=lambda s: None)
        with caplog.at_level(logging.WARNING, logger="s3pathio.retry"):
            policy.call("put_object", flaky)

        records = [r for r in caplog.records if r.name == "s3pathio.retry"]
        assert len(records) == 1
        assert records[0].operation == "put_object"
        assert records[0].attempt == 1


class TestMetrics:
    """Tests for the Prometheus counters."""

    def test_helpers_are_noops_before_init(self, monkeypatch):
        monkeypatch.setattr(metrics, "operations_total", None)
        monkeypatch.setattr(metrics, "bytes_uploaded_total", None)
        metrics.record_operation("put_object", "ok")
        metrics.record_upload(10)

    def test_counters_after_init(self):
        metrics.init_metrics()
        metrics.init_metrics()

        def sample(name, labels=None):
            return REGISTRY.get_sample_value(name, labels or {}) or 0.0

        ops_before = sample("s3pathio_operations_total", {"operation": "put_object", "status": "ok"})
        up_before = sample("s3pathio_bytes_uploaded_total")

        S3Path(BUCKET, "metered").write_bytes(b"12345")

        assert sample("s3pathio_operations_total", {"operation": "put_object", "status": "ok"}) == ops_before + 1
        assert sample("s3pathio_bytes_uploaded_total") == up_before + 5
