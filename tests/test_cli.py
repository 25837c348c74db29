"""Tests for the s3pathio command line."""

import pytest
import yaml

from s3pathio.cli import main, parse_args, run
from s3pathio.context import default_config

BUCKET = "test-bucket"


@pytest.fixture(autouse=True)
def _keep_pytest_logging(monkeypatch):
    """main() reconfigures root logging; keep pytest's capture handlers in place."""
    monkeypatch.setattr("s3pathio.cli.configure_logging", lambda **kwargs: None)
    monkeypatch.setattr("s3pathio.cli.logging.basicConfig", lambda **kwargs: None)


@pytest.fixture
def memory_config_file(tmp_path):
    path = tmp_path / "s3pathio.yaml"
    path.write_text(yaml.dump({"client": {"backend": "memory"}, "logging": {"level": "WARNING"}}))
    return path


class TestParseArgs:
    """Tests for parse_args()."""

    def test_global_options(self):
        args = parse_args(["--endpoint-url", "http://localhost:9000", "--log-format", "json", "ls", "s3://b/"])
        assert args.endpoint_url == "http://localhost:9000"
        assert args.log_format == "json"
        assert args.command == "ls"
        assert args.long is False

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])

    def test_cp(self):
        args = parse_args(["cp", "s3://b/k", "/tmp/out"])
        assert (args.src, args.dst) == ("s3://b/k", "/tmp/out")


class TestRun:
    """Subcommands run against the in-memory store."""

    def test_ls(self, store, config, capsys):
        for key in ("dir/a.txt", "dir/sub/b.txt"):
            store.put_object(BUCKET, key, b"12345")

        run(parse_args(["ls", f"s3://{BUCKET}/dir/"]), config)

        assert capsys.readouterr().out.splitlines() == ["a.txt", "sub/"]

    def test_ls_long(self, store, config, capsys):
        store.put_object(BUCKET, "dir/a.txt", b"12345")
        store.put_object(BUCKET, "dir/sub/b.txt", b"x")

        run(parse_args(["ls", "--long", f"s3://{BUCKET}/dir/"]), config)

        lines = capsys.readouterr().out.splitlines()
        assert lines[0].split() == ["5", "a.txt"]
        assert lines[1].split() == ["PRE", "sub/"]

    def test_cat(self, store, config, capsysbinary):
        store.put_object(BUCKET, "f", b"line one\nline two\n")
        run(parse_args(["cat", f"s3://{BUCKET}/f"]), config)
        assert capsysbinary.readouterr().out == b"line one\nline two\n"

    def test_cp_round_trip(self, store, config, tmp_path):
        source = tmp_path / "in.txt"
        source.write_bytes(b"payload")
        target = tmp_path / "out.txt"

        run(parse_args(["cp", str(source), f"s3://{BUCKET}/copied"]), config)
        run(parse_args(["cp", f"s3://{BUCKET}/copied", str(target)]), config)

        assert store.get_object(BUCKET, "copied") == b"payload"
        assert target.read_bytes() == b"payload"

    def test_mkdir_stat_rm(self, store, config, capsys):
        run(parse_args(["mkdir", f"s3://{BUCKET}/dir/"]), config)
        run(parse_args(["stat", f"s3://{BUCKET}/dir/"]), config)
        assert "size: 0" in capsys.readouterr().out

        run(parse_args(["rm", f"s3://{BUCKET}/dir/"]), config)
        assert store.call_count("delete_object") == 1


class TestMain:
    """Tests for main() exit codes and configuration."""

    def test_success(self, memory_config_file):
        assert main(["--config", str(memory_config_file), "mkdir", f"s3://{BUCKET}/dir/"]) == 0
        assert default_config().settings.client.backend == "memory"

    def test_store_error(self, memory_config_file):
        assert main(["--config", str(memory_config_file), "stat", f"s3://{BUCKET}/missing"]) == 1

    def test_invalid_path(self, memory_config_file):
        assert main(["--config", str(memory_config_file), "ls", "not-a-uri"]) == 1

    def test_missing_config(self, tmp_path):
        assert main(["--config", str(tmp_path / "nope.yaml"), "ls", f"s3://{BUCKET}/"]) == 1

    def test_endpoint_override(self, memory_config_file):
        main(["--config", str(memory_config_file), "--endpoint-url", "http://x:1", "mkdir", f"s3://{BUCKET}/d/"])
        assert default_config().settings.client.endpoint_url == "http://x:1"
