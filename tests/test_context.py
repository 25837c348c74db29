"""Tests for StoreConfig and the process-wide default."""

from unittest.mock import patch

from s3pathio.config import ClientSettings, RetrySettings, Settings
from s3pathio.context import StoreConfig, default_config, set_default_config
from s3pathio.storage.memory import MemoryObjectStoreClient


class TestStoreConfig:
    """Tests for StoreConfig."""

    def test_client_built_lazily_once(self):
        config = StoreConfig(Settings(client=ClientSettings(backend="memory")))
        with patch("s3pathio.context.create_client", wraps=lambda s: MemoryObjectStoreClient()) as factory:
            first = config.client
            second = config.client
        assert first is second
        assert factory.call_count == 1

    def test_supplied_client_used(self):
        client = MemoryObjectStoreClient()
        assert StoreConfig(client=client).client is client

    def test_retry_policy_from_settings(self):
        config = StoreConfig(Settings(retry=RetrySettings(max_attempts=9)))
        assert config.retry_policy.max_attempts == 9

    def test_transfer_properties(self):
        config = StoreConfig()
        assert config.part_size == config.settings.transfer.part_size
        assert config.read_window_size == config.settings.transfer.read_window_size
        assert config.max_concurrency == config.settings.transfer.max_concurrency

    def test_identity_equality(self):
        settings = Settings()
        assert StoreConfig(settings) != StoreConfig(settings)


class TestDefaultConfig:
    """Tests for default_config() and set_default_config()."""

    def test_resolved_once_from_environment(self, monkeypatch):
        monkeypatch.delenv("S3PATHIO_CONFIG", raising=False)
        monkeypatch.setenv("S3PATHIO_REGION", "sa-east-1")
        previous = set_default_config(None)
        try:
            first = default_config()
            assert first.settings.client.region == "sa-east-1"

            monkeypatch.setenv("S3PATHIO_REGION", "us-west-2")
            assert default_config() is first
        finally:
            set_default_config(previous)

    def test_set_returns_previous(self, config):
        replacement = StoreConfig()
        assert set_default_config(replacement) is config
        assert default_config() is replacement
        assert set_default_config(config) is replacement
