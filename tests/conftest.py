"""Shared pytest fixtures for s3pathio tests.

Every test runs against an in-memory object store. The process-wide
default store config is replaced for the duration of each test so paths
built without an explicit config land in the same store, and restored
afterwards.
"""

import pytest

from s3pathio.config import ClientSettings, Settings, TransferSettings
from s3pathio.context import StoreConfig, set_default_config
from s3pathio.retry import RetryPolicy
from s3pathio.storage.memory import MemoryObjectStoreClient

BUCKET = "test-bucket"


@pytest.fixture
def store() -> MemoryObjectStoreClient:
    """A fresh in-memory object store."""
    return MemoryObjectStoreClient()


@pytest.fixture
def sleeps() -> list[float]:
    """Delays requested by the retry policy, in seconds. Nothing really sleeps."""
    return []


@pytest.fixture
def make_config(sleeps):
    """Factory for StoreConfigs bound to a given client and transfer sizes."""

    def _make(
        client=None,
        part_size: int = 5 * 1024 * 1024,
        read_window_size: int = 5 * 1024 * 1024,
        max_concurrency: int = 4,
    ) -> StoreConfig:
        settings = Settings(
            client=ClientSettings(backend="memory"),
            transfer=TransferSettings(
                part_size=part_size,
                read_window_size=read_window_size,
                max_concurrency=max_concurrency,
            ),
        )
        policy = RetryPolicy(jitter=False, sleep=sleeps.append)
        return StoreConfig(settings, client=client or MemoryObjectStoreClient(), retry_policy=policy)

    return _make


@pytest.fixture
def config(store, make_config) -> StoreConfig:
    """StoreConfig over the ``store`` fixture with default sizes."""
    return make_config(store)


@pytest.fixture(autouse=True)
def _default_store_config(config):
    """Install ``config`` as the process-wide default for the test."""
    previous = set_default_config(config)
    yield config
    set_default_config(previous)
