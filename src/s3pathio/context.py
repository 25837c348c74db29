"""Store configuration references carried by every S3Path.

A ``StoreConfig`` binds Settings to the object store client used with them.
Paths hold a reference to one; paths built without an explicit config
capture the process-wide default at construction time.
"""

from __future__ import annotations

import logging
import threading

from s3pathio.client import ObjectStoreClient
from s3pathio.config import Settings, settings_from_env
from s3pathio.retry import RetryPolicy
from s3pathio.storage import create_client

logger = logging.getLogger(__name__)


class StoreConfig:
    """Settings plus the object store client they describe.

    The client is built lazily from ``settings.client`` on first use unless
    one is supplied. Equality is identity: two paths are only equal when
    they share the same StoreConfig.

    Attributes:
        settings: The resolved Settings.
        retry_policy: Policy applied to retried object store calls.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: ObjectStoreClient | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.retry_policy = retry_policy or RetryPolicy.from_settings(self.settings.retry)
        self._client = client
        self._client_lock = threading.Lock()

    @property
    def client(self) -> ObjectStoreClient:
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = create_client(self.settings.client)
        return self._client

    @property
    def part_size(self) -> int:
        return self.settings.transfer.part_size

    @property
    def read_window_size(self) -> int:
        return self.settings.transfer.read_window_size

    @property
    def max_concurrency(self) -> int:
        return self.settings.transfer.max_concurrency

    def __repr__(self) -> str:
        return f"StoreConfig(backend={self.settings.client.backend!r}, region={self.settings.client.region!r})"


_default: StoreConfig | None = None
_default_lock = threading.Lock()


def default_config() -> StoreConfig:
    """Return the process-wide default StoreConfig.

    Resolved once, from the environment (see ``settings_from_env``), the
    first time it is needed. Never changes afterwards except through
    ``set_default_config``.
    """
    global _default
    if _default is None:
        with _default_lock:
            if _default is None:
                _default = StoreConfig(settings_from_env())
                logger.debug("Resolved default store config: %r", _default)
    return _default


def set_default_config(config: StoreConfig | None) -> StoreConfig | None:
    """Replace the process-wide default and return the previous one.

    Passing None drops the default so the next ``default_config()`` call
    resolves it again. Existing paths keep the config they captured.
    """
    global _default
    with _default_lock:
        previous, _default = _default, config
    return previous
