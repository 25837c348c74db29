"""Object store client backends for s3pathio."""

from typing import TYPE_CHECKING

from s3pathio.client import ObjectStoreClient

if TYPE_CHECKING:
    from s3pathio.config import ClientSettings

__all__ = ["create_client"]


def create_client(settings: "ClientSettings") -> ObjectStoreClient:
    """Create an object store client based on configuration.

    Args:
        settings: The client settings.

    Returns:
        A client implementing the ObjectStoreClient protocol.

    Raises:
        ValueError: If the backend is unknown.
    """
    backend = settings.backend

    if backend == "s3":
        from s3pathio.storage.aws import Boto3ObjectStoreClient

        return Boto3ObjectStoreClient(settings)

    elif backend == "memory":
        from s3pathio.storage.memory import MemoryObjectStoreClient

        return MemoryObjectStoreClient()

    else:
        raise ValueError(f"Unknown object store backend: {backend}")
