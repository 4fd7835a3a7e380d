"""Factory for creating storage backends based on configuration."""

import logging
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from packages.shared.exceptions import ConfigurationError
from packages.shared.storage.base import StorageBackend
from packages.shared.storage.config import StorageConfig
from packages.shared.storage.failover import FailoverStorage
from packages.shared.storage.local import LocalFileStorage
from packages.shared.storage.noop import NoOpStorage
from packages.shared.storage.s3 import S3FileStorage

if TYPE_CHECKING:
    from apps.api.config import Settings

logger = logging.getLogger(__name__)

_STORAGE_TYPE_ALIASES = {
    "filesystem": "filesystem",
    "local": "filesystem",
    "cloud": "cloud",
    "s3": "cloud",
    "cloud-with-fallback": "cloud-with-fallback",
    "noop": "noop",
}


def build_storage_backend(
    config: StorageConfig,
    s3_client: Any = None,
    initialize: bool = False,
) -> StorageBackend:
    """
    Create the backend selected by config.storage_type.

    Args:
        config: Storage configuration
        s3_client: Pre-built boto3 client (tests, shared sessions)
        initialize: Run init() before returning

    Returns:
        LocalFileStorage, S3FileStorage, FailoverStorage(S3, local) or NoOpStorage

    Raises:
        ConfigurationError: If the storage type is unknown
        BackendUnavailable: If initialize is set and a single backend fails init
    """
    storage_type = _STORAGE_TYPE_ALIASES.get(str(config.storage_type).lower())
    if storage_type is None:
        raise ConfigurationError(f"Unknown storage type: {config.storage_type}")

    logger.info(f"Configuring storage backend. Configured type: {storage_type}")

    backend: StorageBackend
    if storage_type == "filesystem":
        backend = LocalFileStorage.from_config(config)
    elif storage_type == "noop":
        backend = NoOpStorage()
    else:
        s3_backend = S3FileStorage.from_config(config, client=s3_client)
        if storage_type == "cloud":
            backend = s3_backend
        else:
            backend = FailoverStorage(s3_backend, LocalFileStorage.from_config(config))

    if initialize:
        backend.init()
    return backend


def get_storage_backend_from_settings(settings: "Settings") -> StorageBackend:
    """
    Create storage backend directly from a Settings object.

    Useful for dependency injection in tests.

    Args:
        settings: Application settings

    Returns:
        Configured StorageBackend instance
    """
    return build_storage_backend(settings.storage_config())


@lru_cache(maxsize=1)
def get_storage_backend() -> StorageBackend:
    """
    Process-wide backend built from the application settings and initialized.

    Returns:
        Configured StorageBackend instance
    """
    # Import settings lazily to avoid circular imports
    from apps.api.config import get_settings

    return build_storage_backend(get_settings().storage_config(), initialize=True)
