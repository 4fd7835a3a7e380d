"""
Object storage gateway.

Provides a single storage contract with interchangeable backends:
- Local disk storage (development, fallback)
- S3-compatible storage (AWS S3, MinIO, Scaleway, ...)
- Primary/fallback composition of the two
plus key generation, bucket routing and URL generation.
"""

from packages.shared.storage.base import StorageBackend
from packages.shared.storage.config import DEFAULT_KEY_TEMPLATES, FileCategory, StorageConfig
from packages.shared.storage.factory import (
    build_storage_backend,
    get_storage_backend,
    get_storage_backend_from_settings,
)
from packages.shared.storage.failover import FailoverStorage
from packages.shared.storage.keys import StorageKeyGenerator, sanitize_filename, validate_key
from packages.shared.storage.local import LocalFileStorage
from packages.shared.storage.noop import NoOpStorage
from packages.shared.storage.resolver import StorageConfigurationResolver
from packages.shared.storage.s3 import S3FileStorage
from packages.shared.storage.urls import Provider, StorageUrlGenerator, UrlType

__all__ = [
    "DEFAULT_KEY_TEMPLATES",
    "FailoverStorage",
    "FileCategory",
    "LocalFileStorage",
    "NoOpStorage",
    "Provider",
    "S3FileStorage",
    "StorageBackend",
    "StorageConfig",
    "StorageConfigurationResolver",
    "StorageKeyGenerator",
    "StorageUrlGenerator",
    "UrlType",
    "build_storage_backend",
    "get_storage_backend",
    "get_storage_backend_from_settings",
    "sanitize_filename",
    "validate_key",
]
