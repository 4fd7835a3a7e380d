"""
Storage configuration resolver.

Single source of truth for bucket routing, base URLs, region and signed-URL
expiry. Derived values are memoized per instance; the inputs are immutable
so recomputing under a race is harmless and no lock is taken.
"""

import logging
from typing import Any

from packages.shared.storage.config import FileCategory, StorageConfig
from packages.shared.storage.keys import StorageKeyGenerator

logger = logging.getLogger(__name__)


class StorageConfigurationResolver:
    """Resolves buckets, URLs and expirations from a StorageConfig."""

    def __init__(self, config: StorageConfig, key_generator: StorageKeyGenerator | None = None):
        self.config = config
        self.key_generator = key_generator or StorageKeyGenerator(config)
        self._cache: dict[str, str] = {}

    # =========================================================================
    # Buckets
    # =========================================================================

    @property
    def default_bucket_name(self) -> str:
        return self.config.default_bucket

    def get_bucket_name(self, category: FileCategory | str | None = None) -> str:
        """
        Bucket holding objects of a category.

        Categories without an explicit override (and UNKNOWN) share the
        default bucket.
        """
        if category is None:
            return self.default_bucket_name
        try:
            resolved = FileCategory(category)
        except ValueError:
            logger.warning(f"Unknown file category '{category}', using default bucket")
            return self.default_bucket_name
        return self.config.bucket_names.get(resolved, self.default_bucket_name)

    def get_category_from_key(self, key: str) -> FileCategory:
        return self.key_generator.classify_key(key)

    def get_bucket_for_key(self, key: str) -> str:
        """Route an existing key to its bucket without the caller naming the category."""
        return self.get_bucket_name(self.get_category_from_key(key))

    def bucket_names_in_use(self) -> list[str]:
        """Every distinct bucket the configuration can route to, default first."""
        buckets = [self.default_bucket_name]
        for bucket in self.config.bucket_names.values():
            if bucket not in buckets:
                buckets.append(bucket)
        return buckets

    # =========================================================================
    # URLs and regions
    # =========================================================================

    def get_storage_base_url(self) -> str:
        """
        Base URL for direct access to the default bucket.

        Path-style endpoints yield '{endpoint}/{bucket}', otherwise the AWS
        virtual-hosted form; with no endpoint configured, the filesystem
        driver's base URL is used.
        """
        cached = self._cache.get("baseUrl")
        if cached is not None:
            return cached

        endpoint = self.config.endpoint_url
        bucket = self.default_bucket_name
        if endpoint and bucket:
            if self.config.path_style_access:
                value = f"{endpoint}/{bucket}"
            else:
                value = f"https://{bucket}.s3.{self.region}.amazonaws.com"
        else:
            value = self.config.base_url

        self._cache["baseUrl"] = value
        return value

    @property
    def region(self) -> str:
        return self.config.region or "us-east-1"

    def is_public_access_enabled(self) -> bool:
        return self.config.public_access_enabled

    def is_production(self) -> bool:
        return self.config.environment == "production"

    @property
    def signed_url_ttl_seconds(self) -> int:
        return self.config.signed_url_ttl_seconds

    def resolve_ttl(self, ttl_seconds: int | None) -> int:
        """Requested TTL if positive, else the configured default."""
        if ttl_seconds is not None and ttl_seconds > 0:
            return int(ttl_seconds)
        return self.signed_url_ttl_seconds

    # =========================================================================
    # Keys
    # =========================================================================

    def generate_storage_key(
        self,
        category: FileCategory | str,
        entity_id: object,
        filename: str | None,
    ) -> str:
        return self.key_generator.generate_key(category, entity_id, filename)

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.debug("Storage configuration cache cleared")

    def get_configuration_snapshot(self) -> dict[str, Any]:
        """Current effective configuration, without credentials."""
        return {
            "storage_type": self.config.storage_type,
            "environment": self.config.environment,
            "default_bucket_name": self.default_bucket_name,
            "bucket_names": {c.value: b for c, b in self.config.bucket_names.items()},
            "storage_base_url": self.get_storage_base_url(),
            "public_access_enabled": self.is_public_access_enabled(),
            "region": self.region,
            "path_style_access": self.config.path_style_access,
            "signed_url_ttl_seconds": self.signed_url_ttl_seconds,
            "cdn_base_url": self.config.cdn_base_url,
            "key_templates": {c.value: t for c, t in self.config.templates.items()},
        }
