"""
Simplified file storage interface for the API layer.

Re-exports storage backends from packages/shared/storage with
convenience functions for common operations.

Usage:
    from apps.api.storage import generate_key, store_file, get_file_url

    # Save a listing photo
    key = generate_key(FileCategory.LISTING_MEDIA, 123, "My Car Photo.JPG")
    store_file(photo_bytes, key, "image/jpeg")

    # Hand a time-limited link to the browser
    url = get_file_url(key, ttl_seconds=900)
"""

from functools import lru_cache
from typing import BinaryIO

from apps.api.config import get_settings
from packages.shared.storage import (
    FileCategory,
    LocalFileStorage,
    S3FileStorage,
    StorageBackend,
    StorageKeyGenerator,
    get_storage_backend,
)
from packages.shared.storage.base import Content

__all__ = [
    # Classes
    "FileCategory",
    "LocalFileStorage",
    "S3FileStorage",
    "StorageBackend",
    # Factories
    "get_storage_backend",
    "get_key_generator",
    # Convenience functions
    "generate_key",
    "store_file",
    "load_file",
    "delete_file",
    "file_exists",
    "get_file_url",
]


@lru_cache(maxsize=1)
def get_key_generator() -> StorageKeyGenerator:
    """Key generator using the templates from the application settings."""
    return StorageKeyGenerator(get_settings().storage_config())


# =============================================================================
# Convenience Functions
# =============================================================================


def generate_key(
    category: FileCategory | str,
    entity_id: object,
    filename: str | None,
) -> str:
    """
    Generate a storage key for a new object.

    Args:
        category: File category
        entity_id: Owning entity (listing id, user id, sample category, ...)
        filename: Original filename

    Returns:
        Storage key
    """
    return get_key_generator().generate_key(category, entity_id, filename)


def store_file(
    content: Content,
    key: str,
    content_type: str | None = None,
) -> str:
    """
    Save content to storage.

    Args:
        content: Bytes or readable binary file object
        key: Storage key, usually from generate_key
        content_type: MIME type

    Returns:
        Access reference returned by the backend (URL or key)
    """
    return get_storage_backend().store(content, key, content_type)


def load_file(key: str) -> BinaryIO:
    """
    Open a stored file for reading.

    Args:
        key: Storage key

    Returns:
        File-like object for reading; the caller closes it

    Raises:
        NotFound: If the file doesn't exist
    """
    return get_storage_backend().load_as_handle(key)


def delete_file(key: str) -> bool:
    """
    Delete a file from storage.

    Returns:
        True if something was deleted, False if it was already absent
    """
    return get_storage_backend().delete(key)


def file_exists(key: str) -> bool:
    """Check if a file exists in storage."""
    return get_storage_backend().exists(key)


def get_file_url(key: str, ttl_seconds: int | None = None) -> str:
    """
    URL a client can use to download the file.

    Args:
        key: Storage key
        ttl_seconds: Link lifetime; the configured default when omitted

    Returns:
        Signed (or, where signing is unavailable, public) URL
    """
    return get_storage_backend().get_signed_url(key, ttl_seconds)
