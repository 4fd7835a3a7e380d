"""
Primary/fallback storage composition.

FailoverStorage presents two backends (typically S3 + local disk) as one
StorageBackend. Primary failures are logged and retried once on the
fallback; an error reaches the caller only when both sides have failed.
"""

import logging
from pathlib import Path
from typing import BinaryIO

from packages.shared.exceptions import NotFound, StorageUnavailable, UnsupportedOperation
from packages.shared.storage.base import Content, StorageBackend
from packages.shared.storage.keys import validate_key

logger = logging.getLogger(__name__)


class FailoverStorage(StorageBackend):
    """
    Storage backend delegating to a primary with a fallback.

    load_as_local_path and list_all only consult the fallback: the primary
    is expected to be an object store without local paths or listings.
    """

    def __init__(self, primary: StorageBackend, fallback: StorageBackend):
        logger.info(
            f"Initializing FailoverStorage with Primary: {primary.backend_name}, "
            f"Fallback: {fallback.backend_name}"
        )
        self.primary = primary
        self.fallback = fallback

    @property
    def backend_name(self) -> str:
        return f"{self.primary.backend_name}+{self.fallback.backend_name}"

    def init(self) -> None:
        """Initialize both sides; a failure on either is logged, never raised."""
        for role, backend in (("primary", self.primary), ("fallback", self.fallback)):
            logger.info(f"Initializing {role} ({backend.backend_name}) storage...")
            try:
                backend.init()
            except Exception as e:
                logger.error(
                    f"Failed to initialize {role} ({backend.backend_name}) storage: {e}. "
                    f"Proceeding without it."
                )

    def store(
        self,
        content: Content,
        key: str,
        content_type: str | None = None,
    ) -> str:
        """
        Store on the primary, falling back on any primary error.

        The key and content are checked and the content read once up front,
        so caller errors (InvalidKey, EmptyContent) surface unchanged and a
        consumed stream cannot starve the fallback.
        """
        validate_key(key)
        data = self.read_content(content, key)

        try:
            logger.debug(f"Attempting to store '{key}' using primary ({self.primary.backend_name}) storage.")
            return self.primary.store(data, key, content_type)
        except Exception as primary_error:
            logger.warning(
                f"Failed to store '{key}' using primary ({self.primary.backend_name}) storage: "
                f"{primary_error}. Attempting fallback ({self.fallback.backend_name})."
            )
            try:
                return self.fallback.store(data, key, content_type)
            except Exception as fallback_error:
                logger.error(f"Failed to store '{key}' using fallback storage as well: {fallback_error}")
                raise StorageUnavailable("store", key, primary_error, fallback_error) from fallback_error

    def load_as_handle(self, key: str) -> BinaryIO:
        try:
            return self.primary.load_as_handle(key)
        except Exception as primary_error:
            logger.warning(
                f"Primary storage could not load '{key}' ({primary_error}). Attempting fallback."
            )
            try:
                return self.fallback.load_as_handle(key)
            except Exception as fallback_error:
                logger.error(f"Failed to load '{key}' using fallback storage as well: {fallback_error}")
                raise NotFound(key) from fallback_error

    def load_as_local_path(self, key: str) -> Path:
        logger.debug(f"load_as_local_path('{key}') reflects fallback ({self.fallback.backend_name}) storage only.")
        return self.fallback.load_as_local_path(key)

    def list_all(self) -> list[str]:
        logger.debug(f"list_all() reflects fallback ({self.fallback.backend_name}) storage only.")
        try:
            return self.fallback.list_all()
        except Exception as e:
            logger.error(f"Error listing fallback storage: {e}")
            return []

    def exists(self, key: str) -> bool:
        for backend in (self.primary, self.fallback):
            try:
                if backend.exists(key):
                    return True
            except Exception as e:
                logger.warning(f"Could not check '{key}' in {backend.backend_name} storage: {e}")
        return False

    def delete(self, key: str) -> bool:
        """
        Delete from both sides.

        Returns:
            True if either side removed the object
        """
        primary_deleted = False
        fallback_deleted = False
        try:
            primary_deleted = self.primary.delete(key)
        except Exception as e:
            logger.warning(f"Failed to delete '{key}' from primary storage: {e}. Continuing with fallback.")
        try:
            fallback_deleted = self.fallback.delete(key)
        except Exception as e:
            logger.warning(f"Failed to delete '{key}' from fallback storage: {e}")
        return primary_deleted or fallback_deleted

    def delete_all(self) -> None:
        logger.warning("Deleting all files from primary and fallback storage.")
        for role, backend in (("primary", self.primary), ("fallback", self.fallback)):
            try:
                backend.delete_all()
            except Exception as e:
                logger.error(f"Error deleting all files from {role} ({backend.backend_name}) storage: {e}")

    def get_signed_url(self, key: str, ttl_seconds: int | None = None) -> str:
        try:
            return self.primary.get_signed_url(key, ttl_seconds)
        except UnsupportedOperation:
            logger.warning(f"Primary storage does not support signed URLs for '{key}'. Attempting fallback.")
            try:
                return self.fallback.get_signed_url(key, ttl_seconds)
            except UnsupportedOperation:
                logger.error(f"Neither primary nor fallback storage support signed URLs for '{key}'.")
                raise
            except Exception as fallback_error:
                logger.error(f"Error getting signed URL from fallback for '{key}': {fallback_error}")
                raise StorageUnavailable("get_signed_url", key, None, fallback_error) from fallback_error
        except Exception as primary_error:
            logger.warning(
                f"Failed to get signed URL for '{key}' from primary storage: {primary_error}. "
                f"Attempting fallback."
            )
            try:
                return self.fallback.get_signed_url(key, ttl_seconds)
            except Exception as fallback_error:
                logger.error(f"Failed to get signed URL for '{key}' from fallback as well: {fallback_error}")
                raise StorageUnavailable("get_signed_url", key, primary_error, fallback_error) from fallback_error
